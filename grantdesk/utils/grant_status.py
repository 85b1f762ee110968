"""Derive a grant's open/closed/upcoming status from its date strings.

Status is never stored as ground truth: it depends on "today", so every
read path calls :func:`derive_status` on the record it is about to return.

Rules, evaluated in order against a midnight-normalized ``today``:

1. ``deadline`` contains a date and today is after it      -> Closed
2. ``period`` is ``"<start> ~ <end>"`` and today < start   -> Upcoming
3. ``period``'s end date is before today                   -> Closed
4. otherwise                                               -> Open

Dates are ``YYYY-MM-DD`` or ``YYYY.MM.DD`` found anywhere in the string.
A string without such a date (or with an impossible one such as month 13)
simply makes its rule not apply.
"""

from __future__ import annotations

import re
from datetime import date

from grantdesk.models.grant import GrantStatus

_DATE_RE = re.compile(r"(\d{4})[-.](\d{1,2})[-.](\d{1,2})")


def parse_loose_date(value: str | None) -> date | None:
    """Return the first ``YYYY-MM-DD`` / ``YYYY.MM.DD`` date in *value*."""
    if not value:
        return None
    match = _DATE_RE.search(value)
    if match is None:
        return None
    year, month, day = (int(group) for group in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def split_period(period: str | None) -> tuple[date | None, date | None] | None:
    """Split ``"<start> ~ <end>"`` into its two parsed dates.

    Returns ``None`` unless the string has exactly one ``~``.
    """
    if not period:
        return None
    parts = [part.strip() for part in period.split("~")]
    if len(parts) != 2:
        return None
    return parse_loose_date(parts[0]), parse_loose_date(parts[1])


def derive_status(
    period: str | None,
    deadline: str | None,
    today: date | None = None,
) -> GrantStatus:
    """Compute the current :class:`GrantStatus` for a grant.

    Parameters
    ----------
    period:
        Application window, usually ``"2025-01-01 ~ 2025-03-31"``.
    deadline:
        Final deadline (report due date or programme end date).
    today:
        Reference day; defaults to the local calendar date.

    Returns
    -------
    GrantStatus
        ``OPEN``, ``CLOSED`` or ``UPCOMING``.  ``REVIEWING`` is never derived.
    """
    today = today or date.today()

    deadline_date = parse_loose_date(deadline)
    if deadline_date is not None and today > deadline_date:
        return GrantStatus.CLOSED

    window = split_period(period)
    if window is not None:
        start, end = window
        if start is not None and today < start:
            return GrantStatus.UPCOMING
        if end is not None and today > end:
            return GrantStatus.CLOSED

    return GrantStatus.OPEN
