"""Locate and decode the first JSON object embedded in free text.

Text models are asked for "JSON only" but regularly wrap the object in
markdown fences or add a sentence before or after it.  The scanner below
starts at the first ``{`` and walks forward counting braces until the
matching ``}``.  Braces inside JSON string literals (and escaped quotes
inside those literals) do not count, so a description such as
``"지원 규모 {최대}"`` does not end the object early.
"""

from __future__ import annotations

import json
from typing import Any

from grantdesk.utils.errors import AnalysisParseError


def find_balanced_object(text: str) -> str | None:
    """Return the substring from the first ``{`` to its matching ``}``.

    Returns ``None`` when the text has no ``{`` or the braces never balance.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def extract_json_object(text: str, provider_name: str | None = None) -> dict[str, Any]:
    """Parse the first balanced JSON object in *text*.

    Raises
    ------
    AnalysisParseError
        No balanced object was found or it is not valid JSON.
    """
    candidate = find_balanced_object(text or "")
    if candidate is None:
        raise AnalysisParseError(
            message="No JSON object found in model response",
            provider_name=provider_name,
        )

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise AnalysisParseError(
            message=f"Model response contained invalid JSON: {exc.msg}",
            provider_name=provider_name,
        ) from exc
    return parsed
