# =============================================================================
# grantdesk/cli/grants.py - Grant Management CLI
# =============================================================================
#
# Runs the same services as the web app (assembled by
# grantdesk.main.build_services) from the command line.
#
# Supported subcommands:
#
#   ingest FILE            - parse, analyze, embed and store one announcement
#   list [--seed-samples]  - id, derived status and title of every grant
#   show GRANT_ID          - the full record
#   ask GRANT_ID QUESTION  - one RAG answer about a grant
#   delete GRANT_ID        - cascade delete (asks for confirmation)
#   check-embedding-dim    - see diagnose.py
#   test-api-key           - see diagnose.py
#   debug-db               - see diagnose.py
#
# Without SUPABASE_URL the store is in-memory and lives only as long as one
# command; use --seed-samples to try list/show/ask offline.
#
# Usage examples:
#   python -m grantdesk.cli ingest ./공고문.hwpx
#   python -m grantdesk.cli list
#   python -m grantdesk.cli ask GRANT-1718000000000 "신청 자격이 어떻게 되나요?"
# =============================================================================

"""Command-line interface for GrantDesk.

Usage::

    python -m grantdesk.cli ingest ./announcement.pdf
    python -m grantdesk.cli list --seed-samples
    python -m grantdesk.cli delete GRANT-1718000000000 --yes
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from grantdesk.models.grant import GrantRecord
from grantdesk.models.pipeline import ProcessingStatus
from grantdesk.utils.errors import GrantDeskError


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_status(status: ProcessingStatus) -> None:
    print(f"[{status.progress:>3}%] {status.step.value:<10} {status.message}")


def _print_grant(record: GrantRecord, full: bool = False) -> None:
    print(f"{record.title or '(제목 없음)'}")
    print("=" * 60)
    print(f"  ID:          {record.id}")
    print(f"  Status:      {record.status.value}")
    print(f"  Type:        {record.grant_type}")
    print(f"  Amount:      {record.support_amount}")
    print(f"  Period:      {record.period}")
    print(f"  Deadline:    {record.deadline}")
    print(f"  Region:      {record.region}")
    print(f"  Industry:    {record.industry}")
    if not full:
        return
    print(f"  Eligibility: {record.eligibility}")
    if record.required_documents:
        print("  Required documents:")
        for document in record.required_documents:
            print(f"    - {document}")
    print(f"\n{record.description}")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    try:
        outcome = await components["pipeline"].ingest(
            path.read_bytes(),
            path.name,
            on_status=_print_status,
            declared_format=args.format,
        )
    except GrantDeskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print()
    _print_grant(outcome.grant, full=True)
    print(
        f"\n{outcome.chunk_count} chunks from {outcome.unit_count} pages/sections "
        f"in {outcome.elapsed_s:.1f}s"
    )
    if outcome.is_degraded:
        print(
            "Warning: the remote store rejected the write; the grant was kept in memory only "
            f"({outcome.grant_write.error or outcome.embeddings_write.error})",
            file=sys.stderr,
        )
    return 0


async def _handle_list(args: argparse.Namespace, components: dict[str, Any]) -> int:
    gateway = components["gateway"]
    if args.seed_samples:
        from grantdesk.models.samples import SAMPLE_GRANTS

        for record in SAMPLE_GRANTS:
            await gateway.fallback.save_grant(record)

    records = await gateway.list_grants()
    if not records:
        print("No grants stored.")
        return 0

    print(f"{'ID':<22} {'STATUS':<10} TITLE")
    for record in records:
        print(f"{record.id:<22} {record.status.value:<10} {record.title}")
    print(f"\n{len(records)} grant(s)")
    return 0


async def _handle_show(args: argparse.Namespace, components: dict[str, Any]) -> int:
    record = await components["gateway"].get_grant(args.grant_id)
    if record is None:
        print(f"Error: grant not found: {args.grant_id}", file=sys.stderr)
        return 1
    _print_grant(record, full=True)
    return 0


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    orchestrator = components["chat_factory"]()
    try:
        answer = await orchestrator.ask(args.grant_id, args.question)
    except GrantDeskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(answer)
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    if not args.yes:
        reply = input(f"Delete grant {args.grant_id} and all of its chunks? [y/N] ")
        if reply.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return 1

    try:
        removed = await components["gateway"].delete_grant(args.grant_id)
    except GrantDeskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if not removed:
        print(f"Error: grant not found: {args.grant_id}", file=sys.stderr)
        return 1
    print(f"Deleted {args.grant_id}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the GrantDesk CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m grantdesk.cli",
        description="Ingest, browse and query government grant announcements.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Ingest a PDF or HWPX announcement")
    ingest_parser.add_argument("file", help="Path to the announcement file")
    ingest_parser.add_argument(
        "--format",
        choices=["pdf", "hwpx"],
        default=None,
        help="Override the format detected from the file extension",
    )

    # -- list --
    list_parser = subparsers.add_parser("list", help="List stored grants")
    list_parser.add_argument(
        "--seed-samples",
        action="store_true",
        dest="seed_samples",
        help="Load the built-in sample announcements into the in-memory store first",
    )

    # -- show --
    show_parser = subparsers.add_parser("show", help="Show one grant")
    show_parser.add_argument("grant_id", help="Grant id, e.g. GRANT-1718000000000")

    # -- ask --
    ask_parser = subparsers.add_parser("ask", help="Ask a question about a grant")
    ask_parser.add_argument("grant_id", help="Grant id")
    ask_parser.add_argument("question", help="Question text")

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete a grant and its chunks")
    delete_parser.add_argument("grant_id", help="Grant id")
    delete_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    # -- diagnostics --
    subparsers.add_parser(
        "check-embedding-dim",
        help="Compare the current embedding dimension with stored vectors",
    )
    subparsers.add_parser("test-api-key", help="Call every configured analysis model once")
    subparsers.add_parser("debug-db", help="Check connectivity to the remote store")

    return parser


_HANDLERS = {
    "ingest": _handle_ingest,
    "list": _handle_list,
    "show": _handle_show,
    "ask": _handle_ask,
    "delete": _handle_delete,
}


async def _run(args: argparse.Namespace) -> int:
    from grantdesk.cli.diagnose import (
        handle_check_embedding_dim,
        handle_debug_db,
        handle_test_api_key,
    )
    from grantdesk.config.settings import Settings
    from grantdesk.main import build_services, close_services

    components = build_services(Settings())
    try:
        if args.command == "check-embedding-dim":
            return await handle_check_embedding_dim(components)
        if args.command == "test-api-key":
            return await handle_test_api_key(components)
        if args.command == "debug-db":
            return await handle_debug_db(components)
        return await _HANDLERS[args.command](args, components)
    finally:
        await close_services(components)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
