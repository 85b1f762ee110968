# =============================================================================
# grantdesk/cli/diagnose.py - Environment Diagnostics
# =============================================================================
#
# Connectivity and configuration checks run from the command line before
# (or instead of) starting the web server:
#
#   check-embedding-dim - embed a probe sentence and compare its dimension
#                         with a vector already stored; a mismatch means the
#                         embedding model changed and old grants must be
#                         deleted and re-uploaded.
#   test-api-key        - one short generation call per configured model.
#   debug-db            - count rows in the remote grants table.
#
# Each handler receives the component dict from grantdesk.main.build_services
# and returns a process exit code.
# =============================================================================

"""Diagnostic subcommands for ``python -m grantdesk.cli``."""

from __future__ import annotations

from typing import Any

from grantdesk.utils.errors import GrantDeskError

_PROBE_TEXT = "임베딩 차원 확인용 테스트 문장입니다."


async def handle_check_embedding_dim(components: dict[str, Any]) -> int:
    embedding_client = components["embedding_client"]
    gateway = components["gateway"]

    print(f"1. Generating a new embedding ({embedding_client.provider_name})...")
    try:
        vector = await embedding_client.embed(_PROBE_TEXT)
    except GrantDeskError as exc:
        print(f"   FAILED: {exc}")
        return 1
    print(f"   New embedding dimension: {len(vector)}")

    print("2. Reading a stored embedding...")
    try:
        stored = await gateway.sample_embedding_dimension()
    except GrantDeskError as exc:
        print(f"   FAILED: {exc}")
        return 1
    if stored is None:
        print("   No stored embeddings found; nothing to compare.")
        return 0
    print(f"   Stored embedding dimension: {stored}")

    if stored != len(vector):
        print(f"\nDimensions MISMATCH (new {len(vector)} vs stored {stored}).")
        print("Stored embeddings are incompatible with the current model; delete and re-upload those grants.")
        return 1
    print("\nDimensions match.")
    return 0


async def handle_test_api_key(components: dict[str, Any]) -> int:
    analysis_client = components["analysis_client"]

    failures = 0
    for model in analysis_client.models:
        if not model.is_available():
            print(f"  {model.model_name:<24} SKIPPED (no API key configured)")
            failures += 1
            continue
        try:
            reply = await analysis_client.probe(model)
        except GrantDeskError as exc:
            print(f"  {model.model_name:<24} FAILED  {exc}")
            failures += 1
            continue
        print(f"  {model.model_name:<24} OK      {reply.strip()[:60]}")

    return 1 if failures else 0


async def handle_debug_db(components: dict[str, Any]) -> int:
    gateway = components["gateway"]
    remote = gateway.remote
    if remote is None:
        print("Remote store is not configured (set SUPABASE_URL and SUPABASE_ANON_KEY).")
        return 1

    print(f"Connecting to {remote.get_repository_name()}...")
    try:
        count = await remote.count_grants()
        dimension = await remote.sample_embedding_dimension()
    except GrantDeskError as exc:
        print(f"  Connection FAILED: {exc}")
        return 1

    print("  Connection OK")
    print(f"  grants rows:          {count}")
    print(f"  embedding dimension:  {dimension if dimension is not None else '-'}")
    return 0
