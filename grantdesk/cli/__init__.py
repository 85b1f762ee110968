# =============================================================================
# grantdesk/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line access to the GrantDesk services for operators and
# developers, run as `python -m grantdesk.cli <command>`:
#
#   1. GRANTS    (grants.py)
#      ingest / list / show / ask / delete, using the same pipeline,
#      persistence gateway and chat orchestrator as the web app.
#
#   2. DIAGNOSTICS (diagnose.py)
#      check-embedding-dim / test-api-key / debug-db for verifying API keys,
#      the remote store and embedding compatibility.
#
# Architecture Notes:
#   - argparse, no extra CLI dependency.
#   - Services are built through grantdesk.main.build_services, imported
#     inside the command runner so `--help` stays fast.
# =============================================================================

"""CLI tools for GrantDesk.

- ``python -m grantdesk.cli ingest FILE`` - ingest one announcement
- ``python -m grantdesk.cli list`` - list grants with derived status
- ``python -m grantdesk.cli check-embedding-dim`` - embedding compatibility check
"""
