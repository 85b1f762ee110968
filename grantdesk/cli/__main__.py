# =============================================================================
# grantdesk/cli/__main__.py - Package Entry Point
# =============================================================================
#
# Enables `python -m grantdesk.cli <command>`; every command, including the
# diagnostics, is dispatched by grants.main().
# =============================================================================

"""Allow ``python -m grantdesk.cli`` execution."""

from grantdesk.cli.grants import main

main()
