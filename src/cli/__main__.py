# =============================================================================
# src/cli/__main__.py — Package Entry Point
# =============================================================================
#
# Enables running the CLI package itself as a module:
#     python -m src.cli sync-playbooks
#
# Cron jobs call this in place of the old time-driven sheet triggers.
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

import sys

from src.cli.jobs import main

sys.exit(main())
