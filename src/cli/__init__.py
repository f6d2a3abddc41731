# =============================================================================
# src/cli/__init__.py — CLI Module Overview
# =============================================================================
#
# Command-line jobs for operators and cron:
#
#   1. SYNC     (sync-playbooks, sync-leaderboard, sync-submissions)
#      Bulk mirror the sheet store into Firestore.  Rows are processed
#      sequentially with the provider's fixed pause every N requests;
#      failures are collected into a SyncReport, never fatal.
#
#   2. IMPORT   (import-standings)
#      Replace an editor-maintained standings sheet from a CSV export.
#
#   3. SMOKE    (test-submission)
#      Push a canned AI tip through validation and storage.
#
# Architecture Notes:
#   - argparse only, like the rest of the tooling.
#   - Components come from the same _build_all() the web app uses.
# =============================================================================

"""CLI tools for the AI Tips service.

- ``python -m src.cli`` — sync jobs, standings import, test submission.
"""
