"""CLI for the scheduled and manual AI Tips jobs.

Usage::

    # Mirror every playbook row into Firestore (upsert by sheetKey)
    python -m src.cli sync-playbooks

    # Mirror both leaderboards (and prune stale documents)
    python -m src.cli sync-leaderboard

    # Mirror every submission as submission-<no>
    python -m src.cli sync-submissions

    # Replace a standings sheet from a CSV export (header row + columns A-G)
    python -m src.cli import-standings --individual individual.csv
    python -m src.cli import-standings --team team.csv

    # Push a canned submission through the intake path
    python -m src.cli test-submission

Sync commands print the SyncReport as JSON and exit 1 when any row failed.
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import json
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from src.config.settings import Settings
from src.models.leaderboard import IndividualStandingRow, TeamStandingRow
from src.models.sync import SyncReport
from src.utils.errors import TipsError

INDIVIDUAL_COLUMNS = ("no", "id", "full_name", "function", "sub_department", "account", "points")
TEAM_COLUMNS = (
    "no", "function", "sub_department", "account",
    "accumulated_points", "team_size", "accumulated_based_on_fte",
)


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def _build_components(app_settings: Settings) -> dict[str, Any]:
    from src.main import _build_all

    return _build_all(app_settings)


@asynccontextmanager
async def _components() -> AsyncIterator[dict[str, Any]]:
    components = _build_components(Settings())
    await components["sheet_store"].initialize()
    try:
        yield components
    finally:
        await components["http_client"].aclose()


def _print_report(report: SyncReport) -> None:
    print(report.model_dump_json(by_alias=True, indent=2))


# ---------------------------------------------------------------------------
# CSV import
# ---------------------------------------------------------------------------


def read_standings_csv(path: str | Path, columns: tuple[str, ...]) -> list[dict[str, str | None]]:
    """Read a standings export: skip the header, map columns A.. onto *columns*.

    Blank cells become None; rows with no text at all are dropped.
    """
    rows: list[dict[str, str | None]] = []
    with open(path, encoding="utf-8-sig", newline="") as f:
        reader = csv.reader(f)
        next(reader, None)
        for cells in reader:
            if not any(cell.strip() for cell in cells):
                continue
            padded = list(cells[: len(columns)]) + [""] * (len(columns) - len(cells))
            rows.append({name: (cell if cell.strip() else None) for name, cell in zip(columns, padded)})
    return rows


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_sync_playbooks(args: argparse.Namespace) -> int:
    async with _components() as components:
        report = await components["playbook_service"].sync_all()
    _print_report(report)
    return 0 if report.success else 1


async def _handle_sync_leaderboard(args: argparse.Namespace) -> int:
    async with _components() as components:
        reports = await components["leaderboard_service"].mirror_to_document_store()
    for report in reports.values():
        _print_report(report)
    return 0 if all(r.success for r in reports.values()) else 1


async def _handle_sync_submissions(args: argparse.Namespace) -> int:
    async with _components() as components:
        report = await components["submission_service"].mirror_submissions()
    _print_report(report)
    return 0 if report.success else 1


async def _handle_import_standings(args: argparse.Namespace) -> int:
    path = Path(args.individual or args.team)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    async with _components() as components:
        service = components["leaderboard_service"]
        if args.individual:
            rows = [IndividualStandingRow(**r) for r in read_standings_csv(path, INDIVIDUAL_COLUMNS)]
            count = await service.replace_individual_standings(rows)
            label = "individual"
        else:
            rows = [TeamStandingRow(**r) for r in read_standings_csv(path, TEAM_COLUMNS)]
            count = await service.replace_team_standings(rows)
            label = "team"

    print(f"Imported {count} {label} standings rows from {path}")
    return 0


async def _handle_test_submission(args: argparse.Namespace) -> int:
    from src.services.submission_service import TEST_SUBMISSION

    async with _components() as components:
        result = await components["submission_service"].submit(dict(TEST_SUBMISSION))
    print(json.dumps(result, indent=2))
    return 0 if result.get("success") else 1


_HANDLERS = {
    "sync-playbooks": _handle_sync_playbooks,
    "sync-leaderboard": _handle_sync_leaderboard,
    "sync-submissions": _handle_sync_submissions,
    "import-standings": _handle_import_standings,
    "test-submission": _handle_test_submission,
}


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the jobs CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Run AI Tips sync jobs and maintenance tasks.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Job commands")

    subparsers.add_parser("sync-playbooks", help="Mirror all playbook rows to Firestore")
    subparsers.add_parser("sync-leaderboard", help="Mirror both leaderboards to Firestore")
    subparsers.add_parser("sync-submissions", help="Mirror all submissions to Firestore")

    import_parser = subparsers.add_parser(
        "import-standings", help="Replace a standings sheet from a CSV export",
    )
    import_group = import_parser.add_mutually_exclusive_group(required=True)
    import_group.add_argument("--individual", help="CSV for the individual leaderboard")
    import_group.add_argument("--team", help="CSV for the account/department leaderboard")

    subparsers.add_parser("test-submission", help="Submit a canned AI tip")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler = _HANDLERS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return asyncio.run(handler(args))
    except TipsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
