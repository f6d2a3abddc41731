"""Leaderboard materialisation and Firestore mirroring.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services (business logic).
# Depends on: ISheetProvider (standings), IDocumentStore (optional mirror).
#
# Both leaderboards are recomputed from scratch on every call:
#
#   1. READ    — whole standings table, header already excluded
#   2. FILTER  — drop rows missing the required cells
#   3. MAP     — parse numbers the way a spreadsheet formula would
#                (leading integer, anything else falls back)
#   4. SORT    — descending by score, stable for ties
#   5. RANK    — 1..N by sorted position
#
# The mirror job writes every entry to its collection under a
# deterministic document id and deletes remote documents that no longer
# appear in the fresh snapshot.  A failed write is recorded in the
# SyncReport and the loop moves on.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

import structlog

from src.config.settings import Settings
from src.interfaces.document_store import IDocumentStore
from src.interfaces.sheet_provider import ISheetProvider
from src.models.leaderboard import (
    IndividualLeaderboardEntry,
    IndividualStandingRow,
    LeaderboardResult,
    TeamLeaderboardEntry,
    TeamStandingRow,
)
from src.models.sync import SyncReport
from src.providers.firestore.values import Timestamp
from src.utils.errors import ConfigurationError, TipsError
from src.utils.sheet_key import to_iso_timestamp

logger = structlog.get_logger(logger_name=__name__)

NO_INDIVIDUAL_ENTRIES = "No leaderboard entries yet"
NO_TEAM_ENTRIES = "No team leaderboard entries yet"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


# ── Cell helpers ──────────────────────────────────────────────────────

def parse_int(value: Any) -> int | None:
    """Parse the leading integer of a cell, or None when there is none.

    ``"42 pts"`` gives 42, ``"3.9"`` gives 3, ``"abc"`` gives None.
    """
    if value is None:
        return None
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else None


def _has_text(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def sanitize_id_part(value: str | None) -> str:
    """Lowercase *value* and collapse non-alphanumeric runs into ``_``."""
    return _NON_ALNUM_RE.sub("_", (value or "").lower()).strip("_")


def leaderboard_document_id(entry: IndividualLeaderboardEntry | TeamLeaderboardEntry) -> str:
    """Deterministic Firestore id: ``<no>_<account or function>_<subDepartment>``.

    Empty parts are left out.  Two rows with the same number, account and
    sub-department share an id and the later one wins.
    """
    parts = [
        sanitize_id_part(entry.no),
        sanitize_id_part(entry.account or entry.function),
        sanitize_id_part(entry.sub_department),
    ]
    return "_".join(p for p in parts if p)


def _now_iso() -> str:
    return to_iso_timestamp(datetime.now(timezone.utc))


# ── Mapping ───────────────────────────────────────────────────────────

def build_individual_entries(rows: list[IndividualStandingRow]) -> list[IndividualLeaderboardEntry]:
    """Filter, map, sort and rank individual standings rows."""
    kept = [
        row for row in rows
        if _has_text(row.no) and _has_text(row.full_name) and _has_text(row.function)
        and _has_text(row.points)
    ]

    mapped: list[dict[str, Any]] = []
    for row in kept:
        points = parse_int(row.points) or 0
        mapped.append({
            "no": row.no.strip(),
            "id": (row.id or "").strip(),
            "full_name": row.full_name.strip(),
            "function": row.function.strip(),
            "sub_department": (row.sub_department or "").strip(),
            "account": (row.account or "").strip() or row.full_name.strip() or "N/A",
            "points": points,
            "points_per_team_size": points,
        })

    # sorted() is stable, and stays stable with reverse=True.
    mapped.sort(key=lambda item: item["points"], reverse=True)
    return [
        IndividualLeaderboardEntry(rank=rank, **item)
        for rank, item in enumerate(mapped, start=1)
    ]


def build_team_entries(rows: list[TeamStandingRow]) -> list[TeamLeaderboardEntry]:
    """Filter, map, sort and rank team standings rows."""
    kept = [
        row for row in rows
        if _has_text(row.no) and _has_text(row.function) and _has_text(row.account)
        and _has_text(row.accumulated_points) and _has_text(row.team_size)
    ]

    mapped: list[dict[str, Any]] = []
    for row in kept:
        points = parse_int(row.accumulated_points) or 0
        team_size = parse_int(row.team_size) or 1
        sub_department = (row.sub_department or "").strip()
        mapped.append({
            "no": row.no.strip(),
            "function": row.function.strip(),
            "sub_department": sub_department,
            "program": sub_department,
            "account": row.account.strip(),
            "accumulated_points": points,
            "team_size": team_size,
            "points_per_team_member": round(points / team_size, 2) if team_size > 0 else float(points),
            "accumulated_based_on_fte": (row.accumulated_based_on_fte or "").strip(),
        })

    mapped.sort(key=lambda item: item["points_per_team_member"], reverse=True)
    return [
        TeamLeaderboardEntry(rank=rank, **item)
        for rank, item in enumerate(mapped, start=1)
    ]


class LeaderboardService:
    """Builds both leaderboards and mirrors them to the document store."""

    def __init__(
        self,
        sheet_provider: ISheetProvider,
        settings: Settings,
        document_store: IDocumentStore | None = None,
        sheet_names: dict[str, str] | None = None,
    ) -> None:
        self._sheets = sheet_provider
        self._settings = settings
        self._store = document_store
        self._sheet_names = sheet_names or {}

    async def get_individual_leaderboard(self) -> LeaderboardResult:
        sheet_name = self._sheet_names.get("individual")
        try:
            rows = await self._sheets.read_individual_standings()
        except TipsError as exc:
            logger.error("individual_leaderboard_failed", error=str(exc))
            return LeaderboardResult(
                success=False,
                error=str(exc),
                message=f"Failed to load individual leaderboard data: {exc.message}",
                last_updated=_now_iso(),
                sheet_name=sheet_name,
            )

        if not rows:
            return LeaderboardResult(
                message=NO_INDIVIDUAL_ENTRIES, last_updated=_now_iso(), sheet_name=sheet_name,
            )

        entries = build_individual_entries(rows)
        logger.debug("individual_leaderboard_built", rows=len(rows), entries=len(entries))
        return LeaderboardResult(
            entries=entries,
            last_updated=_now_iso(),
            total_entries=len(entries),
            sheet_name=sheet_name,
        )

    async def get_team_leaderboard(self) -> LeaderboardResult:
        sheet_name = self._sheet_names.get("team")
        try:
            rows = await self._sheets.read_team_standings()
        except TipsError as exc:
            logger.error("team_leaderboard_failed", error=str(exc))
            return LeaderboardResult(
                success=False,
                error=str(exc),
                message=f"Failed to load team leaderboard data: {exc.message}",
                last_updated=_now_iso(),
                sheet_name=sheet_name,
            )

        if not rows:
            return LeaderboardResult(
                message=NO_TEAM_ENTRIES, last_updated=_now_iso(), sheet_name=sheet_name,
            )

        entries = build_team_entries(rows)
        logger.debug("team_leaderboard_built", rows=len(rows), entries=len(entries))
        return LeaderboardResult(
            entries=entries,
            last_updated=_now_iso(),
            total_entries=len(entries),
            sheet_name=sheet_name,
        )

    async def get_leaderboard(self) -> dict[str, Any]:
        """Combined payload served by ``GET /?action=getLeaderboard``."""
        individual = await self.get_individual_leaderboard()
        team = await self.get_team_leaderboard()
        return {
            "success": individual.success and team.success,
            "individual": [e.model_dump(by_alias=True) for e in individual.entries],
            "team": [e.model_dump(by_alias=True) for e in team.entries],
            "lastUpdated": _now_iso(),
            "messages": {"individual": individual.message, "team": team.message},
            "totalEntries": {"individual": individual.total_entries, "team": team.total_entries},
            "sheetNames": {"individual": individual.sheet_name, "team": team.sheet_name},
        }

    async def replace_individual_standings(self, rows: list[IndividualStandingRow]) -> int:
        count = await self._sheets.replace_individual_standings(rows)
        logger.info("individual_standings_imported", rows=count)
        return count

    async def replace_team_standings(self, rows: list[TeamStandingRow]) -> int:
        count = await self._sheets.replace_team_standings(rows)
        logger.info("team_standings_imported", rows=count)
        return count

    # ── Mirror ─────────────────────────────────────────────────────────

    async def mirror_to_document_store(self) -> dict[str, SyncReport]:
        """Mirror both leaderboards; returns one report per collection."""
        if self._store is None:
            raise ConfigurationError("Firestore mirroring is disabled", provider_name="firestore")

        individual = await self.get_individual_leaderboard()
        team = await self.get_team_leaderboard()
        return {
            "individual": await self._mirror(
                self._settings.collection_individual_leaderboard, individual,
            ),
            "team": await self._mirror(self._settings.collection_team_leaderboard, team),
        }

    async def _mirror(self, collection: str, result: LeaderboardResult) -> SyncReport:
        started_at = _now_iso()
        errors: list[str] = []
        if not result.success:
            errors.append(result.error or result.message or "leaderboard unavailable")
            # A failed read must not prune the remote collection.
            return SyncReport(
                target=collection, errors=errors, started_at=started_at, finished_at=_now_iso(),
            )

        logger.info("leaderboard_mirror_started", collection=collection, entries=len(result.entries))
        fresh_ids: set[str] = set()
        updated = 0
        for entry in result.entries:
            document_id = leaderboard_document_id(entry)
            fresh_ids.add(document_id)
            fields = entry.model_dump(by_alias=True)
            fields["lastUpdated"] = Timestamp(result.last_updated)
            try:
                await self._store.upsert_document(collection, document_id, fields)
                updated += 1
            except TipsError as exc:
                logger.warning("leaderboard_mirror_row_failed", collection=collection,
                               document_id=document_id, error=str(exc))
                errors.append(f"{document_id}: {exc}")

        deleted = 0
        try:
            remote = await self._store.list_documents(collection)
        except TipsError as exc:
            logger.warning("leaderboard_mirror_list_failed", collection=collection, error=str(exc))
            errors.append(f"list {collection}: {exc}")
            remote = []

        for document in remote:
            if document.document_id in fresh_ids:
                continue
            try:
                await self._store.delete_document(document.name)
                deleted += 1
            except TipsError as exc:
                logger.warning("leaderboard_mirror_prune_failed", name=document.name, error=str(exc))
                errors.append(f"delete {document.document_id}: {exc}")

        report = SyncReport(
            target=collection,
            total=len(result.entries),
            updated=updated,
            deleted=deleted,
            errors=errors,
            started_at=started_at,
            finished_at=_now_iso(),
        )
        logger.info("leaderboard_mirror_finished", collection=collection, updated=updated,
                    deleted=deleted, errors=len(errors))
        return report
