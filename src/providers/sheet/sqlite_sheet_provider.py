"""SQLite-backed tabular store for submissions, playbooks and standings.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing ISheetProvider).
#
# Database: ``data/sheets.db`` — one table per worksheet the service
# replaced:
#
#   submissions           — AI tip rows; ``no`` is the autoincrement id
#   playbooks             — playbook responses with vote_1 … vote_5
#   individual_standings  — editor-maintained, replaced wholesale
#   team_standings        — editor-maintained, replaced wholesale
#
# Standings cells are stored as TEXT exactly as typed; parsing happens in
# the leaderboard service.  ``row_order`` keeps sheet order.
#
# Uses ``aiosqlite`` for async I/O and ``PRAGMA journal_mode=WAL`` for
# concurrent read safety.  Driver errors surface as SheetStoreError.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite
import structlog

from src.interfaces.sheet_provider import ISheetProvider
from src.models.leaderboard import IndividualStandingRow, TeamStandingRow
from src.models.playbook import REVIEWER_SLOTS, Playbook
from src.models.submission import Submission, SubmissionReview, SubmissionStatus
from src.utils.errors import SheetStoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/sheets.db")

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_SUBMISSIONS_TABLE = """\
CREATE TABLE IF NOT EXISTS submissions (
    no               INTEGER PRIMARY KEY AUTOINCREMENT,
    full_name        TEXT    NOT NULL,
    email            TEXT    NOT NULL,
    department       TEXT    NOT NULL,
    submission_type  TEXT    NOT NULL,
    title            TEXT    NOT NULL,
    description      TEXT    NOT NULL,
    tags             TEXT    NOT NULL DEFAULT '',
    attachments      TEXT    NOT NULL DEFAULT '',
    timestamp        TEXT    NOT NULL,
    status           TEXT    NOT NULL DEFAULT 'pending',
    points           INTEGER NOT NULL DEFAULT 0,
    reviewer         TEXT,
    review_date      TEXT,
    notes            TEXT
);
"""

_CREATE_PLAYBOOKS_TABLE = """\
CREATE TABLE IF NOT EXISTS playbooks (
    id                     INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp              TEXT    NOT NULL,
    owner                  TEXT    NOT NULL,
    category               TEXT    NOT NULL DEFAULT '',
    description            TEXT    NOT NULL DEFAULT '',
    supporting_materials   TEXT    NOT NULL DEFAULT 'N/A',
    vote_1                 TEXT    NOT NULL DEFAULT '',
    vote_2                 TEXT    NOT NULL DEFAULT '',
    vote_3                 TEXT    NOT NULL DEFAULT '',
    vote_4                 TEXT    NOT NULL DEFAULT '',
    vote_5                 TEXT    NOT NULL DEFAULT '',
    is_approved            INTEGER NOT NULL DEFAULT 0,
    sheet_key              TEXT    NOT NULL,
    document_name          TEXT,
    saved_to_firestore_at  TEXT
);
"""

_CREATE_INDIVIDUAL_TABLE = """\
CREATE TABLE IF NOT EXISTS individual_standings (
    row_order       INTEGER PRIMARY KEY,
    no              TEXT,
    id              TEXT,
    full_name       TEXT,
    function        TEXT,
    sub_department  TEXT,
    account         TEXT,
    points          TEXT
);
"""

_CREATE_TEAM_TABLE = """\
CREATE TABLE IF NOT EXISTS team_standings (
    row_order                 INTEGER PRIMARY KEY,
    no                        TEXT,
    function                  TEXT,
    sub_department            TEXT,
    account                   TEXT,
    accumulated_points        TEXT,
    team_size                 TEXT,
    accumulated_based_on_fte  TEXT
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_playbooks_sheet_key ON playbooks(sheet_key);",
    "CREATE INDEX IF NOT EXISTS idx_submissions_email ON submissions(email);",
]

# ── DML ───────────────────────────────────────────────────────────────

_INSERT_SUBMISSION = """\
INSERT INTO submissions (full_name, email, department, submission_type, title,
                         description, tags, attachments, timestamp, status, points)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_PLAYBOOK = """\
INSERT INTO playbooks (timestamp, owner, category, description, supporting_materials,
                       vote_1, vote_2, vote_3, vote_4, vote_5, is_approved, sheet_key)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_INDIVIDUAL = """\
INSERT INTO individual_standings (row_order, no, id, full_name, function, sub_department, account, points)
VALUES (?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_TEAM = """\
INSERT INTO team_standings (row_order, no, function, sub_department, account,
                            accumulated_points, team_size, accumulated_based_on_fte)
VALUES (?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_SUBMISSION = "SELECT * FROM submissions WHERE no = ?;"
_SELECT_SUBMISSIONS = "SELECT * FROM submissions ORDER BY no ASC;"
_SELECT_PLAYBOOK = "SELECT * FROM playbooks WHERE id = ?;"
_SELECT_PLAYBOOKS = "SELECT * FROM playbooks ORDER BY id ASC;"
_SELECT_INDIVIDUAL = "SELECT * FROM individual_standings ORDER BY row_order ASC;"
_SELECT_TEAM = "SELECT * FROM team_standings ORDER BY row_order ASC;"

_UPDATE_APPROVAL = "UPDATE playbooks SET is_approved = ? WHERE id = ?;"
_UPDATE_DOCUMENT = "UPDATE playbooks SET document_name = ?, saved_to_firestore_at = ? WHERE id = ?;"


class SQLiteSheetProvider(ISheetProvider):
    """SQLite-backed stand-in for the spreadsheet worksheets."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as exc:
            logger.error("sheet_store_error", path=str(self._db_path), error=str(exc))
            raise SheetStoreError(
                message=f"Sheet store failure: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def initialize(self) -> None:
        """Create all sheet tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_SUBMISSIONS_TABLE)
            await db.execute(_CREATE_PLAYBOOKS_TABLE)
            await db.execute(_CREATE_INDIVIDUAL_TABLE)
            await db.execute(_CREATE_TEAM_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("sheet_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_sheet"

    # ── Submissions ────────────────────────────────────────────────────

    async def append_submission(self, fields: dict[str, Any]) -> Submission:
        status = fields.get("status", SubmissionStatus.PENDING)
        async with self._connect() as db:
            cursor = await db.execute(_INSERT_SUBMISSION, (
                fields["full_name"],
                fields["email"],
                fields["department"],
                fields["submission_type"],
                fields["title"],
                fields["description"],
                fields.get("tags") or "",
                fields.get("attachments") or "",
                fields["timestamp"],
                SubmissionStatus(status).value,
                int(fields.get("points") or 0),
            ))
            await db.commit()
            no = cursor.lastrowid
            cursor = await db.execute(_SELECT_SUBMISSION, (no,))
            row = await cursor.fetchone()

        logger.info("submission_row_appended", no=no, email=fields["email"])
        return self._row_to_submission(dict(row))

    async def get_submission(self, no: int) -> Submission | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_SUBMISSION, (no,))
            row = await cursor.fetchone()
        return self._row_to_submission(dict(row)) if row is not None else None

    async def list_submissions(self) -> list[Submission]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_SUBMISSIONS)
            rows = await cursor.fetchall()
        return [self._row_to_submission(dict(r)) for r in rows]

    async def update_submission_review(
        self,
        no: int,
        review: SubmissionReview,
        review_date: str,
    ) -> Submission | None:
        # Only the reviewer columns that were sent are written.
        assignments: list[str] = []
        params: list[Any] = []
        if review.status is not None:
            assignments.append("status = ?")
            params.append(review.status.value)
        if review.points is not None:
            assignments.append("points = ?")
            params.append(review.points)
        if review.reviewer is not None:
            assignments.append("reviewer = ?")
            params.append(review.reviewer)
        if review.notes is not None:
            assignments.append("notes = ?")
            params.append(review.notes)
        assignments.append("review_date = ?")
        params.append(review_date)
        params.append(no)

        async with self._connect() as db:
            cursor = await db.execute(
                f"UPDATE submissions SET {', '.join(assignments)} WHERE no = ?;", params,
            )
            await db.commit()
            if cursor.rowcount == 0:
                return None
            cursor = await db.execute(_SELECT_SUBMISSION, (no,))
            row = await cursor.fetchone()

        logger.info("submission_reviewed", no=no, status=review.status.value if review.status else None)
        return self._row_to_submission(dict(row))

    # ── Playbooks ──────────────────────────────────────────────────────

    async def append_playbook(self, fields: dict[str, Any]) -> Playbook:
        votes = list(fields.get("votes") or [])[:REVIEWER_SLOTS]
        votes += [""] * (REVIEWER_SLOTS - len(votes))
        async with self._connect() as db:
            cursor = await db.execute(_INSERT_PLAYBOOK, (
                fields["timestamp"],
                fields["owner"],
                fields.get("category") or "",
                fields.get("description") or "",
                fields.get("supporting_materials") or "N/A",
                *votes,
                1 if fields.get("is_approved") else 0,
                fields["sheet_key"],
            ))
            await db.commit()
            playbook_id = cursor.lastrowid

        logger.info("playbook_row_appended", playbook_id=playbook_id, sheet_key=fields["sheet_key"])
        return Playbook(
            id=playbook_id,
            timestamp=fields["timestamp"],
            owner=fields["owner"],
            category=fields.get("category") or "",
            description=fields.get("description") or "",
            supporting_materials=fields.get("supporting_materials") or "N/A",
            votes=votes,
            is_approved=bool(fields.get("is_approved")),
            sheet_key=fields["sheet_key"],
        )

    async def get_playbook(self, playbook_id: int) -> Playbook | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_PLAYBOOK, (playbook_id,))
            row = await cursor.fetchone()
        return self._row_to_playbook(dict(row)) if row is not None else None

    async def list_playbooks(self) -> list[Playbook]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_PLAYBOOKS)
            rows = await cursor.fetchall()
        return [self._row_to_playbook(dict(r)) for r in rows]

    async def set_playbook_vote(self, playbook_id: int, slot: int, value: str) -> Playbook | None:
        if not 0 <= slot < REVIEWER_SLOTS:
            raise SheetStoreError(
                message=f"Vote slot {slot} is outside the reviewer columns",
                provider_name=self.get_provider_name(),
            )
        # Column name comes from a bounded integer, never from input text.
        column = f"vote_{slot + 1}"
        async with self._connect() as db:
            cursor = await db.execute(
                f"UPDATE playbooks SET {column} = ? WHERE id = ?;", (value, playbook_id),
            )
            await db.commit()
            if cursor.rowcount == 0:
                return None
            cursor = await db.execute(_SELECT_PLAYBOOK, (playbook_id,))
            row = await cursor.fetchone()
        return self._row_to_playbook(dict(row))

    async def set_playbook_approval(self, playbook_id: int, is_approved: bool) -> None:
        async with self._connect() as db:
            await db.execute(_UPDATE_APPROVAL, (1 if is_approved else 0, playbook_id))
            await db.commit()

    async def set_playbook_document(
        self,
        playbook_id: int,
        document_name: str,
        saved_at: str,
    ) -> None:
        async with self._connect() as db:
            await db.execute(_UPDATE_DOCUMENT, (document_name, saved_at, playbook_id))
            await db.commit()

    # ── Standings ──────────────────────────────────────────────────────

    async def read_individual_standings(self) -> list[IndividualStandingRow]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_INDIVIDUAL)
            rows = await cursor.fetchall()
        return [
            IndividualStandingRow(**{k: v for k, v in dict(r).items() if k != "row_order"})
            for r in rows
        ]

    async def read_team_standings(self) -> list[TeamStandingRow]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_TEAM)
            rows = await cursor.fetchall()
        return [
            TeamStandingRow(**{k: v for k, v in dict(r).items() if k != "row_order"})
            for r in rows
        ]

    async def replace_individual_standings(self, rows: list[IndividualStandingRow]) -> int:
        async with self._connect() as db:
            await db.execute("DELETE FROM individual_standings;")
            await db.executemany(_INSERT_INDIVIDUAL, [
                (i, r.no, r.id, r.full_name, r.function, r.sub_department, r.account, r.points)
                for i, r in enumerate(rows, start=1)
            ])
            await db.commit()
        logger.info("individual_standings_replaced", rows=len(rows))
        return len(rows)

    async def replace_team_standings(self, rows: list[TeamStandingRow]) -> int:
        async with self._connect() as db:
            await db.execute("DELETE FROM team_standings;")
            await db.executemany(_INSERT_TEAM, [
                (
                    i, r.no, r.function, r.sub_department, r.account,
                    r.accumulated_points, r.team_size, r.accumulated_based_on_fte,
                )
                for i, r in enumerate(rows, start=1)
            ])
            await db.commit()
        logger.info("team_standings_replaced", rows=len(rows))
        return len(rows)

    # ── Row mapping ────────────────────────────────────────────────────

    @staticmethod
    def _row_to_submission(row: dict[str, Any]) -> Submission:
        return Submission(
            no=row["no"],
            full_name=row["full_name"],
            email=row["email"],
            department=row["department"],
            submission_type=row["submission_type"],
            title=row["title"],
            description=row["description"],
            tags=row["tags"] or "",
            attachments=row["attachments"] or "",
            timestamp=row["timestamp"],
            status=SubmissionStatus(row["status"]),
            points=row["points"] or 0,
            reviewer=row["reviewer"],
            review_date=row["review_date"],
            notes=row["notes"],
        )

    @staticmethod
    def _row_to_playbook(row: dict[str, Any]) -> Playbook:
        return Playbook(
            id=row["id"],
            timestamp=row["timestamp"],
            owner=row["owner"],
            category=row["category"] or "",
            description=row["description"] or "",
            supporting_materials=row["supporting_materials"] or "N/A",
            votes=[row[f"vote_{i}"] or "" for i in range(1, REVIEWER_SLOTS + 1)],
            is_approved=bool(row["is_approved"]),
            sheet_key=row["sheet_key"],
            document_name=row["document_name"],
            saved_to_firestore_at=row["saved_to_firestore_at"],
        )
