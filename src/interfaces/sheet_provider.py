"""Abstract base class for the tabular "sheet" store.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# ISheetProvider stands in for the spreadsheet the service grew out of.
# Four sheets live behind it:
#
#   submissions   — AI tip form entries (append + reviewer updates)
#   playbooks     — playbook form responses with five vote cells
#   individual    — editor-maintained individual standings
#   team          — editor-maintained account/department standings
#
# The concrete implementation is SQLiteSheetProvider
# (src/providers/sheet/sqlite_sheet_provider.py).  All operations are
# async so a network-backed store can be swapped in later.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.leaderboard import IndividualStandingRow, TeamStandingRow
from src.models.playbook import Playbook
from src.models.submission import Submission, SubmissionReview


class ISheetProvider(ABC):
    """Contract for the tabular store behind submissions, playbooks and standings."""

    # ── Lifecycle ──────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    # ── Submissions ────────────────────────────────────────────────────

    @abstractmethod
    async def append_submission(self, fields: dict[str, Any]) -> Submission:
        """Append a submission row and assign the next ``no``.

        Parameters
        ----------
        fields:
            Snake_case submission fields without ``no``.

        Returns
        -------
        Submission
            The stored row including its number.
        """

    @abstractmethod
    async def get_submission(self, no: int) -> Submission | None:
        """Return the submission numbered *no*, or None."""

    @abstractmethod
    async def list_submissions(self) -> list[Submission]:
        """Return all submissions in row order."""

    @abstractmethod
    async def update_submission_review(
        self,
        no: int,
        review: SubmissionReview,
        review_date: str,
    ) -> Submission | None:
        """Apply the reviewer columns that are set on *review*.

        Returns the updated row, or None if *no* does not exist.
        """

    # ── Playbooks ──────────────────────────────────────────────────────

    @abstractmethod
    async def append_playbook(self, fields: dict[str, Any]) -> Playbook:
        """Append a playbook row and assign its id."""

    @abstractmethod
    async def get_playbook(self, playbook_id: int) -> Playbook | None:
        """Return the playbook row *playbook_id*, or None."""

    @abstractmethod
    async def list_playbooks(self) -> list[Playbook]:
        """Return every playbook row in row order."""

    @abstractmethod
    async def set_playbook_vote(self, playbook_id: int, slot: int, value: str) -> Playbook | None:
        """Write one vote cell (0-based *slot*) and return the updated row."""

    @abstractmethod
    async def set_playbook_approval(self, playbook_id: int, is_approved: bool) -> None:
        """Persist the derived approval flag."""

    @abstractmethod
    async def set_playbook_document(
        self,
        playbook_id: int,
        document_name: str,
        saved_at: str,
    ) -> None:
        """Remember which Firestore document mirrors this row."""

    # ── Standings ──────────────────────────────────────────────────────

    @abstractmethod
    async def read_individual_standings(self) -> list[IndividualStandingRow]:
        """Return every row of the individual standings sheet (header excluded)."""

    @abstractmethod
    async def read_team_standings(self) -> list[TeamStandingRow]:
        """Return every row of the team standings sheet (header excluded)."""

    @abstractmethod
    async def replace_individual_standings(self, rows: list[IndividualStandingRow]) -> int:
        """Replace the individual standings sheet wholesale; return row count."""

    @abstractmethod
    async def replace_team_standings(self, rows: list[TeamStandingRow]) -> int:
        """Replace the team standings sheet wholesale; return row count."""
