"""Leaderboard models — raw standings rows and the ranked entries derived from them.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Standings rows are what editors keep in the two leaderboard sheets.
# Every cell is optional text: the sheet does not enforce types, and the
# leaderboard service decides which rows are complete enough to rank.
#
# Entries are recomputed wholesale on every request.  ``rank`` is the
# 1-based position after sorting by score, so it changes whenever the
# order does.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)
# Sheet cells arrive as numbers or text; keep them as text until parsed.
_ROW_CONFIG = ConfigDict(
    frozen=True, alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True,
)


# ─── Source rows ─────────────────────────────────────────────────────

class IndividualStandingRow(BaseModel):
    """Columns A–G of the individual leaderboard sheet."""

    model_config = _ROW_CONFIG

    no: str | None = None
    id: str | None = None
    full_name: str | None = None
    function: str | None = None
    sub_department: str | None = None
    account: str | None = None
    points: str | None = None


class TeamStandingRow(BaseModel):
    """Columns A–G of the account/department leaderboard sheet."""

    model_config = _ROW_CONFIG

    no: str | None = None
    function: str | None = None
    sub_department: str | None = None
    account: str | None = None
    accumulated_points: str | None = None
    team_size: str | None = None
    accumulated_based_on_fte: str | None = Field(default=None, alias="accumulatedBasedOnFTE")


# ─── Ranked entries ──────────────────────────────────────────────────

class IndividualLeaderboardEntry(BaseModel):
    """One ranked person."""

    model_config = _MODEL_CONFIG

    rank: int = Field(ge=1)
    no: str
    id: str = ""
    full_name: str
    function: str
    sub_department: str = ""
    account: str
    points: int
    points_per_team_size: int


class TeamLeaderboardEntry(BaseModel):
    """One ranked account / department."""

    model_config = _MODEL_CONFIG

    rank: int = Field(ge=1)
    no: str
    function: str
    sub_department: str = ""
    program: str = ""
    account: str
    accumulated_points: int
    team_size: int
    points_per_team_member: float
    accumulated_based_on_fte: str = Field(default="", alias="accumulatedBasedOnFTE")


class LeaderboardResult(BaseModel):
    """Result of materialising one leaderboard sheet."""

    model_config = _MODEL_CONFIG

    success: bool = True
    entries: list[IndividualLeaderboardEntry | TeamLeaderboardEntry] = Field(default_factory=list)
    message: str | None = None
    error: str | None = None
    last_updated: str
    total_entries: int = 0
    sheet_name: str | None = None
