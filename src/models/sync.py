"""Outcome of a bulk mirror job (playbooks, leaderboards, submissions)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class SyncReport(BaseModel):
    """Counters plus the errors collected while the loop kept going.

    A failed row never stops the job; ``success`` is False when any row
    failed, and the remote collection may be partially updated.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    target: str = Field(description="Collection that was written.")
    total: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
    started_at: str
    finished_at: str

    @computed_field
    @property
    def success(self) -> bool:
        return not self.errors
