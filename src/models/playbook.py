"""Playbook models — approved tips mirrored to the ``playbooks`` collection.

A playbook row carries five reviewer vote cells.  The approval flag is
derived from those cells (see ``src/services/approval.py``) and stored on
the row so the Firestore mirror can be compared against it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

REVIEWER_SLOTS = 5


class Playbook(BaseModel):
    """One row of the playbook responses sheet."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int = Field(ge=1, description="Row id in the playbook sheet.")
    timestamp: str = Field(description="Form timestamp, normalised ISO-8601 (ms, Z).")
    owner: str = Field(description="Submitter email address.")
    category: str = ""
    description: str = ""
    supporting_materials: str = "N/A"
    votes: list[str] = Field(
        default_factory=lambda: [""] * REVIEWER_SLOTS,
        description="Five reviewer vote cells, slot 1 first.",
    )
    is_approved: bool = False
    sheet_key: str = Field(description="SHA-256 of owner + timestamp.")
    document_name: str | None = Field(
        default=None,
        description="Full Firestore resource name once mirrored.",
    )
    saved_to_firestore_at: str | None = None

    @field_validator("votes", mode="before")
    @classmethod
    def _pad_votes(cls, value: list[Any]) -> list[str]:
        cells = [str(v) if v is not None else "" for v in value][:REVIEWER_SLOTS]
        return cells + [""] * (REVIEWER_SLOTS - len(cells))


class PlaybookView(BaseModel):
    """Public projection returned by ``action=getPlaybooks``."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    timestamp: str
    owner: str
    category: str
    description: str
    reaction_count: int | None = None


class RemotePlaybook(BaseModel):
    """A playbook document as read back from Firestore."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    document_name: str
    timestamp: str = ""
    owner: str = ""
    category: str = ""
    description: str = ""
    # "N/A" mirrors what the dashboard shows when the field was never written.
    is_approved: bool | str = "N/A"
    sheet_key: str = "N/A"
