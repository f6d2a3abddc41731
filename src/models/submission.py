"""AI tip submission models.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph — no imports from upper layers).
#
# A Submission is one row of the submissions sheet: the six required form
# fields, two optional ones, and the reviewer-owned columns (status,
# points, reviewer, review date, notes).  Models are frozen; reviewer
# updates go through ``model_copy(update={...})``.
#
# Field names are snake_case in Python and camelCase on the wire
# (``fullName``, ``submissionType``) via the shared alias generator.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Order matches the form and the "missing fields" log line.
REQUIRED_SUBMISSION_FIELDS: tuple[str, ...] = (
    "fullName",
    "email",
    "department",
    "submissionType",
    "title",
    "description",
)


class SubmissionStatus(str, Enum):
    """Review state of a submitted tip."""

    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Submission(BaseModel):
    """A single AI tip as stored in the submissions sheet."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    no: int = Field(ge=1, description="Auto-increment number (sheet row minus header).")
    full_name: str
    email: str
    department: str
    submission_type: str
    title: str
    description: str
    tags: str = ""
    attachments: str = ""
    timestamp: str = Field(description="Submission time, ISO-8601 UTC.")
    status: SubmissionStatus = SubmissionStatus.PENDING
    points: int = Field(default=0, ge=0)
    reviewer: str | None = None
    review_date: str | None = None
    notes: str | None = None


class SubmissionReview(BaseModel):
    """Reviewer-owned columns; unset fields are left untouched."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    status: SubmissionStatus | None = None
    points: int | None = Field(default=None, ge=0)
    reviewer: str | None = None
    notes: str | None = None
