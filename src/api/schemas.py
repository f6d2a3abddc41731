"""Pydantic request/response schemas for the AI Tips API.

Domain models (Submission, SyncReport, standings rows) are returned
directly where they already match the wire shape; this module only holds
the request bodies and envelopes that have no domain counterpart.

# Convention: Request schemas end with "Request", response schemas end
# with "Response".  JSON field names are camelCase, like the form and the
# dashboard that consume them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnvelopeResponse(BaseModel):
    """The ``{success, message, error?}`` envelope every failure uses."""

    success: bool
    message: str | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class PlaybookSubmitRequest(BaseModel):
    """Body of the playbook form-submit hook."""

    model_config = _WIRE_CONFIG

    email: str = Field(..., min_length=1)
    timestamp: str | None = Field(
        default=None, description="Form timestamp; the server clock is used when omitted.",
    )
    category: str = ""
    description: str = ""
    supporting_materials: str = "N/A"


class VoteRequest(BaseModel):
    """New text of one reviewer vote cell."""

    value: str = ""


class VoteResponse(BaseModel):
    model_config = _WIRE_CONFIG

    playbook_id: int
    approval_count: int
    is_approved: bool
    changed: bool
    remote_updated: bool


class ReactionCountResponse(BaseModel):
    model_config = _WIRE_CONFIG

    playbook_id: int
    document_id: str
    reaction_count: int


class StandingsReplaceResponse(BaseModel):
    success: bool = True
    rows: int
