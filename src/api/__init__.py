"""AI Tips API layer — routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import root_router, router
from src.api.schemas import (
    EnvelopeResponse,
    HealthResponse,
    PlaybookSubmitRequest,
    ReactionCountResponse,
    StandingsReplaceResponse,
    VoteRequest,
    VoteResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "root_router",
    "router",
    "EnvelopeResponse",
    "HealthResponse",
    "PlaybookSubmitRequest",
    "ReactionCountResponse",
    "StandingsReplaceResponse",
    "VoteRequest",
    "VoteResponse",
]
