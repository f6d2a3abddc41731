"""FastAPI routes for the AI Tips service.

Two routers:

* ``root_router`` keeps the spreadsheet web-app contract at ``/``: the
  submission form posts there, the leaderboard and playbook pages read
  from ``GET /?action=...`` (optionally as JSONP).
* ``router`` (``/api/v1``) carries the trigger hooks that replaced sheet
  triggers, reviewer updates, standings uploads and the bulk sync jobs.

# ─── API ROUTE MAP ───────────────────────────────────────────────────
#
# Endpoint                                   Method  Description
# ─────────────────────────────────────────────────────────────────────
# /                                          POST    Submit an AI tip
# /                                          GET     Status, ?action=getLeaderboard|getPlaybooks,
#                                                    or a GET-encoded submission
# /health                                    GET     Health check
# /api/v1/playbooks                          POST    Playbook form-submit hook
# /api/v1/playbooks                          GET     Approved playbooks (?reactions=true)
# /api/v1/playbooks/remote                   GET     Playbooks as stored in Firestore
# /api/v1/playbooks/{id}/votes/{slot}        PUT     Reviewer vote edit hook
# /api/v1/playbooks/{id}/reactions           GET     Reaction count
# /api/v1/submissions/{no}                   PATCH   Reviewer update of a tip
# /api/v1/standings/individual|team          PUT     Replace a standings sheet
# /api/v1/sync/playbooks|leaderboard|submissions POST Bulk mirror jobs
#
# Services are read from ``app.state`` (populated in main.py's _build_all).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Annotated, Any
from urllib.parse import parse_qsl

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, Response
from fastapi.responses import JSONResponse

from src.api.schemas import (
    EnvelopeResponse,
    HealthResponse,
    PlaybookSubmitRequest,
    ReactionCountResponse,
    StandingsReplaceResponse,
    VoteRequest,
    VoteResponse,
)
from src.models.leaderboard import IndividualStandingRow, TeamStandingRow
from src.models.playbook import REVIEWER_SLOTS
from src.models.submission import Submission, SubmissionReview
from src.models.sync import SyncReport
from src.services.leaderboard_service import LeaderboardService
from src.services.playbook_service import PlaybookService
from src.services.submission_service import FAILURE_MESSAGE, SubmissionService
from src.utils.jsonp import JSONP_MEDIA_TYPE, is_valid_callback, render_jsonp
from src.utils.logging import get_logger
from src.utils.sheet_key import to_iso_timestamp

_logger: structlog.BoundLogger = get_logger(__name__)

APP_VERSION = "0.1.0"
STATUS_MESSAGE = "KMS AI Tips API is running!"

# Query parameters that never count as submission fields.
_CONTROL_PARAMS = frozenset({"action", "callback"})
_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

root_router = APIRouter()
router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _require(request: Request, name: str) -> Any:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{name} not available")
    return service


def _get_submission_service(request: Request) -> SubmissionService:
    return _require(request, "submission_service")


def _get_playbook_service(request: Request) -> PlaybookService:
    return _require(request, "playbook_service")


def _get_leaderboard_service(request: Request) -> LeaderboardService:
    return _require(request, "leaderboard_service")


SubmissionServiceDep = Annotated[SubmissionService, Depends(_get_submission_service)]
PlaybookServiceDep = Annotated[PlaybookService, Depends(_get_playbook_service)]
LeaderboardServiceDep = Annotated[LeaderboardService, Depends(_get_leaderboard_service)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _respond(payload: dict[str, Any], callback: str | None = None, status_code: int = 200) -> Response:
    """JSON, or ``callback(<json>);`` as JavaScript when a callback is given."""
    if callback:
        return Response(
            content=render_jsonp(callback, payload),
            media_type=JSONP_MEDIA_TYPE,
            status_code=status_code,
        )
    return JSONResponse(content=payload, status_code=status_code)


def _status_payload() -> dict[str, Any]:
    return {
        "message": STATUS_MESSAGE,
        "timestamp": to_iso_timestamp(datetime.now(timezone.utc)),
        "endpoints": {
            "submit": "POST /",
            "leaderboard": "GET /?action=getLeaderboard",
            "leaderboardJsonp": "GET /?action=getLeaderboard&callback=yourCallback",
            "playbooks": "GET /?action=getPlaybooks",
            "playbooksJsonp": "GET /?action=getPlaybooks&callback=yourCallback",
        },
    }


async def _read_body(request: Request) -> dict[str, Any]:
    """Decode a POST body as form data, JSON, or URL-encoded text, in that order."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = (await request.body()).decode("utf-8", errors="replace")
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        _logger.info("submission_body_not_json", length=len(raw))
        return dict(parse_qsl(raw, keep_blank_values=True))
    return parsed if isinstance(parsed, dict) else {}


async def _submit(service: SubmissionService, data: dict[str, Any]) -> dict[str, Any]:
    try:
        return await service.submit(data)
    except Exception as exc:  # noqa: BLE001
        _logger.exception("submission_failed", error=str(exc))
        return {"success": False, "message": FAILURE_MESSAGE, "error": str(exc)}


# ---------------------------------------------------------------------------
# Spreadsheet-compatible entry point
# ---------------------------------------------------------------------------


@root_router.post("/", summary="Submit an AI tip")
async def submit_tip(request: Request, service: SubmissionServiceDep) -> Response:
    """Accept the submission form (form-encoded or JSON).

    Query parameters, when present, override body fields of the same name.
    """
    query = {k: v for k, v in request.query_params.items() if k not in _CONTROL_PARAMS}
    data = {**(await _read_body(request)), **query}
    if not data:
        _logger.warning("submission_empty")
        return _respond({
            "success": False,
            "message": FAILURE_MESSAGE,
            "error": "No data received in request",
        })
    return _respond(await _submit(service, data))


@root_router.get("/", summary="Status, leaderboard, playbooks, or GET submission")
async def web_app_get(
    request: Request,
    submissions: SubmissionServiceDep,
    playbooks: PlaybookServiceDep,
    leaderboard: LeaderboardServiceDep,
) -> Response:
    params = dict(request.query_params)
    callback = params.get("callback")
    action = params.get("action")

    if callback is not None and not is_valid_callback(callback):
        _logger.warning("jsonp_callback_rejected", callback=callback[:64])
        body = EnvelopeResponse(success=False, message="Invalid callback name")
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

    if action == "getLeaderboard":
        _logger.info("leaderboard_requested", jsonp=bool(callback))
        return _respond(await leaderboard.get_leaderboard(), callback)

    if action == "getPlaybooks":
        _logger.info("playbooks_requested", jsonp=bool(callback))
        include_reactions = params.get("reactions", "").lower() == "true"
        return _respond(await playbooks.list_approved_playbooks(include_reactions), callback)

    # iframe clients submit the form as GET parameters.
    if len(params) > 1:
        data = {k: v for k, v in params.items() if k not in _CONTROL_PARAMS}
        return _respond(await _submit(submissions, data))

    return _respond(_status_payload())


@root_router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    status = "healthy" if providers.get("sheet_store", False) else "unhealthy"
    return HealthResponse(status=status, version=APP_VERSION, providers=providers)


# ---------------------------------------------------------------------------
# Playbooks
# ---------------------------------------------------------------------------


@router.post("/playbooks", summary="Playbook form-submit hook")
async def submit_playbook(body: PlaybookSubmitRequest, service: PlaybookServiceDep) -> dict[str, Any]:
    return await service.submit_playbook(body.model_dump(by_alias=True, exclude_none=True))


@router.get("/playbooks", summary="Approved playbooks with mapped categories")
async def list_playbooks(
    service: PlaybookServiceDep,
    reactions: bool = Query(default=False, description="Include reaction counts"),
) -> dict[str, Any]:
    return await service.list_approved_playbooks(include_reactions=reactions)


@router.get("/playbooks/remote", summary="Playbooks as stored in Firestore")
async def list_remote_playbooks(service: PlaybookServiceDep) -> dict[str, Any]:
    return await service.list_remote_playbooks()


@router.put(
    "/playbooks/{playbook_id}/votes/{slot}",
    response_model=VoteResponse,
    summary="Reviewer vote edit hook",
)
async def record_vote(
    body: VoteRequest,
    service: PlaybookServiceDep,
    playbook_id: int = Path(..., ge=1),
    slot: int = Path(..., ge=1, le=REVIEWER_SLOTS),
) -> VoteResponse:
    return VoteResponse(**(await service.record_vote(playbook_id, slot, body.value)))


@router.get(
    "/playbooks/{playbook_id}/reactions",
    response_model=ReactionCountResponse,
    summary="Reaction count for a mirrored playbook",
)
async def get_reactions(
    service: PlaybookServiceDep,
    playbook_id: int = Path(..., ge=1),
) -> ReactionCountResponse:
    return ReactionCountResponse(**(await service.get_reaction_count(playbook_id)))


# ---------------------------------------------------------------------------
# Submissions and standings
# ---------------------------------------------------------------------------


@router.patch("/submissions/{no}", response_model=Submission, summary="Reviewer update of a tip")
async def review_submission(
    review: SubmissionReview,
    service: SubmissionServiceDep,
    no: int = Path(..., ge=1),
) -> Submission:
    return await service.review_submission(no, review)


@router.put(
    "/standings/individual",
    response_model=StandingsReplaceResponse,
    summary="Replace the individual standings sheet",
)
async def replace_individual_standings(
    rows: list[IndividualStandingRow],
    service: LeaderboardServiceDep,
) -> StandingsReplaceResponse:
    return StandingsReplaceResponse(rows=await service.replace_individual_standings(rows))


@router.put(
    "/standings/team",
    response_model=StandingsReplaceResponse,
    summary="Replace the account/department standings sheet",
)
async def replace_team_standings(
    rows: list[TeamStandingRow],
    service: LeaderboardServiceDep,
) -> StandingsReplaceResponse:
    return StandingsReplaceResponse(rows=await service.replace_team_standings(rows))


# ---------------------------------------------------------------------------
# Bulk sync jobs
# ---------------------------------------------------------------------------


@router.post("/sync/playbooks", response_model=SyncReport, summary="Mirror every playbook row")
async def sync_playbooks(service: PlaybookServiceDep) -> SyncReport:
    return await service.sync_all()


@router.post(
    "/sync/leaderboard",
    response_model=dict[str, SyncReport],
    summary="Mirror both leaderboards",
)
async def sync_leaderboard(service: LeaderboardServiceDep) -> dict[str, SyncReport]:
    return await service.mirror_to_document_store()


@router.post("/sync/submissions", response_model=SyncReport, summary="Mirror every submission")
async def sync_submissions(service: SubmissionServiceDep) -> SyncReport:
    return await service.mirror_submissions()
