"""AI Tips FastAPI application entry point.

Wires together providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and
configures structured logging.

``_build_all`` is shared with the CLI so cron jobs run the exact same
services as the web hooks.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import APP_VERSION, root_router
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.providers.firestore.firestore_rest_provider import FirestoreRESTProvider
from src.providers.sheet.sqlite_sheet_provider import SQLiteSheetProvider
from src.services.leaderboard_service import LeaderboardService
from src.services.playbook_service import PlaybookService
from src.services.reaction_service import ReactionService
from src.services.submission_service import SubmissionService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    When Firestore is disabled no document store is built and the mirror
    operations report a configuration error instead.
    """
    config = config if config is not None else load_config(settings=app_settings)

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.firestore_timeout_seconds)

    # -- Stores --
    sheet_store = SQLiteSheetProvider(db_path=app_settings.sheet_db_path)
    document_store = (
        FirestoreRESTProvider(settings=app_settings, http_client=http_client)
        if app_settings.firestore_enabled
        else None
    )

    # -- Services --
    reaction_service = ReactionService(settings=app_settings, document_store=document_store)
    playbook_service = PlaybookService(
        sheet_provider=sheet_store,
        settings=app_settings,
        document_store=document_store,
        reaction_service=reaction_service,
        playbook_config=config.get("playbooks", {}),
    )
    submission_service = SubmissionService(
        sheet_provider=sheet_store,
        settings=app_settings,
        document_store=document_store,
    )
    leaderboard_service = LeaderboardService(
        sheet_provider=sheet_store,
        settings=app_settings,
        document_store=document_store,
        sheet_names=config.get("sheets", {}),
    )

    provider_registry = {
        "sheet_store": True,
        "document_store": document_store is not None,
    }

    return {
        "settings": app_settings,
        "config": config,
        "http_client": http_client,
        "sheet_store": sheet_store,
        "document_store": document_store,
        "reaction_service": reaction_service,
        "playbook_service": playbook_service,
        "submission_service": submission_service,
        "leaderboard_service": leaderboard_service,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise providers on startup, close the HTTP client on shutdown."""
    # Tests hand in pre-built components; production builds its own.
    components = getattr(application.state, "prebuilt_components", None) or _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    sheet_store = components.get("sheet_store")
    if sheet_store is not None:
        await sheet_store.initialize()

    _logger.info(
        "app_startup",
        version=APP_VERSION,
        environment=settings.app_env,
        firestore_enabled=components.get("document_store") is not None,
    )

    yield

    http_client: httpx.AsyncClient | None = components.get("http_client")
    if http_client is not None:
        await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(components: dict[str, Any] | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    components:
        Optional pre-built DI components (see :func:`_build_all`).  When
        omitted the lifespan builds them from the environment.
    """
    application = FastAPI(
        title="KMS AI Tips API",
        version=APP_VERSION,
        description=(
            "Collects AI tip submissions, serves the individual and team "
            "leaderboards, and mirrors playbooks and standings to Firestore."
        ),
        lifespan=_lifespan,
    )

    if components:
        application.state.prebuilt_components = components

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    # -- Routes --
    application.include_router(root_router)
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
