"""Unit tests for the error hierarchy and the API middleware."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    status_for_error,
)
from src.utils.errors import (
    ConfigurationError,
    DocumentStoreError,
    RecordNotFoundError,
    SheetStoreError,
    SubmissionValidationError,
    TipsError,
)


class TestErrors:
    def test_str_prefixes_provider(self) -> None:
        assert str(TipsError("boom", provider_name="firestore")) == "[firestore] boom"
        assert str(TipsError("boom")) == "boom"

    def test_document_store_error_keeps_response(self) -> None:
        exc = DocumentStoreError("HTTP 403", provider_name="firestore", status_code=403, body="denied")
        assert exc.status_code == 403
        assert exc.body == "denied"
        assert isinstance(exc, TipsError)

    def test_missing_fields_are_copied(self) -> None:
        fields = ["email"]
        exc = SubmissionValidationError(missing_fields=fields)
        fields.append("title")
        assert exc.missing_fields == ["email"]
        assert exc.message == "Please fill in all required fields."

    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (SubmissionValidationError(), 400),
            (RecordNotFoundError(), 404),
            (DocumentStoreError(), 502),
            (ConfigurationError(), 503),
            (SheetStoreError(), 500),
            (TipsError(), 500),
        ],
    )
    def test_status_for_error(self, exc, status) -> None:
        assert status_for_error(exc) == status


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    configure_cors(app, allowed_origins=["*"])

    @app.get("/missing")
    async def missing() -> dict:
        raise RecordNotFoundError("Playbook 9 not found", provider_name="sqlite_sheet")

    @app.get("/firestore")
    async def firestore() -> dict:
        raise DocumentStoreError("HTTP 403", provider_name="firestore", status_code=403, body="secret body")

    @app.get("/ok")
    async def ok() -> dict:
        return {"ok": True}

    return app


class TestMiddleware:
    def test_tips_errors_become_envelopes(self) -> None:
        client = TestClient(_app())

        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": "Playbook 9 not found",
            "error": "RecordNotFoundError",
        }

    def test_response_body_is_not_leaked(self) -> None:
        response = TestClient(_app()).get("/firestore")
        assert response.status_code == 502
        assert "secret body" not in response.text

    def test_passthrough_and_cors(self) -> None:
        response = TestClient(_app()).get("/ok", headers={"Origin": "https://intranet.example"})
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert response.headers["access-control-allow-origin"] == "*"
