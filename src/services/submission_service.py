"""AI tip intake: validation, storage, reviewer updates and mirroring.

``submit`` returns the JSON envelope the web form expects instead of
raising, so the form always gets ``{success, message}`` back.  Validation
runs before anything is written.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

import structlog

from src.config.settings import Settings
from src.interfaces.document_store import IDocumentStore
from src.interfaces.sheet_provider import ISheetProvider
from src.models.submission import REQUIRED_SUBMISSION_FIELDS, Submission, SubmissionReview
from src.models.sync import SyncReport
from src.providers.firestore.values import Timestamp
from src.utils.errors import (
    ConfigurationError,
    RecordNotFoundError,
    SubmissionValidationError,
    TipsError,
)
from src.utils.sheet_key import to_iso_timestamp

logger = structlog.get_logger(logger_name=__name__)

MISSING_FIELDS_MESSAGE = "Please fill in all required fields."
INVALID_EMAIL_MESSAGE = "Please enter a valid email address."
SUCCESS_MESSAGE = "Thank you! Your AI tip has been submitted successfully and will be reviewed soon."
FAILURE_MESSAGE = "Sorry, there was an error submitting your form. Please try again later."

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# Payload used by the ``test-submission`` command.
TEST_SUBMISSION: dict[str, str] = {
    "fullName": "Test User",
    "email": "test@kms-technology.com",
    "department": "Engineering",
    "submissionType": "ai-tip",
    "title": "Test AI Tip",
    "description": "This is a test submission to verify the submission endpoint.",
    "tags": "test, ai, automation",
}


def is_valid_email(value: str) -> bool:
    return _EMAIL_RE.fullmatch(value) is not None


def validate_submission(data: dict[str, Any]) -> None:
    """Raise SubmissionValidationError unless *data* is a complete, valid tip."""
    missing = [name for name in REQUIRED_SUBMISSION_FIELDS if not str(data.get(name) or "").strip()]
    if missing:
        logger.warning("submission_missing_fields", missing=missing)
        raise SubmissionValidationError(message=MISSING_FIELDS_MESSAGE, missing_fields=missing)

    email = str(data["email"])
    if not is_valid_email(email):
        logger.warning("submission_invalid_email", email=email)
        raise SubmissionValidationError(message=INVALID_EMAIL_MESSAGE)


def _now_iso() -> str:
    return to_iso_timestamp(datetime.now(timezone.utc))


class SubmissionService:
    def __init__(
        self,
        sheet_provider: ISheetProvider,
        settings: Settings,
        document_store: IDocumentStore | None = None,
    ) -> None:
        self._sheets = sheet_provider
        self._settings = settings
        self._store = document_store

    async def submit(self, data: dict[str, Any]) -> dict[str, Any]:
        """Validate and append a tip; returns ``{success, message, submissionId?, error?}``."""
        try:
            validate_submission(data)
        except SubmissionValidationError as exc:
            return {"success": False, "message": exc.message}

        try:
            submission = await self._sheets.append_submission({
                "full_name": str(data["fullName"]),
                "email": str(data["email"]),
                "department": str(data["department"]),
                "submission_type": str(data["submissionType"]),
                "title": str(data["title"]),
                "description": str(data["description"]),
                "tags": str(data.get("tags") or ""),
                "attachments": str(data.get("attachments") or ""),
                "timestamp": _now_iso(),
            })
        except TipsError as exc:
            logger.error("submission_store_failed", error=str(exc))
            return {"success": False, "message": FAILURE_MESSAGE, "error": str(exc)}

        logger.info("submission_received", no=submission.no, submission_type=submission.submission_type)
        return {"success": True, "message": SUCCESS_MESSAGE, "submissionId": submission.no}

    async def review_submission(self, no: int, review: SubmissionReview) -> Submission:
        """Apply reviewer columns (status, points, reviewer, notes) and stamp the review date."""
        submission = await self._sheets.update_submission_review(no, review, _now_iso())
        if submission is None:
            raise RecordNotFoundError(f"Submission {no} not found", provider_name="sqlite_sheet")
        return submission

    async def mirror_submissions(self) -> SyncReport:
        """Upsert every submission into the submissions collection as ``submission-<no>``."""
        if self._store is None:
            raise ConfigurationError("Firestore mirroring is disabled", provider_name="firestore")

        collection = self._settings.collection_submissions
        started_at = _now_iso()
        submissions = await self._sheets.list_submissions()
        logger.info("submission_mirror_started", rows=len(submissions))

        updated = 0
        errors: list[str] = []
        for submission in submissions:
            fields = submission.model_dump(by_alias=True, mode="json")
            fields["timestamp"] = Timestamp(submission.timestamp)
            try:
                await self._store.upsert_document(collection, f"submission-{submission.no}", fields)
                updated += 1
            except TipsError as exc:
                logger.warning("submission_mirror_row_failed", no=submission.no, error=str(exc))
                errors.append(f"submission {submission.no}: {exc}")

        logger.info("submission_mirror_finished", updated=updated, errors=len(errors))
        return SyncReport(
            target=collection,
            total=len(submissions),
            updated=updated,
            errors=errors,
            started_at=started_at,
            finished_at=_now_iso(),
        )
