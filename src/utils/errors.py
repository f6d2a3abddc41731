"""Custom exception hierarchy for the AI Tips service.

All application exceptions inherit from :class:`TipsError`, which carries
an optional ``provider_name`` so error handlers can identify which backing
service (e.g. "firestore", "sqlite_sheet") caused the failure.

    TipsError  (base -- catch-all for any service error)
    +-- SubmissionValidationError  (missing required fields, bad email)
    +-- SheetStoreError            (tabular store read/write failure)
    +-- RecordNotFoundError        (row or document does not exist)
    +-- DocumentStoreError         (Firestore REST call failed)
    +-- ConfigurationError         (startup / missing config)

Route handlers convert these into the ``{success: false, message}``
envelope; bulk sync loops record them and keep going.
"""


class TipsError(Exception):
    """Base exception for all AI Tips service errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[firestore] HTTP 403``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Intake errors
# ---------------------------------------------------------------------------

class SubmissionValidationError(TipsError):
    """Raised when a form submission fails required-field or email checks.

    ``message`` is user-facing and is returned verbatim in the envelope.
    """

    def __init__(
        self,
        message: str = "Please fill in all required fields.",
        provider_name: str | None = None,
        missing_fields: list[str] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._missing_fields = list(missing_fields or [])

    @property
    def missing_fields(self) -> list[str]:
        return list(self._missing_fields)


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class SheetStoreError(TipsError):
    """Raised when the tabular store cannot be read or written."""

    def __init__(
        self,
        message: str = "Sheet store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RecordNotFoundError(TipsError):
    """Raised when a submission, playbook or remote document is missing."""

    def __init__(
        self,
        message: str = "Record not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentStoreError(TipsError):
    """Raised when a Firestore REST call fails.

    Carries the HTTP ``status_code`` (``None`` for transport errors) and the
    response ``body`` so callers can log what Firestore actually said.
    """

    def __init__(
        self,
        message: str = "Document store request failed",
        provider_name: str | None = None,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code
        self._body = body

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def body(self) -> str:
        return self._body


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(TipsError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
