"""Utility modules for the AI Tips service.

- **errors** -- Exception hierarchy rooted at TipsError; route handlers
  and sync loops catch the subclasses they can handle.
- **logging** -- structlog setup with coloured console output in
  development and JSON in production.
- **sheet_key** -- Timestamp normalisation and the SHA-256 sheet key.
- **jsonp** -- ``callback(<json>);`` rendering and callback validation.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    DocumentStoreError,
    RecordNotFoundError,
    SheetStoreError,
    SubmissionValidationError,
    TipsError,
)

# -- JSONP -------------------------------------------------------------------
from src.utils.jsonp import is_valid_callback, render_jsonp

# -- Structured logging ------------------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Sheet key -----------------------------------------------------------------
from src.utils.sheet_key import create_playbook_key, to_iso_timestamp

__all__ = [
    "ConfigurationError",
    "DocumentStoreError",
    "RecordNotFoundError",
    "SheetStoreError",
    "SubmissionValidationError",
    "TipsError",
    "configure_logging",
    "create_playbook_key",
    "get_logger",
    "is_valid_callback",
    "render_jsonp",
    "to_iso_timestamp",
]
