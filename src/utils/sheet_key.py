"""Deterministic natural key linking a sheet row to its Firestore document.

The key is the lowercase hex SHA-256 of ``owner + timestamp``.  Rows that
were keyed by the spreadsheet script used JavaScript's ``toISOString()``
output for the timestamp (millisecond precision, ``Z`` suffix), so
:func:`to_iso_timestamp` reproduces exactly that format before hashing.

Two submissions with the same owner and the same millisecond collide;
there is no collision handling.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone


def to_iso_timestamp(value: datetime | str) -> str:
    """Normalise *value* to ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Naive datetimes are treated as UTC.  Strings are parsed with
    :meth:`datetime.fromisoformat` (a trailing ``Z`` is accepted).

    Raises
    ------
    ValueError
        If *value* is an empty or unparseable string.
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("timestamp is empty")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def create_playbook_key(owner: str, timestamp: str) -> str:
    """Return the hex SHA-256 digest of ``str(owner) + str(timestamp)``."""
    data = f"{owner}{timestamp}".encode("utf-8")
    return hashlib.sha256(data).hexdigest()
