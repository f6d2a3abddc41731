"""JSONP rendering for script-tag consumers of ``GET /?callback=...``.

The body is ``callbackName(<json>);`` with the JSON serialised on a single
line.  ``json.dumps`` escapes raw newlines inside strings, and U+2028 /
U+2029 are escaped explicitly because older JavaScript engines treat them
as line terminators inside string literals.
"""

from __future__ import annotations

import json
import re
from typing import Any

JSONP_MEDIA_TYPE = "application/javascript"

# Plain identifiers or dotted paths such as ``app.handlers.onData``.
_CALLBACK_RE = re.compile(r"^[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*$")


def is_valid_callback(name: str | None) -> bool:
    """Return True if *name* is safe to emit as a JavaScript function reference."""
    if not name or len(name) > 128:
        return False
    return _CALLBACK_RE.fullmatch(name) is not None


def dumps_compact(payload: Any) -> str:
    """Serialise *payload* to single-line JSON."""
    text = json.dumps(payload, ensure_ascii=False, default=str)
    return text.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")


def render_jsonp(callback: str, payload: Any) -> str:
    """Wrap *payload* as ``callback(<json>);``.

    Raises
    ------
    ValueError
        If *callback* is not a valid JavaScript identifier path.
    """
    if not is_valid_callback(callback):
        raise ValueError(f"Invalid JSONP callback name: {callback!r}")
    return f"{callback}({dumps_compact(payload)});"
