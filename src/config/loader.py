"""YAML configuration loader.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Two layers feed the service (later layers override earlier):
#
#   1. Built-in defaults   — DEFAULT_CATEGORY_RULES and friends below
#   2. config/config.yaml  — Static values checked into the repo
#                            (category rules, sheet names)
#
# Runtime knobs (host, Firestore pacing, log level) live on Settings and
# come from .env and environment variables, not from this file.
#
# The _deep_merge helper does recursive dict merging:
#   base = {"sheets": {"team": "Teams", "individual": "People"}}
#   overrides = {"sheets": {"team": "Accounts"}}
#   result = {"sheets": {"team": "Accounts", "individual": "People"}}
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from src.config.settings import Settings

# Used when config.yaml is missing or leaves a section out.
DEFAULT_CATEGORY_RULES: list[dict[str, Any]] = [
    {"category": "productivity", "keywords": ["driving operational efficiency", "productivity"]},
    {"category": "data", "keywords": ["predictive insights", "data", "analysis"]},
    {"category": "cx", "keywords": ["customer experience"]},
    {"category": "innovation", "keywords": ["innovation", "creativity"]},
]
DEFAULT_CATEGORY = "productivity"
DEFAULT_SHEET_NAMES = {
    "submissions": "AI Tips Submissions",
    "playbooks": "Form Responses",
    "individual": "Leaderboard by Individual",
    "team": "Leaderboard by Account/Department",
}


def load_config(path: str | None = None, settings: Settings | None = None) -> dict[str, Any]:
    """Load YAML config over the built-in defaults.

    Args:
        path: Path to the YAML configuration file.  Defaults to
              ``settings.config_path``.
        settings: Settings instance supplying the default path.  A fresh
                  one is built when omitted.

    Returns:
        Fully resolved configuration dictionary.  ``playbooks`` and
        ``sheets`` sections are always present.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    base: dict[str, Any] = {
        "playbooks": {
            "default_category": DEFAULT_CATEGORY,
            "category_rules": DEFAULT_CATEGORY_RULES,
        },
        "sheets": dict(DEFAULT_SHEET_NAMES),
    }
    _deep_merge(base, yaml_config)
    return base


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
