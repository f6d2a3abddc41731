"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Settings are read from two sources (in priority order):
#
#   1. **Environment variables** — e.g., FIRESTORE_PROJECT_ID=my-project
#   2. **.env file** — key=value lines in the project root .env file
#
# Field name `firestore_project_id` maps to env var `FIRESTORE_PROJECT_ID`.
# Defaults apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """AI Tips service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Firestore (document store mirror) ===
    firestore_enabled: bool = True
    firestore_project_id: str = "kms-ai-leaderboard"
    firestore_database: str = "(default)"
    firestore_base_url: str = "https://firestore.googleapis.com/v1"
    # Either credential is optional; open security rules need neither.
    firestore_api_key: str = ""
    firestore_bearer_token: str = ""
    firestore_timeout_seconds: float = 30.0
    # Fixed pacing: sleep after every Nth request.  0 disables pacing.
    firestore_pause_every: int = 10
    firestore_pause_seconds: float = 1.0
    # Retries on 429/5xx.  0 = fail fast, which is the historical behaviour.
    firestore_max_retries: int = 0
    firestore_retry_backoff_seconds: float = 2.0

    # === Collection names ===
    collection_playbooks: str = "playbooks"
    collection_individual_leaderboard: str = "individual_leaderboard"
    collection_team_leaderboard: str = "team_leaderboard"
    collection_reactions: str = "reactions"
    collection_submissions: str = "submissions"

    # === Sheet store ===
    sheet_db_path: str = "data/sheets.db"
    config_path: str = "config/config.yaml"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    # Comma-separated list; "*" allows any origin (script-tag / iframe clients).
    cors_origins: str = "*"

    def get_cors_origins(self) -> list[str]:
        """Return the configured CORS origins as a list."""
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]

    def get_documents_url(self) -> str:
        """Return the REST root for documents in the configured database."""
        return (
            f"{self.firestore_base_url.rstrip('/')}/projects/{self.firestore_project_id}"
            f"/databases/{self.firestore_database}/documents"
        )
