from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from apps/api so it works regardless of CWD
_env_file = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_env_file, extra="ignore")

    database_url: str = "postgresql://localhost/hod"
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Gemini generateContent endpoint; key stays server-side
    gemini_api_key: str | None = None
    gemini_api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.5-flash"
    chat_timeout_seconds: float = 60.0

    # Rate-limit retry policy for the LLM call (HTTP 429 only)
    chat_max_retries: int = 3
    chat_initial_backoff_seconds: float = 1.0
    chat_backoff_multiplier: float = 2.0

    # Commit-time de-duplication looks back this far for insights/notes/wellbeing
    recent_fingerprint_window_days: int = 30

    # Open review sessions kept in-process per worker
    review_session_max: int = 256

    # Rate limiting (per-user when key_func uses user id; multi-instance needs Redis later)
    ingest_rate_limit: str = "20/minute"
    rate_limit_enabled: bool = True

    log_level: str = "INFO"

    # CORS (comma-separated origins; * allows all)
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parsed CORS origins for middleware."""
        raw = self.cors_origins.strip()
        return ["*"] if not raw else [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
