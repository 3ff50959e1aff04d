from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # Backend (Supabase edge functions)
    backend_url: str = ""
    backend_api_key: str = ""
    backend_conversations_path: str = "/conversations"
    backend_analysis_path: str = "/quick-handler"
    backend_status_path: str = "/dynamic-handler"
    backend_live_session_path: str = "/quick-worker"
    backend_timeout_sec: float = 10.0

    # Session sources: "remote" (remote first, fixtures as fallback) or "fixtures"
    session_source: str = "remote"
    default_user_id: str = "user-remote"

    # Aggregation
    event_group_threshold_pct: float = 2.0
    focus_cue_limit: int = 3

    # Recording -> analysis polling
    poll_interval_sec: float = 2.0
    poll_max_wait_sec: float = 60.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
