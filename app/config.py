"""PowerUp — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── App ──
    log_level: str = "INFO"

    # ── Meets ──
    default_director_id: str = "temp-director-id"  # Until director auth exists
    meets_page_size: int = 50
    upcoming_meets_limit: int = 10
    require_address: bool = True
    enforce_capacity: bool = True

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/powerup.db"
        return "sqlite:///./powerup.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
