"""
Process-wide configuration for the career matching service.

Values are read once from the environment (and a local .env file) when the
process starts, then passed explicitly to the components that need them.
"""
import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_SCORING_BASE_URL = "https://ai.gateway.lovable.dev/v1"
DEFAULT_SCORING_MODEL = "google/gemini-2.5-flash"


class Settings(BaseModel):
    """Store and scoring-service configuration."""

    # Supabase REST store
    supabase_url: str = ""
    supabase_anon_key: str = ""
    store_timeout_seconds: float = Field(default=30.0, gt=0)

    # Scoring service (OpenAI-compatible chat completions)
    scoring_api_key: Optional[str] = None
    scoring_base_url: str = DEFAULT_SCORING_BASE_URL
    scoring_model: str = DEFAULT_SCORING_MODEL
    scoring_timeout_seconds: float = Field(default=120.0, gt=0)

    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
            store_timeout_seconds=float(os.getenv("STORE_TIMEOUT_SECONDS", "30")),
            scoring_api_key=os.getenv("SCORING_API_KEY") or None,
            scoring_base_url=os.getenv("SCORING_BASE_URL", DEFAULT_SCORING_BASE_URL),
            scoring_model=os.getenv("SCORING_MODEL", DEFAULT_SCORING_MODEL),
            scoring_timeout_seconds=float(os.getenv("SCORING_TIMEOUT_SECONDS", "120")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, built on first use."""
    return Settings.from_env()
