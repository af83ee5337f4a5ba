"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict

# Project root: live-team-scoring/
PROJECT_ROOT = Path(__file__).parent.parent.parent
# Content directory: live-team-scoring/content/
CONTENT_DIR = PROJECT_ROOT / "content"


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    content_dir: Path = Field(
        default=CONTENT_DIR,
        description="Directory with races/events.yaml and fallback fixtures"
    )

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === Live timing feed ===
    live_timing_url: str = Field(
        default="https://live-timing.com/includes/aj_club2020.php",
        description="Raw feed endpoint (race id passed as ?r=)"
    )
    fetch_timeout_s: float = Field(default=15.0, gt=0)

    # === Team scoring ===
    counting_finishers: int = Field(default=4, ge=1)
    enforce_team_size_cap: bool = Field(default=False)
    max_team_roster: int = Field(default=6, ge=1)

    @field_validator('log_level')
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        """Accept 'debug' as well as 'DEBUG'."""
        return v.upper()

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
