"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict

# Project root: trail-tracker/
PROJECT_ROOT = Path(__file__).parent.parent.parent
# Content directory: trail-tracker/content/
CONTENT_DIR = PROJECT_ROOT / "content"


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./trail_tracker.db",
        description="Database connection URL"
    )

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === Trail ===
    trail_gpx_path: Path = Field(
        default=CONTENT_DIR / "gpx" / "trail.gpx",
        description="GPX file holding the race route"
    )
    trail_cache_ttl_seconds: int = Field(
        default=300,
        description="How long a loaded trail is reused before reloading"
    )

    # === Tracking ===
    off_trail_threshold_km: float = Field(
        default=5.0,
        description="Fixes farther than this from every trail point are off-trail"
    )
    progress_segment_sample_size: int = Field(
        default=50,
        description="Max completed segments stored with the progress record"
    )
    timeline_timezone: str = Field(
        default="UTC",
        description="Timezone used to read run timeline wall-clock dates"
    )

    # === Precomputation ===
    precompute_ttl_seconds: int = Field(
        default=15 * 60,
        description="Age after which a cached computation is recomputed"
    )

    # === Admin ===
    admin_api_key: Optional[str] = Field(
        default=None,
        description="Shared key required in X-API-Key for admin mutations"
    )

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

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
