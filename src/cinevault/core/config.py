"""Client configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Shared with the web frontend (VITE_ prefix for Vite exposure)
    api_base: str = Field(default="http://localhost:5000", validation_alias="VITE_API_BASE")
    api_prefix: str = Field(default="/api", validation_alias="CINEVAULT_API_PREFIX")

    # Deployed servers expose the collection as /media
    collection_path: str = Field(
        default="/collection",
        validation_alias="CINEVAULT_COLLECTION_PATH",
    )
    page_size: int = Field(default=8, ge=1, validation_alias="CINEVAULT_PAGE_SIZE")
    request_timeout: float = Field(default=30.0, gt=0, validation_alias="CINEVAULT_API_TIMEOUT")
    request_source: str = Field(
        default="cinevault-client",
        validation_alias="CINEVAULT_REQUEST_SOURCE",
    )

    # Only the token/user pair is persisted here
    session_dir: Path = Field(
        default=Path("~/.cinevault"),
        validation_alias="CINEVAULT_SESSION_DIR",
    )
    log_level: str = Field(default="WARNING", validation_alias="CINEVAULT_LOG_LEVEL")

    @field_validator("collection_path", "api_prefix")
    @classmethod
    def ensure_leading_slash(cls, v: str) -> str:
        """Normalize path settings to a single leading slash and no trailing slash."""
        stripped = v.strip().strip("/")
        return f"/{stripped}" if stripped else ""

    @field_validator("session_dir")
    @classmethod
    def expand_session_dir(cls, v: Path) -> Path:
        """Expand '~' so the storage layer always receives an absolute-ish path."""
        return v.expanduser()

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Uppercase the level name so it can be passed to logging directly."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: '{v}'")
        return level

    @property
    def api_url(self) -> str:
        """Full base URL for API requests (e.g. http://localhost:5000/api)."""
        return f"{self.api_base.rstrip('/')}{self.api_prefix}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
