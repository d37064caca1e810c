"""Configuration management for tift."""

from pathlib import Path

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tift.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="TIFT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    home: Path = Field(default=Path.home() / ".tift", description="Directory for saves, bookmarks and exports")
    game_file: Path | None = Field(None, description="Game definition to load")

    # Engine
    undo_levels: int = Field(default=10, ge=0, description="Undo history kept by the engine")
    auto_look: bool = Field(default=True, description="Describe the location after moving")

    # Features
    max_bookmarks: int = Field(default=10, ge=1, description="Bookmarks kept per game")
    save_timeout_ms: int = Field(default=100, gt=0, description="How long to wait for a save snapshot")
    save_poll_ms: int = Field(default=10, gt=0, description="Polling interval while waiting for a save")
    scroll_back: int = Field(default=200, ge=0, description="Messages kept in the scroll-back")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    @property
    def store_path(self) -> Path:
        return self.home / "storage.json"

    @property
    def exports_path(self) -> Path:
        return self.home / "exports"

    def engine_properties(self) -> dict[str, bool | int | float | str]:
        """Properties sent to the engine with the Config request."""
        return {"undoLevels": self.undo_levels, "autoLook": self.auto_look}


def load_settings(home: Path | None = None) -> Settings:
    """Get application settings.

    Args:
        home: Optional override for the storage directory

    Returns:
        Settings instance
    """
    overrides = {"home": home} if home is not None else {}
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid tift configuration: {exc}") from exc
