"""Configuration via pydantic-settings with .env support."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_CONF_DIR = Path(__file__).resolve().parent.parent / "conf"


def _default_tmp_dir() -> Path:
    return Path(tempfile.gettempdir()) / os.environ.get("USER", "") / "mms_extractor"


class MmsExtractorSettings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="MMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Staging root for extracted media
    tmp_dir: Path = Field(default_factory=_default_tmp_dir)

    # Rule files
    conf_dir: Path = PACKAGE_CONF_DIR
    default_config: str = "mms_media.yml"
    aliases_config: str = "aliases.yml"
    default_carrier: str = "mms.media"

    # Logging
    log_level: str = "INFO"

    def ensure_directories(self) -> None:
        """Create the staging root if it doesn't exist."""
        self.tmp_dir.mkdir(parents=True, exist_ok=True)


_settings: MmsExtractorSettings | None = None


def get_settings() -> MmsExtractorSettings:
    """Return the process-wide settings, building them on first use."""
    global _settings
    if _settings is None:
        _settings = MmsExtractorSettings()
    return _settings


def configure(settings: MmsExtractorSettings | None) -> None:
    """Replace the process-wide settings. Call before any session is built.

    Passing None resets to environment defaults on next access.
    """
    global _settings
    _settings = settings
