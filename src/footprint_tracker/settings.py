"""Environment-backed settings primitives for :mod:`footprint_tracker`."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["TrackerSettings", "get_settings"]

_DEFAULT_TIMEOUT_SECONDS = 5.0


class TrackerSettings(BaseSettings):
    """Expose environment-derived configuration knobs for the tracker.

    All environment lookups go through this class. Malformed numeric values
    fall back to the inline defaults rather than failing at startup.

    Attributes:
        api_url: Base URL of the calculator API (``/calculate`` and
            ``/user/calculations`` are resolved relative to it).
        api_timeout: Timeout in seconds applied to every remote request.
        storage_dir: Directory holding the local calculation log.
        log_slot: Name of the local-log slot (file stem inside
            ``storage_dir``).
        log_level: Logging level name used by the command-line interface.
    """

    api_url: str = Field(
        default="http://localhost:5000/api", alias="FOOTPRINT_API_URL"
    )
    api_timeout: float = Field(
        default=_DEFAULT_TIMEOUT_SECONDS, alias="FOOTPRINT_API_TIMEOUT"
    )
    storage_dir: Path = Field(
        default=Path("~/.footprint-tracker"), alias="FOOTPRINT_STORAGE_DIR"
    )
    log_slot: str = Field(default="calculations", alias="FOOTPRINT_LOG_SLOT")
    log_level: str = Field(default="WARNING", alias="FOOTPRINT_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    @field_validator("api_timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: object) -> float:
        """Parse the timeout while tolerating malformed input.

        Args:
            value: Raw environment value.

        Returns:
            Parsed positive float, otherwise the default timeout.
        """

        parsed: float | None = None
        if isinstance(value, (int, float)):
            parsed = float(value)
        elif isinstance(value, str):
            try:
                parsed = float(value.strip())
            except ValueError:
                parsed = None
        if parsed is None or parsed <= 0:
            return _DEFAULT_TIMEOUT_SECONDS
        return parsed

    @field_validator("log_slot", mode="before")
    @classmethod
    def _default_blank_slot(cls, value: object) -> object:
        """Treat an empty slot name as the default slot."""

        if value is None or (isinstance(value, str) and not value.strip()):
            return "calculations"
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_level(cls, value: object) -> object:
        """Upper-case level names so ``debug`` and ``DEBUG`` behave alike."""

        if isinstance(value, str):
            return value.strip().upper() or "WARNING"
        return value

    @property
    def resolved_storage_dir(self) -> Path:
        """Return the storage directory with ``~`` expanded."""

        return self.storage_dir.expanduser()


def get_settings() -> TrackerSettings:
    """Return a :class:`TrackerSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return TrackerSettings()
