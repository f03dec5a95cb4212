"""
Centralized settings for statekit.

Manifesto:
    A handful of process-wide switches (auto path root, default laziness,
    eviction policy, log format) should be set once from the environment and
    validated, not sprinkled through the code as module constants.

All fields can be set via ``STATEKIT_*`` environment variables (e.g.
``STATEKIT_DEFAULT_LAZY=true``) or a ``.env`` file.

Tags:
    statekit, configuration, settings, pydantic

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StatekitSettings(BaseSettings):
    """Statekit configuration.

    Fields
    ──────
    log_level        : Structlog log level
    json_logs        : JSON log output (None = auto-detect from tty)
    auto_path_root   : First path segment for logics declared without a path
    default_lazy     : Declare logics lazily unless they opt out
    evict_on_unmount : Drop cache entries when their mount count reaches zero
    """

    model_config = SettingsConfigDict(
        env_prefix="STATEKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Logic building ───────────────────────────────────────────
    auto_path_root: str = Field(default="statekit", min_length=1)
    default_lazy: bool = False
    evict_on_unmount: bool = False

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return value


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, StatekitSettings] = {}


def get_settings(*, _force_reload: bool = False) -> StatekitSettings:
    """Load, validate, and cache a :class:`StatekitSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = StatekitSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["StatekitSettings", "get_settings", "clear_settings_cache"]
