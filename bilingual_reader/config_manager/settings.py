"""Pydantic models and helper utilities for configuration values."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bilingual_reader import logging_manager

DEFAULT_SOURCE_LANGUAGE = "en"
DEFAULT_TARGET_LANGUAGE = "es"
DEFAULT_SENTENCE_TERMINATORS = ".!?"

logger = logging_manager.get_logger().getChild("config")


class ReaderSettings(BaseModel):
    """Typed representation of the reader configuration."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    source_language: str = DEFAULT_SOURCE_LANGUAGE
    target_language: str = DEFAULT_TARGET_LANGUAGE
    display_source_side: bool = True
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    sentence_terminators: str = DEFAULT_SENTENCE_TERMINATORS

    @field_validator("source_language", "target_language")
    @classmethod
    def _normalise_language(cls, value: str) -> str:
        cleaned = value.strip().replace("_", "-").lower()
        if not cleaned:
            raise ValueError("language code must not be empty")
        return cleaned

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if cleaned not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unsupported log level {value!r}")
        return cleaned

    @field_validator("sentence_terminators")
    @classmethod
    def _require_terminators(cls, value: str) -> str:
        if not value or any(char.isspace() for char in value):
            raise ValueError("sentence_terminators must be non-empty punctuation")
        return value


class EnvironmentOverrides(BaseSettings):
    """Configuration overrides sourced from environment variables."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    source_language: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("READER_SOURCE_LANGUAGE")
    )
    target_language: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("READER_TARGET_LANGUAGE")
    )
    display_source_side: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("READER_DISPLAY_SOURCE_SIDE")
    )
    log_level: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("READER_LOG_LEVEL", "LOG_LEVEL")
    )
    log_dir: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("READER_LOG_DIR")
    )


def load_environment_overrides() -> Dict[str, Any]:
    """Return configuration overrides sourced from environment variables."""

    try:
        overrides = EnvironmentOverrides()
    except ValidationError as exc:
        logger.warning(
            "Invalid environment configuration detected; using defaults.",
            extra={"event": "config.env.validation_error", "error": str(exc)},
        )
        return {}
    return overrides.model_dump(exclude_none=True)


def apply_settings_updates(settings: ReaderSettings, updates: Dict[str, Any]) -> ReaderSettings:
    """Return a validated copy of ``settings`` with ``updates`` applied."""

    if not updates:
        return settings
    payload = settings.model_dump()
    payload.update(updates)
    return ReaderSettings.model_validate(payload)


__all__ = [
    "DEFAULT_SENTENCE_TERMINATORS",
    "DEFAULT_SOURCE_LANGUAGE",
    "DEFAULT_TARGET_LANGUAGE",
    "EnvironmentOverrides",
    "ReaderSettings",
    "apply_settings_updates",
    "load_environment_overrides",
]
