"""Configuration management for bilingual-reader."""
from __future__ import annotations

from .loader import (
    DEFAULT_LOCAL_CONFIG_PATH,
    configure_logging_from_settings,
    get_settings,
    load_settings,
    reset_settings,
)
from .settings import (
    DEFAULT_SENTENCE_TERMINATORS,
    DEFAULT_SOURCE_LANGUAGE,
    DEFAULT_TARGET_LANGUAGE,
    EnvironmentOverrides,
    ReaderSettings,
    apply_settings_updates,
    load_environment_overrides,
)

__all__ = [
    "DEFAULT_LOCAL_CONFIG_PATH",
    "DEFAULT_SENTENCE_TERMINATORS",
    "DEFAULT_SOURCE_LANGUAGE",
    "DEFAULT_TARGET_LANGUAGE",
    "EnvironmentOverrides",
    "ReaderSettings",
    "apply_settings_updates",
    "configure_logging_from_settings",
    "get_settings",
    "load_environment_overrides",
    "load_settings",
    "reset_settings",
]
