"""Configuration loading utilities."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from bilingual_reader import logging_manager
from bilingual_reader.errors import ConfigurationError

from .settings import ReaderSettings, apply_settings_updates, load_environment_overrides

logger = logging_manager.get_logger().getChild("config")

DEFAULT_LOCAL_CONFIG_PATH = Path("reader.yaml")

_ACTIVE_SETTINGS: Optional[ReaderSettings] = None


def _read_config_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError:
        logger.debug(
            "No configuration found at %s.",
            path,
            extra={"event": "config.file.missing"},
        )
        return {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Configuration file {path} is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Invalid configuration file {path}: expected a mapping at the root."
        )
    logger.debug("Loaded configuration from %s", path, extra={"event": "config.file.loaded"})
    return dict(data)


def load_settings(config_file: Optional[str | Path] = None) -> ReaderSettings:
    """Load defaults, then the YAML file, then environment overrides.

    The result becomes the active settings returned by :func:`get_settings`.
    """

    global _ACTIVE_SETTINGS

    if config_file:
        path = Path(config_file).expanduser()
        if not path.is_absolute():
            path = (Path.cwd() / path).resolve()
    else:
        path = DEFAULT_LOCAL_CONFIG_PATH

    file_payload = _read_config_yaml(path)
    try:
        settings = ReaderSettings.model_validate(file_payload)
        settings = apply_settings_updates(settings, load_environment_overrides())
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration detected: {exc}") from exc

    _ACTIVE_SETTINGS = settings
    return settings


def get_settings() -> ReaderSettings:
    """Return the active settings, loading them on first use."""

    if _ACTIVE_SETTINGS is None:
        return load_settings()
    return _ACTIVE_SETTINGS


def reset_settings() -> None:
    """Forget the active settings so the next access reloads them."""

    global _ACTIVE_SETTINGS
    _ACTIVE_SETTINGS = None


def configure_logging_from_settings(settings: ReaderSettings) -> None:
    """Apply the logging section of ``settings`` to the application logger."""

    level = logging_manager.resolve_log_level(settings.log_level)
    logging_manager.setup_logging(level, log_dir=settings.log_dir)


__all__ = [
    "DEFAULT_LOCAL_CONFIG_PATH",
    "configure_logging_from_settings",
    "get_settings",
    "load_settings",
    "reset_settings",
]
