"""Settings loader combining the YAML defaults with environment overrides."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .schema import (
    BaseSourceConfig,
    ConfigurationError,
    LanguageDescriptor,
    StorageConfig,
    StoreSettings,
    normalise_language_code,
)

logger = logging.getLogger(__name__)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
SETTINGS_FILE = CONFIG_DIRECTORY / "settings.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Settings file must define a mapping at the top level")
    return data


def _parse_bool(value: str | None, *, env: str) -> bool | None:
    if value is None or not value.strip():
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning("Ignoring invalid value for %s: %s", env, value)
    return None


def _apply_environment(raw: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Overlay ``TINYLOCALIZE_*`` variables onto the raw settings mapping."""

    settings = dict(raw)

    enable_overrides = _parse_bool(
        environ.get("TINYLOCALIZE_ENABLE_OVERRIDES"), env="TINYLOCALIZE_ENABLE_OVERRIDES"
    )
    if enable_overrides is not None:
        settings["enable_overrides"] = enable_overrides

    default_language = normalise_language_code(environ.get("TINYLOCALIZE_DEFAULT_LANGUAGE"))
    if default_language:
        settings["default_language"] = default_language

    storage_path = environ.get("TINYLOCALIZE_STORAGE_PATH")
    if storage_path and storage_path.strip():
        settings["storage"] = {
            "kind": "sqlite",
            "path": str(Path(storage_path.strip()).expanduser()),
        }

    base_url = environ.get("TINYLOCALIZE_BASE_URL")
    if base_url and base_url.strip():
        base_source = dict(settings.get("base_source") or {})
        base_source.update({"kind": "http", "location": base_url.strip()})
        settings["base_source"] = base_source

    return settings


def build_settings(raw: Mapping[str, Any]) -> StoreSettings:
    """Validate ``raw`` into a :class:`StoreSettings` instance."""

    try:
        return StoreSettings.model_validate(dict(raw))
    except ValidationError as error:
        raise ConfigurationError(f"Settings validation failed: {error}") from error


def load_settings(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> StoreSettings:
    """Load settings from ``path`` (or the configured file) and the environment."""

    env = os.environ if environ is None else environ
    if path is None:
        configured = env.get("TINYLOCALIZE_SETTINGS")
        path = Path(configured).expanduser() if configured else SETTINGS_FILE

    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    return build_settings(_apply_environment(_load_yaml(path), env))


@lru_cache(maxsize=1)
def default_settings() -> StoreSettings:
    """Return the cached settings derived from the process environment."""

    return load_settings()


__all__ = [
    "BaseSourceConfig",
    "CONFIG_DIRECTORY",
    "ConfigurationError",
    "LanguageDescriptor",
    "SETTINGS_FILE",
    "StorageConfig",
    "StoreSettings",
    "build_settings",
    "default_settings",
    "load_settings",
]
