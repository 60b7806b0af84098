"""
Configuration loading for releasecache.

Options are read once from an optional YAML file (`releasecache.yaml` in the
platform user config directory) and merged with caller overrides. The engine
and fetcher resolve their settings from the merged options at construction
time and never re-read them per call.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import platformdirs
import yaml

from releasecache.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_RELEASE_CACHE_DURATION,
    OPTION_CACHE_DURATION,
    OPTION_DOWNLOAD_CACHE,
)
from releasecache.exceptions import ConfigFileError, ConfigValidationError
from releasecache.log_utils import logger

DEFAULT_OPTIONS: Dict[str, Any] = {
    OPTION_CACHE_DURATION: DEFAULT_RELEASE_CACHE_DURATION,
    OPTION_DOWNLOAD_CACHE: False,
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def get_config_file_path() -> str:
    """Return the default configuration file path in the user config directory."""
    return os.path.join(platformdirs.user_config_dir(APP_NAME), CONFIG_FILE_NAME)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the releasecache YAML configuration.

    Parameters:
        path (Optional[str]): A configuration file, or a directory containing
            `releasecache.yaml`. When omitted the platformdirs-managed location
            is used.

    Returns:
        Dict[str, Any]: The parsed options, or an empty dict when no file exists.

    Raises:
        ConfigFileError: If the file cannot be read, is not valid YAML, or does
            not contain a mapping.
    """
    if path and os.path.isdir(path):
        config_path = os.path.join(path, CONFIG_FILE_NAME)
    else:
        config_path = path or get_config_file_path()

    if not os.path.exists(config_path):
        logger.debug(f"No configuration file at {config_path}; using defaults")
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError(
            f"Could not read configuration file {config_path}", details=str(e)
        ) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigFileError(
            f"Configuration file {config_path} must contain a mapping of options"
        )
    return config


def get_option(options: Optional[Mapping[str, Any]], name: str) -> Any:
    """
    Resolve a single option from caller overrides, falling back to the library default.

    Keys may be written with dashes or underscores (`cache-duration-releasexml`
    or `cache_duration_releasexml`).
    """
    if options:
        for key in (name, name.replace("-", "_")):
            if key in options and options[key] is not None:
                return options[key]
    return DEFAULT_OPTIONS.get(name)


def _as_duration(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigValidationError(f"Option {name} must be a number of seconds")
    try:
        duration = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(
            f"Option {name} must be a number of seconds", details=repr(value)
        ) from e
    if duration < 0:
        raise ConfigValidationError(
            f"Option {name} must not be negative", details=repr(value)
        )
    return duration


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigValidationError(f"Option {name} must be a boolean", details=repr(value))


@dataclass(frozen=True)
class EngineConfig:
    """Resolved settings for ReleaseCacheEngine."""

    cache_duration: int = DEFAULT_RELEASE_CACHE_DURATION

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "EngineConfig":
        """
        Build an EngineConfig from option overrides.

        Accepts either the option name (`cache-duration-releasexml`) or the
        short engine-level key `cache-duration`, which takes precedence.
        """
        options = options or {}
        value = get_option(options, "cache-duration")
        if value is None:
            value = get_option(options, OPTION_CACHE_DURATION)
        return cls(cache_duration=_as_duration(value, OPTION_CACHE_DURATION))


@dataclass(frozen=True)
class FetcherConfig:
    """Resolved settings for ArtifactFetcher."""

    cache: bool = False
    cache_dir: Optional[str] = None

    @classmethod
    def from_options(
        cls, options: Optional[Mapping[str, Any]] = None
    ) -> "FetcherConfig":
        options = options or {}
        cache_dir = options.get("cache_dir") or options.get("cache-dir")
        return cls(
            cache=_as_bool(get_option(options, OPTION_DOWNLOAD_CACHE), OPTION_DOWNLOAD_CACHE),
            cache_dir=str(cache_dir) if cache_dir else None,
        )
