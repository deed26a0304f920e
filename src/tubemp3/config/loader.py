"""
Unified configuration loader with priority resolution.

Root directory (TUBEMP3_ROOT):
- macOS/Linux: ~/.tubemp3
- Windows: %APPDATA%\\tubemp3
- Override: TUBEMP3_ROOT environment variable

Priority for every setting (highest to lowest):
1. Environment variable (TUBEMP3_OUTPUT_DIR, TUBEMP3_FFMPEG, ...)
2. Project config (.tubemp3/config.yaml, searched upward from cwd)
3. User config ({root_dir}/config.yaml)
4. Default

Config file keys:
    output_dir: ~/Music
    ffmpeg_path: /usr/local/bin/ffmpeg
    downloader_path: /usr/local/bin/yt-dlp
    http_timeout: 30
    subprocess_timeout: 600
    extraction_rules:
      - name: player_response_v2
        target: player_response
        pattern: 'playerResponse\\s*=\\s*(?=\\{)'
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from tubemp3.config.defaults import HTTP_TIMEOUT

if TYPE_CHECKING:
    from tubemp3.scraping.rules import ExtractionRule

logger = logging.getLogger(__name__)

_ENV_KEYS = {
    "output_dir": "TUBEMP3_OUTPUT_DIR",
    "ffmpeg_path": "TUBEMP3_FFMPEG",
    "downloader_path": "TUBEMP3_DOWNLOADER",
    "http_timeout": "TUBEMP3_HTTP_TIMEOUT",
    "subprocess_timeout": "TUBEMP3_SUBPROCESS_TIMEOUT",
}


class ConfigSource(Enum):
    """Source of the configuration value."""

    ENV = "env"
    PROJECT = "project"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True)
class TubeMP3Config:
    """Resolved tubemp3 configuration."""

    root_dir: Path
    output_dir: Path | None = None
    ffmpeg_path: str | None = None
    downloader_path: str | None = None
    http_timeout: float = HTTP_TIMEOUT
    subprocess_timeout: int | None = None
    extra_rules: tuple[ExtractionRule, ...] = ()
    source: ConfigSource = ConfigSource.DEFAULT


def _load_yaml_config(config_path: Path) -> dict[str, Any] | None:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Parsed config dict, or None if file doesn't exist or fails to parse.
    """
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return None

    if config is None:
        return {}
    if not isinstance(config, dict):
        logger.warning(f"Config file {config_path} is not a valid YAML dict")
        return None
    return config


def _find_project_config() -> Path | None:
    """Find project-level config by walking up from cwd.

    Returns:
        Path to .tubemp3/config.yaml if found, None otherwise.
    """
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        config_path = parent / ".tubemp3" / "config.yaml"
        if config_path.exists():
            return config_path
    return None


def _get_root_dir() -> Path:
    """Get the tubemp3 root directory.

    Returns:
        Path to the root directory (may not exist yet).
    """
    env_root = os.environ.get("TUBEMP3_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "tubemp3"
        return Path.home() / "AppData" / "Roaming" / "tubemp3"
    return Path.home() / ".tubemp3"


def _get_user_config_path() -> Path:
    return _get_root_dir() / "config.yaml"


def _resolve_path(value: Any, config_path: Path | None) -> Path:
    """Resolve a configured path, relative paths against the config file."""
    path = Path(str(value)).expanduser()
    if not path.is_absolute() and config_path is not None:
        return (config_path.parent / path).resolve()
    return path.resolve()


def _coerce_number(key: str, value: Any, kind: type) -> Any:
    try:
        number = kind(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid {key}: {value!r}")
        return None
    if number <= 0:
        logger.warning(f"Ignoring non-positive {key}: {value!r}")
        return None
    return number


def _parse_rules(entries: Any) -> tuple[ExtractionRule, ...]:
    """Build extraction rules from the ``extraction_rules`` config list."""
    from tubemp3.scraping.rules import ExtractionRule

    if not entries:
        return ()
    if not isinstance(entries, list):
        logger.warning("extraction_rules must be a list, ignoring")
        return ()

    rules = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning(f"extraction_rules[{i}] is not a mapping, skipping")
            continue
        try:
            rules.append(
                ExtractionRule.build(
                    name=str(entry.get("name") or f"config_rule_{i}"),
                    target=str(entry["target"]),
                    pattern=str(entry["pattern"]),
                    wrap_key=entry.get("wrap_key"),
                )
            )
        except KeyError as e:
            logger.warning(f"extraction_rules[{i}] missing {e}, skipping")
        except (re.error, ValueError) as e:
            logger.warning(f"extraction_rules[{i}] is invalid: {e}")
    return tuple(rules)


def _settings_from_yaml(
    config: dict[str, Any] | None, config_path: Path | None
) -> dict[str, Any]:
    """Pick recognized settings out of a parsed YAML config."""
    if not config:
        return {}

    settings: dict[str, Any] = {}
    if config.get("output_dir"):
        settings["output_dir"] = _resolve_path(config["output_dir"], config_path)
    for key in ("ffmpeg_path", "downloader_path"):
        if config.get(key):
            settings[key] = str(Path(str(config[key])).expanduser())
    if config.get("http_timeout") is not None:
        value = _coerce_number("http_timeout", config["http_timeout"], float)
        if value is not None:
            settings["http_timeout"] = value
    if config.get("subprocess_timeout") is not None:
        value = _coerce_number("subprocess_timeout", config["subprocess_timeout"], int)
        if value is not None:
            settings["subprocess_timeout"] = value
    rules = _parse_rules(config.get("extraction_rules"))
    if rules:
        settings["extra_rules"] = rules
    return settings


def _settings_from_env() -> dict[str, Any]:
    settings: dict[str, Any] = {}
    env = {key: os.environ.get(var) for key, var in _ENV_KEYS.items()}

    if env["output_dir"]:
        settings["output_dir"] = Path(env["output_dir"]).expanduser().resolve()
    for key in ("ffmpeg_path", "downloader_path"):
        if env[key]:
            settings[key] = env[key]
    if env["http_timeout"]:
        value = _coerce_number("http_timeout", env["http_timeout"], float)
        if value is not None:
            settings["http_timeout"] = value
    if env["subprocess_timeout"]:
        value = _coerce_number("subprocess_timeout", env["subprocess_timeout"], int)
        if value is not None:
            settings["subprocess_timeout"] = value
    return settings


def _resolve_config() -> TubeMP3Config:
    """Resolve configuration from all sources in priority order.

    Lower-priority layers are applied first and overwritten key by key.
    The reported source is the highest-priority layer that set anything.
    """
    root_dir = _get_root_dir()
    settings: dict[str, Any] = {}
    source = ConfigSource.DEFAULT

    user_config_path = _get_user_config_path()
    user_settings = _settings_from_yaml(
        _load_yaml_config(user_config_path), user_config_path
    )
    if user_settings:
        logger.debug(f"Loaded user config {user_config_path}")
        settings.update(user_settings)
        source = ConfigSource.USER

    project_config_path = _find_project_config()
    if project_config_path:
        project_settings = _settings_from_yaml(
            _load_yaml_config(project_config_path), project_config_path
        )
        if project_settings:
            logger.debug(f"Loaded project config {project_config_path}")
            settings.update(project_settings)
            source = ConfigSource.PROJECT

    env_settings = _settings_from_env()
    if env_settings:
        settings.update(env_settings)
        source = ConfigSource.ENV

    return TubeMP3Config(root_dir=root_dir, source=source, **settings)


@lru_cache(maxsize=1)
def get_config() -> TubeMP3Config:
    """Get resolved tubemp3 configuration.

    Results are cached - configuration is resolved once per process.
    To force re-resolution (e.g., after env change), use clear_config_cache().
    """
    return _resolve_config()


def clear_config_cache() -> None:
    """Clear the cached configuration."""
    get_config.cache_clear()
