"""
Configuration for tubemp3.

Contains request headers, transcode parameters and the config loader.
"""

from tubemp3.config.loader import (
    ConfigSource,
    TubeMP3Config,
    clear_config_cache,
    get_config,
)

__all__ = [
    "ConfigSource",
    "TubeMP3Config",
    "clear_config_cache",
    "get_config",
]
