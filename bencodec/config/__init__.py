"""Configuration management.

This module handles configuration loading and validation.
"""

from __future__ import annotations

from bencodec.config.config import (
    ConfigManager,
    get_codec_config,
    get_config,
    init_config,
    reload_config,
    set_config,
)
from bencodec.models import CodecConfig, Config, ObservabilityConfig

__all__ = [
    "CodecConfig",
    "Config",
    "ConfigManager",
    "ObservabilityConfig",
    "get_codec_config",
    "get_config",
    "init_config",
    "reload_config",
    "set_config",
]
