"""Shared utilities and infrastructure."""

from __future__ import annotations

from bencodec.utils.exceptions import (
    BencodecError,
    BencodeDecodeError,
    BencodeEncodeError,
    BencodeError,
    ConfigurationError,
)
from bencodec.utils.logging_config import get_logger, setup_logging

__all__ = [
    "BencodeDecodeError",
    "BencodeEncodeError",
    "BencodeError",
    "BencodecError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
]
