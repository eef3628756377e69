"""Pydantic models for bencodec.

Provides validated configuration models for the codec and its tooling.
"""

from __future__ import annotations

import codecs
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CodecConfig(BaseModel):
    """Encoder/decoder tuning."""

    read_buffer_size: int = Field(
        default=4096,
        ge=1,
        le=16 * 1024 * 1024,
        description="Bytes requested from the source per read",
    )
    text_encoding: str = Field(
        default="utf-8",
        description="Codec used to map str values to byte strings",
    )
    # Each level costs up to two interpreter frames; the bound stays well
    # inside the default recursion limit of 1000
    max_depth: int = Field(
        default=256,
        ge=1,
        le=400,
        description="Maximum nesting of lists, dictionaries and records",
    )

    @field_validator("text_encoding")
    @classmethod
    def validate_text_encoding(cls, v: str) -> str:
        """Ensure the text encoding names a known codec."""
        try:
            return codecs.lookup(v).name
        except LookupError as e:
            msg = f"Unknown text encoding: {v}"
            raise ValueError(msg) from e


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    log_file: str | None = Field(None, description="Log file path")
    structured_logging: bool = Field(
        default=False,
        description="Use structured (JSON) logging",
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Include correlation IDs",
    )


class Config(BaseModel):
    """Main configuration model."""

    codec: CodecConfig = Field(
        default_factory=CodecConfig,
        description="Codec configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )
