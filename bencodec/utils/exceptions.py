"""Exception hierarchy for bencodec.

Every error raised by the codec derives from :class:`BencodecError`, so
callers can catch the whole family at once or a single failure kind.
"""

from __future__ import annotations

from typing import Any


class BencodecError(Exception):
    """Base exception for all bencodec errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize bencodec error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ConfigurationError(BencodecError):
    """Configuration validation errors."""


class BencodeError(BencodecError):
    """Bencode encoding/decoding errors."""


class BencodeEncodeError(BencodeError):
    """Errors raised while encoding a value."""


class BencodeDecodeError(BencodeError):
    """Errors raised while decoding a value.

    ``details["offset"]`` holds the absolute stream offset of the failure
    when it is known.
    """

    @property
    def offset(self) -> int | None:
        """Stream offset at which decoding failed."""
        return self.details.get("offset")


class UnsupportedTypeError(BencodeEncodeError, BencodeDecodeError):
    """Value or target shape has no bencode binding."""


class DuplicateKeyError(BencodeEncodeError):
    """Two dictionary entries encode to the same key."""


class CircularReferenceError(BencodeEncodeError):
    """A container holds a reference to itself."""


class InvalidTargetError(BencodeDecodeError):
    """Decode destination is not a writable reference."""


class TypeMismatchError(BencodeDecodeError):
    """Lookahead byte is incompatible with the target shape."""


class MalformedError(BencodeDecodeError):
    """Syntax violation in the input."""


class MalformedLengthError(MalformedError):
    """Byte string length prefix is not a decimal integer."""


class MalformedIntegerError(MalformedError):
    """Integer payload is not a decimal integer."""


class MalformedValueError(MalformedError):
    """Input does not start a valid bencode value."""


class TruncatedError(BencodeDecodeError):
    """Source was exhausted in the middle of a value."""


class EndOfStream(BencodeError, EOFError):  # noqa: N818
    """No further values: the stream ended cleanly between two values."""
