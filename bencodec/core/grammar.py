"""Bencode productions and their literal syntax."""

from __future__ import annotations

import re
import sys
from enum import Enum
from typing import Final

TOKEN_INTEGER: Final = ord("i")
TOKEN_LIST: Final = ord("l")
TOKEN_DICT: Final = ord("d")
TOKEN_END: Final = ord("e")
TOKEN_STRING_SEPARATOR: Final = ord(":")

DIGITS: Final = frozenset(b"0123456789")

LENGTH_PATTERN: Final = re.compile(rb"[0-9]+")
INTEGER_PATTERN: Final = re.compile(rb"-?[0-9]+")

# Longest runs scanned for the ":" or "e" terminator
MAX_LENGTH_DIGITS: Final = len(str(sys.maxsize))
MAX_INTEGER_CHARS: Final = 1 + 4300  # sign plus the interpreter str-to-int limit


class Production(str, Enum):
    """The four bencode productions."""

    BYTE_STRING = "byte string"
    INTEGER = "integer"
    LIST = "list"
    DICTIONARY = "dictionary"


def production_for(token: int) -> Production | None:
    """Select the production a lookahead byte starts, if any."""
    if token in DIGITS:
        return Production.BYTE_STRING
    if token == TOKEN_INTEGER:
        return Production.INTEGER
    if token == TOKEN_LIST:
        return Production.LIST
    if token == TOKEN_DICT:
        return Production.DICTIONARY
    return None


def format_byte_string(data: bytes | bytearray | memoryview) -> bytes:
    """Render the ``<length>:`` prefix of a byte string."""
    return b"%d:" % len(data)


def format_integer(value: int) -> bytes:
    """Render a complete integer production."""
    return b"i%de" % value
