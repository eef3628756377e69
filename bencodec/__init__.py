"""bencodec - a type-directed bencode codec.

Marshal native values to canonical bencode, and stream bencoded values back
into bytes, ints, lists, dicts, dataclasses and pydantic models.
"""

from __future__ import annotations

__version__ = "0.1.0"

from bencodec.core.bencode import BencodeDecoder, BencodeEncoder, decode, encode
from bencodec.core.decoder import Decoder, unmarshal
from bencodec.core.encoder import Encoder, marshal
from bencodec.core.fields import bencode_field
from bencodec.models import CodecConfig
from bencodec.utils.exceptions import (
    BencodecError,
    BencodeDecodeError,
    BencodeEncodeError,
    BencodeError,
    CircularReferenceError,
    DuplicateKeyError,
    EndOfStream,
    InvalidTargetError,
    MalformedError,
    MalformedIntegerError,
    MalformedLengthError,
    MalformedValueError,
    TruncatedError,
    TypeMismatchError,
    UnsupportedTypeError,
)

__all__ = [
    "BencodeDecodeError",
    "BencodeDecoder",
    "BencodeEncodeError",
    "BencodeEncoder",
    "BencodeError",
    "BencodecError",
    "CircularReferenceError",
    "CodecConfig",
    "Decoder",
    "DuplicateKeyError",
    "Encoder",
    "EndOfStream",
    "InvalidTargetError",
    "MalformedError",
    "MalformedIntegerError",
    "MalformedLengthError",
    "MalformedValueError",
    "TruncatedError",
    "TypeMismatchError",
    "UnsupportedTypeError",
    "__version__",
    "bencode_field",
    "decode",
    "encode",
    "marshal",
    "unmarshal",
]
