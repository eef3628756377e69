"""One-shot, untyped helpers over the streaming codec.

``decode`` returns plain Python values (``bytes``, ``int``, ``list`` and
``dict`` with ``bytes`` keys) and insists that the input holds exactly one
value. ``encode`` is :func:`bencodec.core.encoder.marshal`.
"""

from __future__ import annotations

import io
from typing import Any

from bencodec.core.decoder import Decoder
from bencodec.core.encoder import Encoder
from bencodec.models import CodecConfig
from bencodec.utils.exceptions import MalformedValueError


class BencodeDecoder:
    """Decoder for a complete in-memory bencoded document."""

    def __init__(self, data: bytes, config: CodecConfig | None = None):
        """Initialize the decoder with the document bytes."""
        self.data = data
        self._decoder = Decoder(io.BytesIO(data), config)

    def decode(self, target: Any = Any) -> Any:
        """Decode the document, rejecting empty input and trailing bytes."""
        if self._decoder.at_eof():
            msg = "Empty input"
            raise MalformedValueError(msg, {"offset": 0})
        value = self._decoder.decode(target)
        if not self._decoder.at_eof():
            msg = "Extra data after bencoded value"
            raise MalformedValueError(msg, {"offset": self._decoder.offset})
        return value


class BencodeEncoder:
    """Encoder producing bencoded documents in memory."""

    def __init__(self, config: CodecConfig | None = None):
        """Initialize the encoder."""
        self._config = config

    def encode(self, obj: Any) -> bytes:
        """Encode ``obj`` to bytes."""
        return Encoder(io.BytesIO(), self._config).render(obj)


def decode(data: bytes, config: CodecConfig | None = None) -> Any:
    """Decode a bencoded document to plain Python values."""
    return BencodeDecoder(data, config).decode()


def encode(obj: Any, config: CodecConfig | None = None) -> bytes:
    """Encode a Python object to a bencoded document."""
    return BencodeEncoder(config).encode(obj)
