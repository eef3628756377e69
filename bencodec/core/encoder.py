"""Type-directed bencode encoder.

The encoder walks a value by its runtime shape:

- ``int`` values encode as integers (``bool`` is rejected);
- ``bytes``, ``bytearray``, ``memoryview`` and ``str`` encode as byte
  strings, text through the configured text encoding;
- ``list`` and ``tuple`` encode as lists;
- mappings with ``bytes``/``str`` keys encode as dictionaries;
- dataclass and pydantic model instances encode as dictionaries keyed by
  their field bindings (see :mod:`bencodec.core.fields`).

Dictionary keys are always written in ascending byte-wise order. A value is
rendered completely before anything reaches the sink, so a failure leaves
the sink untouched.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Mapping
from typing import Any, BinaryIO, cast

from bencodec.core.grammar import (
    TOKEN_DICT,
    TOKEN_END,
    TOKEN_LIST,
    format_byte_string,
    format_integer,
)
from bencodec.core.schema import RecordSchema, is_record, schema_for
from bencodec.models import CodecConfig
from bencodec.utils.exceptions import (
    BencodeEncodeError,
    CircularReferenceError,
    DuplicateKeyError,
    UnsupportedTypeError,
)

logger = logging.getLogger(__name__)


class Encoder:
    """Writes bencoded values to an output stream."""

    def __init__(self, sink: BinaryIO, config: CodecConfig | None = None):
        """Initialize the encoder.

        Args:
            sink: Binary stream the encoded bytes are written to.
            config: Codec settings; defaults to :class:`CodecConfig`.

        """
        self._sink = sink
        self._config = config or CodecConfig()

    def encode(self, value: Any) -> int:
        """Write the bencoding of ``value`` to the sink and flush it.

        Returns:
            Number of bytes written.

        """
        out = self.render(value)
        self._sink.write(out)
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()
        logger.debug("Encoded %s as %d bytes", type(value).__name__, len(out))
        return len(out)

    def render(self, value: Any) -> bytes:
        """Return the bencoding of ``value`` without touching the sink."""
        out = bytearray()
        self._encode(out, value, set())
        return bytes(out)

    def _encode(self, out: bytearray, value: Any, active: set[int]) -> None:
        if isinstance(value, bool):
            msg = "bool has no bencode binding"
            raise UnsupportedTypeError(msg, {"type": "bool"})
        if isinstance(value, int):
            out += format_integer(value)
        elif isinstance(value, (bytes, bytearray)):
            self._write_bytes(out, value)
        elif isinstance(value, memoryview):
            self._write_bytes(out, value.tobytes())
        elif isinstance(value, str):
            self._write_bytes(out, self._encode_text(value))
        elif isinstance(value, (list, tuple)):
            self._enter(value, active)
            out.append(TOKEN_LIST)
            for item in value:
                self._encode(out, item, active)
            out.append(TOKEN_END)
            active.discard(id(value))
        elif isinstance(value, Mapping):
            self._enter(value, active)
            self._encode_mapping(out, value, active)
            active.discard(id(value))
        elif is_record(value):
            self._enter(value, active)
            self._encode_record(out, value, active)
            active.discard(id(value))
        else:
            msg = f"Type {type(value).__name__} has no bencode binding"
            raise UnsupportedTypeError(msg, {"type": type(value).__name__})

    def _encode_mapping(
        self,
        out: bytearray,
        value: Mapping[Any, Any],
        active: set[int],
    ) -> None:
        items = sorted(
            ((self._encode_key(k), v) for k, v in value.items()),
            key=lambda kv: kv[0],
        )
        for (prev, _), (cur, _) in zip(items, items[1:]):
            if prev == cur:
                msg = f"Duplicate dictionary key {cur!r}"
                raise DuplicateKeyError(msg, {"key": cur})

        out.append(TOKEN_DICT)
        for key, item in items:
            self._write_bytes(out, key)
            self._encode(out, item, active)
        out.append(TOKEN_END)

    def _encode_record(self, out: bytearray, value: Any, active: set[int]) -> None:
        schema = cast(RecordSchema, schema_for(type(value)))

        out.append(TOKEN_DICT)
        for spec in schema.fields:
            item = getattr(value, spec.attr)
            # None has no encoding; absent is the closest meaning
            if item is None:
                continue
            if spec.omitempty and spec.schema.is_zero(item):
                continue
            self._write_bytes(out, spec.key)
            self._encode(out, item, active)
        out.append(TOKEN_END)

    def _encode_key(self, key: Any) -> bytes:
        if isinstance(key, (bytes, bytearray)):
            return bytes(key)
        if isinstance(key, str):
            return self._encode_text(key)
        msg = f"Dictionary keys must be bytes or str, not {type(key).__name__}"
        raise UnsupportedTypeError(msg, {"type": type(key).__name__})

    def _encode_text(self, value: str) -> bytes:
        try:
            return value.encode(self._config.text_encoding)
        except UnicodeEncodeError as e:
            msg = f"Cannot encode text as {self._config.text_encoding}: {e.reason}"
            raise BencodeEncodeError(msg) from e

    @staticmethod
    def _write_bytes(out: bytearray, data: bytes | bytearray) -> None:
        out += format_byte_string(data)
        out += data

    def _enter(self, value: Any, active: set[int]) -> None:
        """Open a container; ``active`` holds every container being written."""
        if id(value) in active:
            msg = f"Circular reference through {type(value).__name__}"
            raise CircularReferenceError(msg)
        if len(active) >= self._config.max_depth:
            msg = f"Nesting deeper than {self._config.max_depth} levels"
            raise BencodeEncodeError(msg, {"type": type(value).__name__})
        active.add(id(value))


def marshal(value: Any, config: CodecConfig | None = None) -> bytes:
    """Return the bencoding of ``value``."""
    buf = io.BytesIO()
    Encoder(buf, config).encode(value)
    return buf.getvalue()
