"""Type-directed, streaming bencode decoder.

A :class:`Decoder` reads from a binary stream through its own buffer and
parses one value per :meth:`Decoder.decode` call by recursive descent with a
single byte of lookahead. The target decides the binding:

- a type annotation (``int``, ``bytes``, ``str``, ``list[T]``,
  ``dict[bytes, T]``, a dataclass or pydantic model, ``Any``) produces a new
  value of that type;
- a mutable instance (record, ``list``, ``bytearray``, ``dict``) is filled in
  place. Lists and dicts are emptied first.

Dictionary keys that match no record field are skipped without being
decoded. Keys are accepted in any order.
"""

from __future__ import annotations

import io
import logging
import sys
import typing
from collections.abc import Iterator
from typing import Any, BinaryIO, cast

from bencodec.core.grammar import (
    DIGITS,
    INTEGER_PATTERN,
    LENGTH_PATTERN,
    MAX_INTEGER_CHARS,
    MAX_LENGTH_DIGITS,
    TOKEN_DICT,
    TOKEN_END,
    TOKEN_INTEGER,
    TOKEN_LIST,
    TOKEN_STRING_SEPARATOR,
    Production,
    production_for,
)
from bencodec.core.schema import (
    AnySchema,
    BytesSchema,
    IntegerSchema,
    ListSchema,
    MappingSchema,
    OptionalSchema,
    RecordSchema,
    Schema,
    TextSchema,
    is_record,
    schema_for,
)
from bencodec.models import CodecConfig
from bencodec.utils.exceptions import (
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

logger = logging.getLogger(__name__)

_ANY = AnySchema()
_ANY_MAPPING = MappingSchema(_ANY)


def _is_annotation(target: Any) -> bool:
    return (
        isinstance(target, type)
        or target is Any
        or typing.get_origin(target) is not None
    )


class Decoder:
    """Reads and decodes bencoded values from an input stream.

    The decoder buffers its input and may read past the end of the value
    being decoded; do not read from the source directly while a decoder is
    in use.
    """

    def __init__(self, source: BinaryIO, config: CodecConfig | None = None):
        """Initialize the decoder.

        Args:
            source: Binary stream providing ``read(n)``.
            config: Codec settings; defaults to :class:`CodecConfig`.

        """
        self._source = source
        self._config = config or CodecConfig()
        self._buf = bytearray()
        self._pos = 0
        self._base = 0  # stream offset of _buf[0]
        self._eof = False
        self._depth = 0

    @property
    def offset(self) -> int:
        """Number of bytes consumed from the stream so far."""
        return self._base + self._pos

    def decode(self, target: Any = Any) -> Any:
        """Decode the next value from the stream into ``target``.

        Returns:
            The decoded value, or ``target`` itself when decoding in place.

        Raises:
            EndOfStream: The stream ended cleanly before another value.
            InvalidTargetError: ``target`` is neither a type nor a writable
                instance.
            UnsupportedTypeError: ``target`` has no bencode binding.
            BencodeDecodeError: The input is malformed or truncated.

        """
        schema, instance = self._resolve_target(target)
        if self._peek() is None:
            logger.debug("End of stream at offset %d", self.offset)
            msg = "No more values in stream"
            raise EndOfStream(msg, {"offset": self.offset})
        self._depth = 0
        if instance is not None:
            return self._decode_into(schema, instance)
        return self._decode_value(schema)

    def iter_decode(self, target: Any = Any) -> Iterator[Any]:
        """Yield values of type ``target`` until the stream ends."""
        while True:
            try:
                yield self.decode(target)
            except EndOfStream:
                return

    def skip(self) -> None:
        """Consume the next value without decoding it."""
        if self._peek() is None:
            msg = "No more values in stream"
            raise EndOfStream(msg, {"offset": self.offset})
        self._depth = 0
        self._discard()

    def at_eof(self) -> bool:
        """Whether the stream holds no further bytes."""
        return self._peek() is None

    # Target resolution

    def _resolve_target(self, target: Any) -> tuple[Schema, Any]:
        if _is_annotation(target):
            schema = schema_for(target)
            if isinstance(schema, RecordSchema):
                schema.resolve()
            return schema, None
        if is_record(target):
            schema = cast(RecordSchema, schema_for(type(target)))
            if schema.frozen:
                msg = f"Cannot decode into frozen {type(target).__qualname__}"
                raise InvalidTargetError(msg)
            schema.resolve()
            return schema, target
        if isinstance(target, list):
            return ListSchema(_ANY), target
        if isinstance(target, bytearray):
            return BytesSchema(bytearray), target
        if isinstance(target, dict):
            return _ANY_MAPPING, target
        msg = (
            f"Cannot decode into a {type(target).__name__} value; "
            "pass a type or a mutable container"
        )
        raise InvalidTargetError(msg, {"type": type(target).__name__})

    # Value parsing

    def _decode_value(self, schema: Schema) -> Any:
        if isinstance(schema, OptionalSchema):
            schema = schema.inner
        if isinstance(schema, AnySchema):
            return self._decode_any()
        if isinstance(schema, BytesSchema):
            self._begin(Production.BYTE_STRING)
            return schema.factory(self._read_string())
        if isinstance(schema, TextSchema):
            self._begin(Production.BYTE_STRING)
            return self._decode_text(self._read_string())
        if isinstance(schema, IntegerSchema):
            self._begin(Production.INTEGER)
            return self._read_integer()
        if isinstance(schema, ListSchema):
            self._begin(Production.LIST)
            items = self._decode_items(schema.item, [])
            return tuple(items) if schema.as_tuple else items
        if isinstance(schema, MappingSchema):
            self._begin(Production.DICTIONARY)
            return self._decode_entries(schema, {})
        if isinstance(schema, RecordSchema):
            return self._decode_record(schema)
        msg = f"No decoder for {schema!r}"
        raise UnsupportedTypeError(msg)

    def _decode_into(self, schema: Schema, instance: Any) -> Any:
        if isinstance(schema, RecordSchema):
            return self._decode_record_into(schema, instance)
        if isinstance(schema, ListSchema):
            self._begin(Production.LIST)
            instance.clear()
            return self._decode_items(schema.item, instance)
        if isinstance(schema, BytesSchema):
            self._begin(Production.BYTE_STRING)
            instance[:] = self._read_string()
            return instance
        self._begin(Production.DICTIONARY)
        instance.clear()
        return self._decode_entries(_ANY_MAPPING, instance)

    def _decode_any(self) -> Any:
        c = self._peek_required()
        if c in DIGITS:
            return self._read_string()
        if c == TOKEN_INTEGER:
            self._pos += 1
            return self._read_integer()
        if c == TOKEN_LIST:
            self._pos += 1
            return self._decode_items(_ANY, [])
        if c == TOKEN_DICT:
            self._pos += 1
            return self._decode_entries(_ANY_MAPPING, {})
        raise self._invalid_token(c)

    def _decode_items(self, item: Schema, out: list[Any]) -> list[Any]:
        # Two frames per nesting level; untyped items skip _decode_value
        untyped = isinstance(item, AnySchema)
        self._descend()
        while not self._next(TOKEN_END):
            out.append(self._decode_any() if untyped else self._decode_value(item))
        self._depth -= 1
        return out

    def _decode_entries(
        self,
        schema: MappingSchema,
        out: dict[Any, Any],
    ) -> dict[Any, Any]:
        untyped = isinstance(schema.value, AnySchema)
        self._descend()
        while not self._next(TOKEN_END):
            key = self._decode_key()
            out[self._decode_text(key) if schema.text_keys else key] = (
                self._decode_any() if untyped else self._decode_value(schema.value)
            )
        self._depth -= 1
        return out

    def _decode_record(self, schema: RecordSchema) -> Any:
        by_key = schema.by_key
        self._begin(Production.DICTIONARY)
        self._descend()
        values: dict[str, Any] = {}
        while not self._next(TOKEN_END):
            key = self._decode_key()
            spec = by_key.get(key)
            if spec is None:
                logger.debug(
                    "Skipping unknown key %r for %s", key, schema.cls.__qualname__
                )
                self._discard()
                continue
            values[spec.attr] = self._decode_value(spec.schema)
        self._depth -= 1
        return schema.construct(values)

    def _decode_record_into(self, schema: RecordSchema, instance: Any) -> Any:
        by_key = schema.by_key
        self._begin(Production.DICTIONARY)
        self._descend()
        while not self._next(TOKEN_END):
            key = self._decode_key()
            spec = by_key.get(key)
            if spec is None:
                logger.debug(
                    "Skipping unknown key %r for %s", key, schema.cls.__qualname__
                )
                self._discard()
                continue
            field_schema = spec.schema
            if isinstance(field_schema, OptionalSchema):
                field_schema = field_schema.inner
            current = getattr(instance, spec.attr, None)
            # Nested records are updated in place, like the outer one
            if (
                isinstance(field_schema, RecordSchema)
                and isinstance(current, field_schema.cls)
                and not field_schema.frozen
            ):
                self._decode_record_into(field_schema, current)
            else:
                setattr(instance, spec.attr, self._decode_value(field_schema))
        self._depth -= 1
        return instance

    def _decode_key(self) -> bytes:
        self._begin(Production.BYTE_STRING)
        return self._read_string()

    def _decode_text(self, data: bytes) -> str:
        try:
            return data.decode(self._config.text_encoding)
        except UnicodeDecodeError as e:
            msg = f"Byte string is not valid {self._config.text_encoding} text"
            raise MalformedValueError(msg, {"offset": self.offset}) from e

    # Discard

    def _discard(self) -> None:
        c = self._peek_required()
        if c in DIGITS:
            self._skip_bytes(self._read_length())
        elif c == TOKEN_INTEGER:
            self._pos += 1
            self._read_integer()
        elif c == TOKEN_LIST:
            self._pos += 1
            self._descend()
            while not self._next(TOKEN_END):
                self._discard()
            self._depth -= 1
        elif c == TOKEN_DICT:
            self._pos += 1
            self._descend()
            while not self._next(TOKEN_END):
                self._discard()
                self._discard()
            self._depth -= 1
        else:
            raise self._invalid_token(c)

    # Primitives

    def _begin(self, production: Production) -> None:
        """Check the lookahead byte starts ``production``; consume l/d/i."""
        c = self._peek_required()
        if production_for(c) is not production:
            found = bytes([c])
            msg = f"Expected {production.value} but found {found!r}"
            raise TypeMismatchError(
                msg,
                {"offset": self.offset, "expected": production.value, "found": found},
            )
        if production is not Production.BYTE_STRING:
            self._pos += 1

    def _read_length(self) -> int:
        start = self.offset
        raw = self._read_until(
            TOKEN_STRING_SEPARATOR, MAX_LENGTH_DIGITS, MalformedLengthError
        )
        if not LENGTH_PATTERN.fullmatch(raw):
            msg = f"Invalid byte string length {raw!r}"
            raise MalformedLengthError(msg, {"offset": start})
        length = int(raw)
        if length > sys.maxsize:
            msg = f"Byte string length {length} exceeds the addressable size"
            raise MalformedLengthError(msg, {"offset": start})
        return length

    def _read_string(self) -> bytes:
        return self._read_exact(self._read_length())

    def _read_integer(self) -> int:
        start = self.offset
        raw = self._read_until(TOKEN_END, MAX_INTEGER_CHARS, MalformedIntegerError)
        if not INTEGER_PATTERN.fullmatch(raw):
            msg = f"Invalid integer {raw!r}"
            raise MalformedIntegerError(msg, {"offset": start})
        try:
            return int(raw)
        except ValueError as e:
            # Exceeds the interpreter's digit limit
            msg = f"Integer too large ({len(raw)} digits)"
            raise MalformedIntegerError(msg, {"offset": start}) from e

    def _descend(self) -> None:
        self._depth += 1
        if self._depth > self._config.max_depth:
            msg = f"Nesting deeper than {self._config.max_depth} levels"
            raise MalformedValueError(msg, {"offset": self.offset})

    def _invalid_token(self, c: int) -> MalformedValueError:
        msg = f"Invalid character {bytes([c])!r} looking for beginning of value"
        return MalformedValueError(msg, {"offset": self.offset})

    def _truncated(self) -> TruncatedError:
        msg = "Unexpected end of stream"
        return TruncatedError(msg, {"offset": self.offset})

    # Buffer management

    def _fill(self, want: int) -> bool:
        """Buffer at least ``want`` unread bytes; False if the source ran dry."""
        if self._pos:
            del self._buf[: self._pos]
            self._base += self._pos
            self._pos = 0
        while len(self._buf) < want and not self._eof:
            # At most one buffer per read, whatever length was declared
            chunk = self._source.read(self._config.read_buffer_size)
            if not chunk:
                self._eof = True
                break
            self._buf += chunk
        return len(self._buf) >= want

    def _peek(self) -> int | None:
        if self._pos >= len(self._buf) and not self._fill(1):
            return None
        return self._buf[self._pos]

    def _peek_required(self) -> int:
        c = self._peek()
        if c is None:
            raise self._truncated()
        return c

    def _next(self, token: int) -> bool:
        """Consume ``token`` if it is the lookahead byte."""
        if self._peek_required() != token:
            return False
        self._pos += 1
        return True

    def _read_until(
        self,
        delim: int,
        limit: int,
        error: type[MalformedError],
    ) -> bytes:
        """Read through ``delim``; return the bytes before it.

        Raises ``error`` when more than ``limit`` bytes precede the delimiter.
        """
        start = self.offset
        scanned = 0
        while True:
            idx = self._buf.find(delim, self._pos + scanned, self._pos + limit + 1)
            if idx >= 0:
                data = bytes(self._buf[self._pos : idx])
                self._pos = idx + 1
                return data
            scanned = len(self._buf) - self._pos
            if scanned > limit:
                msg = f"No {bytes([delim])!r} within {limit} bytes"
                raise error(msg, {"offset": start})
            if not self._fill(scanned + 1):
                raise self._truncated()

    def _read_exact(self, n: int) -> bytes:
        if len(self._buf) - self._pos < n and not self._fill(n):
            # Leave the cursor after the bytes that did arrive
            self._pos = len(self._buf)
            raise self._truncated()
        data = bytes(self._buf[self._pos : self._pos + n])
        self._pos += n
        return data

    def _skip_bytes(self, n: int) -> None:
        while n > 0:
            available = len(self._buf) - self._pos
            if available == 0:
                if not self._fill(1):
                    raise self._truncated()
                available = len(self._buf)
            step = min(available, n)
            self._pos += step
            n -= step


def unmarshal(
    data: bytes | bytearray | memoryview,
    target: Any,
    config: CodecConfig | None = None,
) -> Any:
    """Decode the first bencoded value in ``data`` into ``target``."""
    return Decoder(io.BytesIO(data), config).decode(target)
