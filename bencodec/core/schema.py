"""Schema descriptions: how a Python annotation binds to a bencode production.

:func:`schema_for` turns an annotation into one of a closed set of schema
objects, built once per annotation and cached. Each schema knows the
production it expects on the wire, its zero value and how to recognise it
(for ``omitempty``). Record schemas additionally hold the resolved
field-to-key bindings shared by the encoder and the decoder.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import functools
import types
import typing
from typing import Any, ClassVar, Union

from pydantic import BaseModel

from bencodec.core.fields import (
    FieldSpec,
    dataclass_tag,
    is_exported,
    model_field_tag,
    parse_tag,
)
from bencodec.core.grammar import Production
from bencodec.utils.exceptions import UnsupportedTypeError

_SEQUENCE_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
)
_MAPPING_ORIGINS = (
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)


class Schema:
    """Base class of all schemas."""

    production: ClassVar[Production | None] = None

    def zero(self) -> Any:
        """Return a fresh zero value."""
        raise NotImplementedError

    def is_zero(self, value: Any) -> bool:
        """Whether ``value`` equals the zero value."""
        return value == self.zero()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AnySchema(Schema):
    """Untyped values: bytes, int, list and dict decoded as they arrive."""

    def zero(self) -> None:
        return None

    def is_zero(self, value: Any) -> bool:
        return value is None


class BytesSchema(Schema):
    """Byte string bound to ``bytes`` or ``bytearray``."""

    production = Production.BYTE_STRING

    def __init__(self, factory: type = bytes):
        self.factory = factory

    def zero(self) -> bytes | bytearray:
        return self.factory()

    def is_zero(self, value: Any) -> bool:
        return len(value) == 0

    def __repr__(self) -> str:
        return f"BytesSchema({self.factory.__name__})"


class TextSchema(Schema):
    """Byte string bound to ``str``."""

    production = Production.BYTE_STRING

    def zero(self) -> str:
        return ""

    def is_zero(self, value: Any) -> bool:
        return len(value) == 0


class IntegerSchema(Schema):
    """Integer bound to ``int``."""

    production = Production.INTEGER

    def zero(self) -> int:
        return 0


class ListSchema(Schema):
    """List bound to a homogeneous ``list`` (or ``tuple``)."""

    production = Production.LIST

    def __init__(self, item: Schema, as_tuple: bool = False):
        self.item = item
        self.as_tuple = as_tuple

    def zero(self) -> list[Any] | tuple[Any, ...]:
        return () if self.as_tuple else []

    def is_zero(self, value: Any) -> bool:
        return len(value) == 0

    def __repr__(self) -> str:
        return f"ListSchema({self.item!r}, as_tuple={self.as_tuple})"


class MappingSchema(Schema):
    """Dictionary bound to a ``dict`` with byte-string or text keys."""

    production = Production.DICTIONARY

    def __init__(self, value: Schema, text_keys: bool = False):
        self.value = value
        self.text_keys = text_keys

    def zero(self) -> dict[Any, Any]:
        return {}

    def is_zero(self, value: Any) -> bool:
        return len(value) == 0

    def __repr__(self) -> str:
        return f"MappingSchema({self.value!r}, text_keys={self.text_keys})"


class OptionalSchema(Schema):
    """``Optional[T]``: ``None`` is never written, a value decodes as ``T``."""

    def __init__(self, inner: Schema):
        self.inner = inner

    @property
    def production(self) -> Production | None:  # type: ignore[override]
        return self.inner.production

    def zero(self) -> None:
        return None

    def is_zero(self, value: Any) -> bool:
        return value is None

    def __repr__(self) -> str:
        return f"OptionalSchema({self.inner!r})"


class RecordSchema(Schema):
    """Dictionary bound to a dataclass or a pydantic model.

    Field bindings are resolved lazily so that records may refer to
    themselves (``children: list[Node]``).
    """

    production = Production.DICTIONARY

    def __init__(self, cls: type):
        self.cls = cls
        self.is_model = issubclass(cls, BaseModel)

    @functools.cached_property
    def _declared(self) -> list[tuple[str, Any, str | None, bool]]:
        """(name, annotation, raw tag, has default) for every declared field."""
        if self.is_model:
            return [
                (name, info.annotation, model_field_tag(info), not info.is_required())
                for name, info in self.cls.model_fields.items()
            ]
        try:
            hints = typing.get_type_hints(self.cls)
        except (NameError, TypeError) as e:
            msg = f"Cannot resolve annotations of {self.cls.__qualname__}: {e}"
            raise UnsupportedTypeError(msg) from e
        return [
            (
                f.name,
                hints.get(f.name, Any),
                dataclass_tag(f),
                f.default is not dataclasses.MISSING
                or f.default_factory is not dataclasses.MISSING,
            )
            for f in dataclasses.fields(self.cls)
        ]

    @functools.cached_property
    def fields(self) -> list[FieldSpec]:
        """Bound fields in canonical (ascending byte-wise key) order."""
        specs: dict[bytes, FieldSpec] = {}
        for name, annotation, raw_tag, _ in self._declared:
            if not is_exported(name):
                continue
            tag = parse_tag(raw_tag, name)
            if tag is None:
                continue
            key = tag.name.encode("utf-8")
            if key in specs:
                msg = (
                    f"{self.cls.__qualname__} binds key {tag.name!r} to both "
                    f"{specs[key].attr!r} and {name!r}"
                )
                raise UnsupportedTypeError(msg)
            try:
                field_schema = schema_for(annotation)
            except UnsupportedTypeError as e:
                msg = f"Field {self.cls.__qualname__}.{name}: {e.message}"
                raise UnsupportedTypeError(msg) from e
            specs[key] = FieldSpec(name, key, field_schema, tag.omitempty)
        return [specs[key] for key in sorted(specs)]

    @functools.cached_property
    def by_key(self) -> dict[bytes, FieldSpec]:
        """Bound fields indexed by dictionary key."""
        return {spec.key: spec for spec in self.fields}

    def resolve(self) -> dict[bytes, FieldSpec]:
        """Resolve the field bindings now.

        Raises:
            UnsupportedTypeError: A field has no binding or two fields share
                a key.

        """
        return self.by_key

    @functools.cached_property
    def _required(self) -> dict[str, Any]:
        """Zero-value factories for fields the constructor cannot default."""
        bound = {spec.attr: spec.schema for spec in self.fields}
        required: dict[str, Any] = {}
        for name, annotation, _, has_default in self._declared:
            if has_default:
                continue
            field_schema = bound.get(name)
            if field_schema is None:
                try:
                    field_schema = schema_for(annotation)
                except UnsupportedTypeError:
                    required[name] = lambda: None
                    continue
            required[name] = field_schema.zero
        return required

    @property
    def frozen(self) -> bool:
        """Whether instances reject attribute assignment."""
        if self.is_model:
            return bool(self.cls.model_config.get("frozen"))
        params = getattr(self.cls, "__dataclass_params__", None)
        return bool(params and params.frozen)

    def construct(self, values: dict[str, Any]) -> Any:
        """Build an instance from decoded attribute values.

        Fields missing from ``values`` take their declared default, or the
        zero value of their schema when they have none.
        """
        data = {
            name: factory()
            for name, factory in self._required.items()
            if name not in values
        }
        data.update(values)
        if self.is_model:
            return self.cls.model_construct(**data)

        init_fields = {f.name for f in dataclasses.fields(self.cls) if f.init}
        instance = self.cls(**{k: v for k, v in data.items() if k in init_fields})
        for name, value in data.items():
            if name not in init_fields:
                object.__setattr__(instance, name, value)
        return instance

    def zero(self) -> Any:
        return self.construct({})

    def is_zero(self, value: Any) -> bool:
        return all(
            spec.schema.is_zero(getattr(value, spec.attr)) for spec in self.fields
        )

    def __repr__(self) -> str:
        return f"RecordSchema({self.cls.__qualname__})"


def is_record_type(tp: Any) -> bool:
    """Whether ``tp`` is a class the codec treats as a record."""
    return (
        isinstance(tp, type)
        and typing.get_origin(tp) is None
        and (dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel))
    )


def is_record(value: Any) -> bool:
    """Whether ``value`` is a record instance."""
    return not isinstance(value, type) and is_record_type(type(value))


def _build_schema(tp: Any) -> Schema:
    if tp is Any or tp is object:
        return AnySchema()
    if tp is bool:
        msg = "bool has no bencode binding"
        raise UnsupportedTypeError(msg, {"type": "bool"})
    if tp is bytes or tp is bytearray:
        return BytesSchema(tp)
    if tp is str:
        return TextSchema()
    if tp is int:
        return IntegerSchema()
    if is_record_type(tp):
        return RecordSchema(tp)

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Annotated:
        return schema_for(args[0])
    if tp is list or origin in _SEQUENCE_ORIGINS:
        return ListSchema(schema_for(args[0] if args else Any))
    if tp is tuple or origin is tuple:
        if not args:
            return ListSchema(AnySchema(), as_tuple=True)
        if len(args) == 2 and args[1] is Ellipsis:
            return ListSchema(schema_for(args[0]), as_tuple=True)
    if tp is dict or origin in _MAPPING_ORIGINS:
        key_type, value_type = args if args else (bytes, Any)
        if key_type not in (bytes, str, Any):
            msg = f"Dictionary keys must be bytes or str, not {key_type!r}"
            raise UnsupportedTypeError(msg, {"type": repr(tp)})
        return MappingSchema(schema_for(value_type), text_keys=key_type is str)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == 1 and len(args) == 2:
            return OptionalSchema(schema_for(members[0]))

    msg = f"Type {tp!r} has no bencode binding"
    raise UnsupportedTypeError(msg, {"type": repr(tp)})


@functools.lru_cache(maxsize=None)
def _cached_schema(tp: Any) -> Schema:
    return _build_schema(tp)


def schema_for(tp: Any) -> Schema:
    """Return the (cached) schema describing annotation ``tp``."""
    try:
        hash(tp)
    except TypeError:
        # Unhashable annotation metadata
        return _build_schema(tp)
    return _cached_schema(tp)
