"""Field-to-key binding rules shared by the encoder and the decoder.

A record field is bound to a dictionary key through its ``bencode`` tag:

    name = bencode_field("myName")                # key "myName"
    name = bencode_field("myName", omitempty=True)  # key "myName", omitted when empty
    name = bencode_field(omitempty=True)          # key "name", omitted when empty
    name = bencode_field(skip=True)               # never encoded or decoded
    dash = field(metadata={"bencode": "-,"})      # key "-"

Fields without a tag are bound under their declared name. Names starting
with an underscore are private and never bound.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bencodec.core.schema import Schema

TAG_KEY = "bencode"
SKIP_TAG = "-"
OMITEMPTY = "omitempty"


@dataclass(frozen=True)
class Tag:
    """A parsed ``bencode`` field tag."""

    name: str
    options: frozenset[str] = frozenset()

    @property
    def omitempty(self) -> bool:
        """Whether the field is left out of the output when empty."""
        return OMITEMPTY in self.options


@dataclass(frozen=True)
class FieldSpec:
    """Binding of one record attribute to one dictionary key."""

    attr: str
    key: bytes
    schema: Schema
    omitempty: bool = False


def parse_tag(tag: str | None, default_name: str) -> Tag | None:
    """Parse a tag string; returns None when the field is excluded."""
    if tag is None:
        return Tag(default_name)
    if tag == SKIP_TAG:
        return None
    name, _, rest = tag.partition(",")
    options = frozenset(opt.strip() for opt in rest.split(",") if opt.strip())
    return Tag(name or default_name, options)


def is_exported(name: str) -> bool:
    """Private attributes never take part in encoding."""
    return not name.startswith("_")


def dataclass_tag(f: dataclasses.Field) -> str | None:
    """Read the raw tag of a dataclass field."""
    return f.metadata.get(TAG_KEY)


def model_field_tag(field_info: Any) -> str | None:
    """Read the raw tag of a pydantic model field."""
    extra = field_info.json_schema_extra
    if isinstance(extra, dict):
        tag = extra.get(TAG_KEY)
        return tag if isinstance(tag, str) else None
    return None


def bencode_field(
    key: str | None = None,
    *,
    omitempty: bool = False,
    skip: bool = False,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field together with its ``bencode`` tag.

    Args:
        key: Dictionary key; defaults to the attribute name.
        omitempty: Leave the field out when it holds its zero value.
        skip: Exclude the field from encoding and decoding.
        **kwargs: Passed through to :func:`dataclasses.field`.

    """
    if skip:
        tag = SKIP_TAG
    else:
        tag = key or ""
        if omitempty:
            tag += f",{OMITEMPTY}"
        elif tag == SKIP_TAG:
            tag += ","
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)
