"""Property-based tests for bencode encoding/decoding.

Tests invariants of the codec using Hypothesis for automatic test case
generation.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field

import pytest
from hypothesis import given
from hypothesis import strategies as st

from bencodec import Decoder, decode, encode, marshal, unmarshal
from bencodec.core.fields import bencode_field
from bencodec.models import CodecConfig

pytestmark = [pytest.mark.property]


@dataclass
class Sample:
    name: str = ""
    count: int = 0
    blob: bytes = b""
    tags: list[str] = field(default_factory=list)
    note: str = bencode_field("n", omitempty=True, default="")


@dataclass
class Envelope:
    id: int = 0
    samples: list[Sample] = field(default_factory=list)


values = st.recursive(
    st.binary() | st.integers(),
    lambda children: st.lists(children)
    | st.dictionaries(st.binary(), children),
    max_leaves=20,
)

samples = st.builds(
    Sample,
    name=st.text(),
    count=st.integers(),
    blob=st.binary(),
    tags=st.lists(st.text()),
    note=st.text(),
)


class TestBencodeProperties:
    """Property-based tests for bencode operations."""

    @given(values)
    def test_untyped_roundtrip(self, obj):
        """Test that encoding and decoding untyped values preserves them."""
        assert decode(encode(obj)) == obj

    @given(st.text())
    def test_text_encoding(self, text):
        """Test text encoding converts to bytes."""
        decoded = decode(encode(text))
        assert isinstance(decoded, bytes)
        assert decoded.decode("utf-8") == text

    @given(st.text())
    def test_text_typed_roundtrip(self, text):
        """Test text decoded into a str target comes back unchanged."""
        assert unmarshal(marshal(text), str) == text

    @given(samples)
    def test_record_roundtrip(self, sample):
        """Test dataclass records survive a round trip."""
        assert unmarshal(marshal(sample), Sample) == sample

    @given(st.lists(samples, max_size=5), st.integers())
    def test_nested_record_roundtrip(self, items, ident):
        """Test records nested in lists survive a round trip."""
        envelope = Envelope(id=ident, samples=items)
        assert unmarshal(marshal(envelope), Envelope) == envelope

    @given(st.binary())
    def test_string_encoding_properties(self, data):
        """Test properties of binary string encoding."""
        encoded = encode(data)

        colon_pos = encoded.find(b":")
        assert int(encoded[:colon_pos].decode("ascii")) == len(data)
        assert encoded[colon_pos + 1 :] == data

    @given(st.integers())
    def test_integer_encoding_properties(self, i):
        """Test properties of integer encoding."""
        encoded = encode(i)

        assert encoded.startswith(b"i")
        assert encoded.endswith(b"e")
        assert encoded[1:-1] == str(i).encode("ascii")

    @given(st.dictionaries(st.binary(), st.binary()))
    def test_dict_keys_sorted(self, dct):
        """Test dictionary keys come out in ascending byte order."""
        encoded = encode(dct)
        decoder = Decoder(io.BytesIO(encoded))
        keys = list(decoder.decode(dict).keys())
        assert keys == sorted(dct)

    @given(st.lists(values, max_size=5), st.integers(min_value=1, max_value=7))
    def test_stream_of_values(self, objs, buffer_size):
        """Test back-to-back documents decode in order for any buffer size."""
        stream = io.BytesIO(b"".join(encode(o) for o in objs))
        decoder = Decoder(stream, CodecConfig(read_buffer_size=buffer_size))
        assert list(decoder.iter_decode()) == objs

    @given(values)
    def test_skip_consumes_exactly_one_value(self, obj):
        """Test skipping a value leaves the cursor at the next one."""
        decoder = Decoder(io.BytesIO(encode(obj) + b"i7e"))
        decoder.skip()
        assert decoder.decode(int) == 7
        assert decoder.at_eof()
