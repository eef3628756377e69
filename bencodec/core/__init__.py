"""Core codec: grammar, schemas, field bindings, encoder and decoder."""

from __future__ import annotations

from bencodec.core.bencode import BencodeDecoder, BencodeEncoder, decode, encode
from bencodec.core.decoder import Decoder, unmarshal
from bencodec.core.encoder import Encoder, marshal
from bencodec.core.fields import bencode_field
from bencodec.core.schema import schema_for

__all__ = [
    "BencodeDecoder",
    "BencodeEncoder",
    "Decoder",
    "Encoder",
    "bencode_field",
    "decode",
    "encode",
    "marshal",
    "schema_for",
    "unmarshal",
]
