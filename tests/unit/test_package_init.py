"""Tests for package __init__.py module."""

from __future__ import annotations

import pytest

pytestmark = [pytest.mark.unit]


class TestPackageInit:
    """Tests for bencodec/__init__.py."""

    def test_version(self):
        """Test version is defined."""
        import bencodec

        assert bencodec.__version__ == "0.1.0"

    def test_imports_work(self):
        """Test that main imports work."""
        import bencodec

        for name in bencodec.__all__:
            assert hasattr(bencodec, name), name

    def test_codec_entry_points(self):
        """Test the typed and untyped entry points agree."""
        import bencodec

        value = {b"a": [1, b"x"]}
        assert bencodec.marshal(value) == bencodec.encode(value)
        assert bencodec.unmarshal(bencodec.encode(value), dict) == value
        assert bencodec.decode(bencodec.marshal(value)) == value

    def test_bencode_module_reexports(self):
        """Test the flat bencode module mirrors the core helpers."""
        from bencodec import bencode
        from bencodec.core import bencode as core_bencode

        assert bencode.encode is core_bencode.encode
        assert bencode.decode is core_bencode.decode
        assert bencode.BencodeDecoder is core_bencode.BencodeDecoder
        assert bencode.BencodeEncoder is core_bencode.BencodeEncoder

    def test_main_module(self):
        """Test python -m bencodec uses the CLI entry point."""
        import bencodec.__main__ as main_module
        from bencodec.cli import main

        assert main_module.main is main
