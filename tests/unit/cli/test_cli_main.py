"""Tests for the bencodec command line interface."""

from __future__ import annotations

import json
import logging
import sys
from unittest.mock import patch

import pytest
from click.testing import CliRunner

import bencodec.config.config as config_module
from bencodec.cli.main import cli, main

pytestmark = [pytest.mark.unit, pytest.mark.cli]


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run commands in an empty directory with an empty home."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "_config_manager", None)
    with patch("bencodec.config.config.Path.home", return_value=home):
        yield tmp_path


@pytest.fixture
def runner():
    return CliRunner()


class TestDecodeCommand:
    """bencodec decode."""

    def test_decode_json(self, runner, workdir):
        """Test every value is printed as one JSON line."""
        path = workdir / "data.bencode"
        path.write_bytes(b"d3:cow3:moo4:spam4:eggsei42el1:ai-1ee")
        result = runner.invoke(cli, ["decode", str(path), "--format", "json"])
        assert result.exit_code == 0, result.output
        lines = result.stdout.strip().splitlines()
        assert [json.loads(line) for line in lines] == [
            {"cow": "moo", "spam": "eggs"},
            42,
            ["a", -1],
        ]

    def test_decode_binary_as_hex(self, runner, workdir):
        """Test non-text byte strings are shown as hex."""
        path = workdir / "data.bencode"
        path.write_bytes(b"2:\xff\x00")
        result = runner.invoke(cli, ["decode", str(path), "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == "ff00"

    def test_decode_pretty(self, runner, workdir):
        """Test the default pretty output."""
        path = workdir / "data.bencode"
        path.write_bytes(b"d4:spaml1:a1:bee")
        result = runner.invoke(cli, ["decode", str(path)])
        assert result.exit_code == 0
        assert "spam" in result.stdout
        assert "'a'" in result.stdout

    def test_decode_malformed(self, runner, workdir):
        """Test malformed input fails with a message."""
        path = workdir / "bad.bencode"
        path.write_bytes(b"i1ex")
        result = runner.invoke(cli, ["decode", str(path), "--format", "json"])
        assert result.exit_code == 1
        assert "Invalid character" in result.output

    @pytest.mark.parametrize(
        ("data", "message"),
        [
            (b"99999999999999999999:abc", "within 19 bytes"),
            (b"999999999999:abc", "Unexpected end of stream"),
        ],
    )
    def test_decode_oversized_length(self, runner, workdir, data, message):
        """Test impossible lengths end with an error message, not a crash."""
        path = workdir / "big.bencode"
        path.write_bytes(data)
        result = runner.invoke(cli, ["decode", str(path)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert message in result.output

    def test_decode_missing_file(self, runner, workdir):
        """Test a missing input file is a usage error."""
        result = runner.invoke(cli, ["decode", str(workdir / "absent")])
        assert result.exit_code == 2


class TestEncodeCommand:
    """bencodec encode."""

    def test_encode_to_stdout(self, runner, workdir):
        """Test canonical bencode is written to stdout."""
        path = workdir / "doc.json"
        path.write_text(json.dumps({"b": 1, "a": ["x", 2]}), encoding="utf-8")
        result = runner.invoke(cli, ["encode", str(path)])
        assert result.exit_code == 0, result.output
        assert result.stdout_bytes == b"d1:al1:xi2ee1:bi1ee"

    def test_encode_to_file(self, runner, workdir):
        """Test the output option."""
        source = workdir / "doc.json"
        source.write_text(json.dumps({"name": "é"}), encoding="utf-8")
        target = workdir / "out.bencode"
        result = runner.invoke(cli, ["encode", str(source), "-o", str(target)])
        assert result.exit_code == 0, result.output
        assert target.read_bytes() == b"d4:name2:\xc3\xa9e"

    @pytest.mark.parametrize("document", [1.5, True, None, {"a": [1, None]}])
    def test_encode_unrepresentable(self, runner, workdir, document):
        """Test JSON values without a bencode form are rejected."""
        path = workdir / "doc.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        result = runner.invoke(cli, ["encode", str(path)])
        assert result.exit_code == 1
        assert "has no bencode representation" in result.output

    def test_encode_invalid_json(self, runner, workdir):
        """Test unparsable JSON is reported."""
        path = workdir / "doc.json"
        path.write_text("{", encoding="utf-8")
        result = runner.invoke(cli, ["encode", str(path)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


class TestCheckCommand:
    """bencodec check."""

    def test_check_ok(self, runner, workdir):
        """Test a valid file is summarised."""
        path = workdir / "data.bencode"
        data = b"d1:ai1ee4:spamle"
        path.write_bytes(data)
        result = runner.invoke(cli, ["check", str(path)])
        assert result.exit_code == 0
        assert result.stdout.strip() == f"OK: 3 value(s), {len(data)} bytes"

    def test_check_empty(self, runner, workdir):
        """Test an empty file holds no values."""
        path = workdir / "empty.bencode"
        path.write_bytes(b"")
        result = runner.invoke(cli, ["check", str(path)])
        assert result.exit_code == 0
        assert "OK: 0 value(s), 0 bytes" in result.stdout

    def test_check_truncated(self, runner, workdir):
        """Test the failure reports how many values were valid."""
        path = workdir / "data.bencode"
        path.write_bytes(b"i1e4:sp")
        result = runner.invoke(cli, ["check", str(path)])
        assert result.exit_code == 1
        assert "Invalid after 1 value(s)" in result.output


class TestGlobalOptions:
    """Group options and entry points."""

    def test_config_file(self, runner, workdir):
        """Test --config applies codec settings."""
        config = workdir / "custom.toml"
        config.write_text("[codec]\nmax_depth = 2\n", encoding="utf-8")
        path = workdir / "deep.bencode"
        path.write_bytes(b"llleee")
        result = runner.invoke(cli, ["--config", str(config), "check", str(path)])
        assert result.exit_code == 1
        assert "Nesting deeper than 2 levels" in result.output

    def test_config_file_found_in_working_directory(self, runner, workdir):
        """Test bencodec.toml is picked up without --config."""
        (workdir / "bencodec.toml").write_text(
            "[codec]\nmax_depth = 1\n", encoding="utf-8"
        )
        path = workdir / "deep.bencode"
        path.write_bytes(b"llee")
        result = runner.invoke(cli, ["check", str(path)])
        assert result.exit_code == 1

    def test_invalid_config_file(self, runner, workdir):
        """Test configuration errors stop the command."""
        config = workdir / "bad.toml"
        config.write_text("[codec]\nmax_depth = 0\n", encoding="utf-8")
        path = workdir / "data.bencode"
        path.write_bytes(b"i1e")
        result = runner.invoke(cli, ["-c", str(config), "check", str(path)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_verbose(self, runner, workdir):
        """Test -v raises the log level."""
        path = workdir / "data.bencode"
        path.write_bytes(b"i1e")
        result = runner.invoke(cli, ["-vv", "check", str(path)])
        assert result.exit_code == 0
        assert logging.getLogger("bencodec").level == logging.DEBUG

    def test_main_help(self, monkeypatch, workdir):
        """Test the console script entry point."""
        monkeypatch.setattr(sys, "argv", ["bencodec", "--help"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
