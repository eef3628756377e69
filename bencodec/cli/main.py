"""Command line interface for bencodec.

Provides:
- ``decode``: print every value in a bencoded file
- ``encode``: convert a JSON document to canonical bencode
- ``check``: validate a bencoded file without materializing its values
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, BinaryIO

import click
from rich.console import Console
from rich.pretty import Pretty

from bencodec.config.config import ConfigManager, init_config
from bencodec.core.decoder import Decoder
from bencodec.core.encoder import Encoder
from bencodec.models import LogLevel
from bencodec.utils.exceptions import BencodecError
from bencodec.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

VERBOSITY_LEVELS = {1: LogLevel.INFO, 2: LogLevel.DEBUG}


def _to_display(value: Any) -> Any:
    """Convert decoded values to something JSON and rich can show."""
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
    if isinstance(value, list):
        return [_to_display(item) for item in value]
    if isinstance(value, dict):
        return {_to_display(k): _to_display(v) for k, v in value.items()}
    return value


def _from_json(value: Any, path: str = "$") -> Any:
    """Check a JSON document only holds values bencode can represent."""
    if isinstance(value, bool) or value is None or isinstance(value, float):
        msg = f"{path}: {json.dumps(value)} has no bencode representation"
        raise click.ClickException(msg)
    if isinstance(value, list):
        return [_from_json(item, f"{path}[{i}]") for i, item in enumerate(value)]
    if isinstance(value, dict):
        return {k: _from_json(v, f"{path}.{k}") for k, v in value.items()}
    return value


def _get_config_from_context(ctx: click.Context) -> ConfigManager:
    return ctx.obj["config"]


@click.group()
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path",
)
@click.option("--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)")
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, verbose: int) -> None:
    """Encode, decode and check bencoded data."""
    try:
        cfg_mgr = init_config(config_file)
    except BencodecError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        cfg_mgr.config.observability.log_level = VERBOSITY_LEVELS[min(verbose, 2)]
    setup_logging(cfg_mgr.config.observability, console=Console(stderr=True))

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg_mgr


@cli.command()
@click.argument("file", type=click.File("rb"))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["pretty", "json"]),
    default="pretty",
    show_default=True,
    help="Output format",
)
@click.pass_context
def decode(ctx: click.Context, file: BinaryIO, fmt: str) -> None:
    """Decode every bencoded value in FILE and print it."""
    cfg = _get_config_from_context(ctx).config
    console = Console()
    decoder = Decoder(file, cfg.codec)
    try:
        for value in decoder.iter_decode():
            shown = _to_display(value)
            if fmt == "json":
                click.echo(json.dumps(shown, ensure_ascii=False))
            else:
                console.print(Pretty(shown))
    except BencodecError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.argument("file", type=click.File("r", encoding="utf-8"))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    help="Output file (default: stdout)",
)
@click.pass_context
def encode(ctx: click.Context, file: Any, output: str | None) -> None:
    """Encode the JSON document in FILE as bencode."""
    cfg = _get_config_from_context(ctx).config
    try:
        document = json.load(file)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON: {e}"
        raise click.ClickException(msg) from e
    document = _from_json(document)

    try:
        if output:
            with Path(output).open("wb") as sink:
                written = Encoder(sink, cfg.codec).encode(document)
            logger.info("Wrote %d bytes to %s", written, output)
        else:
            Encoder(click.get_binary_stream("stdout"), cfg.codec).encode(document)
    except BencodecError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.argument("file", type=click.File("rb"))
@click.pass_context
def check(ctx: click.Context, file: BinaryIO) -> None:
    """Validate FILE and report how many values it holds."""
    cfg = _get_config_from_context(ctx).config
    decoder = Decoder(file, cfg.codec)
    count = 0
    try:
        while not decoder.at_eof():
            decoder.skip()
            count += 1
    except BencodecError as e:
        msg = f"Invalid after {count} value(s): {e}"
        raise click.ClickException(msg) from e
    click.echo(f"OK: {count} value(s), {decoder.offset} bytes")


def main() -> None:
    """Entry point for the ``bencodec`` console script."""
    cli()


if __name__ == "__main__":
    main()
