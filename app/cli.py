"""Click CLI: convert ranking text from a file or stdin into JSON or CSV."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from .models import ConvertOptions
from .normalize import decode_input, parse_input
from .output import render
from .rules import DEFAULT_OUTPUT_FORMAT, OUTPUT_FORMATS

logger = logging.getLogger(__name__)

_EPILOG = """\b
Works best with:
  - TSV (tabs)
  - CSV
  - Markdown tables
  - Aligned text with 2+ spaces between columns
"""


def parse_meta_args(pairs: tuple[str, ...]) -> dict[str, str]:
    """key=value pairs; items without a key before '=' are ignored."""
    meta: dict[str, str] = {}
    for pair in pairs:
        eq = pair.find("=")
        if eq > 0:
            key = pair[:eq].strip()
            if key:
                meta[key] = pair[eq + 1:].strip()
    return meta


def _read_input(in_path: str | None) -> str:
    if in_path:
        raw = Path(in_path).read_bytes()
    else:
        stdin = click.get_binary_stream("stdin")
        if stdin.isatty():
            raise click.ClickException("No --in file provided and no stdin piped. Use --help.")
        raw = stdin.read()
    text, report = decode_input(raw)
    logger.debug("Input decoding: %s", report)
    return text


@click.command(epilog=_EPILOG)
@click.option("--in", "in_path", default=None, help="Input file path (optional if piping stdin)")
@click.option("--out", "out_path", default=None, help="Output file path (prints to stdout if omitted)")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    default=DEFAULT_OUTPUT_FORMAT,
    show_default=True,
)
@click.option("--columns", default=None, help='Comma list of columns if your text has no header, e.g. "rank,player,city"')
@click.option("--meta", multiple=True, help="Add metadata fields as key=value pairs (repeatable)")
@click.option("--no-id", "no_id", is_flag=True, help="Disable auto id field")
@click.option("-v", "--verbose", is_flag=True, help="Log parsing decisions to stderr")
def main(in_path, out_path, fmt, columns, meta, no_id, verbose) -> None:
    """ranklist - convert ranking text into JSON or CSV."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        text = _read_input(in_path)
    except OSError as e:
        raise click.ClickException(str(e))

    cols = [c.strip() for c in columns.split(",") if c.strip()] if columns else None
    options = ConvertOptions(columns=cols, add_id=not no_id, meta=parse_meta_args(meta))

    out = render(parse_input(text, options), fmt)

    if out_path:
        try:
            Path(out_path).write_text(out, encoding="utf-8")
        except OSError as e:
            raise click.ClickException(str(e))
    else:
        click.echo(out)


if __name__ == "__main__":
    main()
