"""emlparse command-line interface.

What:
  Provide a Typer-based entry point for inspecting ``.eml`` files: ``show``
  prints a summary or the JSON record, ``extract`` writes decoded attachments
  to a directory.

Why:
  The parser never fails on a string, so the only failures an operator sees
  are at this boundary: an unreadable file, a path that is not an ``.eml``
  file, or an invalid configuration. Each is reported once and mapped to exit
  code ``1``.

How:
  Load the configuration (explicit ``--config`` or the implicit locations),
  read the file bytes, call :func:`parse_message`, and render the result.
  Parser diagnostics go to ``stderr`` as JSON lines so ``stdout`` stays
  machine readable.

Interfaces:
  ``app`` (Typer application), ``show``, ``extract``, ``read_source``.

Invariants & Safety:
  - Exit codes follow shell expectations (``0`` success, ``1`` failure).
  - Extracted filenames are sanitised; nothing is written outside ``--out``.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from .attachments import decode_attachment, format_file_size, safe_filename
from .config.loader import load_config
from .config.schema import ParserConfig
from .core.model import ParsedEmail
from .core.parser import parse_message
from .errors import ConfigLoadError, SourceError
from .utils.logging import get_logger


app = typer.Typer(help="Inspect and unpack EML email files")

LOGGER = logging.getLogger("emlparse.cli")


def read_source(path: Path) -> bytes:
    """Read an ``.eml`` file, rejecting other inputs.

    Raises:
      SourceError: If ``path`` does not end in ``.eml`` or cannot be read.
    """

    if path.suffix.lower() != ".eml":
        raise SourceError(f"Not an .eml file: {path}")
    try:
        return path.read_bytes()
    except OSError as exc:
        raise SourceError(f"Unable to read {path}: {exc}") from exc


def _load(path: Path, config_path: Optional[Path]) -> ParsedEmail:
    try:
        config: ParserConfig = load_config(config_path)
        raw = read_source(path)
    except (ConfigLoadError, SourceError) as exc:
        LOGGER.error("load_failed: %s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    logger = get_logger("emlparse.parser", level=config.log_level)
    return parse_message(raw, config=config, logger=logger)


def _summary(email: ParsedEmail) -> str:
    lines = [
        f"From:    {email.from_}",
        f"To:      {email.to}",
    ]
    if email.cc:
        lines.append(f"Cc:      {email.cc}")
    lines.extend(
        [
            f"Subject: {email.subject}",
            f"Date:    {email.date}",
            f"Body:    text={len(email.text)} chars, html={len(email.html)} chars",
            f"Attachments: {len(email.attachments)}",
        ]
    )
    for attachment in email.attachments:
        lines.append(
            f"  - {attachment.name} ({attachment.content_type}, {format_file_size(attachment.size)})"
        )
    return "\n".join(lines)


@app.command()
def show(
    path: Path = typer.Argument(..., help="Path to the .eml file"),
    as_json: bool = typer.Option(False, "--json", help="Print the parsed record as JSON"),
    parts: bool = typer.Option(False, "--parts", help="Include the MIME part tree in JSON output"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file"),
) -> None:
    """Parse an EML file and print its contents."""

    email = _load(path, config_path)
    if as_json:
        typer.echo(json.dumps(email.to_dict(include_parts=parts), ensure_ascii=False, indent=2))
    else:
        typer.echo(_summary(email))


@app.command()
def extract(
    path: Path = typer.Argument(..., help="Path to the .eml file"),
    out: Path = typer.Option(Path("."), "--out", help="Directory receiving the attachments"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file"),
) -> None:
    """Write every attachment of an EML file to ``--out``."""

    email = _load(path, config_path)
    out.mkdir(parents=True, exist_ok=True)
    written = 0
    for attachment in email.attachments:
        try:
            payload = decode_attachment(attachment)
        except ValueError as exc:
            LOGGER.warning("attachment_skipped name=%s error=%s", attachment.name, exc)
            typer.echo(f"Skipped {attachment.name}: invalid base64 payload", err=True)
            continue
        target = out / safe_filename(attachment.name)
        stem, suffix, counter = target.stem, target.suffix, 1
        while target.exists():
            target = out / f"{stem}-{counter}{suffix}"
            counter += 1
        target.write_bytes(payload)
        written += 1
        typer.echo(f"Wrote {target} ({format_file_size(len(payload))})")
    LOGGER.info("extract_completed path=%s written=%s", path, written)
    if written == 0:
        typer.echo("No attachments found")


def main() -> None:
    """Execute the Typer application entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
