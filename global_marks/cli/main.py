#!/usr/bin/env python3
"""
Command-line interface for global-marks.

Inspects and edits the persisted mark file without a running editor.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

import typer

from global_marks.cli.logger import CLILogger
from global_marks.config.marks import settings
from global_marks.exceptions import PersistenceError
from global_marks.protocols import NullAnnotationSink
from global_marks.services.codec import LocationCodec
from global_marks.services.store import MarkStore
from global_marks.types import is_scoped_mark, mark_scope, normalize_mark

app = typer.Typer(
    name='global-marks',
    help='Inspect and edit persisted editor marks',
    add_completion=False,
)


def _no_current_document() -> int:
    # Headless: there is no current document, scoped removals must name one
    return 0


def _open_store(file: Path | None, logger: CLILogger) -> tuple[LocationCodec, MarkStore]:
    """Load the persisted registry into a headless store."""
    codec = LocationCodec(file or settings.PERSIST_FILE)
    store = MarkStore(NullAnnotationSink(), _no_current_document, settings)
    try:
        store.restore(codec.load())
    except PersistenceError as e:
        typer.secho(f'Error: {e}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    logger.info(f'Loaded {len(store)} mark(s) from {codec.path}')
    return codec, store


def _configure_logging(verbose: bool) -> CLILogger:
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING, format='[%(levelname)s] %(message)s')
    return CLILogger(verbose=verbose)


@app.command('list')
def list_marks(
    file: Path | None = typer.Option(None, '--file', help='Persisted mark file (default: GLOBAL_MARKS_PERSIST_FILE)'),
    format: Literal['text', 'json'] = typer.Option('text', '--format', '-f', help='Output format: text or json'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """List persisted marks sorted by mark, document and line.

    Examples:
        global-marks list
        global-marks list --format json
    """
    logger = _configure_logging(verbose)
    _codec, store = _open_store(file, logger)
    rows = store.list_marks()

    if format == 'json':
        typer.echo(json.dumps([row._asdict() for row in rows], indent=2))
        return

    if not rows:
        typer.echo('No marks registered.')
        return

    typer.secho(f'{"MARK":<6}{"SCOPE":<8}{"DOCUMENT":>10}{"LINE":>8}', bold=True)
    for mark_id, document_id, line in rows:
        typer.echo(f'{mark_id:<6}{mark_scope(mark_id):<8}{document_id:>10}{line:>8}')


@app.command()
def delete(
    mark: str = typer.Argument(..., help='Mark identifier'),
    document: int | None = typer.Option(None, '--document', '-d', help='Document (buffer number) of a scoped mark'),
    file: Path | None = typer.Option(None, '--file', help='Persisted mark file (default: GLOBAL_MARKS_PERSIST_FILE)'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Delete one mark from the persisted file.

    Lowercase (scoped) marks exist once per document, so --document is required for them.

    Examples:
        global-marks delete A
        global-marks delete a --document 3
    """
    logger = _configure_logging(verbose)
    mark_id = normalize_mark(mark)
    if mark_id is None:
        raise typer.BadParameter(f'Not a mark identifier: {mark!r}')
    if is_scoped_mark(mark_id) and document is None:
        typer.secho(f"Error: scoped mark '{mark_id}' needs --document", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    codec, store = _open_store(file, logger)
    if not store.remove(mark_id, document):
        typer.secho(f"Mark '{mark_id}' not registered.", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(1)

    try:
        path = codec.save(store.snapshot())
    except PersistenceError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    typer.secho(f"Deleted mark '{mark_id}'", fg=typer.colors.GREEN)
    logger.info(f'Saved {len(store)} remaining mark(s) to {path}')


@app.command()
def path(
    file: Path | None = typer.Option(None, '--file', help='Persisted mark file (default: GLOBAL_MARKS_PERSIST_FILE)'),
) -> None:
    """Print the location of the persisted mark file."""
    typer.echo(str(file or settings.PERSIST_FILE))


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == '__main__':
    main()
