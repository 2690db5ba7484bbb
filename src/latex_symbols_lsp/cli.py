from __future__ import annotations

from pathlib import Path
from typing import List, Optional
import logging
import sys

import typer

from latex_symbols_lsp.config import (
    resolve_settings,
    symbols_defaults,
    symbols_path,
)
from latex_symbols_lsp.diagnostics import diagnose
from latex_symbols_lsp.document import DocumentSnapshot
from latex_symbols_lsp.exceptions import SymbolTableError
from latex_symbols_lsp.fixes import convert_text
from latex_symbols_lsp.table import CommandTable, default_table, load_table

app = typer.Typer(add_completion=False, help="LaTeX command to Unicode symbol tools.")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def _apply_log_level(raw: str) -> None:
    level = getattr(logging, raw.strip().upper(), None)
    if not isinstance(level, int):
        raise typer.BadParameter(f"unknown log level: {raw}", param_hint="--log-level")
    logging.basicConfig(level=level, format=_LOG_FORMAT, stream=sys.stderr)
    logging.getLogger().setLevel(level)


def _table_for(root: Path, config: Optional[Path], table_path: Optional[Path]) -> CommandTable:
    if table_path is None:
        table_path = symbols_path(symbols_defaults(root=root, config_path=config), base=root)
    if table_path is None:
        return default_table()
    try:
        return load_table(table_path)
    except SymbolTableError as exc:
        typer.echo(f"Invalid symbol table: {exc}", err=True)
        raise typer.Exit(code=2)


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        typer.echo(f"{path}: {exc}", err=True)
        return None


@app.callback()
def main(
    log_level: str = typer.Option("warning", "--log-level", help="Root logger level."),
) -> None:
    _apply_log_level(log_level)


@app.command()
def serve(
    tcp: bool = typer.Option(False, "--tcp", help="Serve over TCP instead of stdio."),
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(2087, "--port"),
) -> None:
    """Run the language server."""
    from latex_symbols_lsp.server import server, start

    if tcp:
        logger.info("serving on %s:%d", host, port)
        start(lambda: server.start_tcp(host, port))
    else:
        start()


@app.command()
def check(
    paths: List[Path] = typer.Argument(..., help="Files to scan."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    table_path: Optional[Path] = typer.Option(None, "--table", help="Alternate symbol table JSON."),
    max_problems: Optional[int] = typer.Option(
        None, "--max-problems", min=0, help="Cap on reported commands per file."
    ),
    fail_on_findings: bool = typer.Option(
        True, "--fail-on-findings/--no-fail-on-findings"
    ),
) -> None:
    """Report convertible LaTeX commands as path:line:col: message."""
    table = _table_for(root, config, table_path)
    settings = resolve_settings(
        {"maxNumberOfProblems": max_problems}, root=root, config_path=config
    )
    found = 0
    unreadable = False
    for path in paths:
        text = _read(path)
        if text is None:
            unreadable = True
            continue
        snapshot = DocumentSnapshot(uri=path.resolve().as_uri(), text=text)
        for diagnostic in diagnose(snapshot, table, settings):
            start = diagnostic.range.start
            typer.echo(f"{path}:{start.line + 1}:{start.character + 1}: {diagnostic.message}")
            found += 1
    if unreadable:
        raise typer.Exit(code=2)
    if found and fail_on_findings:
        raise typer.Exit(code=1)


@app.command()
def convert(
    paths: List[Path] = typer.Argument(..., help="Files to convert."),
    write: bool = typer.Option(False, "--write", help="Rewrite files in place."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    table_path: Optional[Path] = typer.Option(None, "--table", help="Alternate symbol table JSON."),
) -> None:
    """Replace every convertible LaTeX command with its Unicode symbol."""
    table = _table_for(root, config, table_path)
    unreadable = False
    for path in paths:
        text = _read(path)
        if text is None:
            unreadable = True
            continue
        converted, count = convert_text(
            DocumentSnapshot(uri=path.resolve().as_uri(), text=text), table
        )
        if write:
            if count:
                path.write_text(converted, encoding="utf-8")
            typer.echo(f"{path}: replaced {count} command(s)", err=True)
        else:
            typer.echo(converted, nl=False)
    if unreadable:
        raise typer.Exit(code=2)


@app.command()
def symbols(
    prefix: str = typer.Option("\\", "--prefix", help="Only commands starting with this."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    table_path: Optional[Path] = typer.Option(None, "--table", help="Alternate symbol table JSON."),
) -> None:
    """List table entries."""
    table = _table_for(root, config, table_path)
    for command, symbol in table.starting_with(prefix):
        typer.echo(f"{command}\t{symbol}\t{table.describe(command)}")
