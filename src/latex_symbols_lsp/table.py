"""Command table: the fixed mapping from LaTeX commands to Unicode symbols.

The table is built once and handed to every component by reference. It is a
read-only ``Mapping`` of command to symbol that keeps the insertion order of
the data file, so completion results come back in table order.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType

from pydantic import ValidationError

from latex_symbols_lsp.exceptions import SymbolTableError
from latex_symbols_lsp.schema import DEFAULT_DESCRIPTION, SymbolEntryDTO

logger = logging.getLogger(__name__)

BUNDLED_TABLE = "symbols.json"


class CommandTable(Mapping[str, str]):
    __slots__ = ("_symbols", "_descriptions")

    def __init__(self, entries: Iterable[SymbolEntryDTO] = ()):
        symbols: dict[str, str] = {}
        descriptions: dict[str, str] = {}
        for index, entry in enumerate(entries):
            if entry.command in symbols:
                raise SymbolTableError(
                    f"duplicate command {entry.command}",
                    row=index,
                    command=entry.command,
                )
            symbols[entry.command] = entry.symbol
            descriptions[entry.command] = entry.display_description
        self._symbols = MappingProxyType(symbols)
        self._descriptions = MappingProxyType(descriptions)

    @classmethod
    def from_rows(cls, rows: Iterable[object]) -> CommandTable:
        """Build a table from raw rows.

        A row is either a mapping with ``command``/``symbol``/``description``
        keys or a ``(command, symbol[, description])`` sequence.
        """
        entries: list[SymbolEntryDTO] = []
        for index, row in enumerate(rows):
            if isinstance(row, (list, tuple)):
                row = dict(zip(("command", "symbol", "description"), row))
            try:
                entries.append(SymbolEntryDTO.model_validate(row))
            except ValidationError as exc:
                raise SymbolTableError(f"invalid table row {index}: {exc}", row=index) from exc
        return cls(entries)

    def __getitem__(self, command: str) -> str:
        return self._symbols[command]

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        return f"CommandTable({len(self)} commands)"

    def resolve(self, command: str) -> str | None:
        return self._symbols.get(command)

    def describe(self, command: str) -> str:
        return self._descriptions.get(command, DEFAULT_DESCRIPTION)

    def starting_with(self, prefix: str) -> Iterator[tuple[str, str]]:
        for command, symbol in self._symbols.items():
            if command.startswith(prefix):
                yield command, symbol


def _read_rows(raw: str, source: str) -> list[object]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SymbolTableError(f"{source}: invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise SymbolTableError(f"{source}: expected a JSON array of entries")
    return data


def load_table(path: Path | None = None) -> CommandTable:
    if path is None:
        source = f"{__package__}/data/{BUNDLED_TABLE}"
        bundled = resources.files(__package__) / "data" / BUNDLED_TABLE
        raw = bundled.read_text(encoding="utf-8")
    else:
        source = str(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SymbolTableError(f"{source}: {exc}") from exc
    table = CommandTable.from_rows(_read_rows(raw, source))
    logger.debug("loaded %d commands from %s", len(table), source)
    return table


@lru_cache(maxsize=1)
def default_table() -> CommandTable:
    return load_table()
