"""Prefix-driven completion of LaTeX commands.

The in-progress command is found by walking backwards from the cursor over
ASCII letters; it only counts as a command if that walk stops on a
backslash. Every table command that starts with the prefix (backslash
included) becomes one item, in table order, whose edit swaps the typed
prefix for the symbol.
"""

from __future__ import annotations

from lsprotocol.types import CompletionItem, CompletionItemKind, TextEdit

from latex_symbols_lsp.document import DocumentSnapshot
from latex_symbols_lsp.scanner import ESCAPE, is_command_letter
from latex_symbols_lsp.table import CommandTable


def completion_prefix(text: str, offset: int) -> tuple[int, int] | None:
    """Return the ``[start, offset)`` range of the command typed before ``offset``."""
    offset = max(0, min(offset, len(text)))
    start = offset - 1
    while start >= 0 and is_command_letter(text[start]):
        start -= 1
    if start < 0 or text[start] != ESCAPE:
        return None
    return start, offset


def completion_detail(command: str, symbol: str, table: CommandTable) -> str:
    return f"{symbol} - {table.describe(command)}"


def completion_documentation(command: str, symbol: str) -> str:
    return f"Converts LaTeX command {command} to Unicode symbol {symbol}"


def complete(
    snapshot: DocumentSnapshot,
    offset: int,
    table: CommandTable,
) -> list[CompletionItem]:
    bounds = completion_prefix(snapshot.text, offset)
    if bounds is None:
        return []
    start, end = bounds
    prefix = snapshot.text[start:end]
    edit_range = snapshot.range_for(start, end)
    return [
        CompletionItem(
            label=command,
            kind=CompletionItemKind.Text,
            detail=completion_detail(command, symbol, table),
            documentation=completion_documentation(command, symbol),
            filter_text=command,
            text_edit=TextEdit(range=edit_range, new_text=symbol),
            data=command,
        )
        for command, symbol in table.starting_with(prefix)
    ]


def resolve_completion_item(item: CompletionItem, table: CommandTable) -> CompletionItem:
    command = item.data
    if not isinstance(command, str):
        return item
    symbol = table.resolve(command)
    if symbol is None:
        return item
    item.detail = completion_detail(command, symbol, table)
    item.documentation = completion_documentation(command, symbol)
    return item
