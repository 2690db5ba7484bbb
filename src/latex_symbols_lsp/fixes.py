from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from lsprotocol.types import (
    CodeAction,
    CodeActionKind,
    Diagnostic,
    Range,
    TextEdit,
    WorkspaceEdit,
)

from latex_symbols_lsp.diagnostics import SOURCE
from latex_symbols_lsp.document import DocumentSnapshot
from latex_symbols_lsp.scanner import scan
from latex_symbols_lsp.schema import Settings
from latex_symbols_lsp.table import CommandTable


def synthesize_fix(
    snapshot: DocumentSnapshot,
    rng: Range,
    table: CommandTable,
) -> TextEdit | None:
    """Replace the command currently under ``rng`` with its symbol.

    The text is re-read at call time. A range that now holds a different
    known command yields that command's edit; a range holding anything
    else yields ``None``.
    """
    symbol = table.resolve(snapshot.text_in_range(rng))
    if symbol is None:
        return None
    return TextEdit(range=rng, new_text=symbol)


def code_actions(
    snapshot: DocumentSnapshot,
    diagnostics: Iterable[Diagnostic],
    table: CommandTable,
    settings: Settings,
    *,
    to_snapshot_range: Callable[[Range], Range] | None = None,
) -> list[CodeAction]:
    """One quick fix per diagnostic of ours that still resolves.

    ``to_snapshot_range`` maps a diagnostic's range into snapshot units when
    the caller's ranges use another encoding; the emitted edit keeps the
    diagnostic's own range.
    """
    if not settings.enable_auto_replacement:
        return []
    actions: list[CodeAction] = []
    for diagnostic in diagnostics:
        if diagnostic.source != SOURCE:
            continue
        rng = diagnostic.range
        if to_snapshot_range is not None:
            rng = to_snapshot_range(rng)
        fix = synthesize_fix(snapshot, rng, table)
        if fix is None:
            continue
        edit = TextEdit(range=diagnostic.range, new_text=fix.new_text)
        actions.append(
            CodeAction(
                title=f"Replace with Unicode symbol: {edit.new_text}",
                kind=CodeActionKind.QuickFix,
                diagnostics=[diagnostic],
                edit=WorkspaceEdit(changes={snapshot.uri: [edit]}),
            )
        )
    return actions


def apply_edits(snapshot: DocumentSnapshot, edits: Sequence[TextEdit]) -> str:
    """Apply non-overlapping edits to the snapshot's text."""
    spans = sorted(
        (
            (snapshot.offset_at(edit.range.start), snapshot.offset_at(edit.range.end), edit.new_text)
            for edit in edits
        ),
        reverse=True,
    )
    text = snapshot.text
    previous_start = len(text)
    for start, end, new_text in spans:
        if end > previous_start:
            raise ValueError(f"overlapping edits at offset {end}")
        text = text[:start] + new_text + text[end:]
        previous_start = start
    return text


def convert_text(snapshot: DocumentSnapshot, table: CommandTable) -> tuple[str, int]:
    """Replace every convertible command; return the new text and the count."""
    edits: list[TextEdit] = []
    for occurrence in scan(snapshot.text):
        symbol = table.resolve(occurrence.command)
        if symbol is None:
            continue
        edits.append(
            TextEdit(range=snapshot.range_for(occurrence.start, occurrence.end), new_text=symbol)
        )
    return apply_edits(snapshot, edits), len(edits)
