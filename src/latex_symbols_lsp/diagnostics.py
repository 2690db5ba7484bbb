from __future__ import annotations

from lsprotocol.types import Diagnostic, DiagnosticSeverity

from latex_symbols_lsp.document import DocumentSnapshot
from latex_symbols_lsp.scanner import scan
from latex_symbols_lsp.schema import Settings
from latex_symbols_lsp.table import CommandTable

SOURCE = "latex-symbols-lsp"


def diagnostic_message(command: str, symbol: str) -> str:
    return f'LaTeX symbol "{command}" can be converted to Unicode: {symbol}'


def diagnose(
    snapshot: DocumentSnapshot,
    table: CommandTable,
    settings: Settings,
) -> list[Diagnostic]:
    """Flag the first ``max_number_of_problems`` convertible commands.

    The scan is abandoned once the cap is reached, so occurrences past the
    cap are never resolved. ``enable_auto_replacement`` does not affect the
    result; it only gates code actions.
    """
    limit = settings.max_number_of_problems
    diagnostics: list[Diagnostic] = []
    if limit <= 0:
        return diagnostics
    for occurrence in scan(snapshot.text):
        symbol = table.resolve(occurrence.command)
        if symbol is None:
            continue
        diagnostics.append(
            Diagnostic(
                range=snapshot.range_for(occurrence.start, occurrence.end),
                message=diagnostic_message(occurrence.command, symbol),
                severity=DiagnosticSeverity.Information,
                source=SOURCE,
                data={"command": occurrence.command, "symbol": symbol},
            )
        )
        if len(diagnostics) >= limit:
            break
    return diagnostics
