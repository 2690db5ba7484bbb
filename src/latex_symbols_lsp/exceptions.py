"""Exception types for latex-symbols-lsp."""

from __future__ import annotations


class SymbolTableError(ValueError):
    """The command table data is malformed.

    Raised only while loading the table, before any request is served. Every
    request path recovers locally instead of raising.
    """

    def __init__(self, message: str, *, row: int | None = None, command: str | None = None):
        super().__init__(message)
        self.row = row
        self.command = command

    @property
    def payload(self) -> dict[str, object]:
        return {"message": str(self), "row": self.row, "command": self.command}
