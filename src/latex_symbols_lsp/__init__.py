"""latex-symbols-lsp package root."""

from latex_symbols_lsp.exceptions import SymbolTableError
from latex_symbols_lsp.schema import Settings
from latex_symbols_lsp.table import CommandTable, default_table, load_table

__all__ = [
    "__version__",
    "CommandTable",
    "Settings",
    "SymbolTableError",
    "default_table",
    "load_table",
]

__version__ = "0.1.0"
