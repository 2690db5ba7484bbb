from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from latex_symbols_lsp.document import DocumentSnapshot
from latex_symbols_lsp.table import CommandTable

TABLE_ROWS = [
    ("\\alpha", "α", "Greek letter alpha"),
    ("\\beta", "β", "Greek letter beta"),
    ("\\gamma", "γ", None),
    ("\\Gamma", "Γ", "Greek capital letter gamma"),
    ("\\aleph", "ℵ", "Alef symbol"),
    ("\\approx", "≈", "Almost equal to"),
]


@pytest.fixture
def table() -> CommandTable:
    return CommandTable.from_rows(TABLE_ROWS)


@pytest.fixture
def make_snapshot():
    def _make(text: str, uri: str = "file:///doc.tex", version: int | None = 1) -> DocumentSnapshot:
        return DocumentSnapshot(uri=uri, text=text, version=version)

    return _make
