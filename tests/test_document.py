from __future__ import annotations

from lsprotocol.types import Position, Range

from latex_symbols_lsp.document import DocumentSnapshot


def test_positions_on_single_line() -> None:
    snapshot = DocumentSnapshot(uri="file:///a.tex", text="\\alpha test")
    assert snapshot.line_count == 1
    assert snapshot.position_at(0) == Position(line=0, character=0)
    assert snapshot.position_at(6) == Position(line=0, character=6)
    assert snapshot.offset_at(Position(line=0, character=6)) == 6


def test_positions_across_line_breaks() -> None:
    text = "ab\ncd\r\nef\rgh"
    snapshot = DocumentSnapshot(uri="file:///a.tex", text=text)
    assert snapshot.line_count == 4
    assert snapshot.position_at(3) == Position(line=1, character=0)
    assert snapshot.position_at(7) == Position(line=2, character=0)
    assert snapshot.position_at(10) == Position(line=3, character=0)
    for offset in range(len(text) + 1):
        assert snapshot.offset_at(snapshot.position_at(offset)) == offset


def test_trailing_newline_opens_an_empty_line() -> None:
    snapshot = DocumentSnapshot(uri="file:///a.tex", text="ab\n")
    assert snapshot.line_count == 2
    assert snapshot.position_at(3) == Position(line=1, character=0)


def test_out_of_range_values_are_clamped() -> None:
    snapshot = DocumentSnapshot(uri="file:///a.tex", text="ab\ncd")
    assert snapshot.position_at(-4) == Position(line=0, character=0)
    assert snapshot.position_at(99) == Position(line=1, character=2)
    assert snapshot.offset_at(Position(line=7, character=0)) == 5
    assert snapshot.offset_at(Position(line=0, character=40)) == 3
    assert snapshot.offset_at(Position(line=1, character=40)) == 5


def test_text_in_range() -> None:
    snapshot = DocumentSnapshot(uri="file:///a.tex", text="x\n\\beta y")
    rng = Range(start=Position(line=1, character=0), end=Position(line=1, character=5))
    assert snapshot.text_in_range(rng) == "\\beta"
    assert snapshot.range_for(2, 7) == rng


def test_empty_document() -> None:
    snapshot = DocumentSnapshot(uri="file:///a.tex", text="")
    assert snapshot.line_count == 1
    assert snapshot.position_at(0) == Position(line=0, character=0)
    assert snapshot.offset_at(Position(line=3, character=3)) == 0
