"""Read-only document snapshots with offset/position arithmetic.

Offsets and columns are counted in code points. Lines are split the way
``str.splitlines`` splits them, which is also how the pygls workspace models
a document, so a snapshot position can be handed to the workspace's position
codec for conversion into the client's encoding.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field

from lsprotocol.types import Position, Range


def _line_starts(text: str) -> tuple[int, ...]:
    starts = [0]
    offset = 0
    lines = text.splitlines(keepends=True)
    for line in lines:
        offset += len(line)
        starts.append(offset)
    if lines and lines[-1].splitlines()[0] == lines[-1]:
        # Last line has no terminator, so no line starts after it.
        starts.pop()
    return tuple(starts)


@dataclass(frozen=True)
class DocumentSnapshot:
    uri: str
    text: str
    version: int | None = None
    _starts: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_starts", _line_starts(self.text))

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(offset, len(self.text)))
        line = bisect_right(self._starts, offset) - 1
        return Position(line=line, character=offset - self._starts[line])

    def offset_at(self, position: Position) -> int:
        if position.line < 0:
            return 0
        if position.line >= len(self._starts):
            return len(self.text)
        line_start = self._starts[position.line]
        if position.line + 1 < len(self._starts):
            line_end = self._starts[position.line + 1]
        else:
            line_end = len(self.text)
        return max(line_start, min(line_start + position.character, line_end))

    def range_for(self, start: int, end: int) -> Range:
        return Range(start=self.position_at(start), end=self.position_at(end))

    def text_in_range(self, rng: Range) -> str:
        return self.text[self.offset_at(rng.start) : self.offset_at(rng.end)]
