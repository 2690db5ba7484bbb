from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

ESCAPE = "\\"

_COMMAND_RE = re.compile(r"\\[A-Za-z]+")


@dataclass(frozen=True)
class Occurrence:
    """A command located at ``[start, end)`` in one snapshot's text."""

    command: str
    start: int
    end: int


def scan(text: str) -> Iterator[Occurrence]:
    for match in _COMMAND_RE.finditer(text):
        yield Occurrence(command=match.group(0), start=match.start(), end=match.end())


def is_command_letter(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z")
