"""Splitting of command argument strings into tokens."""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import Iterator

_WHITESPACE = frozenset(" \t\n\r")
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")
_DECIMAL = re.compile(r"[ \t\n\r\f\v]*([+-]?[0-9]+)")


def is_whitespace(ch: str) -> bool:
    """True for space, tab, newline and carriage return."""
    return ch in _WHITESPACE


def parse_int(s: str) -> int:
    """Parse ``0x``-prefixed hex or a leading decimal integer; 0 if none."""
    if s.startswith("0x"):
        match = _HEX_DIGITS.match(s, 2)
        if not match:
            return 0
        value = int(match.group(), 16) & 0xFFFFFFFF
        return value - (1 << 32) if value & 0x80000000 else value
    match = _DECIMAL.match(s)
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class Tokens:
    """Result of tokenizing a string: arguments and their positions."""

    text: str
    spans: tuple[tuple[int, int], ...] = ()

    def __len__(self) -> int:
        return len(self.spans)

    def __iter__(self) -> Iterator[str]:
        return (self.text[start:end] for start, end in self.spans)

    def arg(self, i: int) -> str:
        """The ``i``-th argument."""
        start, end = self.spans[i]
        return self.text[start:end]

    def arg_from(self, i: int) -> str:
        """The original text from the start of the ``i``-th argument onward."""
        start, _ = self.spans[i]
        return self.text[start:]

    def arg_int(self, i: int) -> int:
        """The ``i``-th argument parsed as an integer."""
        return parse_int(self.arg(i))


def tokenize(s: str) -> Tokens:
    """Split on whitespace and commas.

    Leading whitespace is skipped. Each separator ends an argument; a comma
    always opens a new one, whitespace only if it is not the last character,
    so repeated separators yield empty arguments.
    """
    pos = 0
    while pos < len(s) and is_whitespace(s[pos]):
        pos += 1
    text = s[pos:]
    if not text:
        return Tokens(text)

    separators = [i for i, ch in enumerate(text) if is_whitespace(ch) or ch == ","]
    starts = [0] + [
        i + 1 for i in separators if text[i] == "," or i + 1 < len(text)
    ]
    spans = []
    for start in starts:
        k = bisect.bisect_left(separators, start)
        end = separators[k] if k < len(separators) else len(text)
        spans.append((start, end))
    return Tokens(text, tuple(spans))