"""
asteroid_ls.analysis.source - Source positions and ranges

Positions are 0-based (line, character) pairs, matching the Language
Server Protocol. Ranges are half-open: ``end`` points just past the last
character covered.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Position:
    """A 0-based line/character position in a document."""

    line: int
    character: int

    def to_lsp(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}

    def __repr__(self):
        return f"Position({self.line}:{self.character})"


@dataclass(frozen=True)
class Range:
    """A span between two positions. May cross lines."""

    start: Position
    end: Position

    @classmethod
    def of(
        cls, start_line: int, start_char: int, end_line: int, end_char: int
    ) -> "Range":
        return cls(Position(start_line, start_char), Position(end_line, end_char))

    def contains(self, other: "Range") -> bool:
        """True if ``other`` lies entirely within this range."""
        return (self.start.line, self.start.character) <= (
            other.start.line,
            other.start.character,
        ) and (other.end.line, other.end.character) <= (
            self.end.line,
            self.end.character,
        )

    def to_lsp(self) -> dict[str, Any]:
        return {"start": self.start.to_lsp(), "end": self.end.to_lsp()}
