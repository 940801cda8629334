"""
asteroid_ls.analysis.diagnostics - Lexical diagnostics

The tokenizer accepts malformed strings and numbers so analysis can carry
on; this module reports them afterwards. Two checks are made over the
token list:

- STRING tokens flagged invalid: "Unterminated string literal"
- NUMBER tokens not matching ``digits ('.' digits)?``: "Invalid number format"
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from asteroid_ls.analysis.source import Range
from asteroid_ls.analysis.tokenizer import Token, TokenKind

DIAGNOSTIC_SOURCE = "asteroid-lsp"

UNTERMINATED_STRING = "Unterminated string literal"
INVALID_NUMBER = "Invalid number format"

_NUMBER_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")


class Severity(IntEnum):
    """Diagnostic severities, numbered as in LSP."""

    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


@dataclass(frozen=True)
class Diagnostic:
    range: Range
    message: str
    severity: Severity = Severity.ERROR
    source: str = DIAGNOSTIC_SOURCE

    def to_lsp(self) -> dict[str, Any]:
        return {
            "range": self.range.to_lsp(),
            "message": self.message,
            "severity": int(self.severity),
            "source": self.source,
        }


def is_valid_number(text: str) -> bool:
    return _NUMBER_RE.fullmatch(text) is not None


def validate(tokens: list[Token]) -> list[Diagnostic]:
    """Return diagnostics for malformed lexemes, in token order."""
    diagnostics = []
    for tok in tokens:
        if tok.kind is TokenKind.STRING and not tok.valid:
            # Covers the opening quote plus the consumed content
            diagnostics.append(
                Diagnostic(
                    Range.of(
                        tok.line, tok.column, tok.line, tok.column + len(tok.text) + 1
                    ),
                    UNTERMINATED_STRING,
                )
            )
        elif tok.kind is TokenKind.NUMBER and not is_valid_number(tok.text):
            diagnostics.append(Diagnostic(tok.range, INVALID_NUMBER))
    return diagnostics
