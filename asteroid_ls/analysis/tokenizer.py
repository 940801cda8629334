"""
asteroid_ls.analysis.tokenizer - Fault-tolerant tokenizer for Asteroid source

The tokenizer makes a single forward pass over the text and never raises
on malformed input. Lexemes that are wrong but recognizable still become
tokens so later stages keep working on half-edited buffers:

- an unterminated string becomes a STRING token with ``valid=False``
- a number like ``1.2.3`` becomes a single NUMBER token; whether it is
  well formed is decided later by the diagnostics validator

Whitespace and line comments are skipped without producing tokens.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from asteroid_ls.analysis.language import (
    COMMENT_LEADS,
    DEFAULT_COMMENT_LEAD,
    KEYWORD_SET,
)
from asteroid_ls.analysis.source import Position, Range


class TokenKind(Enum):
    STRING = "string"
    NUMBER = "number"
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    AT = "at"


# Probed in order before falling back to single-character punctuation
OPERATORS = ("==", "!=", "<=", ">=", "->", "=>")

QUOTES = "\"'"
LINE_ENDS = "\r\n"


@dataclass(frozen=True)
class Token:
    """A classified lexeme with its 0-based start position.

    For strings, ``text`` is the literal's content without the quotes and
    with escape backslashes removed (the escaped character is kept as-is),
    so its source extent is recorded separately in ``length``.
    """

    kind: TokenKind
    text: str
    line: int
    column: int
    valid: bool = True
    # Characters the lexeme occupies in the source; None means len(text)
    length: Optional[int] = None

    @property
    def start(self) -> Position:
        return Position(self.line, self.column)

    @property
    def end(self) -> Position:
        """Position just past the lexeme in the source."""
        length = len(self.text) if self.length is None else self.length
        return Position(self.line, self.column + length)

    @property
    def range(self) -> Range:
        return Range(self.start, self.end)

    def is_keyword(self, word: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.text == word

    def __repr__(self):
        flag = "" if self.valid else ", invalid"
        pos = f"{self.line}:{self.column}"
        return f"Token({self.kind.name}, {self.text!r}, {pos}{flag})"


def _is_ident_start(c: str) -> bool:
    return c == "_" or ("a" <= c <= "z") or ("A" <= c <= "Z")


def _is_ident_char(c: str) -> bool:
    return _is_ident_start(c) or ("0" <= c <= "9")


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def tokenize(src: str, comment_lead: str = DEFAULT_COMMENT_LEAD) -> list[Token]:
    """
    Tokenize Asteroid source into positioned tokens.

    Args:
        src: The full document text.
        comment_lead: The string that starts a line comment ("--" or "%").

    Returns:
        Tokens in source order. Empty input gives an empty list.

    Raises:
        ValueError: If ``comment_lead`` is not a supported comment lead.
    """
    if comment_lead not in COMMENT_LEADS:
        raise ValueError(
            f"Unsupported comment lead {comment_lead!r}, "
            f"expected one of {', '.join(COMMENT_LEADS)}"
        )

    tokens: list[Token] = []
    i = 0
    n = len(src)
    line = 0
    line_start = 0  # Index of the first character of the current line

    while i < n:
        c = src[i]

        if c == "\n":
            i += 1
            line += 1
            line_start = i
            continue
        if c.isspace():
            i += 1
            continue
        if src.startswith(comment_lead, i):
            while i < n and src[i] != "\n":
                i += 1
            continue

        tok_line = line
        tok_col = i - line_start

        if c in QUOTES:
            # String: runs to the matching quote, the end of the line or
            # the end of the text, whichever comes first
            i += 1
            buf = []
            valid = False
            while i < n:
                ch = src[i]
                if ch == c:
                    i += 1
                    valid = True
                    break
                if ch in LINE_ENDS:
                    break
                if ch == "\\":
                    if i + 1 < n and src[i + 1] not in LINE_ENDS:
                        buf.append(src[i + 1])
                        i += 2
                        continue
                    # A trailing backslash cannot escape the line end
                    i += 1
                    break
                buf.append(ch)
                i += 1
            tokens.append(
                Token(
                    TokenKind.STRING,
                    "".join(buf),
                    tok_line,
                    tok_col,
                    valid,
                    length=i - line_start - tok_col,
                )
            )
            continue

        if _is_digit(c):
            start = i
            while i < n and (_is_digit(src[i]) or src[i] == "."):
                i += 1
            tokens.append(Token(TokenKind.NUMBER, src[start:i], tok_line, tok_col))
            continue

        if _is_ident_start(c):
            start = i
            while i < n and _is_ident_char(src[i]):
                i += 1
            word = src[start:i]
            kind = TokenKind.KEYWORD if word in KEYWORD_SET else TokenKind.IDENTIFIER
            tokens.append(Token(kind, word, tok_line, tok_col))
            continue

        if c == "@":
            tokens.append(Token(TokenKind.AT, c, tok_line, tok_col))
            i += 1
            continue

        for op in OPERATORS:
            if src.startswith(op, i):
                tokens.append(Token(TokenKind.OPERATOR, op, tok_line, tok_col))
                i += len(op)
                break
        else:
            tokens.append(Token(TokenKind.PUNCTUATION, c, tok_line, tok_col))
            i += 1

    return tokens
