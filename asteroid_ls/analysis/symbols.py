"""
asteroid_ls.analysis.symbols - Flat symbol extraction

The extractor walks the token list once, left to right, and records
declarations as it meets them:

    load system <module>     -> import list
    function <name>          -> Function symbol
    let <name>               -> Variable symbol
    struct <name>            -> StructLike symbol (display type "struct")
    data <name>              -> StructLike symbol (display type "data")

There is no notion of scope. Declarations inside function bodies, structs
or match arms land in the same table as top-level ones, and a later
declaration of a name replaces the earlier one whatever its kind.

Declarations with an unexpected shape (``let`` at end of file, ``load``
without ``system``) are dropped without a symbol or an error.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from asteroid_ls.analysis.language import DECLARATION_KEYWORDS
from asteroid_ls.analysis.source import Range
from asteroid_ls.analysis.tokenizer import Token, TokenKind


class SymbolKind(Enum):
    FUNCTION = "function"
    VARIABLE = "variable"
    STRUCT_LIKE = "struct-like"


@dataclass(frozen=True)
class Symbol:
    """A named declaration found in a document.

    ``range`` runs from the start of the declaring keyword to the end of
    the name; ``selection_range`` covers the name only. ``display_type``
    is "function", "variable", or the keyword that introduced a
    struct-like type ("struct" or "data").
    """

    name: str
    kind: SymbolKind
    range: Range
    selection_range: Range
    display_type: str


@dataclass
class DocumentInfo:
    """Everything the analyzer derives from one document."""

    symbols: dict[str, Symbol] = field(default_factory=dict)
    imports: list[str] = field(default_factory=list)

    @property
    def functions(self) -> dict[str, Symbol]:
        return self._of_kind(SymbolKind.FUNCTION)

    @property
    def variables(self) -> dict[str, Symbol]:
        return self._of_kind(SymbolKind.VARIABLE)

    def _of_kind(self, kind: SymbolKind) -> dict[str, Symbol]:
        return {name: sym for name, sym in self.symbols.items() if sym.kind is kind}

    def add(self, symbol: Symbol) -> None:
        """Record a symbol, replacing any earlier one with the same name."""
        self.symbols[symbol.name] = symbol

    def lookup(self, name: str) -> Optional[Symbol]:
        return self.symbols.get(name)


class DocumentStore:
    """
    Maps document URIs to their latest DocumentInfo.

    Each analysis replaces a document's entry wholesale. Entries are kept
    for the life of the store; closing a document does not remove one.
    """

    def __init__(self):
        self._infos: dict[str, DocumentInfo] = {}

    def put(self, uri: str, info: DocumentInfo) -> None:
        self._infos[uri] = info

    def get(self, uri: str) -> Optional[DocumentInfo]:
        return self._infos.get(uri)

    def __contains__(self, uri: object) -> bool:
        return uri in self._infos

    def __iter__(self) -> Iterator[str]:
        return iter(self._infos)

    def __len__(self) -> int:
        return len(self._infos)


# Declaring keyword -> (symbol kind, display type). Struct-like symbols
# take their display type from the keyword itself.
_DECLARATIONS = {
    "function": (SymbolKind.FUNCTION, "function"),
    "let": (SymbolKind.VARIABLE, "variable"),
    "struct": (SymbolKind.STRUCT_LIKE, "struct"),
    "data": (SymbolKind.STRUCT_LIKE, "data"),
}


class SymbolExtractor:
    """Single forward pass over a token list collecting declarations."""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.i = 0

    def eof(self) -> bool:
        return self.i >= len(self.tokens)

    def peek(self) -> Optional[Token]:
        if self.eof():
            return None
        return self.tokens[self.i]

    def next(self) -> Optional[Token]:
        tok = self.peek()
        self.i += 1
        return tok

    def extract(self) -> DocumentInfo:
        info = DocumentInfo()
        while not self.eof():
            tok = self.peek()
            assert tok is not None
            if (
                tok.kind is not TokenKind.KEYWORD
                or tok.text not in DECLARATION_KEYWORDS
            ):
                self.next()
            elif tok.text == "load":
                self.read_load(info)
            else:
                self.read_declaration(info)
        return info

    def read_load(self, info: DocumentInfo) -> None:
        self.next()  # load
        tok = self.peek()
        if tok is None or not tok.is_keyword("system"):
            return
        self.next()
        module = self.peek()
        if module is not None and module.kind is TokenKind.IDENTIFIER:
            info.imports.append(module.text)
            self.next()

    def read_declaration(self, info: DocumentInfo) -> None:
        keyword = self.next()
        assert keyword is not None
        name = self.peek()
        if name is None or name.kind is not TokenKind.IDENTIFIER:
            return
        self.next()

        kind, display_type = _DECLARATIONS[keyword.text]
        info.add(
            Symbol(
                name=name.text,
                kind=kind,
                range=Range(keyword.start, name.end),
                selection_range=name.range,
                display_type=display_type,
            )
        )


def extract(tokens: list[Token]) -> DocumentInfo:
    """Build the symbol table and import list for a token list."""
    return SymbolExtractor(tokens).extract()
