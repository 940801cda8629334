"""
asteroid_ls.analysis - Lexical analysis and symbol extraction for Asteroid

The pipeline for one document is:

    text -> tokenize() -> tokens -> extract()  -> DocumentInfo (stored)
                                 -> validate() -> diagnostics (returned)

Every change to a document re-runs the whole pipeline on the full text.
"""

from asteroid_ls.analysis.diagnostics import Diagnostic, Severity, validate
from asteroid_ls.analysis.language import DEFAULT_COMMENT_LEAD
from asteroid_ls.analysis.source import Position, Range
from asteroid_ls.analysis.symbols import (
    DocumentInfo,
    DocumentStore,
    Symbol,
    SymbolKind,
    extract,
)
from asteroid_ls.analysis.tokenizer import Token, TokenKind, tokenize


def analyze_document(
    store: DocumentStore,
    uri: str,
    text: str,
    comment_lead: str = DEFAULT_COMMENT_LEAD,
) -> list[Diagnostic]:
    """
    Analyze a document and replace its entry in ``store``.

    Args:
        store: The store that receives the new DocumentInfo.
        uri: Identity of the document.
        text: The full current text.
        comment_lead: Line comment lead to tokenize with.

    Returns:
        The diagnostics for the document. They replace any previously
        published for the same URI.
    """
    tokens = tokenize(text, comment_lead)
    store.put(uri, extract(tokens))
    return validate(tokens)


__all__ = [
    "Diagnostic",
    "DocumentInfo",
    "DocumentStore",
    "Position",
    "Range",
    "Severity",
    "Symbol",
    "SymbolKind",
    "Token",
    "TokenKind",
    "analyze_document",
    "extract",
    "tokenize",
    "validate",
]
