"""
asteroid_ls.lsp.providers - Answers to editor queries

Each provider is a plain function of a DocumentStore, the request
parameters and (where needed) the current document text. None of them
modify the store. They return LSP-shaped dicts, or None / an empty list
when there is nothing to report.
"""

from typing import Any, Optional

from asteroid_ls.analysis.language import (
    BUILTIN_FUNCTIONS,
    BUILTIN_SET,
    KEYWORD_SET,
    KEYWORDS,
    SYSTEM_MODULES,
    builtin_description,
    keyword_description,
)
from asteroid_ls.analysis.source import Range
from asteroid_ls.analysis.symbols import DocumentStore, Symbol
from asteroid_ls.analysis.symbols import SymbolKind as AsteroidSymbolKind
from asteroid_ls.lsp.protocol import (
    CompletionItemKind,
    SymbolKind,
    make_completion_item,
    make_document_symbol,
    make_hover,
    make_location,
)

_COMPLETION_KINDS = {
    AsteroidSymbolKind.FUNCTION: CompletionItemKind.FUNCTION,
    AsteroidSymbolKind.VARIABLE: CompletionItemKind.VARIABLE,
    AsteroidSymbolKind.STRUCT_LIKE: CompletionItemKind.CLASS,
}

_OUTLINE_KINDS = {
    AsteroidSymbolKind.FUNCTION: SymbolKind.FUNCTION,
    AsteroidSymbolKind.VARIABLE: SymbolKind.VARIABLE,
    AsteroidSymbolKind.STRUCT_LIKE: SymbolKind.STRUCT,
}


def _is_word_char(c: str) -> bool:
    return c == "_" or ("a" <= c <= "z") or ("A" <= c <= "Z") or ("0" <= c <= "9")


def word_range_at(line_text: str, character: int) -> Optional[tuple[int, int]]:
    """
    Find the run of word characters around ``character``.

    Returns:
        (start, end) offsets into ``line_text``, end exclusive, or None if
        ``character`` is outside the line or touches no word character.
    """
    if character < 0 or character >= len(line_text):
        return None

    start = character
    while start > 0 and _is_word_char(line_text[start - 1]):
        start -= 1

    end = character
    while end < len(line_text) and _is_word_char(line_text[end]):
        end += 1

    if start == end:
        return None
    return start, end


def get_line(text: str, line: int) -> Optional[str]:
    lines = text.split("\n")
    if 0 <= line < len(lines):
        return lines[line]
    return None


def word_at(text: str, line: int, character: int) -> Optional[tuple[str, Range]]:
    """Return the word under the cursor and its range on that line."""
    line_text = get_line(text, line)
    if line_text is None:
        return None
    bounds = word_range_at(line_text, character)
    if bounds is None:
        return None
    start, end = bounds
    return line_text[start:end], Range.of(line, start, line, end)


def symbol_completion_item(symbol: Symbol) -> dict[str, Any]:
    return make_completion_item(
        label=symbol.name,
        kind=_COMPLETION_KINDS[symbol.kind],
        detail=f"{symbol.display_type}: {symbol.name}",
    )


def completion(
    store: DocumentStore,
    uri: str,
    line: Optional[int] = None,
    character: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    Everything that could be typed in the document.

    The fixed keywords, builtins and system modules come first, followed
    by the document's own symbols. The cursor position is accepted for
    the protocol's sake but nothing is filtered by it; narrowing the list
    is the editor's job.
    """
    items = [
        make_completion_item(kw, CompletionItemKind.KEYWORD, f"Asteroid keyword: {kw}")
        for kw in KEYWORDS
    ]
    items.extend(
        make_completion_item(
            name, CompletionItemKind.FUNCTION, f"Built-in function: {name}"
        )
        for name in BUILTIN_FUNCTIONS
    )
    items.extend(
        make_completion_item(mod, CompletionItemKind.MODULE, f"System module: {mod}")
        for mod in SYSTEM_MODULES
    )

    info = store.get(uri)
    if info is not None:
        items.extend(symbol_completion_item(sym) for sym in info.symbols.values())
    return items


def hover(
    store: DocumentStore, uri: str, text: str, line: int, character: int
) -> Optional[dict[str, Any]]:
    """Describe the word under the cursor: keyword, then builtin, then symbol."""
    found = word_at(text, line, character)
    if found is None:
        return None
    word, word_range = found

    if word in KEYWORD_SET:
        contents = keyword_description(word)
    elif word in BUILTIN_SET:
        contents = builtin_description(word)
    else:
        info = store.get(uri)
        symbol = info.lookup(word) if info is not None else None
        if symbol is None:
            return None
        contents = f"**{symbol.name}** - {symbol.display_type}"

    return make_hover(contents, word_range.to_lsp())


def definition(
    store: DocumentStore, uri: str, text: str, line: int, character: int
) -> Optional[dict[str, Any]]:
    """Location of the declaration of the word under the cursor, if any."""
    found = word_at(text, line, character)
    if found is None:
        return None
    word, _ = found

    info = store.get(uri)
    if info is None:
        return None
    symbol = info.lookup(word)
    if symbol is None:
        return None
    return make_location(uri, symbol.range.to_lsp())


def document_symbols(store: DocumentStore, uri: str) -> list[dict[str, Any]]:
    """The document's symbol table as a flat outline, in table order."""
    info = store.get(uri)
    if info is None:
        return []
    return [
        make_document_symbol(
            name=sym.name,
            kind=_OUTLINE_KINDS[sym.kind],
            range_=sym.range.to_lsp(),
            selection_range=sym.selection_range.to_lsp(),
            detail=sym.display_type,
        )
        for sym in info.symbols.values()
    ]
