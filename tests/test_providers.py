"""
Tests for the completion, hover, definition and document-symbol providers.
"""

import unittest

from asteroid_ls.analysis import DocumentStore, analyze_document
from asteroid_ls.analysis.language import BUILTIN_FUNCTIONS, KEYWORDS, SYSTEM_MODULES
from asteroid_ls.lsp import providers
from asteroid_ls.lsp.protocol import CompletionItemKind, SymbolKind

URI = "file:///test.ast"

SOURCE = """\
load system io
function factorial123 with n do
  return n
end
let total = factorial123 5
struct Point with
  data x
end
"""


def analyzed(text: str = SOURCE, uri: str = URI) -> DocumentStore:
    store = DocumentStore()
    analyze_document(store, uri, text)
    return store


class TestWordResolution(unittest.TestCase):
    def test_every_offset_inside_word(self):
        line = "let y = factorial123 + 1"
        start = line.index("factorial123")
        for offset in range(start, start + len("factorial123")):
            with self.subTest(offset=offset):
                self.assertEqual(
                    providers.word_range_at(line, offset),
                    (start, start + len("factorial123")),
                )

    def test_offset_outside_line(self):
        self.assertIsNone(providers.word_range_at("abc", 3))
        self.assertIsNone(providers.word_range_at("abc", 10))
        self.assertIsNone(providers.word_range_at("abc", -1))
        self.assertIsNone(providers.word_range_at("", 0))

    def test_non_word_character_between_words(self):
        self.assertIsNone(providers.word_range_at("a  +  b", 3))

    def test_cursor_just_after_word(self):
        """A non-word character touching a word resolves to that word."""
        self.assertEqual(providers.word_range_at("foo(x)", 3), (0, 3))

    def test_word_at(self):
        found = providers.word_at("one\n  two three", 1, 3)
        self.assertIsNotNone(found)
        word, word_range = found
        self.assertEqual(word, "two")
        self.assertEqual(word_range.start.character, 2)
        self.assertEqual(word_range.end.character, 5)

    def test_word_at_missing_line(self):
        self.assertIsNone(providers.word_at("one", 4, 0))


class TestCompletion(unittest.TestCase):
    def test_includes_fixed_vocabulary(self):
        items = providers.completion(DocumentStore(), URI, 0, 0)
        labels = [item["label"] for item in items]
        for word in KEYWORDS + BUILTIN_FUNCTIONS + SYSTEM_MODULES:
            self.assertIn(word, labels)
        self.assertEqual(
            len(items), len(KEYWORDS) + len(BUILTIN_FUNCTIONS) + len(SYSTEM_MODULES)
        )

    def test_includes_document_symbols(self):
        items = providers.completion(analyzed(), URI, 0, 0)
        by_label = {item["label"]: item for item in items}

        fn = by_label["factorial123"]
        self.assertEqual(fn["kind"], CompletionItemKind.FUNCTION)
        self.assertEqual(fn["detail"], "function: factorial123")

        var = by_label["total"]
        self.assertEqual(var["kind"], CompletionItemKind.VARIABLE)
        self.assertEqual(var["detail"], "variable: total")

        struct = by_label["Point"]
        self.assertEqual(struct["kind"], CompletionItemKind.CLASS)
        self.assertEqual(struct["detail"], "struct: Point")

    def test_fixed_item_details(self):
        by_label = {
            (item["label"], item["kind"]): item
            for item in providers.completion(DocumentStore(), URI)
        }
        self.assertEqual(
            by_label[("let", CompletionItemKind.KEYWORD)]["detail"],
            "Asteroid keyword: let",
        )
        self.assertEqual(
            by_label[("len", CompletionItemKind.FUNCTION)]["detail"],
            "Built-in function: len",
        )
        self.assertEqual(
            by_label[("math", CompletionItemKind.MODULE)]["detail"],
            "System module: math",
        )

    def test_position_does_not_filter(self):
        store = analyzed()
        self.assertEqual(
            providers.completion(store, URI, 0, 0),
            providers.completion(store, URI, 4, 9),
        )

    def test_count_lower_bound(self):
        items = providers.completion(analyzed(), URI)
        fixed = len(KEYWORDS) + len(BUILTIN_FUNCTIONS) + len(SYSTEM_MODULES)
        self.assertGreaterEqual(len(items), fixed)
        self.assertEqual(len(items), fixed + 4)


class TestHover(unittest.TestCase):
    def test_keyword(self):
        result = providers.hover(analyzed(), URI, SOURCE, 1, 2)
        self.assertEqual(result["contents"]["kind"], "markdown")
        self.assertEqual(result["contents"]["value"], "**function** - Asteroid keyword")
        self.assertEqual(
            result["range"],
            {"start": {"line": 1, "character": 0}, "end": {"line": 1, "character": 8}},
        )

    def test_builtin(self):
        text = "let n = len xs"
        result = providers.hover(analyzed(text), URI, text, 0, 9)
        self.assertEqual(result["contents"]["value"], "**len()** - Built-in function")

    def test_document_symbol(self):
        result = providers.hover(analyzed(), URI, SOURCE, 4, 15)
        self.assertEqual(result["contents"]["value"], "**factorial123** - function")

    def test_struct_like_uses_keyword_as_type(self):
        text = "data Shape\nlet s = Shape"
        result = providers.hover(analyzed(text), URI, text, 1, 10)
        self.assertEqual(result["contents"]["value"], "**Shape** - data")

    def test_builtin_wins_over_symbol(self):
        """Builtins are checked before the document table."""
        text = "let len = 3\nlen"
        result = providers.hover(analyzed(text), URI, text, 1, 1)
        self.assertEqual(result["contents"]["value"], "**len()** - Built-in function")

    def test_unknown_word(self):
        self.assertIsNone(providers.hover(analyzed(), URI, SOURCE, 2, 9))

    def test_nothing_under_cursor(self):
        self.assertIsNone(providers.hover(analyzed(), URI, SOURCE, 4, 10))
        self.assertIsNone(providers.hover(analyzed(), URI, SOURCE, 40, 0))

    def test_unknown_document_still_knows_keywords(self):
        result = providers.hover(DocumentStore(), URI, "let", 0, 0)
        self.assertIn("Asteroid keyword", result["contents"]["value"])
        self.assertIsNone(providers.hover(DocumentStore(), URI, "foo", 0, 0))


class TestDefinition(unittest.TestCase):
    def test_function_definition(self):
        result = providers.definition(analyzed(), URI, SOURCE, 4, 12)
        self.assertEqual(result["uri"], URI)
        self.assertEqual(
            result["range"],
            {"start": {"line": 1, "character": 0}, "end": {"line": 1, "character": 21}},
        )

    def test_follows_last_declaration(self):
        text = "let x = 1\nlet x = 2\nprintln x"
        result = providers.definition(analyzed(text), URI, text, 2, 8)
        self.assertEqual(result["range"]["start"], {"line": 1, "character": 0})

    def test_not_a_symbol(self):
        self.assertIsNone(providers.definition(analyzed(), URI, SOURCE, 1, 2))

    def test_unknown_document(self):
        self.assertIsNone(providers.definition(DocumentStore(), URI, SOURCE, 4, 12))


class TestDocumentSymbols(unittest.TestCase):
    def test_outline(self):
        outline = providers.document_symbols(analyzed(), URI)
        self.assertEqual(
            [(s["name"], s["kind"], s["detail"]) for s in outline],
            [
                ("factorial123", SymbolKind.FUNCTION, "function"),
                ("total", SymbolKind.VARIABLE, "variable"),
                ("Point", SymbolKind.STRUCT, "struct"),
                ("x", SymbolKind.STRUCT, "data"),
            ],
        )

    def test_selection_range(self):
        outline = providers.document_symbols(analyzed(), URI)
        total = outline[1]
        self.assertEqual(
            total["range"],
            {"start": {"line": 4, "character": 0}, "end": {"line": 4, "character": 9}},
        )
        self.assertEqual(
            total["selectionRange"],
            {"start": {"line": 4, "character": 4}, "end": {"line": 4, "character": 9}},
        )

    def test_unknown_document(self):
        self.assertEqual(providers.document_symbols(DocumentStore(), URI), [])


if __name__ == "__main__":
    unittest.main()
