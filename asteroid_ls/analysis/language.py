"""
asteroid_ls.analysis.language - Fixed vocabulary of the Asteroid language

These tables drive keyword classification in the tokenizer and the
static part of completion and hover.
"""

KEYWORDS = (
    "and",
    "assert",
    "break",
    "catch",
    "class",
    "constructor",
    "data",
    "do",
    "elif",
    "else",
    "end",
    "escape",
    "eval",
    "false",
    "for",
    "function",
    "global",
    "if",
    "in",
    "is",
    "lambda",
    "let",
    "load",
    "loop",
    "match",
    "module",
    "none",
    "nonlocal",
    "not",
    "or",
    "return",
    "step",
    "struct",
    "system",
    "throw",
    "to",
    "true",
    "try",
    "unload",
    "until",
    "while",
    "with",
    "yield",
)

BUILTIN_FUNCTIONS = (
    "abs",
    "all",
    "any",
    "apply",
    "bool",
    "call",
    "chr",
    "cmp",
    "dict",
    "enumerate",
    "filter",
    "float",
    "format",
    "freeze",
    "frozenset",
    "hash",
    "help",
    "id",
    "int",
    "isinstance",
    "issubclass",
    "iter",
    "len",
    "list",
    "map",
    "max",
    "min",
    "ord",
    "println",
    "range",
    "reduce",
    "repr",
    "reverse",
    "round",
    "set",
    "sorted",
    "str",
    "sum",
    "tuple",
    "type",
    "zip",
)

SYSTEM_MODULES = ("io", "math", "os", "random", "string", "time", "util")

KEYWORD_SET = frozenset(KEYWORDS)
BUILTIN_SET = frozenset(BUILTIN_FUNCTIONS)

# Keywords that introduce something the symbol extractor records
DECLARATION_KEYWORDS = frozenset({"load", "function", "let", "struct", "data"})

# Accepted line-comment leads. "--" is the language's own; "%" was used by
# an earlier grammar revision.
COMMENT_LEADS = ("--", "%")
DEFAULT_COMMENT_LEAD = "--"


def keyword_description(word: str) -> str:
    return f"**{word}** - Asteroid keyword"


def builtin_description(word: str) -> str:
    return f"**{word}()** - Built-in function"
