"""Normalization of PHP code spans for duplication detection.

Two spans that differ only in variable names, string contents, numeric
literals, comments or layout normalize to the same text:

    normalize("$total = $price * 10; // tax")  ->  "$VAR = $VAR * NUM;"

Structure (keywords, operators, calls, method and class names) is kept.
Both functions are pure and deterministic; the structural hash used for
candidate bucketing depends on that.
"""

from __future__ import annotations

import re

VARIABLE_PLACEHOLDER = "$VAR"
STRING_PLACEHOLDER = "STRING"
NUMBER_PLACEHOLDER = "NUM"

# Scanned left to right, so a "//" inside a string is not a comment and a
# quote inside a comment does not open a string. "#[" starts a PHP 8
# attribute, not a comment.
_LEXEMES = re.compile(
    r"""
      (?P<block>/\*.*?\*/)
    | (?P<line>(?://|\#(?!\[))[^\n]*)
    | (?P<single>'(?:[^'\\]|\\.)*')
    | (?P<double>"(?:[^"\\]|\\.)*")
    """,
    re.DOTALL | re.VERBOSE,
)
_VARIABLE = re.compile(r"\$[a-zA-Z_][a-zA-Z0-9_]*")
_NUMBER = re.compile(r"\b\d+\b")
_WHITESPACE = re.compile(r"\s+")

_COMMENT_MARKERS = ("//", "/*", "*/")


def _replace_lexeme(match: re.Match) -> str:
    if match.group("single") is not None:
        return f"'{STRING_PLACEHOLDER}'"
    if match.group("double") is not None:
        return f'"{STRING_PLACEHOLDER}"'
    # comments become a separator so adjacent code tokens stay apart
    return " "


def normalize(text: str) -> str:
    """Fold comments, variables, strings and numbers; collapse whitespace."""
    result = _LEXEMES.sub(_replace_lexeme, text)
    result = _VARIABLE.sub(lambda _: VARIABLE_PLACEHOLDER, result)
    result = _NUMBER.sub(NUMBER_PLACEHOLDER, result)
    return _WHITESPACE.sub(" ", result).strip()


def tokenize(normalized_text: str) -> list[str]:
    """Split normalized text on whitespace, dropping comment-marker tokens."""
    return [
        token
        for token in normalized_text.split()
        if not token.startswith(_COMMENT_MARKERS)
        and not (token.startswith("#") and not token.startswith("#["))
    ]


def normalized_tokens(text: str) -> list[str]:
    return tokenize(normalize(text))
