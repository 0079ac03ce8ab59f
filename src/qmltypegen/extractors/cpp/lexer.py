"""Tokenizer for reflection-annotated C++ headers.

Only what the declaration scanner needs is distinguished: identifiers,
numbers, string/char literals, ``::`` and single punctuation characters.
Ordinary comments, preprocessor lines and whitespace are dropped. A run of
``///`` doc lines is attached to the next significant token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_TOKEN_RE = re.compile(
    r"""
    (?P<doc>///(?!/)[^\n]*)
  | (?P<comment>//[^\n]*|/\*[\s\S]*?\*/)
  | (?P<preproc>^[ \t]*\#(?:\\\n|[^\n])*)
  | (?P<string>"(?:\\.|[^"\\\n])*")
  | (?P<char>'(?:\\.|[^'\\\n])*')
  | (?P<number>\.?\d(?:[eEpP][+-]|[\w.'])*)
  | (?P<ident>(?!\d)\w+)
  | (?P<scope>::)
  | (?P<space>[ \t\r\f\v]+|\n)
  | (?P<punct>.)
    """,
    re.VERBOSE | re.MULTILINE,
)

IDENT = "ident"
NUMBER = "number"
STRING = "string"
CHAR = "char"
SCOPE = "scope"
PUNCT = "punct"


@dataclass
class Token:
    kind: str
    text: str
    start: int
    end: int
    line: int
    doc: str | None = None  # raw `///` lines directly preceding the token

    def is_ident(self, *names: str) -> bool:
        return self.kind == IDENT and (not names or self.text in names)

    def is_punct(self, char: str) -> bool:
        return self.kind == PUNCT and self.text == char


def tokenize(text: str) -> list[Token]:
    """Split *text* into significant tokens."""
    tokens: list[Token] = []
    doc_lines: list[str] = []
    line = 1

    for m in _TOKEN_RE.finditer(text):
        kind = m.lastgroup
        value = m.group()
        start_line = line
        line += value.count("\n")

        if kind == "doc":
            doc_lines.append(value)
        elif kind in ("comment", "preproc"):
            doc_lines.clear()
        elif kind != "space":
            doc = "\n".join(doc_lines) if doc_lines else None
            doc_lines.clear()
            tokens.append(Token(kind, value, m.start(), m.end(), start_line, doc))

    return tokens


def matching(tokens: list[Token], open_index: int, end: int | None = None) -> int:
    """Index of the bracket closing the one at *open_index*.

    Returns *end* (or ``len(tokens)``) when the bracket is never closed.
    """
    pairs = {"(": ")", "[": "]", "{": "}"}
    stop = len(tokens) if end is None else end
    stack = [pairs[tokens[open_index].text]]
    for i in range(open_index + 1, stop):
        tok = tokens[i]
        if tok.kind != PUNCT:
            continue
        if tok.text in pairs:
            stack.append(pairs[tok.text])
        elif tok.text == stack[-1]:
            stack.pop()
            if not stack:
                return i
    return stop
