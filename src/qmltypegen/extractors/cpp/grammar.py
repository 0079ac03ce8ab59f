"""Small grammars for the pieces inside a class body.

Grammar (tokens from :mod:`qmltypegen.extractors.cpp.lexer`)::

    property   := type NAME specifier+
    specifier  := ARG_KEYWORD (IDENT | NUMBER) | "REVISION" "(" ... ")" | FLAG_KEYWORD
    function   := attribute* decl-specifier* type? NAME "(" params ")" ...
    params     := ( param ( "," param )* )? | "void"
    param      := type NAME? ( "=" default )?
"""

from __future__ import annotations

from dataclasses import dataclass

from qmltypegen.errors import ParseError
from qmltypegen.extractors.cpp.lexer import (
    IDENT,
    NUMBER,
    PUNCT,
    SCOPE,
    STRING,
    Token,
    matching,
    tokenize,
)

_ARG_SPECIFIERS = {
    "MEMBER",
    "READ",
    "WRITE",
    "NOTIFY",
    "RESET",
    "BINDABLE",
    "REVISION",
    "DESIGNABLE",
    "SCRIPTABLE",
    "STORED",
    "USER",
}
_FLAG_SPECIFIERS = {"CONSTANT", "FINAL", "REQUIRED"}

_QUALIFIERS = {"const", "volatile", "typename"}
_DECL_SPECIFIERS = {"static", "virtual", "inline", "explicit", "constexpr", "Q_REQUIRED_RESULT"}
_BUILTIN_WORDS = {"int", "char", "short", "long", "double", "float", "bool", "unsigned", "signed"}


@dataclass
class PropertySpec:
    type: str
    name: str
    readable: bool
    writable: bool
    notify: str | None
    required: bool


@dataclass
class FunctionDecl:
    ret: str
    name: str
    params: list[tuple[str, str]]  # (type, name)


def join_type(tokens: list[Token]) -> str:
    """Spell *tokens* as canonical type text (``QMap<QString, int>``)."""
    out: list[str] = []
    prev: Token | None = None
    for tok in tokens:
        if prev is not None and _wordlike(prev) and _wordlike(tok):
            out.append(" ")
        out.append(tok.text)
        if tok.text == ",":
            out.append(" ")
        prev = tok
    return "".join(out).strip()


def _wordlike(tok: Token) -> bool:
    return tok.kind in (IDENT, NUMBER)


def clean_type(tokens: list[Token]) -> str:
    """Drop cv-qualifiers and trailing references, keep pointers."""
    kept = [t for t in tokens if not t.is_ident(*_QUALIFIERS)]
    while kept and kept[-1].is_punct("&"):
        kept.pop()
    return join_type(kept)


def split_top_level(tokens: list[Token], sep: str = ",", angles: bool = True) -> list[list[Token]]:
    """Split *tokens* on *sep* outside of any bracket nesting.

    With *angles*, ``<``/``>`` count as brackets too (template arguments);
    enumerator values with shift operators need it off.
    """
    opening = "([{<" if angles else "([{"
    closing = ")]}>" if angles else ")]}"
    parts: list[list[Token]] = [[]]
    depth = 0
    for tok in tokens:
        if tok.kind == PUNCT:
            if tok.text in opening:
                depth += 1
            elif tok.text in closing:
                depth = max(depth - 1, 0)
            elif tok.text == sep and depth == 0:
                parts.append([])
                continue
        parts[-1].append(tok)
    return [p for p in parts if p]


def macro_arguments(text: str) -> list[str]:
    """Top-level comma separated arguments of a macro, as text."""
    return [join_type(part) for part in split_top_level(tokenize(text))]


def string_arguments(text: str) -> list[str]:
    """Unquoted string literal arguments, e.g. of ``Q_CLASSINFO``."""
    values = []
    for part in split_top_level(tokenize(text)):
        if len(part) != 1 or part[0].kind != STRING:
            raise ParseError(f"expected string literal, found `{join_type(part)}`")
        values.append(part[0].text[1:-1])
    return values


def parse_property(text: str) -> PropertySpec:
    """Decompose ``Q_PROPERTY`` arguments into type, name and accessors."""
    tokens = tokenize(text)
    first = next(
        (i for i, t in enumerate(tokens) if t.is_ident(*_ARG_SPECIFIERS, *_FLAG_SPECIFIERS)),
        None,
    )
    if first is None or first < 2 or not tokens[first - 1].is_ident():
        raise ParseError("unable to parse Q_PROPERTY")

    name = tokens[first - 1].text
    type_text = join_type(tokens[: first - 1])

    accessors: dict[str, str] = {}
    flags: set[str] = set()
    i = first
    while i < len(tokens):
        tok = tokens[i]
        if tok.is_ident(*_FLAG_SPECIFIERS):
            flags.add(tok.text)
            i += 1
        elif tok.is_ident("REVISION") and i + 1 < len(tokens) and tokens[i + 1].is_punct("("):
            i = matching(tokens, i + 1) + 1
        elif tok.is_ident(*_ARG_SPECIFIERS):
            if i + 1 >= len(tokens) or tokens[i + 1].kind not in (IDENT, NUMBER):
                raise ParseError(f"expected argument for {tok.text}")
            accessors[tok.text] = tokens[i + 1].text
            i += 2
        else:
            raise ParseError(f"unexpected `{tok.text}` in property specifiers")

    member = "MEMBER" in accessors
    return PropertySpec(
        type=type_text,
        name=name,
        readable=member or "READ" in accessors,
        writable="CONSTANT" not in flags and (member or "WRITE" in accessors),
        notify=accessors.get("NOTIFY"),
        required="REQUIRED" in flags,
    )


def parse_params(tokens: list[Token]) -> list[tuple[str, str]]:
    """Decompose a parameter list into ``(type, name)`` pairs."""
    chunks = split_top_level(tokens)
    if len(chunks) == 1 and len(chunks[0]) == 1 and chunks[0][0].is_ident("void"):
        return []

    params = []
    for chunk in chunks:
        # drop default values
        for i, tok in enumerate(chunk):
            if tok.is_punct("="):
                chunk = chunk[:i]
                break
        if not chunk:
            continue

        last = chunk[-1]
        named = (
            len(chunk) >= 2
            and last.is_ident()
            and last.text not in _QUALIFIERS
            and last.text not in _BUILTIN_WORDS
            and chunk[-2].kind != SCOPE
        )
        if named:
            params.append((clean_type(chunk[:-1]), last.text))
        else:
            params.append((clean_type(chunk), ""))
    return params


def parse_function(tokens: list[Token]) -> FunctionDecl:
    """Decompose a function declaration (without its leading macro)."""
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.is_punct("[") and i + 1 < len(tokens) and tokens[i + 1].is_punct("["):
            i = matching(tokens, i) + 1
        elif tok.is_ident(*_DECL_SPECIFIERS) or tok.text.startswith("Q_DECL_"):
            i += 1
        else:
            break
    start = i

    angle = 0
    paren = None
    for j in range(start, len(tokens)):
        tok = tokens[j]
        if tok.is_punct("<"):
            angle += 1
        elif tok.is_punct(">"):
            angle -= 1
        elif tok.is_punct("(") and angle <= 0:
            paren = j
            break

    if paren is None or paren == start or not tokens[paren - 1].is_ident():
        raise ParseError("unable to parse function declaration")

    close = matching(tokens, paren)
    return FunctionDecl(
        ret=clean_type(tokens[start : paren - 1]),
        name=tokens[paren - 1].text,
        params=parse_params(tokens[paren + 1 : close]),
    )
