"""Extract the root component of a QML file.

QML files nest child objects with syntax that looks a lot like the root
component's own declarations, so only the *direct* body of the root is
scanned: the text is cut at the first line that opens a nested object.
This is a line heuristic, not a brace-matching parse.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from qmltypegen.errors import ParseError
from qmltypegen.extractors.context import ClassInfo, ClassKind, ParseContext, PropertyInfo
from qmltypegen.model import ScriptType, TypeRef, Unresolved

logger = logging.getLogger(__name__)

_IMPORT_RE = re.compile(r"^\s*import\s+(?P<target>[\w.]+)(?:\s+[\d.]+)?\s+as\s+(?P<alias>\w+)")
_ROOT_RE = re.compile(r"^\s*(?P<base>[A-Za-z_][\w.]*)\s*\{")
_NESTED_RE = re.compile(r"^\s*(?:[\w.]+\s*:\s*)?[A-Z][\w.]*\s*\{")
_PROPERTY_RE = re.compile(
    r"""
    ^\s*
    (?P<modifiers>(?:(?:default|required|readonly)\s+)*)
    property\s+
    (?:/\*\s*(?P<override>[^*]+?)\s*\*/\s*)?
    (?P<type>[\w.]+(?:<[\w.]+>)?)\s+
    (?P<name>\w+)
    """,
    re.VERBOSE,
)
_DOC_RE = re.compile(r"^\s*///")


class QmlExtractor:
    """Populate a parse context from QML component files."""

    def can_handle(self, path: Path) -> bool:
        return path.suffix == ".qml"

    def extract(self, path: Path, text: str, ctx: ParseContext) -> None:
        parse_component(path.name, text, ctx)


def parse_component(filename: str, text: str, ctx: ParseContext) -> None:
    """Append the component defined by *text* (read from *filename*) to *ctx*."""
    lines = text.splitlines()
    aliases = {}
    for line in lines:
        m = _IMPORT_RE.match(line)
        if m:
            aliases[m.group("alias")] = m.group("target")

    root = _find_root(lines)
    if root is None:
        raise ParseError(f"could not find the root component of {filename}")
    index, base = root

    properties = []
    for line, doc in _direct_body(lines[index + 1 :]):
        m = _PROPERTY_RE.match(line)
        if m is None:
            continue
        modifiers = m.group("modifiers").split()
        properties.append(
            PropertyInfo(
                type=_property_type(m.group("override"), m.group("type"), aliases),
                name=m.group("name"),
                comment=ctx.comment(doc),
                readable=True,
                writable="readonly" not in modifiers,
                default="default" in modifiers,
                required="required" in modifiers,
            )
        )

    name = Path(filename).stem
    ctx.add_class(
        ClassInfo(
            kind=ClassKind.OBJECT,
            name=name,
            qml_name=name,
            superclass=ScriptType(_unalias(base, aliases)),
            comment=ctx.comment(_doc_before(lines, index)),
            properties=tuple(properties),
        )
    )


def _find_root(lines: list[str]) -> tuple[int, str] | None:
    for i, line in enumerate(lines):
        if line.lstrip().startswith(("//", "/*", "*", "import", "pragma")):
            continue
        m = _ROOT_RE.match(line)
        if m:
            return i, m.group("base")
    return None


def _doc_before(lines: list[str], index: int) -> str | None:
    """The run of ``///`` lines directly above *index*."""
    start = index
    while start > 0 and _DOC_RE.match(lines[start - 1]):
        start -= 1
    if start == index:
        return None
    return "\n".join(line.strip() for line in lines[start:index])


def _direct_body(lines: list[str]):
    """Yield ``(line, doc)`` for the root component's own lines."""
    doc: list[str] = []
    for line in lines:
        if _DOC_RE.match(line):
            doc.append(line.strip())
            continue

        is_property = _PROPERTY_RE.match(line) is not None
        opens_object = _NESTED_RE.match(line) is not None or (
            is_property and line.rstrip().endswith("{")
        )
        if opens_object and not is_property:
            return
        yield line, "\n".join(doc) if doc else None
        doc = []
        if opens_object:
            return


def _unalias(name: str, aliases: dict[str, str]) -> str:
    head, dot, rest = name.partition(".")
    if dot and head in aliases:
        return f"{aliases[head]}.{rest}"
    return name


def _property_type(override: str | None, declared: str, aliases: dict[str, str]) -> TypeRef:
    if override is not None:
        return ScriptType(_unalias(override, aliases))
    if declared == "alias":
        return Unresolved()
    return ScriptType(_unalias(declared, aliases))
