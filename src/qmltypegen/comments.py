"""Documentation comment normalization.

Raw ``///`` comment blocks are stripped of their leaders, admonitions are
rewritten into the documentation engine's block form, and ``@@`` cross
references become placeholders that the page templates expand into links.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_LEADER = "///"

_CALLOUT_RE = re.compile(r"^>[ \t]*\[!(\w+)\][ \t]+(?=\S)", re.MULTILINE)

# Characters that end a cross reference. `$` is an explicit terminator and is
# consumed along with the reference.
_SEPARATORS = {"$": True, " ": False, ",": False, ";": False, ":": False}

DEFAULT_ADMONITION_ALIASES = {"INFO": "NOTE"}


@dataclass(frozen=True)
class Comment:
    """An attached comment block and the module it was written in."""

    text: str
    module: str


@dataclass(frozen=True)
class TypeLink:
    """A parsed ``@@`` reference."""

    module: str | None
    name: str | None
    member: str
    kind: str  # "prop", "func", "signal", or "" for a bare type


def normalize(text: str) -> str:
    """Strip comment leaders and drop leading blank lines."""
    lines = []
    seen_content = False
    for line in text.splitlines():
        line = line.strip()
        if line.startswith(_LEADER):
            line = line[len(_LEADER):]
            line = line.removeprefix(" ")
        if not line and not seen_content:
            continue
        seen_content = True
        lines.append(line + "\n")
    return "".join(lines)


def reformat_admonitions(text: str, aliases: dict[str, str] | None = None) -> str:
    """Rewrite ``> [!LABEL] text`` into the two-line callout form."""
    if aliases is None:
        aliases = DEFAULT_ADMONITION_ALIASES
    for alias, canonical in aliases.items():
        text = text.replace(f"> [!{alias}]", f"> [!{canonical}]")
    return _CALLOUT_RE.sub(lambda m: f"> [!{m.group(1)}]\n> ", text)


def parse_type_link(ref: str, module: str) -> TypeLink:
    """Decompose the text following ``@@`` (without terminator)."""
    if not ref:
        return TypeLink(None, None, "", "")

    if ref[0].islower():
        type_module, name, member = None, None, ref
    else:
        rest, _, last = ref.rpartition(".")
        member = ""
        if last[:1].islower():
            member = last
            rest, _, last = rest.rpartition(".")
        type_module, name = rest or module, last

    if member.endswith("()"):
        return TypeLink(type_module, name, member[:-2], "func")
    if member.endswith("(s)"):
        return TypeLink(type_module, name, member[:-3], "signal")
    if member:
        return TypeLink(type_module, name, member, "prop")
    return TypeLink(type_module, name, "", "")


def format_type_link(link: TypeLink, local_prefix: str = "Quickshell") -> str:
    """Render *link* as a template placeholder."""
    out = "TYPE"
    if link.name is not None:
        module = link.module or ""
        out += "99MQS" if module.startswith(local_prefix) else "99MQT_qml"
        for part in module.split("."):
            out += "_" + part
        out += "99N" + link.name
    if link.member:
        out += f"99V{link.member}99T{link.kind}"
    return out + "99TYPE"


def reformat_type_links(text: str, module: str, local_prefix: str = "Quickshell") -> str:
    """Replace every ``@@`` reference in *text*."""
    if "@@" not in text:
        return text
    return "".join(
        _reformat_line(line, module, local_prefix)
        for line in text.splitlines(keepends=True)
    )


def _reformat_line(line: str, module: str, local_prefix: str) -> str:
    body = line.rstrip("\n")
    newline = line[len(body):]
    out = []
    src = body
    while (i := src.find("@@")) != -1:
        out.append(src[:i])
        src = src[i + 2:]

        ref, end, consumed = src, len(src), False
        for pos, char in enumerate(src):
            if char in _SEPARATORS:
                ref, end, consumed = src[:pos], pos, _SEPARATORS[char]
                break

        # `.` is valid inside a reference, so a trailing one ends a sentence
        if ref.endswith("."):
            ref = ref[:-1]

        out.append(format_type_link(parse_type_link(ref, module), local_prefix))
        out.append(src[len(ref):end])
        src = src[end + 1:] if consumed else src[end:]
    out.append(src)
    return "".join(out) + newline


def process_details(
    comment: Comment,
    *,
    local_prefix: str = "Quickshell",
    aliases: dict[str, str] | None = None,
) -> str:
    """Produce the full normalized documentation text for *comment*."""
    text = normalize(comment.text)
    text = reformat_admonitions(text, aliases)
    return reformat_type_links(text, comment.module, local_prefix)


def split_description(
    comment: Comment,
    *,
    local_prefix: str = "Quickshell",
    aliases: dict[str, str] | None = None,
) -> tuple[str | None, str | None]:
    """Return ``(summary, details)``.

    A block starting with ``!`` carries its summary up to the first line
    break; any other block is details only.
    """
    details = process_details(comment, local_prefix=local_prefix, aliases=aliases)
    if not details.startswith("!"):
        return None, details or None

    summary, _, rest = details[1:].partition("\n")
    return summary.removeprefix(" "), rest or None
