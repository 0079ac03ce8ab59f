"""Errors raised by qmltypegen.

Every layer that catches an error re-raises with its own context using
``raise ... from exc``, so the chain reads from the outermost operation down
to the offending macro.
"""

from __future__ import annotations


class TypegenError(Exception):
    """Base class for all intentional qmltypegen failures."""


class ModuleLoadError(TypegenError):
    """A module descriptor or a file it references could not be loaded."""


class TypeSpecError(ModuleLoadError):
    """An intermediate type spec document is unreadable or malformed."""


class ParseError(TypegenError):
    """Annotated source could not be decomposed into declarations."""


def describe(exc: BaseException) -> str:
    """Render *exc* and its causes, outermost first."""
    lines = [f"error: {exc}"]
    cause = exc.__cause__
    while cause is not None:
        lines.append(f"  caused by: {cause}")
        cause = cause.__cause__
    return "\n".join(lines)
