"""Per-file extractor protocol shared by the C++ and QML parsers."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from qmltypegen.extractors.context import ParseContext


class Extractor(Protocol):
    """Protocol for per-file declaration extractors."""

    def can_handle(self, path: Path) -> bool:
        """Return True if this extractor understands files like *path*."""
        ...

    def extract(self, path: Path, text: str, ctx: ParseContext) -> None:
        """Append every declaration found in *text* to *ctx*."""
        ...
