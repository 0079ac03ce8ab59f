"""Module descriptor loading.

A descriptor (``module.md``) is a TOML header, a delimiter line, and a free
text details body::

    name = "Quickshell.Io"
    description = "Io types"
    headers = ["process.hpp"]
    qml_files = ["FileView.qml"]
    -----
    Longer module documentation.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from qmltypegen.errors import ModuleLoadError


@dataclass
class ModuleHeader:
    name: str
    description: str
    headers: list[str] = field(default_factory=list)
    qml_files: list[str] = field(default_factory=list)


@dataclass
class ModuleInfo:
    header: ModuleHeader
    details: str


def parse_module(text: str, delimiter: str = "-----") -> ModuleInfo:
    """Split *text* into its header and details body."""
    header_text, sep, details = text.partition(delimiter)
    if not sep:
        raise ModuleLoadError("could not split module header")

    try:
        data = tomllib.loads(header_text.strip())
    except tomllib.TOMLDecodeError as e:
        raise ModuleLoadError("parsing module info header") from e

    header = ModuleHeader(
        name=_require_str(data, "name"),
        description=_require_str(data, "description"),
        headers=_require_str_list(data, "headers", required=True),
        qml_files=_require_str_list(data, "qml_files", required=False),
    )
    return ModuleInfo(header=header, details=details.strip())


def load_module(path: Path, delimiter: str = "-----") -> ModuleInfo:
    """Read and parse the descriptor at *path*."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ModuleLoadError(f"failed to read module file {path}") from e

    try:
        return parse_module(text, delimiter)
    except ModuleLoadError as e:
        raise ModuleLoadError(f"while loading module file {path}") from e


def _require_str(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ModuleLoadError(f"module header field `{key}` must be a string")
    return value


def _require_str_list(data: dict, key: str, *, required: bool) -> list[str]:
    if key not in data:
        if required:
            raise ModuleLoadError(f"module header is missing `{key}`")
        return []
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ModuleLoadError(f"module header field `{key}` must be a list of strings")
    return value
