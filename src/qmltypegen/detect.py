"""Discover module descriptors and type spec documents on disk."""

from __future__ import annotations

import logging
from pathlib import Path

from qmltypegen.module import ModuleHeader, load_module

logger = logging.getLogger(__name__)

_SKIP = {".git", ".venv", "__pycache__", "node_modules", "build"}


def discover_modules(
    basedir: Path, descriptor_name: str = "module.md", delimiter: str = "-----"
) -> list[tuple[Path, ModuleHeader]]:
    """Find and load every descriptor below *basedir*, in path order."""
    found = []
    for path in sorted(basedir.rglob(descriptor_name)):
        if any(part in _SKIP for part in path.relative_to(basedir).parts):
            continue
        found.append((path, load_module(path, delimiter).header))
    logger.debug("Found %d module descriptors under %s", len(found), basedir)
    return found


def find_typespec_files(dirs: list[Path]) -> list[Path]:
    """Every ``*.json`` directly inside each of *dirs*, sorted per directory."""
    files: list[Path] = []
    for directory in dirs:
        if not directory.is_dir():
            logger.warning("Type spec directory %s does not exist", directory)
            continue
        files.extend(sorted(p for p in directory.glob("*.json") if p.is_file()))
    return files
