"""Tool configuration read from ``.qmltypegen.toml`` or ``pyproject.toml``."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Settings shared by the extraction and resolution steps."""

    descriptor_name: str = "module.md"
    delimiter: str = "-----"
    # Cross-reference modules starting with this are linked as local docs.
    local_module_prefix: str = "Quickshell"
    # Resolved modules starting with this are foreign (Qt) types.
    foreign_module_prefix: str = "qml."
    admonition_aliases: dict[str, str] = field(
        default_factory=lambda: {"INFO": "NOTE"}
    )


def read_config(project_dir: Path) -> Config:
    """Read settings for *project_dir*, falling back to defaults."""
    table = _read_table(project_dir)
    if not table:
        return Config()

    known = {f.name for f in fields(Config)}
    values = {k: v for k, v in table.items() if k in known}
    ignored = sorted(set(table) - known)
    if ignored:
        logger.debug("Ignoring unknown config keys: %s", ", ".join(ignored))
    return Config(**values)


def _read_table(project_dir: Path) -> dict | None:
    # Try .qmltypegen.toml first
    own_toml = project_dir / ".qmltypegen.toml"
    if own_toml.exists():
        try:
            with open(own_toml, "rb") as f:
                data = tomllib.load(f)
            return data.get("qmltypegen", {})
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Could not read %s: %s", own_toml, e)

    # Fall back to [tool.qmltypegen] in pyproject.toml
    pyproject = project_dir / "pyproject.toml"
    if pyproject.exists():
        try:
            with open(pyproject, "rb") as f:
                data = tomllib.load(f)
            return data.get("tool", {}).get("qmltypegen", {})
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Could not read %s: %s", pyproject, e)

    return None
