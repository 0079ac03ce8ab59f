"""Documentation page stubs, filled in from fixed templates."""

from __future__ import annotations

import logging
from pathlib import Path
from string import Template

from qmltypegen.errors import TypegenError

logger = logging.getLogger(__name__)

_TYPE_TEMPLATE_PATH = Path(__file__).with_name("type_page.md")
_MODULE_TEMPLATE_PATH = Path(__file__).with_name("module_page.md")


def _write(text: str, path: Path) -> None:
    try:
        path.write_text(text)
    except OSError as e:
        raise TypegenError(f"while writing {path}") from e


def render_pages(module: str, type_names: list[str], output_dir: Path) -> list[Path]:
    """Write ``<Type>.md`` per exposed type and the module's ``_index.md``."""
    type_template = Template(_TYPE_TEMPLATE_PATH.read_text())
    module_template = Template(_MODULE_TEMPLATE_PATH.read_text())
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for name in type_names:
        path = output_dir / f"{name}.md"
        _write(type_template.safe_substitute(name=name, module=module), path)
        written.append(path)

    path = output_dir / "_index.md"
    _write(module_template.safe_substitute(module=module), path)
    written.append(path)

    logger.debug("Wrote %d pages to %s", len(written), output_dir)
    return written
