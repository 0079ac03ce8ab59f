"""Write resolved per-type documents and the module index as JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from qmltypegen.errors import TypegenError
from qmltypegen.records import ModuleIndex, TypeRecord, module_index_to_dict, record_to_dict

logger = logging.getLogger(__name__)


def _write_json(data: dict, path: Path) -> None:
    try:
        path.write_text(json.dumps(data, indent=2) + "\n")
    except OSError as e:
        raise TypegenError(f"while writing {path}") from e


def write_documents(
    records: dict[str, TypeRecord], index: ModuleIndex, output_dir: Path
) -> list[Path]:
    """Write ``<Type>.json`` for every record plus ``index.json``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, record in records.items():
        path = output_dir / f"{name}.json"
        _write_json(record_to_dict(record), path)
        written.append(path)

    path = output_dir / "index.json"
    _write_json(module_index_to_dict(index), path)
    written.append(path)

    logger.debug("Wrote %d documents to %s", len(written), output_dir)
    return written
