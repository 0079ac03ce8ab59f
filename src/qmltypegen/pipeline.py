"""Orchestrator: descriptor → extract → type spec → resolve → documents."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from qmltypegen.analysis import find_conflicts, find_inheritance_cycles
from qmltypegen.config import Config
from qmltypegen.detect import discover_modules, find_typespec_files
from qmltypegen.errors import ModuleLoadError, ParseError, TypegenError, TypeSpecError
from qmltypegen.extractors.base import Extractor
from qmltypegen.extractors.context import ParseContext
from qmltypegen.extractors.cpp import CppExtractor
from qmltypegen.extractors.qml import QmlExtractor
from qmltypegen.model import TypeSpec, typespec_from_dict, typespec_to_dict
from qmltypegen.module import ModuleInfo, load_module
from qmltypegen.records import ModuleIndex, TypeRecord
from qmltypegen.renderer.documents import write_documents
from qmltypegen.renderer.pages import render_pages
from qmltypegen.resolver import resolve_types

logger = logging.getLogger(__name__)


def _read_sources(base: Path, names: list[str], what: str) -> list[tuple[str, str]]:
    sources = []
    for name in names:
        path = base / name
        try:
            sources.append((name, path.read_text(encoding="utf-8")))
        except OSError as e:
            raise ModuleLoadError(f"failed to read module {what} `{name}` at {path}") from e
    return sources


def _extract_all(
    extractor: Extractor, sources: list[tuple[str, str]], ctx: ParseContext, what: str
) -> None:
    for name, text in sources:
        path = Path(name)
        if not extractor.can_handle(path):
            logger.warning("%s is listed as a %s but has an unexpected extension", name, what)
        try:
            extractor.extract(path, text, ctx)
        except ParseError as e:
            raise ParseError(f"while parsing module {what} `{name}`") from e


def extract_module(module_file: Path, module: ModuleInfo, config: Config) -> TypeSpec:
    """Parse every source a descriptor lists into a frozen type spec."""
    base = module_file.parent
    # read everything before parsing anything
    headers = _read_sources(base, module.header.headers, "header")
    qml_files = _read_sources(base, module.header.qml_files, "qml file")

    ctx = ParseContext(
        module.header.name,
        local_prefix=config.local_module_prefix,
        admonition_aliases=config.admonition_aliases,
    )
    _extract_all(CppExtractor(), headers, ctx, "header")
    _extract_all(QmlExtractor(), qml_files, ctx, "qml file")
    return ctx.freeze()


def write_typespec(spec: TypeSpec, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_text(json.dumps(typespec_to_dict(spec), indent=2) + "\n")
    except OSError as e:
        raise TypegenError(f"saving typespec to {path}") from e


def load_typespec(path: Path) -> TypeSpec:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TypeSpecError(f"attempting to read {path}") from e
    try:
        return typespec_from_dict(json.loads(text))
    except (json.JSONDecodeError, TypeSpecError) as e:
        raise TypeSpecError(f"attempting to parse {path}") from e


def gentypes(module_file: Path, outpath: Path, config: Config | None = None) -> TypeSpec:
    """Extract one module's type spec and write it to *outpath*."""
    config = config or Config()
    module = load_module(module_file, config.delimiter)
    spec = extract_module(module_file, module, config)
    write_typespec(spec, outpath)
    logger.debug(
        "%s: %d mappings, %d classes, %d gadgets, %d enums",
        module.header.name,
        len(spec.typemap),
        len(spec.classes),
        len(spec.gadgets),
        len(spec.enums),
    )
    return spec


def merge_specs(specs: list[TypeSpec]) -> TypeSpec:
    """Merge *specs*, reporting collisions and inheritance cycles."""
    for conflict in find_conflicts(specs):
        logger.warning("Type spec conflict: %s", conflict)
    spec = TypeSpec.merge(specs)
    for cycle in find_inheritance_cycles(spec):
        logger.warning("Inheritance cycle: %s", " -> ".join(cycle))
    return spec


def _write_docs(
    module: ModuleInfo,
    spec: TypeSpec,
    datapath: Path,
    templatepath: Path,
    config: Config,
) -> dict[str, TypeRecord]:
    name = module.header.name
    records = resolve_types(name, spec, foreign_prefix=config.foreign_module_prefix)
    index = ModuleIndex(name, module.header.description, module.details)
    write_documents(records, index, datapath)
    render_pages(name, list(records), templatepath)
    return records


def gendocs(
    module_file: Path,
    datapath: Path,
    templatepath: Path,
    typepaths: Iterable[Path],
    config: Config | None = None,
) -> dict[str, TypeRecord]:
    """Resolve one module against the given type specs and write its documents."""
    config = config or Config()
    module = load_module(module_file, config.delimiter)
    spec = merge_specs([load_typespec(p) for p in typepaths])
    return _write_docs(module, spec, datapath, templatepath, config)


def fulltypegen(
    basedir: Path,
    outpath: Path,
    datapath: Path,
    templatepath: Path,
    extra_type_dirs: Iterable[Path] = (),
    config: Config | None = None,
) -> dict[str, dict[str, TypeRecord]]:
    """Run :func:`gentypes` and then :func:`gendocs` for every module under *basedir*."""
    config = config or Config()
    modules = discover_modules(basedir, config.descriptor_name, config.delimiter)

    logger.info("Generating types -> %s", outpath)
    for path, header in modules:
        mod_outpath = outpath / f"{header.name}.json"
        logger.info("Gentypes :: %s (%s) -> %s", path, header.name, mod_outpath)
        gentypes(path, mod_outpath, config)

    typedirs = [*extra_type_dirs, outpath]
    logger.info("Generating docs %s -> %s", [str(d) for d in typedirs], datapath)
    spec = merge_specs([load_typespec(p) for p in find_typespec_files(typedirs)])

    results = {}
    for path, header in modules:
        mod_datapath = datapath / header.name
        mod_templatepath = templatepath / header.name
        logger.info("Gendocs :: %s (%s) -> %s", path, header.name, mod_datapath)
        module = load_module(path, config.delimiter)
        results[header.name] = _write_docs(module, spec, mod_datapath, mod_templatepath, config)
    return results
