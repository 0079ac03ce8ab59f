"""Command-line interface for qmltypegen."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from qmltypegen.config import read_config
from qmltypegen.errors import TypegenError, describe
from qmltypegen.pipeline import fulltypegen, gendocs, gentypes

logger = logging.getLogger("qmltypegen")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qmltypegen",
        description="Extract QML type metadata from annotated C++ headers and QML files, and resolve it into documentation data.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) output",
    )
    parser.add_argument(
        "-C",
        "--project-dir",
        type=Path,
        default=Path("."),
        help="Directory to read .qmltypegen.toml or pyproject.toml from (default: .)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("gentypes", help="Write the type spec of one module")
    p.add_argument("module", type=Path, help="Module descriptor (module.md)")
    p.add_argument("output", type=Path, help="Type spec JSON file to write")

    p = sub.add_parser("gendocs", help="Resolve one module and write its documents")
    p.add_argument("module", type=Path, help="Module descriptor (module.md)")
    p.add_argument("datadir", type=Path, help="Directory for resolved JSON documents")
    p.add_argument("templatedir", type=Path, help="Directory for page stubs")
    p.add_argument("typespecs", type=Path, nargs="*", help="Type spec files to resolve against")

    p = sub.add_parser("fulltypegen", help="Run both steps for every module under a directory")
    p.add_argument("basedir", type=Path, help="Directory searched for module descriptors")
    p.add_argument("outdir", type=Path, help="Directory for generated type specs")
    p.add_argument("datadir", type=Path, help="Directory for resolved JSON documents")
    p.add_argument("templatedir", type=Path, help="Directory for page stubs")
    p.add_argument(
        "extra_type_dirs",
        type=Path,
        nargs="*",
        help="Additional directories of type spec files (e.g. Qt's own types)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(message)s")
    if args.verbose:
        logger.setLevel(logging.DEBUG)

    config = read_config(args.project_dir)

    try:
        if args.command == "gentypes":
            gentypes(args.module, args.output, config)
        elif args.command == "gendocs":
            gendocs(args.module, args.datadir, args.templatedir, args.typespecs, config)
        else:
            fulltypegen(
                args.basedir,
                args.outdir,
                args.datadir,
                args.templatedir,
                args.extra_type_dirs,
                config,
            )
    except TypegenError as e:
        logger.error(describe(e))
        sys.exit(1)
