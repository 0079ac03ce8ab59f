"""Extractor for reflection-annotated C++ headers."""

from __future__ import annotations

from qmltypegen.extractors.cpp.declarations import CppExtractor, parse_header

__all__ = ["CppExtractor", "parse_header"]
