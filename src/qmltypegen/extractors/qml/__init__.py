"""Extractor for QML component files."""

from __future__ import annotations

from qmltypegen.extractors.qml.component import QmlExtractor, parse_component

__all__ = ["QmlExtractor", "parse_component"]
