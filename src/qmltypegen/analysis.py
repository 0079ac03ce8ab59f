"""Consistency checks over merged type specs (conflicts, inheritance cycles)."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from qmltypegen.model import HostType, TypeSpec


@dataclass(frozen=True)
class Conflict:
    """Two or more specs registering the same key."""

    table: str  # "typemap", "classes", "gadgets" or "enums"
    key: tuple[str, ...]
    count: int

    def __str__(self) -> str:
        return f"{self.table}: {'/'.join(self.key)} registered {self.count} times"


def find_conflicts(specs: Iterable[TypeSpec]) -> list[Conflict]:
    """Index every spec's entries by their identity and report collisions.

    Type mappings are keyed by (module, exposed name); the companion entry
    an enum-carrying class registers for its nested ``Enum`` shares the
    exposed name on purpose and is not counted. Classes and enums are keyed
    by (module, name), gadgets by internal name.
    """
    counts: dict[tuple[str, tuple[str, ...]], int] = defaultdict(int)
    for spec in specs:
        for mapping in spec.typemap:
            if mapping.cname.endswith("::Enum"):
                continue
            counts[("typemap", (mapping.module or "", mapping.name))] += 1
        for cls in spec.classes:
            counts[("classes", (cls.module, cls.name))] += 1
        for gadget in spec.gadgets:
            counts[("gadgets", (gadget.cname,))] += 1
        for enum in spec.enums:
            counts[("enums", (enum.module or "", enum.name))] += 1

    return [
        Conflict(table, key, count)
        for (table, key), count in sorted(counts.items())
        if count > 1
    ]


def find_inheritance_cycles(spec: TypeSpec) -> list[list[str]]:
    """Return the groups of internal class names whose superclass chains loop.

    Every class has at most one host superclass, so the chain from each class
    is followed until it leaves the known classes or meets a class seen
    before. Meeting a class on the current path closes a cycle. A class
    naming itself as its own base is reported as a single-element cycle.
    """
    parent: dict[str, str | None] = {}
    for cls in spec.classes:
        base = cls.superclass.name if isinstance(cls.superclass, HostType) else None
        parent.setdefault(cls.name, base)

    walked: set[str] = set()
    cycles: list[list[str]] = []
    for start in parent:
        path: list[str] = []
        name = start
        while name in parent and name not in walked and name not in path:
            path.append(name)
            name = parent[name]
        if name in path:
            cycles.append(path[path.index(name):])
        walked.update(path)
    return cycles
