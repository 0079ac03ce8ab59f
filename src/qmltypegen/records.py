"""Final, resolved type records: one per exposed type of a module."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Union


class Flag(str, enum.Enum):
    DEFAULT = "default"
    READONLY = "readonly"
    WRITEONLY = "writeonly"
    REQUIRED = "required"
    SINGLETON = "singleton"
    UNCREATABLE = "uncreatable"
    ENUM = "enum"


class TypeSource(str, enum.Enum):
    QT = "qt"  # foreign: provided by the framework or another toolkit
    LOCAL = "local"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResolvedType:
    source: TypeSource
    module: str
    name: str
    of: ResolvedType | None = None  # element type of a container

    @classmethod
    def from_module(
        cls, module: str | None, name: str, foreign_prefix: str = "qml."
    ) -> ResolvedType:
        """Classify *module* as foreign or local.

        A missing module is the framework's own ``qml`` namespace.
        """
        if module is None:
            return cls(TypeSource.QT, "qml", name)
        if module.startswith(foreign_prefix):
            return cls(TypeSource.QT, module, name)
        return cls(TypeSource.LOCAL, module, name)

    def wrapping(self, element: ResolvedType) -> ResolvedType:
        return replace(self, of=element)


UNKNOWN = ResolvedType(TypeSource.UNKNOWN, "", "")


@dataclass(frozen=True)
class GadgetType:
    """A value type inlined as the map of its own properties."""

    properties: dict[str, ResolvedType | GadgetType] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedProperty:
    type: ResolvedType | GadgetType
    details: str | None = None
    flags: tuple[Flag, ...] = ()


@dataclass(frozen=True)
class ResolvedParameter:
    name: str
    type: ResolvedType


@dataclass(frozen=True)
class ResolvedFunction:
    ret: ResolvedType
    name: str
    id: str
    details: str | None = None
    params: tuple[ResolvedParameter, ...] = ()


@dataclass(frozen=True)
class ResolvedSignal:
    name: str
    details: str | None = None
    params: tuple[ResolvedParameter, ...] = ()


@dataclass(frozen=True)
class ResolvedVariant:
    details: str | None = None


@dataclass(frozen=True)
class ClassRecord:
    name: str
    module: str
    superclass: ResolvedType
    description: str | None = None
    details: str | None = None
    flags: tuple[Flag, ...] = ()
    properties: dict[str, ResolvedProperty] = field(default_factory=dict)
    functions: tuple[ResolvedFunction, ...] = ()
    signals: dict[str, ResolvedSignal] = field(default_factory=dict)
    variants: dict[str, ResolvedVariant] = field(default_factory=dict)


@dataclass(frozen=True)
class EnumRecord:
    name: str
    module: str
    description: str | None = None
    details: str | None = None
    variants: dict[str, ResolvedVariant] = field(default_factory=dict)


@dataclass(frozen=True)
class ModuleIndex:
    name: str
    description: str
    details: str


TypeRecord = Union[ClassRecord, EnumRecord]


# ---------------------------------------------------------------------------
# JSON form
# ---------------------------------------------------------------------------


def type_to_dict(type_: ResolvedType) -> dict:
    data = {"type": type_.source.value, "module": type_.module, "name": type_.name}
    if type_.of is not None:
        data["of"] = type_to_dict(type_.of)
    return data


def _flags(flags: tuple[Flag, ...], data: dict) -> dict:
    if flags:
        data["flags"] = [f.value for f in flags]
    return data


def _params(params: tuple[ResolvedParameter, ...]) -> list[dict]:
    return [{"name": p.name, "type": type_to_dict(p.type)} for p in params]


def _value_type_to_dict(type_: ResolvedType | GadgetType) -> dict:
    if isinstance(type_, GadgetType):
        return {
            "gadget": {name: _value_type_to_dict(t) for name, t in type_.properties.items()}
        }
    return type_to_dict(type_)


def _property_to_dict(prop: ResolvedProperty) -> dict:
    return _flags(prop.flags, {"type": _value_type_to_dict(prop.type), "details": prop.details})


def _variants(variants: dict[str, ResolvedVariant]) -> dict:
    return {name: {"details": v.details} for name, v in variants.items()}


def record_to_dict(record: TypeRecord) -> dict:
    """The per-type JSON document."""
    if isinstance(record, EnumRecord):
        return {
            "name": record.name,
            "module": record.module,
            "type": "enum",
            "description": record.description,
            "details": record.details,
            "variants": _variants(record.variants),
        }

    data = {
        "name": record.name,
        "module": record.module,
        "type": "class",
        "super": type_to_dict(record.superclass),
        "description": record.description,
        "details": record.details,
    }
    _flags(record.flags, data)
    data["properties"] = {
        name: _property_to_dict(p) for name, p in record.properties.items()
    }
    data["functions"] = [
        {
            "ret": type_to_dict(f.ret),
            "name": f.name,
            "id": f.id,
            "details": f.details,
            "params": _params(f.params),
        }
        for f in record.functions
    ]
    data["signals"] = {
        name: {"name": s.name, "details": s.details, "params": _params(s.params)}
        for name, s in record.signals.items()
    }
    data["variants"] = _variants(record.variants)
    return data


def module_index_to_dict(index: ModuleIndex) -> dict:
    return {"name": index.name, "description": index.description, "details": index.details}
