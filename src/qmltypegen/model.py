"""Intermediate type spec: the mergeable, per-module extraction result.

A type spec never points at another module's data in memory. Cross-module
references are names, resolved later against the merged set of specs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterable, Union

from qmltypegen.errors import TypeSpecError


@dataclass(frozen=True)
class HostType:
    """A type spelled in the annotated host language (C++)."""

    kind: ClassVar[str] = "host"
    name: str


@dataclass(frozen=True)
class ScriptType:
    """A type spelled in the declarative UI language (QML)."""

    kind: ClassVar[str] = "script"
    name: str


@dataclass(frozen=True)
class Unresolved:
    """A declaration whose type could not be determined at parse time."""

    kind: ClassVar[str] = "unresolved"


TypeRef = Union[HostType, ScriptType, Unresolved]


@dataclass(frozen=True)
class TypeMapping:
    """Exposed name → internal name → owning module."""

    name: str
    cname: str
    module: str | None


@dataclass(frozen=True)
class Property:
    type: TypeRef
    name: str
    details: str | None = None
    readable: bool = True
    writable: bool = False
    default: bool = False
    required: bool = False


@dataclass(frozen=True)
class Parameter:
    type: TypeRef
    name: str


@dataclass(frozen=True)
class Function:
    ret: TypeRef
    name: str
    details: str | None = None
    params: tuple[Parameter, ...] = ()


@dataclass(frozen=True)
class Signal:
    name: str
    details: str | None = None
    params: tuple[Parameter, ...] = ()


@dataclass(frozen=True)
class Variant:
    name: str
    details: str | None = None


@dataclass(frozen=True)
class Enum:
    name: str
    cname: str | None
    module: str | None
    description: str | None = None
    details: str | None = None
    variants: tuple[Variant, ...] = ()


@dataclass(frozen=True)
class Class:
    name: str
    module: str
    superclass: TypeRef | None = None
    description: str | None = None
    details: str | None = None
    singleton: bool = False
    uncreatable: bool = False
    properties: tuple[Property, ...] = ()
    functions: tuple[Function, ...] = ()
    signals: tuple[Signal, ...] = ()
    enums: tuple[Enum, ...] = ()


@dataclass(frozen=True)
class Gadget:
    """A plain value type: properties only, no exposed name, no inheritance."""

    cname: str
    properties: tuple[Property, ...] = ()


@dataclass(frozen=True)
class TypeSpec:
    """The four independent collections produced for one or more modules."""

    typemap: tuple[TypeMapping, ...] = ()
    classes: tuple[Class, ...] = ()
    gadgets: tuple[Gadget, ...] = ()
    enums: tuple[Enum, ...] = ()

    @classmethod
    def merge(cls, specs: Iterable[TypeSpec]) -> TypeSpec:
        """Union of *specs* by concatenating each collection."""
        typemap: list[TypeMapping] = []
        classes: list[Class] = []
        gadgets: list[Gadget] = []
        enums: list[Enum] = []
        for spec in specs:
            typemap.extend(spec.typemap)
            classes.extend(spec.classes)
            gadgets.extend(spec.gadgets)
            enums.extend(spec.enums)
        return cls(tuple(typemap), tuple(classes), tuple(gadgets), tuple(enums))


# ---------------------------------------------------------------------------
# JSON form
# ---------------------------------------------------------------------------


def type_ref_to_dict(ref: TypeRef) -> dict:
    if isinstance(ref, Unresolved):
        return {"kind": ref.kind}
    return {"kind": ref.kind, "name": ref.name}


def type_ref_from_dict(data: dict) -> TypeRef:
    kind = data["kind"]
    if kind == HostType.kind:
        return HostType(data["name"])
    if kind == ScriptType.kind:
        return ScriptType(data["name"])
    if kind == Unresolved.kind:
        return Unresolved()
    raise TypeSpecError(f"unknown type reference kind `{kind}`")


def _params_to_list(params: tuple[Parameter, ...]) -> list[dict]:
    return [{"type": type_ref_to_dict(p.type), "name": p.name} for p in params]


def _property_to_dict(prop: Property) -> dict:
    return {
        "type": type_ref_to_dict(prop.type),
        "name": prop.name,
        "details": prop.details,
        "readable": prop.readable,
        "writable": prop.writable,
        "default": prop.default,
        "required": prop.required,
    }


def _enum_to_dict(enum: Enum) -> dict:
    return {
        "name": enum.name,
        "cname": enum.cname,
        "module": enum.module,
        "description": enum.description,
        "details": enum.details,
        "variants": [{"name": v.name, "details": v.details} for v in enum.variants],
    }


def _class_to_dict(cls: Class) -> dict:
    return {
        "name": cls.name,
        "module": cls.module,
        "description": cls.description,
        "details": cls.details,
        "superclass": (
            type_ref_to_dict(cls.superclass) if cls.superclass is not None else None
        ),
        "singleton": cls.singleton,
        "uncreatable": cls.uncreatable,
        "properties": [_property_to_dict(p) for p in cls.properties],
        "functions": [
            {
                "ret": type_ref_to_dict(f.ret),
                "name": f.name,
                "details": f.details,
                "params": _params_to_list(f.params),
            }
            for f in cls.functions
        ],
        "signals": [
            {"name": s.name, "details": s.details, "params": _params_to_list(s.params)}
            for s in cls.signals
        ],
        "enums": [_enum_to_dict(e) for e in cls.enums],
    }


def typespec_to_dict(spec: TypeSpec) -> dict:
    """Serialize *spec* into the JSON document layout."""
    return {
        "typemap": [
            {"name": m.name, "cname": m.cname, "module": m.module}
            for m in spec.typemap
        ],
        "classes": [_class_to_dict(c) for c in spec.classes],
        "gadgets": [
            {"cname": g.cname, "properties": [_property_to_dict(p) for p in g.properties]}
            for g in spec.gadgets
        ],
        "enums": [_enum_to_dict(e) for e in spec.enums],
    }


def _params_from_list(data: list[dict]) -> tuple[Parameter, ...]:
    return tuple(Parameter(type_ref_from_dict(p["type"]), p["name"]) for p in data)


def _property_from_dict(data: dict) -> Property:
    return Property(
        type=type_ref_from_dict(data["type"]),
        name=data["name"],
        details=data.get("details"),
        readable=data["readable"],
        writable=data["writable"],
        default=data.get("default", False),
        required=data.get("required", False),
    )


def _enum_from_dict(data: dict) -> Enum:
    return Enum(
        name=data["name"],
        cname=data.get("cname"),
        module=data.get("module"),
        description=data.get("description"),
        details=data.get("details"),
        variants=tuple(
            Variant(v["name"], v.get("details")) for v in data.get("variants", [])
        ),
    )


def _class_from_dict(data: dict) -> Class:
    superclass = data.get("superclass")
    return Class(
        name=data["name"],
        module=data["module"],
        description=data.get("description"),
        details=data.get("details"),
        superclass=type_ref_from_dict(superclass) if superclass is not None else None,
        singleton=data.get("singleton", False),
        uncreatable=data.get("uncreatable", False),
        properties=tuple(_property_from_dict(p) for p in data.get("properties", [])),
        functions=tuple(
            Function(
                ret=type_ref_from_dict(f["ret"]),
                name=f["name"],
                details=f.get("details"),
                params=_params_from_list(f.get("params", [])),
            )
            for f in data.get("functions", [])
        ),
        signals=tuple(
            Signal(
                name=s["name"],
                details=s.get("details"),
                params=_params_from_list(s.get("params", [])),
            )
            for s in data.get("signals", [])
        ),
        enums=tuple(_enum_from_dict(e) for e in data.get("enums", [])),
    )


def typespec_from_dict(data: dict) -> TypeSpec:
    """Inverse of :func:`typespec_to_dict`."""
    try:
        return TypeSpec(
            typemap=tuple(
                TypeMapping(m["name"], m["cname"], m.get("module"))
                for m in data.get("typemap", [])
            ),
            classes=tuple(_class_from_dict(c) for c in data.get("classes", [])),
            gadgets=tuple(
                Gadget(
                    g["cname"],
                    tuple(_property_from_dict(p) for p in g.get("properties", [])),
                )
                for g in data.get("gadgets", [])
            ),
            enums=tuple(_enum_from_dict(e) for e in data.get("enums", [])),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise TypeSpecError(f"malformed type spec: {e!r}") from e
