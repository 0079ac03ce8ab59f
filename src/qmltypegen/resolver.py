"""Resolve a merged type spec into the final records of one module.

Resolution never fails on a broken reference: anything that cannot be
matched becomes :data:`~qmltypegen.records.UNKNOWN`, so every other type
still gets a usable document.
"""

from __future__ import annotations

import logging
import re

from qmltypegen import model
from qmltypegen.model import HostType, ScriptType, TypeRef, TypeSpec, Unresolved
from qmltypegen.records import (
    UNKNOWN,
    ClassRecord,
    EnumRecord,
    Flag,
    GadgetType,
    ResolvedFunction,
    ResolvedParameter,
    ResolvedProperty,
    ResolvedSignal,
    ResolvedType,
    ResolvedVariant,
    TypeRecord,
)

logger = logging.getLogger(__name__)

_GENERIC_RE = re.compile(r"^(?P<outer>[^<>]+)<(?P<inner>.+)>\s*\**$")


def _scope_match(a: str, b: str) -> bool:
    """True if one name is a ``::``-qualified spelling of the other."""
    return a == b or a.endswith("::" + b) or b.endswith("::" + a)


class _TypeIndex:
    """Lookup tables over a merged spec.

    Every table is ordered by (module, name, internal name) so the first
    match does not depend on the order the specs were concatenated in.
    """

    def __init__(self, spec: TypeSpec, foreign_prefix: str) -> None:
        self.foreign_prefix = foreign_prefix
        self.mappings = sorted(spec.typemap, key=lambda m: (m.module or "", m.name, m.cname))
        self.enums = sorted(spec.enums, key=lambda e: (e.module or "", e.name, e.cname or ""))

        self.by_cname: dict[str, model.TypeMapping] = {}
        for mapping in self.mappings:
            self.by_cname.setdefault(mapping.cname, mapping)

        self.classes: dict[tuple[str, str], model.Class] = {}
        self.classes_by_name: dict[str, model.Class] = {}
        for cls in sorted(spec.classes, key=lambda c: (c.module, c.name)):
            self.classes.setdefault((cls.module, cls.name), cls)
            self.classes_by_name.setdefault(cls.name, cls)

        self.gadgets: dict[str, model.Gadget] = {}
        for gadget in sorted(spec.gadgets, key=lambda g: g.cname):
            self.gadgets.setdefault(gadget.cname, gadget)

    def _resolved(self, module: str | None, name: str) -> ResolvedType:
        return ResolvedType.from_module(module, name, self.foreign_prefix)

    def exposed_host(self, cname: str) -> ResolvedType | None:
        """The exposed type registered for internal name *cname*."""
        mapping = self.by_cname.get(cname)
        if mapping is None:
            mapping = next((m for m in self.mappings if _scope_match(m.cname, cname)), None)
        if mapping is None:
            return None
        return self._resolved(mapping.module, mapping.name)

    def host(self, cname: str) -> ResolvedType:
        found = self.exposed_host(cname)
        if found is not None:
            return found
        for enum in self.enums:
            if enum.cname is not None and _scope_match(enum.cname, cname):
                return self._resolved(enum.module, enum.name)
        return UNKNOWN

    def _module_matches(self, module: str | None, qualifier: str) -> bool:
        if module is None:
            return False
        return module == qualifier or module == self.foreign_prefix + qualifier

    def script(self, name: str) -> ResolvedType:
        """Look up a QML type name, optionally qualified by its module."""
        qualifier, _, short = name.rpartition(".")
        for mapping in self.mappings:
            if mapping.name == short and (
                not qualifier or self._module_matches(mapping.module, qualifier)
            ):
                return self._resolved(mapping.module, mapping.name)
        for enum in self.enums:
            if enum.name == short and (
                not qualifier or self._module_matches(enum.module, qualifier)
            ):
                return self._resolved(enum.module, enum.name)
        return UNKNOWN

    def class_for(self, module: str | None, cname: str) -> model.Class | None:
        if module is not None and (module, cname) in self.classes:
            return self.classes[(module, cname)]
        return self.classes_by_name.get(cname)


class _Resolver:
    def __init__(self, spec: TypeSpec, foreign_prefix: str) -> None:
        self.index = _TypeIndex(spec, foreign_prefix)

    # ------------------------------------------------------------------
    # Type references
    # ------------------------------------------------------------------

    def resolve_type(self, ref: TypeRef) -> ResolvedType:
        if isinstance(ref, Unresolved):
            return UNKNOWN

        text = ref.name.strip()
        m = _GENERIC_RE.match(text)
        if m is not None:
            outer = self._lookup(type(ref)(m.group("outer").strip()))
            inner = self.resolve_type(type(ref)(m.group("inner").strip()))
            return outer.wrapping(inner)
        return self._lookup(type(ref)(text.rstrip("*").strip()))

    def _lookup(self, ref: HostType | ScriptType) -> ResolvedType:
        if isinstance(ref, ScriptType):
            found = self.index.script(ref.name)
        else:
            found = self.index.host(ref.name)
        if found is UNKNOWN:
            logger.debug("Unresolved type %s", ref.name)
        return found

    def resolve_property(self, prop: model.Property) -> ResolvedProperty:
        flags = []
        if prop.default:
            flags.append(Flag.DEFAULT)
        if prop.required:
            flags.append(Flag.REQUIRED)
        if not prop.readable:
            flags.append(Flag.WRITEONLY)
        elif not prop.writable:
            flags.append(Flag.READONLY)

        return ResolvedProperty(self.resolve_value_type(prop.type), prop.details, tuple(flags))

    def resolve_value_type(
        self, ref: TypeRef, seen: tuple[str, ...] = ()
    ) -> ResolvedType | GadgetType:
        """Resolve *ref*, inlining gadgets recursively.

        A gadget already being expanded further up resolves as a plain type.
        """
        if isinstance(ref, HostType):
            gadget = self.index.gadgets.get(ref.name)
            if gadget is not None:
                if gadget.cname not in seen:
                    inner = (*seen, gadget.cname)
                    return GadgetType(
                        {p.name: self.resolve_value_type(p.type, inner) for p in gadget.properties}
                    )
                logger.debug("Gadget %s contains itself: %s", gadget.cname, " -> ".join(seen))
        return self.resolve_type(ref)

    def _params(self, params: tuple[model.Parameter, ...]) -> tuple[ResolvedParameter, ...]:
        return tuple(ResolvedParameter(p.name, self.resolve_type(p.type)) for p in params)

    def resolve_function(self, func: model.Function) -> ResolvedFunction:
        params = self._params(func.params)
        signature = "_".join(p.type.name or "?" for p in params)
        return ResolvedFunction(
            ret=self.resolve_type(func.ret),
            name=func.name,
            id=f"{func.name}({signature})",
            details=func.details,
            params=params,
        )

    def resolve_signal(self, signal: model.Signal) -> ResolvedSignal:
        return ResolvedSignal(signal.name, signal.details, self._params(signal.params))

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def walk_superclasses(self, cls: model.Class) -> tuple[ResolvedType, list[model.Class]]:
        """Follow the superclass chain up to the first exposed type.

        Returns the resolved superclass and the internal-only ancestors
        passed on the way, nearest first.
        """
        ancestors: list[model.Class] = []
        chain = [cls.name]
        current = cls
        ref = cls.superclass
        while True:
            if ref is None or isinstance(ref, Unresolved):
                return UNKNOWN, ancestors
            if isinstance(ref, ScriptType):
                return self.index.script(ref.name), ancestors

            exposed = self.index.exposed_host(ref.name)
            if exposed is not None:
                return exposed, ancestors

            parent = self.index.class_for(current.module, ref.name)
            if parent is None:
                logger.debug("Unresolved superclass %s of %s", ref.name, cls.name)
                return UNKNOWN, ancestors
            if parent.name in chain:
                logger.warning(
                    "Inheritance cycle: %s; treating the superclass of %s as unknown",
                    " -> ".join([*chain, parent.name]),
                    cls.name,
                )
                return UNKNOWN, ancestors

            chain.append(parent.name)
            ancestors.append(parent)
            current = parent
            ref = parent.superclass

    def resolve_class(self, name: str, module: str, cls: model.Class) -> ClassRecord:
        superclass, ancestors = self.walk_superclasses(cls)

        # closest declaration wins
        properties: dict[str, model.Property] = {}
        functions: dict[tuple, model.Function] = {}
        signals: dict[str, model.Signal] = {}
        for owner in [cls, *ancestors]:
            for prop in owner.properties:
                properties.setdefault(prop.name, prop)
            for func in owner.functions:
                functions.setdefault((func.name, tuple(p.type for p in func.params)), func)
            for signal in owner.signals:
                signals.setdefault(signal.name, signal)

        core_enum = next((e for e in cls.enums if e.name == "Enum"), None)
        if core_enum is not None:
            flags: tuple[Flag, ...] = (Flag.ENUM,)
        elif cls.singleton:
            flags = (Flag.SINGLETON,)
        elif cls.uncreatable:
            flags = (Flag.UNCREATABLE,)
        else:
            flags = ()

        resolved_functions = [self.resolve_function(f) for f in functions.values()]
        resolved_functions.sort(key=lambda f: (f.name, f.id))

        return ClassRecord(
            name=name,
            module=module,
            superclass=superclass,
            description=cls.description,
            details=cls.details,
            flags=flags,
            properties={
                n: self.resolve_property(properties[n]) for n in sorted(properties)
            },
            functions=tuple(resolved_functions),
            signals={n: self.resolve_signal(signals[n]) for n in sorted(signals)},
            variants=_variants(core_enum) if core_enum is not None else {},
        )


def _variants(enum: model.Enum) -> dict[str, ResolvedVariant]:
    return {v.name: ResolvedVariant(v.details) for v in enum.variants}


def resolve_types(
    module: str, spec: TypeSpec, *, foreign_prefix: str = "qml."
) -> dict[str, TypeRecord]:
    """Resolve every type exposed by *module* against the merged *spec*.

    Returns exposed name → record, ordered by name.
    """
    resolver = _Resolver(spec, foreign_prefix)
    index = resolver.index
    records: dict[str, TypeRecord] = {}

    for mapping in index.mappings:
        if mapping.module != module:
            continue
        cls = index.classes.get((module, mapping.cname))
        if cls is None:
            # enum companions and classes of other modules
            continue
        if mapping.name in records:
            logger.debug("Duplicate exposed name %s in %s", mapping.name, module)
            continue
        records[mapping.name] = resolver.resolve_class(mapping.name, module, cls)

    for enum in index.enums:
        if enum.module != module:
            continue
        records[enum.name] = EnumRecord(
            name=enum.name,
            module=module,
            description=enum.description,
            details=enum.details,
            variants=_variants(enum),
        )

    logger.debug("Resolved %d types for %s", len(records), module)
    return {name: records[name] for name in sorted(records)}
