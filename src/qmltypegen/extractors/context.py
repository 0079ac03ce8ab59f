"""Raw declarations and the per-module accumulation context.

Extractors append frozen declaration records to a :class:`ParseContext`.
Once every file of a module has been parsed the context is frozen into a
:class:`~qmltypegen.model.TypeSpec`; the resolver only ever sees the frozen
form.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from qmltypegen import model
from qmltypegen.comments import Comment, process_details, split_description
from qmltypegen.model import TypeRef

logger = logging.getLogger(__name__)


class ClassKind(enum.Enum):
    OBJECT = "object"
    GADGET = "gadget"


@dataclass(frozen=True)
class PropertyInfo:
    type: TypeRef
    name: str
    comment: Comment | None = None
    readable: bool = True
    writable: bool = False
    default: bool = False
    required: bool = False


@dataclass(frozen=True)
class ParamInfo:
    name: str
    type: TypeRef


@dataclass(frozen=True)
class InvokableInfo:
    name: str
    ret: TypeRef
    comment: Comment | None = None
    params: tuple[ParamInfo, ...] = ()


@dataclass(frozen=True)
class SignalInfo:
    name: str
    comment: Comment | None = None
    params: tuple[ParamInfo, ...] = ()


@dataclass(frozen=True)
class VariantInfo:
    name: str
    comment: Comment | None = None


@dataclass(frozen=True)
class EnumInfo:
    namespace: str
    enum_name: str
    qml_name: str
    comment: Comment | None = None
    variants: tuple[VariantInfo, ...] = ()

    @property
    def cname(self) -> str:
        return f"{self.namespace}::{self.enum_name}"


@dataclass(frozen=True)
class ClassInfo:
    kind: ClassKind
    name: str
    qml_name: str | None = None
    superclass: TypeRef | None = None
    singleton: bool = False
    uncreatable: bool = False
    comment: Comment | None = None
    properties: tuple[PropertyInfo, ...] = ()
    invokables: tuple[InvokableInfo, ...] = ()
    signals: tuple[SignalInfo, ...] = ()
    enums: tuple[EnumInfo, ...] = ()

    def core_enum(self) -> EnumInfo | None:
        """The nested enum named ``Enum``, marking the class as an enumeration."""
        return next((e for e in self.enums if e.enum_name == "Enum"), None)


class ParseContext:
    """Builder collecting the declarations found in one module."""

    def __init__(
        self,
        module: str,
        *,
        local_prefix: str = "Quickshell",
        admonition_aliases: dict[str, str] | None = None,
    ) -> None:
        self.module = module
        self.local_prefix = local_prefix
        self.admonition_aliases = admonition_aliases
        self._classes: list[ClassInfo] = []
        self._enums: list[EnumInfo] = []

    @property
    def classes(self) -> tuple[ClassInfo, ...]:
        return tuple(self._classes)

    @property
    def enums(self) -> tuple[EnumInfo, ...]:
        return tuple(self._enums)

    def comment(self, text: str | None) -> Comment | None:
        """Wrap raw comment *text* for this module."""
        if text is None:
            return None
        return Comment(text, self.module)

    def add_class(self, info: ClassInfo) -> None:
        logger.debug(
            "%s: %s class %s (%d properties, %d invokables, %d signals)",
            self.module,
            info.kind.value,
            info.name,
            len(info.properties),
            len(info.invokables),
            len(info.signals),
        )
        self._classes.append(info)

    def add_enum(self, info: EnumInfo) -> None:
        logger.debug("%s: enum %s (%s)", self.module, info.qml_name, info.cname)
        self._enums.append(info)

    # ------------------------------------------------------------------
    # Freezing
    # ------------------------------------------------------------------

    def freeze(self) -> model.TypeSpec:
        """Snapshot the accumulated declarations as a type spec."""
        typemap: list[model.TypeMapping] = []
        for cls in self._classes:
            if cls.qml_name is None:
                continue
            typemap.append(model.TypeMapping(cls.qml_name, cls.name, self.module))
            core = cls.core_enum()
            if core is not None:
                # References to `Class::Enum` resolve to the class itself.
                typemap.append(model.TypeMapping(cls.qml_name, core.cname, self.module))

        return model.TypeSpec(
            typemap=tuple(typemap),
            classes=tuple(self._freeze_class(c) for c in self._classes),
            gadgets=tuple(
                model.Gadget(c.name, tuple(self._freeze_property(p) for p in c.properties))
                for c in self._classes
                if c.kind is ClassKind.GADGET
            ),
            enums=tuple(self._freeze_enum(e) for e in self._enums),
        )

    def _details(self, comment: Comment | None) -> str | None:
        if comment is None:
            return None
        return process_details(
            comment, local_prefix=self.local_prefix, aliases=self.admonition_aliases
        )

    def _description(self, comment: Comment | None) -> tuple[str | None, str | None]:
        if comment is None:
            return None, None
        return split_description(
            comment, local_prefix=self.local_prefix, aliases=self.admonition_aliases
        )

    def _freeze_property(self, prop: PropertyInfo) -> model.Property:
        return model.Property(
            type=prop.type,
            name=prop.name,
            details=self._details(prop.comment),
            readable=prop.readable,
            writable=prop.writable,
            default=prop.default,
            required=prop.required,
        )

    def _freeze_params(self, params: tuple[ParamInfo, ...]) -> tuple[model.Parameter, ...]:
        return tuple(model.Parameter(p.type, p.name) for p in params)

    def _freeze_enum(self, info: EnumInfo) -> model.Enum:
        description, details = self._description(info.comment)
        return model.Enum(
            name=info.qml_name,
            cname=info.cname,
            module=self.module,
            description=description,
            details=details,
            variants=tuple(
                model.Variant(v.name, self._details(v.comment)) for v in info.variants
            ),
        )

    def _freeze_class(self, info: ClassInfo) -> model.Class:
        description, details = self._description(info.comment)
        return model.Class(
            name=info.name,
            module=self.module,
            superclass=info.superclass,
            description=description,
            details=details,
            singleton=info.singleton,
            uncreatable=info.uncreatable,
            properties=tuple(self._freeze_property(p) for p in info.properties),
            functions=tuple(
                model.Function(
                    ret=f.ret,
                    name=f.name,
                    details=self._details(f.comment),
                    params=self._freeze_params(f.params),
                )
                for f in info.invokables
            ),
            signals=tuple(
                model.Signal(
                    name=s.name,
                    details=self._details(s.comment),
                    params=self._freeze_params(s.params),
                )
                for s in info.signals
            ),
            enums=tuple(self._freeze_enum(e) for e in info.enums),
        )
