"""Extract reflectable classes and namespace enums from annotated C++ headers.

The scanner walks the token stream of a header scope by scope. Class bodies
are brace-matched, so nested classes and inline function bodies never leak
into the enclosing class. Within a class body each statement is one of:
an access specifier, a macro (``Q_PROPERTY(...)``, ``QML_ELEMENT``, ...), a
``Q_INVOKABLE`` method, a nested class or enum, or an ordinary declaration
(which is a signal when it appears in a ``signals:`` section).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path

from qmltypegen.errors import ParseError
from qmltypegen.extractors.context import (
    ClassInfo,
    ClassKind,
    EnumInfo,
    InvokableInfo,
    ParamInfo,
    ParseContext,
    PropertyInfo,
    SignalInfo,
    VariantInfo,
)
from qmltypegen.extractors.cpp.carryover import Carryover, Event, State
from qmltypegen.extractors.cpp.grammar import (
    join_type,
    macro_arguments,
    parse_function,
    parse_property,
    split_top_level,
    string_arguments,
)
from qmltypegen.extractors.cpp.lexer import IDENT, SCOPE, Token, matching, tokenize
from qmltypegen.model import HostType, TypeRef, Unresolved

logger = logging.getLogger(__name__)

_HEADER_SUFFIXES = {".h", ".hh", ".hpp", ".hxx"}

_MACRO_RE = re.compile(r"^(Q|QML|QSDOC)_\w+$")
_ELEMENT_MACROS = {"QML_ELEMENT", "QSDOC_ELEMENT"}
_NAMED_ELEMENT_MACROS = {"QML_NAMED_ELEMENT", "QSDOC_NAMED_ELEMENT"}
_PROPERTY_MACROS = {"Q_PROPERTY", "QSDOC_PROPERTY_OVERRIDE"}
_ENUM_REGISTRATION = {"Q_ENUM", "Q_FLAG", "Q_ENUMS", "Q_FLAGS"}

_ACCESS = {"public", "protected", "private"}
_SIGNAL_SECTIONS = {"signals", "Q_SIGNALS"}
_SLOT_WORDS = {"slots", "Q_SLOTS"}


@dataclass
class _EnumDecl:
    name: str
    doc: str | None
    variants: tuple[VariantInfo, ...]


@dataclass
class _ClassState:
    """Everything accumulated while scanning one class body."""

    name: str
    cname: str
    superclass: TypeRef | None
    kind: ClassKind | None = None
    qml_name: str | None = None
    singleton: bool = False
    uncreatable: bool = False
    force_creatable: bool = False
    default_property: str | None = None
    properties: list[PropertyInfo] = field(default_factory=list)
    invokables: list[InvokableInfo] = field(default_factory=list)
    signals: list[SignalInfo] = field(default_factory=list)
    notify_signals: set[str] = field(default_factory=set)
    enums: list[_EnumDecl] = field(default_factory=list)
    registered_enums: set[str] = field(default_factory=set)
    flag_aliases: dict[str, str] = field(default_factory=dict)
    carryover: Carryover = field(default_factory=Carryover)


class CppExtractor:
    """Populate a parse context from reflection-annotated headers."""

    def can_handle(self, path: Path) -> bool:
        return path.suffix in _HEADER_SUFFIXES

    def extract(self, path: Path, text: str, ctx: ParseContext) -> None:
        parse_header(text, ctx)


def parse_header(text: str, ctx: ParseContext) -> None:
    """Append every class and namespace enum declared in *text* to *ctx*."""
    scanner = _Scanner(text, ctx)
    scanner.scan_scope(0, len(scanner.tokens))


def _single_argument(macro: str, args: str | None) -> str:
    if not args:
        raise ParseError(f"expected an argument for {macro}")
    parts = macro_arguments(args)
    if len(parts) != 1:
        raise ParseError(f"expected exactly one argument for {macro}")
    return parts[0]


def _two_arguments(macro: str, args: str | None) -> tuple[str, str]:
    parts = macro_arguments(args) if args else []
    if len(parts) != 2:
        raise ParseError(f"expected two arguments for {macro}")
    return parts[0], parts[1]


class _Scanner:
    def __init__(self, text: str, ctx: ParseContext) -> None:
        self.text = text
        self.ctx = ctx
        self.tokens = tokenize(text)

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def scan_scope(self, start: int, end: int) -> None:
        """Scan file or namespace scope for classes and namespaces."""
        tokens = self.tokens
        i = start
        while i < end:
            tok = tokens[i]
            if tok.is_ident("namespace"):
                i = self._namespace(i, end)
            elif tok.is_ident("class", "struct"):
                i = self._class(i, end, tok.doc)
            elif tok.is_ident("template"):
                j = self._skip_template(i, end)
                if j < end and tokens[j].is_ident("class", "struct"):
                    i = self._class(j, end, tok.doc)
                else:
                    i = j
            elif tok.is_ident("enum"):
                _, i = self._enum(i, end)
            elif tok.is_punct("{"):
                i = matching(tokens, i, end) + 1
            else:
                i += 1

    def _namespace(self, i: int, end: int) -> int:
        tokens = self.tokens
        doc = tokens[i].doc
        j = i + 1
        name = ""
        while j < end and (tokens[j].is_ident() or tokens[j].kind == SCOPE):
            if tokens[j].is_ident():
                name = tokens[j].text
            j += 1
        if j >= end or not tokens[j].is_punct("{"):
            # namespace alias or malformed, nothing to scan
            return self._declaration_end(j, end)

        close = matching(tokens, j, end)
        if name:
            try:
                self._namespace_enum(name, doc, j + 1, close)
            except ParseError as e:
                raise ParseError(f"while parsing namespace `{name}`") from e
        self.scan_scope(j + 1, close)
        return close + 1

    def _namespace_enum(self, name: str, doc: str | None, start: int, end: int) -> None:
        """Register the enum of an exposed namespace, if it has exactly one."""
        tokens = self.tokens
        exposed = None
        enums: list[_EnumDecl] = []
        flags: dict[str, str] = {}

        i = start
        while i < end:
            tok = tokens[i]
            if tok.is_ident("enum"):
                decl, i = self._enum(i, end)
                if decl is not None:
                    enums.append(decl)
            elif tok.kind == IDENT and _MACRO_RE.match(tok.text):
                i, macro, args, _ = self._read_macro(i, end)
                if macro in _ELEMENT_MACROS:
                    exposed = name
                elif macro in _NAMED_ELEMENT_MACROS:
                    exposed = _single_argument(macro, args)
                elif macro == "Q_DECLARE_FLAGS":
                    flags_name, enum_name = _two_arguments(macro, args)
                    flags[enum_name] = flags_name
            elif tok.is_punct("{"):
                i = matching(tokens, i, end) + 1
            else:
                i += 1

        if exposed is None:
            return
        if len(enums) != 1:
            if enums:
                logger.warning(
                    "Namespace %s declares %d enums, expected one; skipping",
                    name,
                    len(enums),
                )
            return

        decl = enums[0]
        self.ctx.add_enum(
            EnumInfo(
                namespace=name,
                enum_name=flags.get(decl.name, decl.name),
                qml_name=exposed,
                comment=self.ctx.comment(doc or decl.doc),
                variants=decl.variants,
            )
        )

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _class(self, i: int, end: int, doc: str | None) -> int:
        tokens = self.tokens
        keyword = tokens[i].text
        j = i + 1
        name = None
        while j < end:
            tok = tokens[j]
            if tok.is_ident():
                if tok.text != "final":
                    name = tok.text
                j += 1
            elif tok.kind == SCOPE:
                j += 1
            elif tok.is_punct("("):
                # export macros with arguments, alignas(...)
                j = matching(tokens, j, end) + 1
            else:
                break

        if name is None or j >= end:
            return j
        if not (tokens[j].is_punct(":") or tokens[j].is_punct("{")):
            # forward declaration, elaborated type specifier, specialization
            return j

        superclass = None
        if tokens[j].is_punct(":"):
            k = j + 1
            while k < end and not (tokens[k].is_punct("{") or tokens[k].is_punct(";")):
                k += 1
            if k >= end or tokens[k].is_punct(";"):
                return k
            superclass = self._superclass(tokens[j + 1 : k], keyword == "struct")
            j = k

        close = matching(tokens, j, end)
        try:
            info = self._class_body(name, superclass, doc, j + 1, close)
        except ParseError as e:
            raise ParseError(f"while parsing class `{name}`") from e

        if info is None:
            logger.debug("Skipping %s: not a reflectable type", name)
        else:
            self.ctx.add_class(info)
        return close + 1

    def _superclass(self, base_tokens: list[Token], default_public: bool) -> HostType | None:
        """The first publicly inherited base, without template arguments."""
        for part in split_top_level(base_tokens):
            access = None
            words = []
            for tok in part:
                if tok.is_ident(*_ACCESS):
                    access = tok.text
                elif not tok.is_ident("virtual"):
                    words.append(tok)
            if access == "public" or (access is None and default_public):
                name_tokens = []
                for tok in words:
                    if tok.is_punct("<"):
                        break
                    name_tokens.append(tok)
                if name_tokens:
                    return HostType(join_type(name_tokens))
        return None

    def _class_body(
        self,
        name: str,
        superclass: TypeRef | None,
        doc: str | None,
        start: int,
        end: int,
    ) -> ClassInfo | None:
        tokens = self.tokens
        state = _ClassState(name=name, cname=name, superclass=superclass)
        section = "private"
        hide_next = False
        carried_doc = None

        i = start
        while i < end:
            tok = tokens[i]
            stmt_doc = tok.doc or carried_doc
            carried_doc = None

            if tok.is_ident(*_ACCESS, *_SIGNAL_SECTIONS):
                j = i + 1
                if j < end and tokens[j].is_ident(*_SLOT_WORDS):
                    j += 1
                if j < end and tokens[j].is_punct(":"):
                    section = "signals" if tok.text in _SIGNAL_SECTIONS else tok.text
                    i = j + 1
                    continue

            if tok.is_ident("class", "struct"):
                i = self._class(i, end, tok.doc)
                continue
            if tok.is_ident("enum"):
                decl, i = self._enum(i, end)
                if decl is not None:
                    state.enums.append(decl)
                continue
            if tok.is_ident("template"):
                i = self._skip_template(i, end)
                continue

            if tok.kind == IDENT and _MACRO_RE.match(tok.text) and tok.text != "Q_INVOKABLE":
                j, macro, args, macro_text = self._read_macro(i, end)
                if macro == "QSDOC_HIDE":
                    hide_next = True
                    i = j
                    continue
                hidden, hide_next = hide_next, False
                try:
                    if hidden:
                        self._hidden_macro(state, macro, args)
                    elif not self._apply_macro(state, macro, args, stmt_doc):
                        carried_doc = stmt_doc
                except ParseError as e:
                    raise ParseError(f"while parsing macro `{macro_text}`") from e
                i = j
                continue

            hidden, hide_next = hide_next, False
            j = self._declaration_end(i, end)
            if tok.is_ident("Q_INVOKABLE"):
                if not hidden:
                    state.invokables.append(self._invokable(i + 1, j, stmt_doc))
            elif section == "signals" and not hidden:
                signal = self._signal(i, j, stmt_doc)
                if signal is not None:
                    state.signals.append(signal)
            i = j

        self._apply_override(state, state.carryover.feed(Event.END))
        return self._finish_class(state, doc)

    def _finish_class(self, state: _ClassState, doc: str | None) -> ClassInfo | None:
        if state.kind is None:
            return None

        properties = list(state.properties)
        if state.default_property is not None:
            index = next(
                (n for n, p in enumerate(properties) if p.name == state.default_property),
                None,
            )
            if index is None:
                raise ParseError(f"could not find default property `{state.default_property}`")
            properties[index] = replace(properties[index], default=True)

        registered = {state.flag_aliases.get(n, n) for n in state.registered_enums}
        enums = tuple(
            EnumInfo(
                namespace=state.cname,
                enum_name=decl.name,
                qml_name=decl.name,
                comment=self.ctx.comment(decl.doc),
                variants=decl.variants,
            )
            for decl in state.enums
            if decl.name in registered
        )

        return ClassInfo(
            kind=state.kind,
            name=state.cname,
            qml_name=state.qml_name,
            superclass=state.superclass,
            singleton=state.singleton,
            uncreatable=state.uncreatable and not state.force_creatable,
            comment=self.ctx.comment(doc),
            properties=tuple(properties),
            invokables=tuple(state.invokables),
            signals=tuple(s for s in state.signals if s.name not in state.notify_signals),
            enums=enums,
        )

    # ------------------------------------------------------------------
    # Macros
    # ------------------------------------------------------------------

    def _read_macro(self, i: int, end: int) -> tuple[int, str, str | None, str]:
        """Read ``NAME[(args)][;]`` and return (next, name, args, source text)."""
        tokens = self.tokens
        name = tokens[i].text
        j = i + 1
        args = None
        if j < end and tokens[j].is_punct("("):
            close = matching(tokens, j, end)
            if close >= end:
                raise ParseError(f"unterminated arguments for {name}")
            args = self.text[tokens[j].end : tokens[close].start].strip()
            j = close + 1
        source = self.text[tokens[i].start : tokens[j - 1].end]
        if j < end and tokens[j].is_punct(";"):
            j += 1
        return j, name, args, source

    def _apply_macro(
        self, state: _ClassState, macro: str, args: str | None, doc: str | None
    ) -> bool:
        """Apply one class-body macro; False if it is not one we document."""
        if macro in ("Q_OBJECT", "Q_GADGET"):
            state.kind = ClassKind.OBJECT if macro == "Q_OBJECT" else ClassKind.GADGET
            self._apply_override(state, state.carryover.feed(Event.CLASSIFY))
        elif macro in _ELEMENT_MACROS:
            state.qml_name = state.name
        elif macro in _NAMED_ELEMENT_MACROS:
            state.qml_name = _single_argument(macro, args)
        elif macro == "QML_SINGLETON":
            state.singleton = True
        elif macro == "QML_UNCREATABLE":
            state.uncreatable = True
        elif macro == "QSDOC_CREATABLE":
            state.force_creatable = True
        elif macro in _PROPERTY_MACROS:
            self._property(state, macro, args, doc)
        elif macro == "Q_CLASSINFO":
            if not args:
                raise ParseError("expected args for Q_CLASSINFO")
            values = string_arguments(args)
            if len(values) == 2 and values[0] == "DefaultProperty":
                state.default_property = values[1]
        elif macro in _ENUM_REGISTRATION:
            if not args:
                raise ParseError(f"expected args for {macro}")
            state.registered_enums.update(macro_arguments(args))
        elif macro == "Q_DECLARE_FLAGS":
            flags_name, enum_name = _two_arguments(macro, args)
            state.flag_aliases[flags_name] = enum_name
        elif macro == "QSDOC_CNAME":
            state.cname = _single_argument(macro, args)
        elif macro == "QSDOC_TYPE_OVERRIDE":
            value = _single_argument(macro, args)
            self._apply_override(state, state.carryover.feed(Event.TYPE_OVERRIDE, value))
        elif macro == "QSDOC_BASECLASS":
            value = _single_argument(macro, args)
            self._apply_override(state, state.carryover.feed(Event.BASE_OVERRIDE, value))
        else:
            logger.debug("Ignoring macro %s in %s", macro, state.name)
            return False
        return True

    def _hidden_macro(self, state: _ClassState, macro: str, args: str | None) -> None:
        # A hidden property still owns its notify signal and consumes a
        # pending type override.
        if macro not in _PROPERTY_MACROS:
            return
        if not args:
            raise ParseError(f"expected args for {macro}")
        spec = parse_property(args)
        if spec.notify:
            state.notify_signals.add(spec.notify)
        state.carryover.feed(Event.PROPERTY)

    def _property(
        self, state: _ClassState, macro: str, args: str | None, doc: str | None
    ) -> None:
        if not args:
            raise ParseError(f"expected args for {macro}")
        spec = parse_property(args)
        if spec.notify:
            state.notify_signals.add(spec.notify)

        type_text = spec.type
        applied = state.carryover.feed(Event.PROPERTY)
        if applied is not None and applied[0] is State.TYPE_OVERRIDE:
            type_text = applied[1]

        state.properties.append(
            PropertyInfo(
                type=HostType(type_text),
                name=spec.name,
                comment=self.ctx.comment(doc),
                readable=spec.readable,
                writable=spec.writable,
                required=spec.required,
            )
        )

    def _apply_override(self, state: _ClassState, applied: tuple[State, str] | None) -> None:
        if applied is not None and applied[0] is State.BASE_OVERRIDE:
            state.superclass = HostType(applied[1])

    # ------------------------------------------------------------------
    # Functions and signals
    # ------------------------------------------------------------------

    def _declaration_tokens(self, start: int, stop: int) -> list[Token]:
        tokens = self.tokens[start:stop]
        if tokens and tokens[-1].is_punct(";"):
            tokens = tokens[:-1]
        return tokens

    def _invokable(self, start: int, stop: int, doc: str | None) -> InvokableInfo:
        tokens = self._declaration_tokens(start, stop)
        source = self.text[self.tokens[start - 1].start : self.tokens[stop - 1].end]
        try:
            decl = parse_function(tokens)
        except ParseError as e:
            raise ParseError(f"while parsing invokable `{source}`") from e

        return InvokableInfo(
            name=decl.name,
            ret=HostType(decl.ret) if decl.ret else Unresolved(),
            comment=self.ctx.comment(doc),
            params=tuple(ParamInfo(name, HostType(type_)) for type_, name in decl.params),
        )

    def _signal(self, start: int, stop: int, doc: str | None) -> SignalInfo | None:
        tokens = self._declaration_tokens(start, stop)
        if not any(t.is_punct("(") for t in tokens):
            return None
        try:
            decl = parse_function(tokens)
        except ParseError:
            logger.debug("Skipping unparsable signal section entry at line %d", tokens[0].line)
            return None

        return SignalInfo(
            name=decl.name,
            comment=self.ctx.comment(doc),
            params=tuple(ParamInfo(name, HostType(type_)) for type_, name in decl.params),
        )

    # ------------------------------------------------------------------
    # Enums and skipping
    # ------------------------------------------------------------------

    def _enum(self, i: int, end: int) -> tuple[_EnumDecl | None, int]:
        tokens = self.tokens
        doc = tokens[i].doc
        j = i + 1
        if j < end and tokens[j].is_ident("class", "struct"):
            j += 1
        name = None
        if j < end and tokens[j].is_ident():
            name = tokens[j].text
            j += 1
        # skip the underlying type
        while j < end and not (tokens[j].is_punct("{") or tokens[j].is_punct(";")):
            j += 1
        if j >= end or tokens[j].is_punct(";"):
            return None, j + 1

        close = matching(tokens, j, end)
        variants = tuple(
            VariantInfo(part[0].text, self.ctx.comment(part[0].doc))
            for part in split_top_level(tokens[j + 1 : close], angles=False)
            if part[0].is_ident()
        )
        next_index = self._declaration_end(close + 1, end) if close + 1 < end else close + 1
        if name is None:
            return None, next_index
        return _EnumDecl(name, doc, variants), next_index

    def _declaration_end(self, i: int, end: int) -> int:
        """Index just past the declaration starting at *i*."""
        tokens = self.tokens
        j = i
        while j < end:
            tok = tokens[j]
            if tok.is_punct(";"):
                return j + 1
            if tok.is_punct("(") or tok.is_punct("["):
                j = matching(tokens, j, end) + 1
            elif tok.is_punct("{"):
                j = matching(tokens, j, end) + 1
                if j < end and tokens[j].is_punct(";"):
                    return j + 1
                return j
            else:
                j += 1
        return end

    def _skip_template(self, i: int, end: int) -> int:
        tokens = self.tokens
        j = i + 1
        if j >= end or not tokens[j].is_punct("<"):
            return j
        depth = 0
        while j < end:
            if tokens[j].is_punct("<"):
                depth += 1
            elif tokens[j].is_punct(">"):
                depth -= 1
                if depth == 0:
                    return j + 1
            j += 1
        return end
