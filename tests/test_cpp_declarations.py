"""Tests for the annotated C++ header scanner."""

import logging
from pathlib import Path

import pytest

from qmltypegen.errors import ParseError
from qmltypegen.extractors.context import ClassKind, ParseContext
from qmltypegen.extractors.cpp import CppExtractor, parse_header
from qmltypegen.model import HostType, Unresolved

PROCESS_HEADER = """\
#pragma once
#include <QObject>

/// !A running process.
/// More about it.
class Process: public QObject {
	Q_OBJECT;
	QML_ELEMENT;
	/// The command to run.
	Q_PROPERTY(QString command READ command WRITE setCommand NOTIFY commandChanged);
	/// True while running.
	Q_PROPERTY(bool running READ isRunning NOTIFY runningChanged);

public:
	explicit Process(QObject* parent = nullptr);

	/// Send a signal to the process.
	Q_INVOKABLE void sendSignal(qint32 signal, bool group);
	Q_INVOKABLE [[nodiscard]] QString output() const;

signals:
	void commandChanged();
	void runningChanged();
	/// Emitted when the process exits.
	void exited(qint32 exitCode, QProcess::ExitStatus exitStatus);

private:
	QString mCommand;
};
"""


@pytest.fixture
def ctx():
    return ParseContext("Quickshell.Io")


def _only_class(ctx):
    assert len(ctx.classes) == 1
    return ctx.classes[0]


class TestExtractor:
    """Test the extractor protocol surface."""

    def test_can_handle_headers(self):
        extractor = CppExtractor()
        assert extractor.can_handle(Path("process.hpp"))
        assert extractor.can_handle(Path("window.h"))
        assert not extractor.can_handle(Path("Widget.qml"))

    def test_extract_appends_to_context(self, ctx):
        CppExtractor().extract(Path("process.hpp"), PROCESS_HEADER, ctx)
        assert [c.name for c in ctx.classes] == ["Process"]


class TestClassScan:
    """Test a typical reference-type class."""

    def test_class_shape(self, ctx):
        parse_header(PROCESS_HEADER, ctx)
        cls = _only_class(ctx)
        assert cls.kind is ClassKind.OBJECT
        assert cls.name == "Process"
        assert cls.qml_name == "Process"
        assert cls.superclass == HostType("QObject")
        assert cls.comment.text == "/// !A running process.\n/// More about it."

    def test_properties(self, ctx):
        parse_header(PROCESS_HEADER, ctx)
        command, running = _only_class(ctx).properties
        assert command.name == "command"
        assert command.type == HostType("QString")
        assert command.readable and command.writable
        assert command.comment.text == "/// The command to run."
        assert running.name == "running"
        assert running.readable and not running.writable

    def test_invokables(self, ctx):
        parse_header(PROCESS_HEADER, ctx)
        send, output = _only_class(ctx).invokables
        assert send.name == "sendSignal"
        assert send.ret == HostType("void")
        assert [(p.name, p.type) for p in send.params] == [
            ("signal", HostType("qint32")),
            ("group", HostType("bool")),
        ]
        assert send.comment.text == "/// Send a signal to the process."
        assert output.name == "output"
        assert output.ret == HostType("QString")
        assert output.comment is None

    def test_notify_signals_are_excluded(self, ctx):
        parse_header(PROCESS_HEADER, ctx)
        signals = _only_class(ctx).signals
        assert [s.name for s in signals] == ["exited"]
        assert [p.type for p in signals[0].params] == [
            HostType("qint32"),
            HostType("QProcess::ExitStatus"),
        ]
        assert signals[0].comment.text == "/// Emitted when the process exits."

    def test_non_reflectable_class_dropped(self, ctx):
        parse_header("class Helper {\npublic:\n\tint x;\n};\nclass Forward;\n", ctx)
        assert ctx.classes == ()

    def test_nested_classes_are_separate(self, ctx):
        parse_header(
            """
class Outer: public QObject {
	Q_OBJECT;
	QML_ELEMENT;
	class Inner: public QObject {
		Q_OBJECT;
		QML_ELEMENT;
		Q_PROPERTY(int x READ x);
	};
	Q_PROPERTY(int y READ y);
};
""",
            ctx,
        )
        inner, outer = ctx.classes
        assert inner.name == "Inner"
        assert [p.name for p in inner.properties] == ["x"]
        assert outer.name == "Outer"
        assert [p.name for p in outer.properties] == ["y"]

    def test_inline_bodies_do_not_leak(self, ctx):
        parse_header(
            """
class Widget: public QObject {
	Q_OBJECT;
	QML_ELEMENT;
public:
	void helper() { if (x) { Q_PROPERTY(int fake READ fake); } }
	Q_PROPERTY(int real READ real);
};
""",
            ctx,
        )
        assert [p.name for p in _only_class(ctx).properties] == ["real"]

    def test_superclass_selection(self, ctx):
        parse_header(
            """
class A: private Hidden, public virtual ns::Base<int> {
	Q_OBJECT;
};
struct B: Plain {
	Q_GADGET;
};
class C final {
	Q_OBJECT;
};
""",
            ctx,
        )
        a, b, c = ctx.classes
        assert a.superclass == HostType("ns::Base")
        assert b.superclass == HostType("Plain")
        assert b.kind is ClassKind.GADGET
        assert c.name == "C"
        assert c.superclass is None


class TestMacros:
    """Test exposure, override and bookkeeping macros."""

    def test_creatable_override_wins(self, ctx):
        parse_header(
            """
class Foo: public QObject {
	Q_OBJECT;
	QML_ELEMENT;
	QML_UNCREATABLE("");
	QSDOC_CREATABLE;
};
""",
            ctx,
        )
        assert not _only_class(ctx).uncreatable

    def test_uncreatable_and_singleton(self, ctx):
        parse_header(
            """
class Foo: public QObject {
	Q_OBJECT;
	QML_NAMED_ELEMENT(Bar);
	QML_SINGLETON;
	QML_UNCREATABLE("use the singleton");
};
""",
            ctx,
        )
        cls = _only_class(ctx)
        assert cls.qml_name == "Bar"
        assert cls.singleton and cls.uncreatable

    def test_named_element_requires_argument(self, ctx):
        with pytest.raises(ParseError, match="while parsing class `Foo`") as err:
            parse_header("class Foo { Q_OBJECT; QML_NAMED_ELEMENT; };", ctx)
        assert "expected an argument for QML_NAMED_ELEMENT" in str(err.value.__cause__.__cause__)

    def test_default_property(self, ctx):
        parse_header(
            """
class Scope: public QObject {
	Q_OBJECT;
	QML_ELEMENT;
	Q_CLASSINFO("DefaultProperty", "data");
	Q_PROPERTY(QQmlListProperty<QObject> data READ data);
	Q_PROPERTY(int other READ other);
};
""",
            ctx,
        )
        data, other = _only_class(ctx).properties
        assert data.default and not other.default
        assert data.type == HostType("QQmlListProperty<QObject>")

    def test_missing_default_property_is_fatal(self, ctx):
        with pytest.raises(ParseError, match="while parsing class `Scope`") as err:
            parse_header(
                """
class Scope: public QObject {
	Q_OBJECT;
	Q_CLASSINFO("DefaultProperty", "missing");
};
""",
                ctx,
            )
        assert str(err.value.__cause__) == "could not find default property `missing`"

    def test_malformed_property_is_fatal_with_context(self, ctx):
        with pytest.raises(ParseError) as err:
            parse_header("class Bad: public QObject {\n\tQ_OBJECT;\n\tQ_PROPERTY(int);\n};\n", ctx)
        assert str(err.value) == "while parsing class `Bad`"
        assert str(err.value.__cause__) == "while parsing macro `Q_PROPERTY(int)`"
        assert str(err.value.__cause__.__cause__) == "unable to parse Q_PROPERTY"

    def test_type_and_base_overrides(self, ctx):
        parse_header(
            """
class Win: public ProxyWindowBase {
	QSDOC_BASECLASS(PanelWindowInterface);
	Q_OBJECT;
	QSDOC_NAMED_ELEMENT(PanelWindow);
	QSDOC_CNAME(PanelWindowImpl);
	QSDOC_TYPE_OVERRIDE(QQuickItem*);
	Q_PROPERTY(QObject* contentItem READ contentItem);
	Q_PROPERTY(QObject* other READ other);
};
""",
            ctx,
        )
        cls = _only_class(ctx)
        assert cls.superclass == HostType("PanelWindowInterface")
        assert cls.name == "PanelWindowImpl"
        assert cls.qml_name == "PanelWindow"
        content, other = cls.properties
        assert content.type == HostType("QQuickItem*")
        assert other.type == HostType("QObject*")

    def test_base_override_applied_at_end_of_class(self, ctx):
        parse_header(
            "class W: public Impl {\n\tQ_OBJECT;\n\tQSDOC_BASECLASS(Iface);\n};\n", ctx
        )
        assert _only_class(ctx).superclass == HostType("Iface")

    def test_dangling_type_override_is_fatal(self, ctx):
        with pytest.raises(ParseError, match="while parsing class `W`") as err:
            parse_header("class W {\n\tQ_OBJECT;\n\tQSDOC_TYPE_OVERRIDE(Foo);\n};\n", ctx)
        assert "pending type override `Foo`" in str(err.value.__cause__)

    def test_hide(self, ctx):
        parse_header(
            """
class Foo: public QObject {
	Q_OBJECT;
	QSDOC_HIDE Q_PROPERTY(int hidden READ hidden NOTIFY hiddenChanged);
	Q_PROPERTY(int shown READ shown);
public:
	QSDOC_HIDE Q_INVOKABLE void secret();
	Q_INVOKABLE void open();
signals:
	void hiddenChanged();
	QSDOC_HIDE void internalSignal();
	void visibleSignal();
};
""",
            ctx,
        )
        cls = _only_class(ctx)
        assert [p.name for p in cls.properties] == ["shown"]
        assert [f.name for f in cls.invokables] == ["open"]
        assert [s.name for s in cls.signals] == ["visibleSignal"]

    def test_hidden_property_consumes_type_override(self, ctx):
        parse_header(
            """
class Foo: public QObject {
	Q_OBJECT;
	QSDOC_TYPE_OVERRIDE(Bar*);
	QSDOC_HIDE Q_PROPERTY(QObject* hidden READ hidden);
	Q_PROPERTY(int visible READ visible);
};
""",
            ctx,
        )
        (visible,) = _only_class(ctx).properties
        assert visible.name == "visible"
        assert visible.type == HostType("int")

    def test_hidden_property_override_owns_notify(self, ctx):
        parse_header(
            """
class Foo: public QObject {
	Q_OBJECT;
	QSDOC_HIDE QSDOC_PROPERTY_OVERRIDE(int hidden READ hidden NOTIFY hiddenChanged);
signals:
	void hiddenChanged();
	void other();
};
""",
            ctx,
        )
        cls = _only_class(ctx)
        assert cls.properties == ()
        assert [s.name for s in cls.signals] == ["other"]

    def test_unknown_macro_carries_doc(self, ctx):
        parse_header(
            """
class Foo: public QObject {
	Q_OBJECT;
public:
	/// Reload the thing.
	Q_REVISION(2) Q_INVOKABLE void reload();
};
""",
            ctx,
        )
        (reload,) = _only_class(ctx).invokables
        assert reload.comment.text == "/// Reload the thing."

    def test_constructor_invokable_has_unresolved_return(self, ctx):
        parse_header("class Foo {\n\tQ_GADGET;\npublic:\n\tQ_INVOKABLE Foo(int x);\n};\n", ctx)
        (ctor,) = _only_class(ctx).invokables
        assert ctor.ret == Unresolved()


class TestEnums:
    """Test in-class and namespace enums."""

    def test_registered_class_enum(self, ctx):
        parse_header(
            """
class Shape: public QObject {
	Q_OBJECT;
	QML_ELEMENT;
public:
	enum Enum : quint8 {
		/// A round shape.
		Circle = 0,
		Square = 1 << 1,
		Triangle
	};
	Q_ENUM(Enum);

	enum Unregistered { A, B };
};
""",
            ctx,
        )
        cls = _only_class(ctx)
        (enum,) = cls.enums
        assert enum.cname == "Shape::Enum"
        assert enum.enum_name == "Enum"
        assert [v.name for v in enum.variants] == ["Circle", "Square", "Triangle"]
        assert enum.variants[0].comment.text == "/// A round shape."
        assert cls.core_enum() is enum

    def test_registration_through_flags(self, ctx):
        parse_header(
            """
class Panel: public QObject {
	Q_OBJECT;
public:
	enum Edge { Top = 1, Bottom = 2 };
	Q_DECLARE_FLAGS(Edges, Edge);
	Q_FLAG(Edges);
};
""",
            ctx,
        )
        (enum,) = _only_class(ctx).enums
        assert enum.enum_name == "Edge"
        assert enum.cname == "Panel::Edge"

    def test_namespace_enum(self, ctx):
        parse_header(
            """
///! Edges of a window.
namespace Edges { // NOLINT
Q_NAMESPACE;
QML_ELEMENT;

enum Enum {
	/// Top edge.
	Top = 1,
	Left = 2,
};
Q_ENUM_NS(Enum);

}
""",
            ctx,
        )
        assert ctx.classes == ()
        (enum,) = ctx.enums
        assert enum.namespace == "Edges"
        assert enum.cname == "Edges::Enum"
        assert enum.qml_name == "Edges"
        assert enum.comment.text == "///! Edges of a window."
        assert [v.name for v in enum.variants] == ["Top", "Left"]

    def test_namespace_enum_renamed_by_flags(self, ctx):
        parse_header(
            """
namespace qs::Edges {
Q_NAMESPACE;
QML_NAMED_ELEMENT(WindowEdges);
/// Enum doc.
enum Enum { Top = 1, Left = 2 };
Q_DECLARE_FLAGS(Flags, Enum);
}
""",
            ctx,
        )
        (enum,) = ctx.enums
        assert enum.cname == "Edges::Flags"
        assert enum.qml_name == "WindowEdges"
        assert enum.comment.text == "/// Enum doc."

    def test_namespace_with_several_enums_is_skipped(self, ctx, caplog):
        with caplog.at_level(logging.WARNING):
            parse_header(
                "namespace Mixed {\nQML_ELEMENT;\nenum A { X };\nenum B { Y };\n}\n", ctx
            )
        assert ctx.enums == ()
        assert "Namespace Mixed declares 2 enums" in caplog.text

    def test_unexposed_namespace_ignored(self, ctx):
        parse_header("namespace detail {\nenum Internal { X };\n}\n", ctx)
        assert ctx.enums == ()

    def test_classes_inside_namespaces(self, ctx):
        parse_header(
            "namespace qs::io {\nclass Pipe: public QObject {\n\tQ_OBJECT;\n\tQML_ELEMENT;\n};\n}\n",
            ctx,
        )
        assert _only_class(ctx).name == "Pipe"
