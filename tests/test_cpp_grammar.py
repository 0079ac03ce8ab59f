"""Tests for the C++ tokenizer, macro grammars and carryover state machine."""

import pytest

from qmltypegen.errors import ParseError
from qmltypegen.extractors.cpp.carryover import Carryover, Event, State
from qmltypegen.extractors.cpp.grammar import (
    macro_arguments,
    parse_function,
    parse_property,
    string_arguments,
)
from qmltypegen.extractors.cpp.lexer import IDENT, PUNCT, matching, tokenize


class TestTokenize:
    """Test token kinds and doc comment attachment."""

    def test_doc_lines_attach_to_next_token(self):
        tokens = tokenize("/// first\n/// second\nint x;")
        assert [t.text for t in tokens] == ["int", "x", ";"]
        assert tokens[0].doc == "/// first\n/// second"
        assert tokens[1].doc is None

    def test_plain_comment_breaks_doc_run(self):
        tokens = tokenize("/// doc\n// plain\nint x;")
        assert tokens[0].doc is None

    def test_quadruple_slash_is_not_doc(self):
        tokens = tokenize("//// banner\nint x;")
        assert tokens[0].doc is None

    def test_preprocessor_and_block_comments_dropped(self):
        tokens = tokenize('#include <QObject>\n/* block\n */ class A;')
        assert [t.text for t in tokens] == ["class", "A", ";"]
        assert tokens[0].line == 3

    def test_scope_and_strings(self):
        tokens = tokenize('ns::Type x = "a,b";')
        assert [t.kind for t in tokens[:3]] == [IDENT, "scope", IDENT]
        assert tokens[-2].text == '"a,b"'

    def test_matching_skips_nested_brackets(self):
        tokens = tokenize("f(a, (b), [c]) {}")
        assert tokens[matching(tokens, 1)].text == ")"
        assert matching(tokens, 1) == 11

    def test_matching_unclosed_returns_end(self):
        tokens = tokenize("{ a ( b")
        assert matching(tokens, 0) == len(tokens)
        assert tokens[0].kind == PUNCT


class TestParseProperty:
    """Test Q_PROPERTY argument decomposition."""

    def test_read_write_notify(self):
        spec = parse_property("QString name READ name WRITE setName NOTIFY nameChanged")
        assert spec.type == "QString"
        assert spec.name == "name"
        assert spec.readable and spec.writable
        assert spec.notify == "nameChanged"
        assert not spec.required

    def test_constant_is_not_writable(self):
        spec = parse_property("QList<int> values READ values CONSTANT")
        assert spec.type == "QList<int>"
        assert spec.readable and not spec.writable

    def test_member_is_read_write(self):
        spec = parse_property("qreal x MEMBER mX")
        assert spec.readable and spec.writable

    def test_write_only(self):
        spec = parse_property("bool flag WRITE setFlag")
        assert not spec.readable and spec.writable

    def test_pointer_type_revision_required(self):
        spec = parse_property("QQuickItem* item READ item REVISION(2) REQUIRED FINAL")
        assert spec.type == "QQuickItem*"
        assert spec.name == "item"
        assert spec.required

    def test_missing_specifiers(self):
        with pytest.raises(ParseError, match="unable to parse Q_PROPERTY"):
            parse_property("int")

    def test_missing_specifier_argument(self):
        with pytest.raises(ParseError, match="expected argument for READ"):
            parse_property("int x READ")

    def test_unknown_specifier(self):
        with pytest.raises(ParseError, match="unexpected `BOGUS`"):
            parse_property("int x READ x BOGUS")


class TestParseFunction:
    """Test method and signal declaration decomposition."""

    def test_params_strip_const_reference_and_defaults(self):
        decl = parse_function(tokenize("void run(const QString& command, int timeout = 5)"))
        assert decl.ret == "void"
        assert decl.name == "run"
        assert decl.params == [("QString", "command"), ("int", "timeout")]

    def test_specifiers_and_pointers(self):
        decl = parse_function(tokenize("static QObject* create(QQmlEngine* engine) const"))
        assert decl.ret == "QObject*"
        assert decl.params == [("QQmlEngine*", "engine")]

    def test_attribute_and_nested_templates(self):
        decl = parse_function(tokenize("[[nodiscard]] QList<QPair<int, int>> pairs()"))
        assert decl.ret == "QList<QPair<int, int>>"
        assert decl.name == "pairs"
        assert decl.params == []

    def test_void_and_unnamed_params(self):
        assert parse_function(tokenize("void clear(void)")).params == []
        assert parse_function(tokenize("void set(int)")).params == [("int", "")]
        assert parse_function(tokenize("void set(unsigned int)")).params == [
            ("unsigned int", "")
        ]

    def test_scoped_param_type(self):
        decl = parse_function(tokenize("void exited(qint32 code, QProcess::ExitStatus status)"))
        assert decl.params == [("qint32", "code"), ("QProcess::ExitStatus", "status")]

    def test_not_a_function(self):
        with pytest.raises(ParseError, match="unable to parse function declaration"):
            parse_function(tokenize("int value"))


class TestMacroArguments:
    """Test generic macro argument splitting."""

    def test_top_level_commas(self):
        assert macro_arguments("Flags, QMap<int, int>") == ["Flags", "QMap<int, int>"]

    def test_string_arguments(self):
        assert string_arguments('"DefaultProperty", "data"') == ["DefaultProperty", "data"]

    def test_string_arguments_reject_identifiers(self):
        with pytest.raises(ParseError, match="expected string literal"):
            string_arguments("DefaultProperty")


class TestCarryover:
    """Test pending override transitions."""

    def test_type_override_applies_to_next_property(self):
        carry = Carryover()
        assert carry.feed(Event.TYPE_OVERRIDE, "QQuickItem*") is None
        assert carry.feed(Event.CLASSIFY) is None
        assert carry.feed(Event.PROPERTY) == (State.TYPE_OVERRIDE, "QQuickItem*")
        assert carry.state is State.NONE
        assert carry.feed(Event.PROPERTY) is None

    def test_base_override_waits_past_properties(self):
        carry = Carryover()
        carry.feed(Event.BASE_OVERRIDE, "Base")
        assert carry.feed(Event.PROPERTY) is None
        assert carry.feed(Event.END) == (State.BASE_OVERRIDE, "Base")

    def test_base_override_then_type_override(self):
        carry = Carryover()
        carry.feed(Event.BASE_OVERRIDE, "Base")
        assert carry.feed(Event.TYPE_OVERRIDE, "T") == (State.BASE_OVERRIDE, "Base")
        assert carry.state is State.TYPE_OVERRIDE
        assert carry.value == "T"

    def test_dangling_type_override_is_an_error(self):
        carry = Carryover()
        carry.feed(Event.TYPE_OVERRIDE, "T")
        with pytest.raises(ParseError, match="unexpected end of class"):
            carry.feed(Event.END)

    def test_consecutive_type_overrides_are_an_error(self):
        carry = Carryover()
        carry.feed(Event.TYPE_OVERRIDE, "A")
        with pytest.raises(ParseError, match="pending type override `A`"):
            carry.feed(Event.TYPE_OVERRIDE, "B")
