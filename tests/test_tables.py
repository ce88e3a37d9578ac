"""
Unit tests for table lookup.

These tests verify:
1. Keyed and positional rows yield their names in row order
2. Indirections around the iterated expression, the table and the rows are unwrapped
3. Rows whose name is a closure, call or nested literal are skipped, other rows still resolve
4. Unknown or malformed rows are issues by default and errors in strict mode
5. Map literal keys resolve for range-key subtest names
6. Literal elements resolve for range-value subtest names
"""

import pytest

from gopick.config import DiscoveryConfig
from gopick.discovery import (
    IssueKind,
    find_collection,
    follow_reference,
    lookup_element_values,
    lookup_map_keys,
    lookup_table_names,
)
from gopick.exceptions import UnexpectedNodeShapeError
from gopick.syntax import (
    Assignment,
    Closure,
    CompositeValue,
    Indirection,
    Invocation,
    KeyedElement,
    Literal,
    Opaque,
    PositionalElement,
)
from tests.helpers.builders import ident, keyed_row, lit, positional_row, table


class TestFollowReference:
    """Tests for following identifiers to their values."""

    def test_identifier_to_value(self, config):
        value = lit("x")
        node, reason = follow_reference(ident("a", Assignment(targets=("a",), values=(value,))), config)
        assert node is value
        assert reason == ""

    def test_chain_of_identifiers(self, config):
        value = lit("x")
        first = Assignment(targets=("a",), values=(value,))
        second = Assignment(targets=("b",), values=(ident("a", first),))
        node, _ = follow_reference(ident("b", second), config)
        assert node is value

    def test_unresolved_identifier(self, config):
        node, reason = follow_reference(ident("cases"), config)
        assert node is None
        assert "not declared" in reason

    def test_parameter_is_not_followed(self, config):
        node, reason = follow_reference(ident("cases", Opaque(node_type="parameter")), config)
        assert node is None
        assert "Opaque" in reason

    def test_depth_is_bounded(self):
        """A chain longer than max_reference_depth stops with a reason."""
        config = DiscoveryConfig(max_reference_depth=2)
        a = Assignment(targets=("a",), values=(lit("x"),))
        b = Assignment(targets=("b",), values=(ident("a", a),))
        c = Assignment(targets=("c",), values=(ident("b", b),))
        node, reason = follow_reference(ident("c", c), config)
        assert node is None
        assert "too deep" in reason

    def test_unwraps_one_indirection_each_side(self, config):
        composite = CompositeValue()
        declared = Assignment(targets=("tests",), values=(Indirection(target=composite),))
        node, _ = follow_reference(Indirection(target=ident("tests", declared)), config)
        assert node is composite


class TestFindCollection:
    """Tests for locating the iterated literal."""

    def test_inline_composite(self, config):
        composite = CompositeValue()
        assert find_collection(composite, config) == (composite, "")

    def test_call_result_is_not_a_table(self, config):
        declared = Assignment(targets=("tests",), values=(Invocation(),))
        collection, reason = find_collection(ident("tests", declared), config)
        assert collection is None
        assert "Invocation" in reason


class TestLookupTableNames:
    """Tests for per-row name lookup."""

    def test_keyed_and_positional_rows(self, config):
        """[{name: "test1"}, {"test2"}] gives test1 then test2."""
        tests = table("tests", [keyed_row(name="test1", line=2), positional_row("test2", "input", line=3)])
        result = lookup_table_names("name", ident("tests", tests), config)

        assert result.names == ["test1", "test2"]
        assert result.lines == [2, 3]
        assert result.issues == []

    def test_keyed_field_in_any_position(self, config):
        tests = table("tests", [keyed_row(input="x", want="y", name="late")])
        assert lookup_table_names("name", ident("tests", tests), config).names == ["late"]

    def test_other_field_name(self, config):
        tests = table("tests", [keyed_row(name="n", desc="described")])
        assert lookup_table_names("desc", ident("tests", tests), config).names == ["described"]

    def test_row_without_field_is_skipped(self, config):
        tests = table("tests", [keyed_row(input="x"), keyed_row(name="ok")])
        result = lookup_table_names("name", ident("tests", tests), config)
        assert result.names == ["ok"]
        assert result.issues[0].kind is IssueKind.AMBIGUOUS

    def test_closure_and_call_names_are_skipped(self, config):
        """Rows named by closures or calls contribute nothing; the others still resolve."""
        tests = table("tests", [
            keyed_row(name=Closure()),
            keyed_row(name="kept"),
            positional_row(Invocation()),
            positional_row(CompositeValue()),
            positional_row("also kept"),
        ])
        result = lookup_table_names("name", ident("tests", tests), config)

        assert result.names == ["kept", "also kept"]
        assert len(result.issues) == 3
        assert all(i.kind is IssueKind.AMBIGUOUS for i in result.issues)

    def test_pointer_rows(self, config):
        """[]*T{&T{name: "a"}} rows are unwrapped."""
        row = keyed_row(name="a").value
        tests = table("tests", [PositionalElement(value=Indirection(target=row))])
        assert lookup_table_names("name", ident("tests", tests), config).names == ["a"]

    def test_pointer_to_table(self, config):
        """tests := &[]T{...} ranged as *tests."""
        composite = CompositeValue(elements=(keyed_row(name="a"),))
        declared = Assignment(targets=("tests",), values=(Indirection(target=composite),))
        source = Indirection(target=ident("tests", declared))
        assert lookup_table_names("name", source, config).names == ["a"]

    def test_map_rows(self, config):
        """map[string]T{"k": {name: "a"}} reads the row, not the key."""
        composite = CompositeValue(elements=(
            KeyedElement(key=lit("k1"), value=keyed_row(name="a").value),
            KeyedElement(key=lit("k2"), value=keyed_row(name="b").value),
        ))
        assert lookup_table_names("name", composite, config).names == ["a", "b"]

    def test_name_from_constant(self, config):
        constant = Assignment(targets=("caseName",), values=(lit("from const"),))
        tests = table("tests", [keyed_row(name=ident("caseName", constant))])
        assert lookup_table_names("name", ident("tests", tests), config).names == ["from const"]

    def test_not_a_row(self, config):
        tests = table("tests", [PositionalElement(value=lit("scalar")), keyed_row(name="a")])
        result = lookup_table_names("name", ident("tests", tests), config)
        assert result.names == ["a"]
        assert len(result.issues) == 1

    def test_unresolvable_source(self, config):
        result = lookup_table_names("name", ident("cases"), config)
        assert not result
        assert result.issues[0].kind is IssueKind.AMBIGUOUS


class TestUnexpectedShapes:
    """Tests for fault containment of unknown row elements."""

    def _broken_table(self):
        broken = PositionalElement(value=CompositeValue(elements=(Opaque(node_type="weird"),)))
        return table("tests", [broken, keyed_row(name="good")])

    def test_skipped_by_default(self, config):
        result = lookup_table_names("name", ident("tests", self._broken_table()), config)
        assert result.names == ["good"]
        assert result.issues[0].kind is IssueKind.UNEXPECTED_SHAPE

    def test_raises_in_strict_mode(self, strict_config):
        with pytest.raises(UnexpectedNodeShapeError):
            lookup_table_names("name", ident("tests", self._broken_table()), strict_config)

    def test_malformed_row_is_skipped(self, config):
        malformed = PositionalElement(value=CompositeValue(elements=None))
        tests = table("tests", [keyed_row(name="first"), malformed, keyed_row(name="last")])
        result = lookup_table_names("name", ident("tests", tests), config)

        assert result.names == ["first", "last"]
        assert [issue.kind for issue in result.issues] == [IssueKind.UNEXPECTED_SHAPE]

    def test_malformed_row_raises_in_strict_mode(self, strict_config):
        tests = table("tests", [PositionalElement(value=CompositeValue(elements=None))])
        with pytest.raises(UnexpectedNodeShapeError) as excinfo:
            lookup_table_names("name", ident("tests", tests), strict_config)
        assert isinstance(excinfo.value.__cause__, TypeError)

    def test_malformed_map_key_is_skipped(self, config):
        composite = CompositeValue(elements=(
            KeyedElement(key=Literal(text=None), value=CompositeValue()),
            KeyedElement(key=lit("ok"), value=CompositeValue()),
        ))
        result = lookup_map_keys(composite, config)

        assert result.names == ["ok"]
        assert result.issues[0].kind is IssueKind.UNEXPECTED_SHAPE


class TestLookupElementValues:
    """Tests for ranging over a collection of names."""

    def test_string_slice(self, config):
        composite = CompositeValue(elements=(PositionalElement(value=lit("a")), PositionalElement(value=lit("b"))))
        declared = Assignment(targets=("names",), values=(composite,))
        assert lookup_element_values(ident("names", declared), config).names == ["a", "b"]

    def test_map_values(self, config):
        composite = CompositeValue(elements=(KeyedElement(key=lit("k"), value=lit("v")),))
        assert lookup_element_values(composite, config).names == ["v"]

    def test_constant_elements(self, config):
        constant = Assignment(targets=("first",), values=(lit("from const"),))
        composite = CompositeValue(elements=(PositionalElement(value=ident("first", constant)),))
        assert lookup_element_values(composite, config).names == ["from const"]

    def test_struct_rows_are_not_names(self, config):
        composite = CompositeValue(elements=(keyed_row(name="a"), PositionalElement(value=lit("b"))))
        result = lookup_element_values(composite, config)

        assert result.names == ["b"]
        assert result.issues[0].kind is IssueKind.AMBIGUOUS

    def test_unknown_element_shape(self, config, strict_config):
        composite = CompositeValue(elements=(Opaque(node_type="weird"), PositionalElement(value=lit("b"))))
        result = lookup_element_values(composite, config)
        assert result.names == ["b"]
        assert result.issues[0].kind is IssueKind.UNEXPECTED_SHAPE

        with pytest.raises(UnexpectedNodeShapeError):
            lookup_element_values(composite, strict_config)


class TestLookupMapKeys:
    """Tests for map key lookup."""

    def test_literal_keys(self, config):
        composite = CompositeValue(elements=(
            KeyedElement(key=lit("first"), value=CompositeValue()),
            KeyedElement(key=lit("second"), value=CompositeValue()),
        ))
        declared = Assignment(targets=("cases",), values=(composite,))
        assert lookup_map_keys(ident("cases", declared), config).names == ["first", "second"]

    def test_slice_has_no_keys(self, config):
        composite = CompositeValue(elements=(keyed_row(name="a"),))
        result = lookup_map_keys(composite, config)
        assert not result
        assert "index" in result.issues[0].reason

    def test_computed_key_is_skipped(self, config):
        composite = CompositeValue(elements=(
            KeyedElement(key=Invocation(), value=CompositeValue()),
            KeyedElement(key=lit("ok"), value=CompositeValue()),
        ))
        assert lookup_map_keys(composite, config).names == ["ok"]
