"""Tests for structural tree equivalence and duplicate grouping."""

from __future__ import annotations

from polyast.equivalence import are_equivalent, find_duplicated_groups
from polyast.parser import parse
from tests.conftest import first_expression


class TestAreEquivalent:
    def test_same_node(self) -> None:
        node = first_expression("a + b;")
        assert are_equivalent(node, node)

    def test_same_structure_different_positions(self) -> None:
        assert are_equivalent(first_expression("a + b;"), first_expression("  a  +  b ;"))

    def test_ignores_comments(self) -> None:
        assert are_equivalent(first_expression("a /* x */ + b;"), first_expression("a + b;"))

    def test_identifier_names_matter(self) -> None:
        assert not are_equivalent(first_expression("a;"), first_expression("b;"))

    def test_literal_values_matter(self) -> None:
        assert are_equivalent(first_expression('"x";'), first_expression('"x";'))
        assert not are_equivalent(first_expression('"x";'), first_expression('"y";'))
        assert not are_equivalent(first_expression("0x10;"), first_expression("16;"))

    def test_operators_matter(self) -> None:
        assert not are_equivalent(first_expression("a + b;"), first_expression("a - b;"))
        assert not are_equivalent(first_expression("a = b;"), first_expression("a += b;"))

    def test_jump_kind_and_label(self) -> None:
        assert are_equivalent(first_expression("break foo;"), first_expression("break foo;"))
        assert not are_equivalent(first_expression("break foo;"), first_expression("continue foo;"))
        assert not are_equivalent(first_expression("break foo;"), first_expression("break;"))

    def test_var_and_val_differ(self) -> None:
        assert not are_equivalent(first_expression("var x;"), first_expression("val x;"))

    def test_native_kind_matters(self) -> None:
        assert are_equivalent(first_expression("native [a] { };"), first_expression("native [a] { };"))
        assert not are_equivalent(
            first_expression("native [a] { };"), first_expression("native [b] { };")
        )

    def test_node_classes_matter(self) -> None:
        assert not are_equivalent(first_expression("(a);"), first_expression("a;"))

    def test_none(self) -> None:
        node = first_expression("a;")
        assert are_equivalent(None, None)
        assert not are_equivalent(node, None)
        assert not are_equivalent(None, node)

    def test_lists(self) -> None:
        first = parse("a; b;").declarations
        second = parse("a;\nb;").declarations
        assert are_equivalent(first, second)
        assert not are_equivalent(first, second[:1])
        assert are_equivalent([], [])

    def test_node_against_list(self) -> None:
        node = first_expression("a;")
        assert not are_equivalent(node, [node])


class TestFindDuplicatedGroups:
    def test_groups_in_first_occurrence_order(self) -> None:
        nodes = parse("a; b; a; c; b; a;").declarations
        groups = find_duplicated_groups(nodes)
        assert [[nodes.index(n) for n in g] for g in groups] == [[0, 2, 5], [1, 4]]

    def test_no_duplicates(self) -> None:
        assert find_duplicated_groups(parse("a; b; c;").declarations) == []

    def test_structures(self) -> None:
        nodes = parse("f(x + 1); g(x + 1); f(x + 1);").declarations
        groups = find_duplicated_groups(nodes)
        assert len(groups) == 1
        assert groups[0] == [nodes[0], nodes[2]]

    def test_empty(self) -> None:
        assert find_duplicated_groups([]) == []
