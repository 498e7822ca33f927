"""Structural comparison of trees, ignoring ranges, tokens, and comments."""

from __future__ import annotations

from collections.abc import Sequence

from polyast.printer import tree_to_string
from polyast.tree import (
    AssignmentExpression,
    BinaryExpression,
    FunctionDeclaration,
    Identifier,
    IntegerLiteral,
    Jump,
    Literal,
    Loop,
    Modifier,
    Native,
    StringLiteral,
    Tree,
    UnaryExpression,
    VariableDeclaration,
)

# Attributes that must match, beyond the children, for two nodes of the
# same class to be equivalent.
_LEAF_ATTRIBUTES: dict[type[Tree], tuple[str, ...]] = {
    Identifier: ("name",),
    Literal: ("value",),
    StringLiteral: ("value",),
    IntegerLiteral: ("value",),
    BinaryExpression: ("operator",),
    UnaryExpression: ("operator",),
    AssignmentExpression: ("operator",),
    Native: ("native_kind",),
    VariableDeclaration: ("is_val",),
    Loop: ("kind",),
    Jump: ("kind",),
    Modifier: ("kind",),
    FunctionDeclaration: ("is_constructor",),
}


def are_equivalent(
    first: Tree | Sequence[Tree] | None, second: Tree | Sequence[Tree] | None
) -> bool:
    """Return True if both trees (or both node lists) have the same structure."""
    if first is second:
        return True
    if first is None or second is None:
        return False
    if isinstance(first, Tree) or isinstance(second, Tree):
        if not (isinstance(first, Tree) and isinstance(second, Tree)):
            return False
        return _nodes_equivalent(first, second)
    if len(first) != len(second):
        return False
    return all(_nodes_equivalent(a, b) for a, b in zip(first, second))


def _nodes_equivalent(first: Tree, second: Tree) -> bool:
    if first is second:
        return True
    if type(first) is not type(second):
        return False
    for attr in _LEAF_ATTRIBUTES.get(type(first), ()):
        if getattr(first, attr) != getattr(second, attr):
            return False
    first_children = first.children()
    second_children = second.children()
    if len(first_children) != len(second_children):
        return False
    return all(_nodes_equivalent(a, b) for a, b in zip(first_children, second_children))


def find_duplicated_groups(nodes: Sequence[Tree]) -> list[list[Tree]]:
    """Group mutually equivalent nodes; groups of one are dropped.

    Groups and their members keep first-occurrence order.
    """
    buckets: dict[str, list[list[Tree]]] = {}
    groups: list[list[Tree]] = []
    for node in nodes:
        candidates = buckets.setdefault(tree_to_string(node), [])
        for group in candidates:
            if _nodes_equivalent(group[0], node):
                group.append(node)
                break
        else:
            group = [node]
            candidates.append(group)
            groups.append(group)
    return [g for g in groups if len(g) > 1]
