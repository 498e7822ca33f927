"""Indented text rendering of trees, used by --debug and duplicate grouping."""

from __future__ import annotations

import io
import sys
from collections.abc import Sequence
from typing import TextIO

from polyast.tree import (
    AssignmentExpression,
    BinaryExpression,
    Identifier,
    IntegerLiteral,
    Literal,
    Native,
    StringLiteral,
    Tree,
    UnaryExpression,
    VariableDeclaration,
)


def dump_tree(tree: Tree, *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable tree to *file*."""
    _dump(tree, 0, file)


def tree_to_string(trees: Tree | Sequence[Tree]) -> str:
    """Render one tree, or several separated by a newline."""
    if isinstance(trees, Tree):
        out = io.StringIO()
        _dump(trees, 0, out)
        return out.getvalue()
    return "\n".join(tree_to_string(t) for t in trees)


def _indent(depth: int) -> str:
    return "  " * depth


def _label(node: Tree) -> str:
    name = type(node).__name__
    if isinstance(node, (BinaryExpression, AssignmentExpression, UnaryExpression)):
        return f"{name} {node.operator.name}"
    if isinstance(node, (Literal, StringLiteral, IntegerLiteral)):
        return f"{name} {node.value}"
    if isinstance(node, Identifier):
        return f"{name} {node.name}"
    if isinstance(node, Native):
        return f"{name} {node.native_kind}"
    if isinstance(node, VariableDeclaration):
        return f"{name} {node.identifier.name}"
    return name


def _dump(node: Tree, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}{_label(node)}\n")
    for child in node.children():
        _dump(child, depth + 1, f)
