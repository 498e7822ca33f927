"""Sample checks built on the check API, and the registry the CLI loads them from."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from polyast.checks import Check, CheckContext, InitContext, SecondaryLocation
from polyast.equivalence import are_equivalent
from polyast.ranges import TextRange
from polyast.tree import (
    BinaryExpression,
    BinaryOperator,
    FunctionDeclaration,
    Modifier,
    ModifierKind,
    ParenthesizedExpression,
    PlaceHolder,
    TopLevel,
    Tree,
)


def skip_parentheses(tree: Tree) -> Tree:
    while isinstance(tree, ParenthesizedExpression):
        tree = tree.expression
    return tree


def contains_placeholder(tree: Tree) -> bool:
    return any(isinstance(node, PlaceHolder) for node in tree.descendants())


class IdenticalBinaryOperandCheck:
    """Flag binary expressions whose two operands are the same expression."""

    key = "identical-binary-operand"
    message = "Correct one of the identical sub-expressions on both sides this operator"

    def initialize(self, init: InitContext) -> None:
        init.register(BinaryExpression, self._check)

    def _check(self, ctx: CheckContext, tree: BinaryExpression) -> None:
        if tree.operator in (BinaryOperator.PLUS, BinaryOperator.TIMES):
            return
        if contains_placeholder(tree):
            return
        if are_equivalent(skip_parentheses(tree.left), skip_parentheses(tree.right)):
            ctx.report_issue(tree.right, self.message, SecondaryLocation.of(tree.left))


class TodoCommentCheck:
    """Flag comments containing a TODO marker."""

    key = "todo-comment"
    message = "Complete the task associated to this TODO comment."

    # "todo" not preceded by a letter
    _pattern = re.compile(r"(?:^|[\W\d_])(todo)", re.IGNORECASE)

    def initialize(self, init: InitContext) -> None:
        init.register(TopLevel, self._check)

    def _check(self, ctx: CheckContext, tree: TopLevel) -> None:
        for comment in tree.all_comments:
            match = self._pattern.search(comment.text)
            if match is None:
                continue
            prefix = comment.text[: match.start(1)]
            start = comment.text_range.start
            lines = prefix.split("\n")
            if len(lines) == 1:
                line, offset = start.line, start.line_offset + len(prefix)
            else:
                line, offset = start.line + len(lines) - 1, len(lines[-1])
            ctx.report_issue(TextRange.of(line, offset, line, offset + 4), self.message)


class TooManyParametersCheck:
    """Flag functions declaring more than ``max`` parameters.

    Overriding functions and constructors are ignored, since their
    signature is imposed elsewhere.
    """

    key = "too-many-parameters"
    DEFAULT_MAX = 7

    def __init__(self, max: int = DEFAULT_MAX) -> None:
        self.max = max

    def initialize(self, init: InitContext) -> None:
        init.register(FunctionDeclaration, self._check)

    def _check(self, ctx: CheckContext, tree: FunctionDeclaration) -> None:
        if tree.is_constructor or self._is_override(tree):
            return
        count = len(tree.formal_parameters)
        if count <= self.max:
            return
        message = (
            f"This function has {count} parameters, which is greater than the "
            f"{self.max} authorized."
        )
        secondaries = [SecondaryLocation.of(p) for p in tree.formal_parameters[self.max :]]
        ctx.report_issue(tree.name if tree.name is not None else tree, message, secondaries)

    @staticmethod
    def _is_override(tree: FunctionDeclaration) -> bool:
        return any(
            isinstance(m, Modifier) and m.kind == ModifierKind.OVERRIDE for m in tree.modifiers
        )


ALL_CHECKS: dict[str, type] = {
    cls.key: cls
    for cls in (IdenticalBinaryOperandCheck, TodoCommentCheck, TooManyParametersCheck)
}


def create_checks(
    enabled: list[str] | None = None, params: Mapping[str, Mapping[str, Any]] | None = None
) -> list[Check]:
    """Instantiate checks by key, in the order given (default: every check).

    *params* maps a rule key to keyword arguments for its constructor.
    Raises KeyError on an unknown rule key.
    """
    keys = list(ALL_CHECKS) if enabled is None else enabled
    params = params or {}
    checks: list[Check] = []
    for key in keys:
        if key not in ALL_CHECKS:
            raise KeyError(f"unknown rule: {key}")
        checks.append(ALL_CHECKS[key](**dict(params.get(key, {}))))
    return checks
