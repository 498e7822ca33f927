"""Language-agnostic syntax tree node types.

The node set is closed: every front end maps its grammar onto these
classes, and anything without a counterpart becomes a Native node.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto

from polyast.metadata import TreeMetaData
from polyast.ranges import TextRange, merge
from polyast.tokens import Comment, Token


class BinaryOperator(Enum):
    CONDITIONAL_AND = "&&"
    CONDITIONAL_OR = "||"
    EQUAL_TO = "=="
    NOT_EQUAL_TO = "!="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL_TO = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL_TO = "<="
    PLUS = "+"
    MINUS = "-"
    TIMES = "*"
    DIVIDED_BY = "/"
    MODULO = "%"


class UnaryOperator(Enum):
    NEGATE = "!"
    PLUS = "+"
    MINUS = "-"
    INCREMENT = "++"
    DECREMENT = "--"


class AssignmentOperator(Enum):
    EQUAL = "="
    PLUS_EQUAL = "+="
    MINUS_EQUAL = "-="
    TIMES_EQUAL = "*="
    MODULO_EQUAL = "%="


class LoopKind(Enum):
    FOR = auto()
    WHILE = auto()
    DO_WHILE = auto()


class JumpKind(Enum):
    BREAK = auto()
    CONTINUE = auto()


class ModifierKind(Enum):
    PUBLIC = auto()
    PRIVATE = auto()
    OVERRIDE = auto()


class IntegerBase(Enum):
    DECIMAL = 10
    HEXADECIMAL = 16
    OCTAL = 8
    BINARY = 2


_INTEGER_PREFIXES = {
    "0x": IntegerBase.HEXADECIMAL,
    "0b": IntegerBase.BINARY,
    "0d": IntegerBase.DECIMAL,
    "0o": IntegerBase.OCTAL,
}


@dataclass(frozen=True, slots=True)
class NativeKind:
    """Opaque tag of a front-end construct with no dedicated node class."""

    discriminator: str
    payload: tuple[object, ...] = ()

    def __str__(self) -> str:
        if not self.payload:
            return self.discriminator
        return f"{self.discriminator}[{', '.join(str(p) for p in self.payload)}]"


# ---------------------------------------------------------------------------
# Base node
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class Tree:
    """Base of every node: metadata plus an ordered child enumeration.

    Nodes compare by identity; use polyast.equivalence for structure.
    """

    metadata: TreeMetaData

    @property
    def text_range(self) -> TextRange:
        return self.metadata.text_range

    def children(self) -> list[Tree]:
        return []

    def descendants(self) -> Iterator[Tree]:
        """Yield every node below this one, depth-first pre-order."""
        for child in self.children():
            yield child
            yield from child.descendants()


def _present(*nodes: Tree | None) -> list[Tree]:
    return [n for n in nodes if n is not None]


def _range_before_body(node: Tree, body: Tree | None) -> TextRange:
    if body is None:
        return node.text_range
    body_start = body.text_range.start
    before = [t.text_range for t in node.metadata.tokens if t.text_range.start < body_start]
    if not before:
        return body.text_range
    return merge(before)


# ---------------------------------------------------------------------------
# Leaves
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class Identifier(Tree):
    name: str


@dataclass(frozen=True, slots=True, eq=False)
class Literal(Tree):
    value: str


@dataclass(frozen=True, slots=True, eq=False)
class StringLiteral(Tree):
    """String literal; ``value`` keeps the quotes, ``content`` drops them."""

    value: str

    @property
    def content(self) -> str:
        return self.value[1:-1]


@dataclass(frozen=True, slots=True, eq=False)
class IntegerLiteral(Tree):
    """Integer literal with its raw text.

    An explicit 0x/0b/0d/0o prefix always selects the base. Otherwise a
    leading zero on anything but "0" means octal.
    """

    value: str

    @property
    def base(self) -> IntegerBase:
        prefix = self.value[:2].lower()
        if prefix in _INTEGER_PREFIXES:
            return _INTEGER_PREFIXES[prefix]
        if self.value != "0" and self.value.startswith("0"):
            return IntegerBase.OCTAL
        return IntegerBase.DECIMAL

    @property
    def numeric_part(self) -> str:
        if self.value[:2].lower() in _INTEGER_PREFIXES:
            return self.value[2:]
        if self.base is IntegerBase.OCTAL:
            return self.value[1:]
        return self.value

    @property
    def integer_value(self) -> int:
        return int(self.numeric_part, self.base.value)


@dataclass(frozen=True, slots=True, eq=False)
class PlaceHolder(Tree):
    """Wildcard such as ``_``."""

    placeholder_token: Token


@dataclass(frozen=True, slots=True, eq=False)
class Modifier(Tree):
    kind: ModifierKind


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class BinaryExpression(Tree):
    operator: BinaryOperator
    operator_token: Token
    left: Tree
    right: Tree

    def children(self) -> list[Tree]:
        return [self.left, self.right]


@dataclass(frozen=True, slots=True, eq=False)
class UnaryExpression(Tree):
    operator: UnaryOperator
    operator_token: Token
    operand: Tree

    def children(self) -> list[Tree]:
        return [self.operand]


@dataclass(frozen=True, slots=True, eq=False)
class AssignmentExpression(Tree):
    operator: AssignmentOperator
    operator_token: Token
    left: Tree
    right: Tree

    def children(self) -> list[Tree]:
        return [self.left, self.right]


@dataclass(frozen=True, slots=True, eq=False)
class ParenthesizedExpression(Tree):
    expression: Tree
    left_parenthesis: Token
    right_parenthesis: Token

    def children(self) -> list[Tree]:
        return [self.expression]


@dataclass(frozen=True, slots=True, eq=False)
class MemberSelect(Tree):
    expression: Tree
    identifier: Identifier

    def children(self) -> list[Tree]:
        return [self.expression, self.identifier]


@dataclass(frozen=True, slots=True, eq=False)
class FunctionInvocation(Tree):
    member_select: Tree
    arguments: tuple[Tree, ...]

    def children(self) -> list[Tree]:
        return [self.member_select, *self.arguments]


# ---------------------------------------------------------------------------
# Statements and control flow
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class Block(Tree):
    statement_or_expressions: tuple[Tree, ...]

    def children(self) -> list[Tree]:
        return list(self.statement_or_expressions)


@dataclass(frozen=True, slots=True, eq=False)
class If(Tree):
    condition: Tree
    then_branch: Tree
    else_branch: Tree | None
    if_keyword: Token
    else_keyword: Token | None

    def children(self) -> list[Tree]:
        return _present(self.condition, self.then_branch, self.else_branch)


@dataclass(frozen=True, slots=True, eq=False)
class MatchCase(Tree):
    """One case of a Match; ``expression`` is None for the default case."""

    expression: Tree | None
    body: Tree | None

    def children(self) -> list[Tree]:
        return _present(self.expression, self.body)

    def range_to_highlight(self) -> TextRange:
        return _range_before_body(self, self.body)


@dataclass(frozen=True, slots=True, eq=False)
class Match(Tree):
    expression: Tree | None
    cases: tuple[MatchCase, ...]
    keyword: Token

    def children(self) -> list[Tree]:
        return [*_present(self.expression), *self.cases]


@dataclass(frozen=True, slots=True, eq=False)
class Loop(Tree):
    condition: Tree | None
    body: Tree
    kind: LoopKind
    keyword: Token

    def children(self) -> list[Tree]:
        return _present(self.condition, self.body)


@dataclass(frozen=True, slots=True, eq=False)
class Jump(Tree):
    keyword: Token
    kind: JumpKind
    label: Identifier | None

    def children(self) -> list[Tree]:
        return _present(self.label)


@dataclass(frozen=True, slots=True, eq=False)
class Return(Tree):
    keyword: Token
    body: Tree | None

    def children(self) -> list[Tree]:
        return _present(self.body)


@dataclass(frozen=True, slots=True, eq=False)
class Throw(Tree):
    keyword: Token
    body: Tree | None

    def children(self) -> list[Tree]:
        return _present(self.body)


@dataclass(frozen=True, slots=True, eq=False)
class Catch(Tree):
    catch_parameter: Tree | None
    catch_block: Tree
    keyword: Token

    def children(self) -> list[Tree]:
        return _present(self.catch_parameter, self.catch_block)


@dataclass(frozen=True, slots=True, eq=False)
class ExceptionHandling(Tree):
    try_block: Tree
    try_keyword: Token
    catch_blocks: tuple[Catch, ...]
    finally_keyword: Token | None
    finally_block: Block | None

    def children(self) -> list[Tree]:
        return [self.try_block, *self.catch_blocks, *_present(self.finally_block)]


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class Parameter(Tree):
    identifier: Identifier
    type: Tree | None
    default_value: Tree | None = None

    def children(self) -> list[Tree]:
        return _present(self.identifier, self.type, self.default_value)


@dataclass(frozen=True, slots=True, eq=False)
class VariableDeclaration(Tree):
    identifier: Identifier
    type: Tree | None
    initializer: Tree | None
    is_val: bool

    def children(self) -> list[Tree]:
        return _present(self.identifier, self.type, self.initializer)


@dataclass(frozen=True, slots=True, eq=False)
class FunctionDeclaration(Tree):
    modifiers: tuple[Tree, ...]
    is_constructor: bool
    return_type: Tree | None
    name: Identifier | None
    formal_parameters: tuple[Tree, ...]
    body: Block | None
    native_children: tuple[Tree, ...] = ()

    def children(self) -> list[Tree]:
        return [
            *self.modifiers,
            *_present(self.return_type, self.name),
            *self.formal_parameters,
            *_present(self.body),
            *self.native_children,
        ]

    def range_to_highlight(self) -> TextRange:
        if self.name is not None:
            return self.name.text_range
        return _range_before_body(self, self.body)


@dataclass(frozen=True, slots=True, eq=False)
class ClassDeclaration(Tree):
    """A class; ``identifier`` is reachable through ``class_tree`` only."""

    identifier: Identifier | None
    class_tree: Tree

    def children(self) -> list[Tree]:
        return [self.class_tree]


@dataclass(frozen=True, slots=True, eq=False)
class ImportDeclaration(Tree):
    names: tuple[Tree, ...]

    def children(self) -> list[Tree]:
        return list(self.names)


@dataclass(frozen=True, slots=True, eq=False)
class PackageDeclaration(Tree):
    names: tuple[Tree, ...]

    def children(self) -> list[Tree]:
        return list(self.names)


@dataclass(frozen=True, slots=True, eq=False)
class Native(Tree):
    """Front-end construct without a dedicated class, tagged by kind."""

    native_kind: NativeKind
    native_children: tuple[Tree, ...] = ()

    def children(self) -> list[Tree]:
        return list(self.native_children)


@dataclass(frozen=True, slots=True, eq=False)
class TopLevel(Tree):
    """Root of one file."""

    declarations: tuple[Tree, ...]
    all_comments: tuple[Comment, ...]
    first_cpd_token: Token | None = None

    def children(self) -> list[Tree]:
        return list(self.declarations)
