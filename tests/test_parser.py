"""Tests for the SLang parser: node mapping for every construct."""

from __future__ import annotations

from polyast.parser import CLASS_KIND, NATIVE_KIND
from polyast.tokens import TokenType
from polyast.tree import (
    AssignmentExpression,
    AssignmentOperator,
    BinaryExpression,
    BinaryOperator,
    Block,
    ClassDeclaration,
    ExceptionHandling,
    FunctionDeclaration,
    FunctionInvocation,
    Identifier,
    If,
    ImportDeclaration,
    IntegerLiteral,
    Jump,
    JumpKind,
    Literal,
    Loop,
    LoopKind,
    Match,
    MemberSelect,
    Modifier,
    ModifierKind,
    Native,
    PackageDeclaration,
    Parameter,
    ParenthesizedExpression,
    PlaceHolder,
    Return,
    StringLiteral,
    Throw,
    UnaryExpression,
    UnaryOperator,
    VariableDeclaration,
)
from tests.conftest import first_expression, rng


class TestTopLevel:
    def test_declarations_and_comments(self, parse_source) -> None:
        top = parse_source("// header\nx;\ny;\n/* tail */")
        assert len(top.declarations) == 2
        assert [c.text for c in top.all_comments] == ["// header", "/* tail */"]

    def test_range_spans_tokens_and_comments(self, parse_source) -> None:
        top = parse_source("// header\nx;\n/* tail */")
        assert top.text_range == rng(1, 0, 3, 10)

    def test_comments_only(self, parse_source) -> None:
        top = parse_source("// just a comment")
        assert top.declarations == ()
        assert len(top.all_comments) == 1

    def test_first_cpd_token_skips_imports(self, parse_source) -> None:
        top = parse_source("package a.b;\nimport c;\nfoo();")
        assert top.first_cpd_token is not None
        assert top.first_cpd_token.text == "foo"

    def test_first_cpd_token_follows_preamble(self, parse_source) -> None:
        top = parse_source("import c;\n;\nfoo();")
        assert top.first_cpd_token is not None
        assert top.first_cpd_token.text == ";"
        assert top.first_cpd_token.text_range.start.line == 2

    def test_first_cpd_token_without_preamble(self, parse_source) -> None:
        top = parse_source("foo();")
        assert top.first_cpd_token is top.metadata.tokens[0]

    def test_statement_after_block_needs_no_semicolon(self, parse_source) -> None:
        top = parse_source("if (a) { b; }\nc;")
        assert len(top.declarations) == 2


class TestDeclarations:
    def test_package(self) -> None:
        decl = first_expression("package a.b;")
        assert isinstance(decl, PackageDeclaration)
        assert [n.name for n in decl.children()] == ["a", "b"]

    def test_import(self) -> None:
        decl = first_expression("import x;")
        assert isinstance(decl, ImportDeclaration)

    def test_class_with_members(self) -> None:
        decl = first_expression("class A { var x = 1; fun f() {} }")
        assert isinstance(decl, ClassDeclaration)
        assert decl.identifier is not None and decl.identifier.name == "A"
        assert isinstance(decl.class_tree, Native)
        assert decl.class_tree.native_kind == CLASS_KIND
        kinds = [type(c) for c in decl.class_tree.children()]
        assert kinds == [Identifier, VariableDeclaration, FunctionDeclaration]

    def test_anonymous_class(self) -> None:
        decl = first_expression("class { }")
        assert isinstance(decl, ClassDeclaration)
        assert decl.identifier is None

    def test_function(self) -> None:
        func = first_expression("int fun add(int a, b = 2) { return a + b; }")
        assert isinstance(func, FunctionDeclaration)
        assert func.name is not None and func.name.name == "add"
        assert isinstance(func.return_type, Identifier)
        a, b = func.formal_parameters
        assert isinstance(a, Parameter) and isinstance(a.type, Identifier)
        assert isinstance(b, Parameter) and b.type is None
        assert isinstance(b.default_value, IntegerLiteral)
        assert func.body is not None
        assert isinstance(func.body.statement_or_expressions[0], Return)
        assert not func.is_constructor

    def test_function_without_body(self) -> None:
        func = first_expression("fun f();")
        assert isinstance(func, FunctionDeclaration)
        assert func.body is None

    def test_override_promoted_to_keyword(self, parse_source) -> None:
        top = parse_source("override fun f() {}")
        func = top.declarations[0]
        assert isinstance(func, FunctionDeclaration)
        modifier = func.modifiers[0]
        assert isinstance(modifier, Modifier)
        assert modifier.kind is ModifierKind.OVERRIDE
        override = top.metadata.tokens[0]
        assert override.text == "override"
        assert override.type == TokenType.KEYWORD

    def test_override_as_identifier_stays_other(self, parse_source) -> None:
        top = parse_source("override = 1;")
        assert isinstance(top.declarations[0], AssignmentExpression)
        assert top.metadata.tokens[0].type == TokenType.OTHER

    def test_variable_declarations(self) -> None:
        var = first_expression("var x = 1;")
        assert isinstance(var, VariableDeclaration)
        assert not var.is_val
        val = first_expression("int val y;")
        assert isinstance(val, VariableDeclaration)
        assert val.is_val and val.initializer is None


class TestExpressions:
    def test_precedence(self) -> None:
        expr = first_expression("a || b && c == d + e * f;")
        assert isinstance(expr, BinaryExpression)
        assert expr.operator is BinaryOperator.CONDITIONAL_OR
        rhs = expr.right
        assert isinstance(rhs, BinaryExpression) and rhs.operator is BinaryOperator.CONDITIONAL_AND
        eq = rhs.right
        assert isinstance(eq, BinaryExpression) and eq.operator is BinaryOperator.EQUAL_TO
        plus = eq.right
        assert isinstance(plus, BinaryExpression) and plus.operator is BinaryOperator.PLUS
        times = plus.right
        assert isinstance(times, BinaryExpression) and times.operator is BinaryOperator.TIMES

    def test_left_associative(self) -> None:
        expr = first_expression("a - b - c;")
        assert isinstance(expr, BinaryExpression)
        assert isinstance(expr.left, BinaryExpression)
        assert isinstance(expr.right, Identifier)

    def test_operator_token(self) -> None:
        expr = first_expression("a <= b;")
        assert isinstance(expr, BinaryExpression)
        assert expr.operator is BinaryOperator.LESS_THAN_OR_EQUAL_TO
        assert expr.operator_token.text == "<="
        assert expr.operator_token.text_range == rng(1, 2, 1, 4)

    def test_unary(self) -> None:
        expr = first_expression("!-x;")
        assert isinstance(expr, UnaryExpression)
        assert expr.operator is UnaryOperator.NEGATE
        assert isinstance(expr.operand, UnaryExpression)
        assert expr.operand.operator is UnaryOperator.MINUS

    def test_assignment_is_right_associative(self) -> None:
        expr = first_expression("a = b += 1;")
        assert isinstance(expr, AssignmentExpression)
        assert expr.operator is AssignmentOperator.EQUAL
        assert isinstance(expr.right, AssignmentExpression)
        assert expr.right.operator is AssignmentOperator.PLUS_EQUAL

    def test_parenthesized(self) -> None:
        expr = first_expression("(a);")
        assert isinstance(expr, ParenthesizedExpression)
        assert expr.left_parenthesis.text == "("
        assert expr.right_parenthesis.text == ")"

    def test_member_select_and_call(self) -> None:
        expr = first_expression("a.b(1, x);")
        assert isinstance(expr, FunctionInvocation)
        assert isinstance(expr.member_select, MemberSelect)
        assert expr.member_select.identifier.name == "b"
        assert len(expr.arguments) == 2

    def test_literals(self) -> None:
        assert isinstance(first_expression('"s";'), StringLiteral)
        assert isinstance(first_expression("0x1F;"), IntegerLiteral)
        assert isinstance(first_expression("true;"), Literal)
        assert isinstance(first_expression("_;"), PlaceHolder)

    def test_ranges(self) -> None:
        expr = first_expression("foo + bar;")
        assert expr.text_range == rng(1, 0, 1, 9)
        assert isinstance(expr, BinaryExpression)
        assert expr.left.text_range == rng(1, 0, 1, 3)
        assert expr.right.text_range == rng(1, 6, 1, 9)


class TestControlFlow:
    def test_if_else(self) -> None:
        node = first_expression("if (a) { b; } else c;")
        assert isinstance(node, If)
        assert isinstance(node.condition, Identifier)
        assert isinstance(node.then_branch, Block)
        assert isinstance(node.else_branch, Identifier)
        assert node.if_keyword.text == "if"
        assert node.else_keyword is not None and node.else_keyword.text == "else"

    def test_if_without_else(self) -> None:
        node = first_expression("if (a) b;")
        assert isinstance(node, If)
        assert node.else_branch is None and node.else_keyword is None

    def test_match(self) -> None:
        node = first_expression("match (x) { 1 -> a; else -> ; }")
        assert isinstance(node, Match)
        assert len(node.cases) == 2
        assert node.cases[1].expression is None
        assert node.cases[1].body is None

    def test_loops(self) -> None:
        for_loop = first_expression("for (var i = list) { i; }")
        assert isinstance(for_loop, Loop) and for_loop.kind is LoopKind.FOR
        assert isinstance(for_loop.condition, VariableDeclaration)
        while_loop = first_expression("while (x) { }")
        assert isinstance(while_loop, Loop) and while_loop.kind is LoopKind.WHILE
        do_loop = first_expression("do { x; } while (y);")
        assert isinstance(do_loop, Loop) and do_loop.kind is LoopKind.DO_WHILE
        assert isinstance(do_loop.condition, Identifier)

    def test_jumps(self) -> None:
        node = first_expression("break outer;")
        assert isinstance(node, Jump) and node.kind is JumpKind.BREAK
        assert node.label is not None and node.label.name == "outer"
        node = first_expression("continue;")
        assert isinstance(node, Jump) and node.kind is JumpKind.CONTINUE
        assert node.label is None

    def test_return_and_throw(self) -> None:
        ret = first_expression("return;")
        assert isinstance(ret, Return) and ret.body is None
        throw = first_expression("throw e;")
        assert isinstance(throw, Throw) and isinstance(throw.body, Identifier)

    def test_try_catch_finally(self) -> None:
        node = first_expression("try { a; } catch (E e) { b; } catch () { } finally { c; }")
        assert isinstance(node, ExceptionHandling)
        assert len(node.catch_blocks) == 2
        assert isinstance(node.catch_blocks[0].catch_parameter, Parameter)
        assert node.catch_blocks[1].catch_parameter is None
        assert node.finally_block is not None
        assert node.finally_keyword is not None

    def test_block_last_statement_without_semicolon(self) -> None:
        node = first_expression("{ a; b }")
        assert isinstance(node, Block)
        assert len(node.statement_or_expressions) == 2

    def test_native(self) -> None:
        node = first_expression("native [foo, 1] { [a; b] [c] };")
        assert isinstance(node, Native)
        assert node.native_kind.discriminator == NATIVE_KIND
        assert node.native_kind.payload == ("foo", "1")
        assert [c.name for c in node.children()] == ["a", "b", "c"]
