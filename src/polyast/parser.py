"""SLang parser: converts a token stream into a polyast tree."""

from __future__ import annotations

from polyast.errors import ParseError
from polyast.lexer import is_identifier_start, tokenize
from polyast.metadata import NA_KIND, TreeMetaData, TreeMetaDataProvider
from polyast.ranges import TextPointer, TextRange, merge
from polyast.tokens import Token, TokenType
from polyast.tree import (
    AssignmentExpression,
    AssignmentOperator,
    BinaryExpression,
    BinaryOperator,
    Block,
    Catch,
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
    MatchCase,
    MemberSelect,
    Modifier,
    ModifierKind,
    Native,
    NativeKind,
    PackageDeclaration,
    Parameter,
    ParenthesizedExpression,
    PlaceHolder,
    Return,
    StringLiteral,
    Throw,
    TopLevel,
    Tree,
    UnaryExpression,
    UnaryOperator,
    VariableDeclaration,
)
from polyast.validation import ValidationRules, validate_tree

CLASS_KIND = NativeKind("class")
NATIVE_KIND = "native"

_MODIFIERS = ("private", "public", "override")
_ASSIGNMENT_OPERATORS = tuple(op.value for op in AssignmentOperator)
_BINARY_LEVELS = (
    ("||",),
    ("&&",),
    ("==", "!="),
    ("<", ">", "<=", ">="),
    ("+", "-"),
    ("*", "/", "%"),
)
_UNARY_OPERATORS = ("!", "-", "+")
_CONTROL_KEYWORDS = ("if", "match", "for", "while", "do", "try", "native")


class Parser:
    """Recursive descent parser for SLang source text."""

    def __init__(self, source: str, filename: str | None = None) -> None:
        tokens, comments = tokenize(source, filename)
        self._provider = TreeMetaDataProvider(comments, tokens)
        self._tokens = self._provider.all_tokens
        self._source = source
        self._filename = filename
        self._pos = 0

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token | None:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return None

    def _at(self, *texts: str, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return tok is not None and tok.type != TokenType.STRING_LITERAL and tok.text in texts

    def _at_eof(self) -> bool:
        return self._pos >= len(self._tokens)

    def _at_identifier(self, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return (
            tok is not None
            and tok.type == TokenType.OTHER
            and is_identifier_start(tok.text[0])
            and tok.text not in ("_", "true", "false")
        )

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, text: str) -> Token:
        if not self._at(text):
            raise self._error(f"missing '{text}' before '{self._found()}'")
        return self._advance()

    def _found(self) -> str:
        tok = self._peek()
        return "<EOF>" if tok is None else tok.text

    def _prev_text(self) -> str:
        return self._tokens[self._pos - 1].text if self._pos > 0 else ""

    def _error(self, message: str) -> ParseError:
        tok = self._peek()
        if tok is not None:
            position = tok.text_range.start
        elif self._tokens:
            position = self._tokens[-1].text_range.end
        else:
            position = TextPointer(1, 0)
        return ParseError(message, position, self._source, self._filename)

    def _meta(self, start: int, original_kind: str = NA_KIND) -> TreeMetaData:
        """Metadata spanning the tokens consumed since index *start*."""
        first = self._tokens[start].text_range.start
        last = self._tokens[self._pos - 1].text_range.end
        return self._provider.metadata(TextRange(first, last), original_kind)

    # ------------------------------------------------------------------
    # File level
    # ------------------------------------------------------------------

    def parse(self) -> TopLevel:
        comments = self._provider.all_comments
        if not self._tokens and not comments:
            raise ParseError("No AST node found", None, self._source, self._filename)

        declarations = self._parse_declarations(closing=None)

        ranges = [t.text_range for t in self._tokens[:1] + self._tokens[-1:]]
        ranges += [c.text_range for c in comments[:1] + comments[-1:]]
        metadata = self._provider.metadata(merge(ranges), "slangFile")

        # Duplicate detection starts right after the package/import preamble.
        tokens = metadata.tokens
        start = 0
        for decl in declarations:
            if not isinstance(decl, (PackageDeclaration, ImportDeclaration)):
                break
            last = decl.metadata.tokens[-1]
            start = next(i for i, t in enumerate(tokens) if t is last) + 1
        first_cpd_token = tokens[start] if start < len(tokens) else None
        return TopLevel(metadata, tuple(declarations), tuple(comments), first_cpd_token)

    def _parse_declarations(self, closing: str | None) -> list[Tree]:
        declarations: list[Tree] = []
        while not self._at_eof() and not (closing is not None and self._at(closing)):
            if self._at(";"):
                self._advance()
                continue
            declaration = self._parse_type_declaration()
            if declaration is None:
                declaration = self._parse_statement()
                self._end_statement(closing)
            declarations.append(declaration)
        if closing is not None and self._at_eof():
            raise self._error(f"missing '{closing}' before '<EOF>'")
        return declarations

    def _end_statement(self, closing: str | None) -> None:
        """Consume the ';' ending a statement, optional after '}' or before *closing*."""
        if self._at(";"):
            self._advance()
            return
        if self._prev_text() == "}":
            return
        if closing is not None and self._at(closing):
            return
        raise self._error(f"missing ';' before '{self._found()}'")

    def _parse_type_declaration(self) -> Tree | None:
        if self._at("package"):
            return self._parse_qualified_name(PackageDeclaration)
        if self._at("import"):
            return self._parse_qualified_name(ImportDeclaration)
        if self._at("class"):
            return self._parse_class()
        if self._at_function():
            return self._parse_function()
        return None

    def _parse_qualified_name(
        self, cls: type[PackageDeclaration] | type[ImportDeclaration]
    ) -> Tree:
        start = self._pos
        self._advance()
        names: list[Tree] = [self._parse_identifier()]
        while self._at("."):
            self._advance()
            names.append(self._parse_identifier())
        self._expect(";")
        return cls(self._meta(start), tuple(names))

    def _parse_class(self) -> ClassDeclaration:
        start = self._pos
        self._advance()  # class
        identifier = self._parse_identifier() if self._at_identifier() else None
        self._expect("{")
        members = self._parse_declarations(closing="}")
        self._expect("}")
        class_tree = Native(
            self._meta(start),
            CLASS_KIND,
            (*([identifier] if identifier is not None else []), *members),
        )
        return ClassDeclaration(self._meta(start, "classDeclaration"), identifier, class_tree)

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def _at_function(self) -> bool:
        i = 0
        while self._at(*_MODIFIERS, offset=i):
            i += 1
        if self._at_identifier(i) and self._at("fun", offset=i + 1):
            return True
        return self._at("fun", offset=i)

    def _parse_function(self) -> FunctionDeclaration:
        start = self._pos
        modifiers: list[Tree] = []
        while self._at(*_MODIFIERS):
            tok = self._advance()
            if tok.type != TokenType.KEYWORD:
                self._provider.update_token_type(tok, TokenType.KEYWORD)
            modifiers.append(Modifier(self._meta(self._pos - 1), ModifierKind[tok.text.upper()]))

        return_type = None
        if self._at_identifier() and self._at("fun", offset=1):
            return_type = self._parse_identifier()
        self._expect("fun")
        name = self._parse_identifier() if self._at_identifier() else None

        self._expect("(")
        parameters: list[Tree] = []
        if not self._at(")"):
            parameters.append(self._parse_parameter())
            while self._at(","):
                self._advance()
                parameters.append(self._parse_parameter())
        self._expect(")")

        body = None
        if self._at("{"):
            body = self._parse_block()
        else:
            self._expect(";")
        return FunctionDeclaration(
            self._meta(start, "methodDeclaration"),
            tuple(modifiers),
            False,
            return_type,
            name,
            tuple(parameters),
            body,
        )

    def _parse_parameter(self) -> Parameter:
        start = self._pos
        param_type = None
        if self._at_identifier() and self._at_identifier(1):
            param_type = self._parse_identifier()
        identifier = self._parse_identifier()
        default_value = None
        if self._at("="):
            self._advance()
            default_value = self._parse_expression()
        return Parameter(self._meta(start), identifier, param_type, default_value)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _parse_block(self) -> Block:
        start = self._pos
        self._expect("{")
        statements: list[Tree] = []
        while not self._at("}"):
            if self._at_eof():
                raise self._error("missing '}' before '<EOF>'")
            if self._at(";"):
                self._advance()
                continue
            statements.append(self._parse_statement())
            self._end_statement(closing="}")
        self._advance()
        return Block(self._meta(start), tuple(statements))

    def _parse_statement(self) -> Tree:
        if self._at("var", "val") or (
            self._at_identifier() and self._at("var", "val", offset=1)
        ):
            return self._parse_variable_declaration()
        if self._at("return"):
            return self._parse_return()
        if self._at("break", "continue"):
            return self._parse_jump()
        if self._at("throw"):
            return self._parse_throw()
        return self._parse_assignment()

    def _at_statement_end(self) -> bool:
        return self._at_eof() or self._at(";", "}", "]", ")")

    def _parse_variable_declaration(self) -> VariableDeclaration:
        start = self._pos
        var_type = self._parse_identifier() if self._at_identifier() else None
        keyword = self._advance()
        identifier = self._parse_identifier()
        initializer = None
        if self._at("="):
            self._advance()
            initializer = self._parse_expression()
        return VariableDeclaration(
            self._meta(start), identifier, var_type, initializer, keyword.text == "val"
        )

    def _parse_return(self) -> Return:
        start = self._pos
        keyword = self._advance()
        body = None if self._at_statement_end() else self._parse_expression()
        return Return(self._meta(start), keyword, body)

    def _parse_throw(self) -> Throw:
        start = self._pos
        keyword = self._advance()
        body = None if self._at_statement_end() else self._parse_expression()
        return Throw(self._meta(start), keyword, body)

    def _parse_jump(self) -> Jump:
        start = self._pos
        keyword = self._advance()
        label = self._parse_identifier() if self._at_identifier() else None
        return Jump(self._meta(start), keyword, JumpKind[keyword.text.upper()], label)

    def _parse_assignment(self) -> Tree:
        start = self._pos
        left = self._parse_expression()
        if not self._at(*_ASSIGNMENT_OPERATORS):
            return left
        operator_token = self._advance()
        right = self._parse_statement()
        return AssignmentExpression(
            self._meta(start),
            AssignmentOperator(operator_token.text),
            operator_token,
            left,
            right,
        )

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expression(self) -> Tree:
        return self._parse_binary(0)

    def _parse_binary(self, level: int) -> Tree:
        if level == len(_BINARY_LEVELS):
            return self._parse_unary()
        start = self._pos
        left = self._parse_binary(level + 1)
        while self._at(*_BINARY_LEVELS[level]):
            operator_token = self._advance()
            right = self._parse_binary(level + 1)
            left = BinaryExpression(
                self._meta(start),
                BinaryOperator(operator_token.text),
                operator_token,
                left,
                right,
            )
        return left

    def _parse_unary(self) -> Tree:
        if not self._at(*_UNARY_OPERATORS):
            return self._parse_postfix()
        start = self._pos
        operator_token = self._advance()
        operand = self._parse_unary()
        return UnaryExpression(
            self._meta(start), UnaryOperator(operator_token.text), operator_token, operand
        )

    def _parse_postfix(self) -> Tree:
        if self._at("{", *_CONTROL_KEYWORDS):
            return self._parse_control()
        start = self._pos
        expression = self._parse_primary()
        while True:
            if self._at("."):
                self._advance()
                identifier = self._parse_identifier()
                expression = MemberSelect(self._meta(start), expression, identifier)
            elif self._at("("):
                self._advance()
                arguments: list[Tree] = []
                if not self._at(")"):
                    arguments.append(self._parse_expression())
                    while self._at(","):
                        self._advance()
                        arguments.append(self._parse_expression())
                self._expect(")")
                expression = FunctionInvocation(self._meta(start), expression, tuple(arguments))
            else:
                return expression

    def _parse_primary(self) -> Tree:
        tok = self._peek()
        if tok is None:
            raise self._error("unexpected '<EOF>'")
        start = self._pos
        if tok.type == TokenType.STRING_LITERAL:
            self._advance()
            return StringLiteral(self._meta(start), tok.text)
        if tok.text[0].isdigit():
            self._advance()
            return IntegerLiteral(self._meta(start), tok.text)
        if tok.text in ("true", "false"):
            self._advance()
            return Literal(self._meta(start), tok.text)
        if tok.text == "_":
            self._advance()
            return PlaceHolder(self._meta(start), tok)
        if self._at_identifier():
            return self._parse_identifier()
        if self._at("("):
            left = self._advance()
            expression = self._parse_statement()
            right = self._expect(")")
            return ParenthesizedExpression(self._meta(start), expression, left, right)
        raise self._error(f"unexpected '{tok.text}'")

    def _parse_identifier(self) -> Identifier:
        if not self._at_identifier():
            raise self._error(f"missing identifier before '{self._found()}'")
        start = self._pos
        tok = self._advance()
        return Identifier(self._meta(start), tok.text)

    # ------------------------------------------------------------------
    # Control structures
    # ------------------------------------------------------------------

    def _parse_control(self) -> Tree:
        if self._at("{"):
            return self._parse_block()
        if self._at("if"):
            return self._parse_if()
        if self._at("match"):
            return self._parse_match()
        if self._at("for", "while"):
            return self._parse_loop()
        if self._at("do"):
            return self._parse_do_while()
        if self._at("try"):
            return self._parse_try()
        return self._parse_native()

    def _parse_condition(self) -> Tree:
        self._expect("(")
        condition = self._parse_statement()
        self._expect(")")
        return condition

    def _parse_if(self) -> If:
        start = self._pos
        if_keyword = self._advance()
        condition = self._parse_condition()
        then_branch = self._parse_statement()
        else_keyword = None
        else_branch = None
        if self._at("else"):
            else_keyword = self._advance()
            else_branch = self._parse_statement()
        return If(
            self._meta(start), condition, then_branch, else_branch, if_keyword, else_keyword
        )

    def _parse_match(self) -> Match:
        start = self._pos
        keyword = self._advance()
        expression = self._parse_condition()
        self._expect("{")
        cases: list[MatchCase] = []
        while not self._at("}"):
            if self._at_eof():
                raise self._error("missing '}' before '<EOF>'")
            cases.append(self._parse_match_case())
        self._advance()
        return Match(self._meta(start), expression, tuple(cases), keyword)

    def _parse_match_case(self) -> MatchCase:
        start = self._pos
        expression = None
        if self._at("else"):
            self._advance()
        else:
            expression = self._parse_expression()
        self._expect("->")
        body = None if self._at(";") else self._parse_statement()
        self._expect(";")
        return MatchCase(self._meta(start), expression, body)

    def _parse_loop(self) -> Loop:
        start = self._pos
        keyword = self._advance()
        condition = self._parse_condition()
        body = self._parse_statement()
        kind = LoopKind.FOR if keyword.text == "for" else LoopKind.WHILE
        return Loop(self._meta(start), condition, body, kind, keyword)

    def _parse_do_while(self) -> Loop:
        start = self._pos
        keyword = self._advance()
        body = self._parse_statement()
        self._expect("while")
        condition = self._parse_condition()
        return Loop(self._meta(start), condition, body, LoopKind.DO_WHILE, keyword)

    def _parse_try(self) -> ExceptionHandling:
        start = self._pos
        try_keyword = self._advance()
        try_block = self._parse_block()
        catches: list[Catch] = []
        while self._at("catch"):
            catch_start = self._pos
            catch_keyword = self._advance()
            self._expect("(")
            parameter = None if self._at(")") else self._parse_parameter()
            self._expect(")")
            catch_block = self._parse_block()
            catches.append(Catch(self._meta(catch_start), parameter, catch_block, catch_keyword))
        finally_keyword = None
        finally_block = None
        if self._at("finally"):
            finally_keyword = self._advance()
            finally_block = self._parse_block()
        return ExceptionHandling(
            self._meta(start),
            try_block,
            try_keyword,
            tuple(catches),
            finally_keyword,
            finally_block,
        )

    def _parse_native(self) -> Native:
        start = self._pos
        self._advance()  # native
        self._expect("[")
        arguments: list[str] = []
        while not self._at("]"):
            if self._at_eof():
                raise self._error("missing ']' before '<EOF>'")
            tok = self._advance()
            if tok.text != ",":
                arguments.append(tok.text)
        self._advance()
        self._expect("{")
        children: list[Tree] = []
        while self._at("["):
            self._advance()
            while not self._at("]"):
                if self._at(";"):
                    self._advance()
                    continue
                children.append(self._parse_statement())
                if not self._at("]"):
                    self._expect(";")
            self._advance()
        self._expect("}")
        return Native(self._meta(start), NativeKind(NATIVE_KIND, tuple(arguments)), tuple(children))


def parse(source: str, filename: str | None = None) -> TopLevel:
    """Convenience function: parse SLang source text into a TopLevel tree."""
    return Parser(source, filename).parse()


SLANG_VALIDATION = (
    ValidationRules()
    .any_for(Identifier, Literal, StringLiteral, IntegerLiteral, PlaceHolder, Modifier, Native)
    .pattern_for(";", TopLevel)
    .pattern_for("[{};]", Block)
    .pattern_for("[()]", ParenthesizedExpression)
    .pattern_for(r"\|\||&&|==|!=|<=|>=|[<>+\-*/%]", BinaryExpression)
    .pattern_for("[!+-]", UnaryExpression)
    .pattern_for(r"=|\+=|-=|\*=|%=", AssignmentExpression)
    .pattern_for("if|else|[()]", If)
    .pattern_for("match|[(){}]", Match)
    .pattern_for("else|->|;", MatchCase)
    .pattern_for("for|while|do|[()]", Loop)
    .pattern_for("break|continue", Jump)
    .pattern_for("return", Return)
    .pattern_for("throw", Throw)
    .pattern_for("try|finally", ExceptionHandling)
    .pattern_for("catch|[()]", Catch)
    .pattern_for("fun|[(),;]", FunctionDeclaration)
    .pattern_for("=", Parameter)
    .pattern_for("var|val|=", VariableDeclaration)
    .pattern_for(r"\.", MemberSelect)
    .pattern_for("[(),]", FunctionInvocation)
    .pattern_for(r"package|\.|;", PackageDeclaration)
    .pattern_for(r"import|\.|;", ImportDeclaration)
)


class SLangConverter:
    """ASTConverter for SLang; optionally validates every tree it builds."""

    def __init__(self, validate: bool = False) -> None:
        self.validate = validate

    def parse(self, content: str, filename: str | None = None) -> TopLevel:
        top = parse(content, filename)
        if self.validate:
            validate_tree(top, content, SLANG_VALIDATION)
        return top

    def terminate(self) -> None:
        pass
