"""Pratt parser for the Victoria language.

The parser walks the token list produced by :mod:`victoria.lexer` with
one current and one peek token, in the usual Pratt style: every token
kind that can start an expression has a prefix handler, every kind that
can continue one has an infix handler and a binding precedence.

Parse failures never raise. Each one appends a line to
:attr:`Parser.errors`, a :class:`~victoria.errors.Diagnostic` to
:attr:`Parser.rich_errors`, and makes the failing production return
``None``. :func:`parse_program` turns a non-empty error list into a
:class:`~victoria.errors.VictoriaError`.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type

from lark import Token

from . import ast
from . import catalog
from . import tokens as T
from .errors import Diagnostic, SourceLocation, VictoriaError
from .lexer import tokenize
from .types import TypeAnnotation

###############################################################################
# Precedence ladder
###############################################################################

LOWEST = 1
ARROW = 2         # =>
TERNARY = 3       # ?:
OR = 4            # || or
AND = 5           # && and
ASSIGN = 6        # = += -= *= /= %=
EQUALS = 7        # == !=
LESSGREATER = 8   # < > <= >=
RANGE = 9         # ..
SUM = 10          # + -
PRODUCT = 11      # * / %
PREFIX = 12       # -x !x ++x
CALL = 13         # f(x)
INDEX = 14        # a[i]
POSTFIX = 15      # x++
DOT = 16          # a.b

ASSIGNMENT_KINDS = (T.ASSIGN, T.PLUS_ASSIGN, T.MINUS_ASSIGN, T.ASTERISK_ASSIGN, T.SLASH_ASSIGN, T.MODULO_ASSIGN)

PRECEDENCES: Dict[str, int] = {
    T.ARROW: ARROW,
    T.QUESTION: TERNARY,
    T.OR_OR: OR,
    T.OR: OR,
    T.AND_AND: AND,
    T.AND: AND,
    **{kind: ASSIGN for kind in ASSIGNMENT_KINDS},
    T.EQ: EQUALS,
    T.NOT_EQ: EQUALS,
    T.LT: LESSGREATER,
    T.GT: LESSGREATER,
    T.LTE: LESSGREATER,
    T.GTE: LESSGREATER,
    T.RANGE: RANGE,
    T.PLUS: SUM,
    T.MINUS: SUM,
    T.ASTERISK: PRODUCT,
    T.SLASH: PRODUCT,
    T.MODULO: PRODUCT,
    T.LPAREN: CALL,
    T.LBRACKET: INDEX,
    T.INC: POSTFIX,
    T.DEC: POSTFIX,
    T.DOT: DOT,
}

# A statement starting with one of these ends at its closing brace when the
# next token would begin a call or an index.
BLOCK_EXPRESSIONS = (T.IF, T.WHILE, T.FOR, T.SWITCH)
BLOCK_BREAKERS = (T.LPAREN, T.LBRACKET)

INT64_MAX = 2 ** 63 - 1

_PEEK_HELP = {
    T.RBRACE: "you might be missing a closing brace '}'",
    T.RPAREN: "you might be missing a closing parenthesis ')'",
    T.RBRACKET: "you might be missing a closing bracket ']'",
    T.ASSIGN: "variable declarations require an initial value: let name = value",
    T.LBRACE: "expected a block starting with '{'",
    T.IDENT: "expected an identifier (variable or function name)",
}

_NO_PREFIX_HELP = {
    T.RBRACE: "you might have an extra closing brace '}'",
    T.RPAREN: "you might have an extra closing parenthesis ')'",
    T.RBRACKET: "you might have an extra closing bracket ']'",
    T.ASSIGN: "did you forget to declare a variable with 'let'?",
}


class Parser:
    def __init__(self, tokens: Sequence[Token], source: str = "", filename: str = ""):
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].type != T.EOF:
            self.tokens.append(T.make_token(T.EOF, "", 1, 1, 1))
        self.source = source
        self.filename = filename
        self.pos = 0
        self.errors: List[str] = []
        self.rich_errors: List[Diagnostic] = []
        self.allow_struct_literal = True

        self.prefix_fns: Dict[str, Callable[[], Optional[ast.Node]]] = {
            T.IDENT: self.parse_identifier,
            T.INT: self.parse_integer_literal,
            T.FLOAT: self.parse_float_literal,
            T.STRING: self.parse_string_literal,
            T.BANG: self.parse_prefix_expression,
            T.MINUS: self.parse_prefix_expression,
            T.NOT: self.parse_prefix_expression,
            T.TRUE: self.parse_boolean,
            T.FALSE: self.parse_boolean,
            T.LPAREN: self.parse_grouped_expression,
            T.IF: self.parse_if_expression,
            T.FUNCTION: self.parse_function_literal,
            T.LBRACKET: self.parse_array_literal,
            T.LBRACE: self.parse_hash_literal,
            T.WHILE: self.parse_while_expression,
            T.FOR: self.parse_for_expression,
            T.TRY: self.parse_try_statement,
            T.SWITCH: self.parse_switch_expression,
            T.INC: self.parse_prefix_inc_dec,
            T.DEC: self.parse_prefix_inc_dec,
            T.SPREAD: self.parse_spread_expression,
        }
        # Type keywords double as the names of the conversion builtins.
        for kind in T.TYPE_KEYWORDS.values():
            self.prefix_fns[kind] = self.parse_type_keyword_as_identifier

        self.infix_fns: Dict[str, Callable[[ast.Node], Optional[ast.Node]]] = {
            kind: self.parse_infix_expression
            for kind in (T.PLUS, T.MINUS, T.SLASH, T.ASTERISK, T.MODULO, T.EQ, T.NOT_EQ, T.LT, T.GT,
                         T.LTE, T.GTE, T.AND, T.OR, T.AND_AND, T.OR_OR) + ASSIGNMENT_KINDS
        }
        self.infix_fns.update({
            T.LPAREN: self.parse_call_expression,
            T.LBRACKET: self.parse_index_expression,
            T.DOT: self.parse_dot_expression,
            T.INC: self.parse_postfix_expression,
            T.DEC: self.parse_postfix_expression,
            T.QUESTION: self.parse_ternary_expression,
            T.RANGE: self.parse_range_expression,
            T.ARROW: self.parse_arrow_function,
        })

    ###########################################################################
    # Token cursor
    ###########################################################################

    def ahead(self, offset: int) -> Token:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    @property
    def cur_token(self) -> Token:
        return self.ahead(0)

    @property
    def peek_token(self) -> Token:
        return self.ahead(1)

    def next_token(self) -> None:
        if self.pos < len(self.tokens) - 1:
            self.pos += 1

    def cur_is(self, kind: str) -> bool:
        return self.cur_token.type == kind

    def peek_is(self, kind: str) -> bool:
        return self.peek_token.type == kind

    def expect_peek(self, kind: str) -> bool:
        if self.peek_is(kind):
            self.next_token()
            return True
        self.peek_error(kind)
        return False

    def peek_precedence(self) -> int:
        return PRECEDENCES.get(self.peek_token.type, LOWEST)

    def cur_precedence(self) -> int:
        return PRECEDENCES.get(self.cur_token.type, LOWEST)

    def skip_semicolon(self) -> None:
        if self.peek_is(T.SEMICOLON):
            self.next_token()

    @contextmanager
    def struct_literals(self, allowed: bool):
        saved = self.allow_struct_literal
        self.allow_struct_literal = allowed
        try:
            yield
        finally:
            self.allow_struct_literal = saved

    ###########################################################################
    # Errors
    ###########################################################################

    def location(self, tok: Token) -> SourceLocation:
        line = tok.line or 1
        column = tok.column or 1
        end_column = tok.end_column or column + 1
        return SourceLocation(line, column, tok.end_line or line, end_column, self.filename)

    def report(self, message: str, diag: Diagnostic) -> None:
        self.errors.append(message)
        self.rich_errors.append(diag.with_source(self.source))

    @staticmethod
    def describe(tok: Token) -> str:
        if tok.type == T.EOF:
            return "end of file"
        return str(tok) or T.spell(tok.type)

    def peek_error(self, kind: str) -> None:
        tok = self.peek_token
        found = self.describe(tok)
        expected = T.spell(kind)
        message = f"expected next token to be {expected}, got {found} instead"
        diag = catalog.unexpected_token(expected, found, self.location(tok))
        if kind in _PEEK_HELP:
            diag.with_help(_PEEK_HELP[kind])
        if tok.type == T.EOF:
            diag.with_note("reached end of file unexpectedly")
        self.report(message, diag)

    def no_prefix_parse_fn_error(self, tok: Token) -> None:
        loc = self.location(tok)
        if tok.type == T.ILLEGAL:
            self.report(f"illegal character '{tok}'", catalog.illegal_character(str(tok), loc))
            return
        if tok.type == T.UNTERMINATED_STRING:
            self.report("unterminated string literal", catalog.unterminated_string(loc))
            return
        found = self.describe(tok)
        message = f"unexpected token '{found}'"
        diag = catalog.parse_error(message, loc)
        diag.with_help(_NO_PREFIX_HELP.get(tok.type, "check your syntax around this location"))
        self.report(message, diag)

    ###########################################################################
    # Program and statements
    ###########################################################################

    def parse_program(self) -> ast.Program:
        program = ast.Program(self.cur_token, [])
        while not self.cur_is(T.EOF):
            stmt = self.parse_statement()
            if stmt is not None:
                program.statements.append(stmt)
            self.next_token()
        return program

    def parse_statement(self) -> Optional[ast.Statement]:
        kind = self.cur_token.type
        if kind == T.LET:
            return self.parse_let_statement(ast.LetStatement)
        if kind == T.CONST:
            return self.parse_let_statement(ast.ConstStatement)
        if kind == T.RETURN:
            return self.parse_return_statement()
        if kind == T.INCLUDE:
            return self.parse_include_statement()
        if kind == T.TRY:
            stmt = self.parse_try_statement()
            self.skip_semicolon()
            return stmt
        if kind == T.STRUCT:
            return self.parse_struct_statement()
        if kind == T.ENUM:
            return self.parse_enum_statement()
        if kind == T.BREAK:
            stmt = ast.BreakStatement(self.cur_token)
            self.skip_semicolon()
            return stmt
        if kind == T.CONTINUE:
            stmt = ast.ContinueStatement(self.cur_token)
            self.skip_semicolon()
            return stmt
        if kind == T.FUNCTION and self.peek_is(T.IDENT):
            return self.parse_function_declaration()
        if kind == T.SEMICOLON:
            return None
        return self.parse_expression_statement()

    def parse_expression_statement(self) -> Optional[ast.ExpressionStatement]:
        tok = self.cur_token
        if tok.type in BLOCK_EXPRESSIONS:
            expression = self.prefix_fns[tok.type]()
            if expression is not None and self.peek_token.type not in BLOCK_BREAKERS:
                expression = self.parse_infix_chain(expression, LOWEST)
        else:
            expression = self.parse_expression(LOWEST)
        if expression is None:
            return None
        self.skip_semicolon()
        return ast.ExpressionStatement(tok, expression)

    def parse_let_statement(self, cls: Type[ast.LetStatement]) -> Optional[ast.LetStatement]:
        tok = self.cur_token
        if not self.expect_peek(T.IDENT):
            return None
        name = ast.Identifier(self.cur_token, self.cur_token.value)

        annotation = None
        if self.peek_is(T.COLON):
            self.next_token()
            self.next_token()
            annotation = self.parse_type_annotation()
            if annotation is None:
                return None

        if not self.expect_peek(T.ASSIGN):
            return None
        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None
        if isinstance(value, ast.FunctionLiteral) and not value.name:
            value.name = name.value
        self.skip_semicolon()
        return cls(tok, name, value, annotation)

    def parse_return_statement(self) -> ast.ReturnStatement:
        stmt = ast.ReturnStatement(self.cur_token)
        if self.peek_token.type in (T.SEMICOLON, T.RBRACE, T.EOF):
            self.skip_semicolon()
            return stmt
        self.next_token()
        stmt.value = self.parse_expression(LOWEST)
        self.skip_semicolon()
        return stmt

    def parse_include_statement(self) -> Optional[ast.IncludeStatement]:
        tok = self.cur_token
        modules: List[str] = []
        if self.peek_is(T.STRING):
            self.next_token()
            modules.append(self.cur_token.value)
        elif self.peek_is(T.LPAREN):
            self.next_token()
            if not self.expect_peek(T.STRING):
                return None
            modules.append(self.cur_token.value)
            while self.peek_is(T.COMMA):
                self.next_token()
                if not self.expect_peek(T.STRING):
                    return None
                modules.append(self.cur_token.value)
            if not self.expect_peek(T.RPAREN):
                return None
        else:
            self.peek_error(T.STRING)
            return None
        self.skip_semicolon()
        return ast.IncludeStatement(tok, modules)

    def parse_try_statement(self) -> Optional[ast.TryStatement]:
        tok = self.cur_token
        if not self.expect_peek(T.LBRACE):
            return None
        stmt = ast.TryStatement(tok, self.parse_block_statement())
        if not self.peek_is(T.CATCH):
            return stmt
        self.next_token()
        if self.peek_is(T.LPAREN):
            self.next_token()
            if not self.expect_peek(T.IDENT):
                return None
            stmt.catch_variable = ast.Identifier(self.cur_token, self.cur_token.value)
            if not self.expect_peek(T.RPAREN):
                return None
        if not self.expect_peek(T.LBRACE):
            return None
        stmt.catch_block = self.parse_block_statement()
        return stmt

    def parse_struct_statement(self) -> Optional[ast.StructStatement]:
        tok = self.cur_token
        if not self.expect_peek(T.IDENT):
            return None
        name = ast.Identifier(self.cur_token, self.cur_token.value)
        if not self.expect_peek(T.LBRACE):
            return None
        fields: List[ast.Identifier] = []
        while not self.peek_is(T.RBRACE):
            if not self.expect_peek(T.IDENT):
                return None
            fields.append(ast.Identifier(self.cur_token, self.cur_token.value))
            if self.peek_is(T.COMMA):
                self.next_token()
        self.next_token()
        self.skip_semicolon()
        return ast.StructStatement(tok, name, fields)

    def parse_enum_statement(self) -> Optional[ast.EnumStatement]:
        tok = self.cur_token
        if not self.expect_peek(T.IDENT):
            return None
        name = ast.Identifier(self.cur_token, self.cur_token.value)
        if not self.expect_peek(T.LBRACE):
            return None
        variants: List[ast.EnumVariant] = []
        while not self.peek_is(T.RBRACE):
            if not self.expect_peek(T.IDENT):
                return None
            variant = ast.EnumVariant(ast.Identifier(self.cur_token, self.cur_token.value))
            if self.peek_is(T.ASSIGN):
                self.next_token()
                self.next_token()
                variant.value = self.parse_expression(LOWEST)
                if variant.value is None:
                    return None
            variants.append(variant)
            if self.peek_is(T.COMMA):
                self.next_token()
        self.next_token()
        self.skip_semicolon()
        return ast.EnumStatement(tok, name, variants)

    def parse_function_declaration(self) -> Optional[ast.Statement]:
        """``define name(...) {...}`` or ``define Struct.method(...) {...}``."""
        tok = self.cur_token
        self.next_token()
        first = ast.Identifier(self.cur_token, self.cur_token.value)

        if self.peek_is(T.DOT):
            self.next_token()
            if not self.expect_peek(T.IDENT):
                return None
            method = ast.Identifier(self.cur_token, self.cur_token.value)
            fn = self.parse_function_rest(tok, f"{first.value}.{method.value}")
            if fn is None:
                return None
            return ast.MethodDefinition(tok, first, method, fn)

        fn = self.parse_function_rest(tok, first.value)
        if fn is None:
            return None
        return ast.LetStatement(tok, first, fn)

    def parse_block_statement(self) -> ast.BlockStatement:
        block = ast.BlockStatement(self.cur_token, [])
        self.next_token()
        while not self.cur_is(T.RBRACE):
            if self.cur_is(T.EOF):
                self.report("expected '}' before end of file",
                            catalog.unexpected_token("}", "end of file", self.location(self.cur_token))
                            .with_help(_PEEK_HELP[T.RBRACE])
                            .with_note("reached end of file unexpectedly"))
                break
            stmt = self.parse_statement()
            if stmt is not None:
                block.statements.append(stmt)
            self.next_token()
        return block

    ###########################################################################
    # Type annotations and parameters
    ###########################################################################

    def parse_type_annotation(self) -> Optional[TypeAnnotation]:
        """Parse a type starting at the current token.

        ``int``, ``[]T``, ``map[K]V`` or the name of a struct or enum.
        """
        tok = self.cur_token
        if tok.type == T.LBRACKET:
            if not self.expect_peek(T.RBRACKET):
                return None
            self.next_token()
            element = self.parse_type_annotation()
            if element is None:
                return None
            return TypeAnnotation.array_of(element)

        if tok.type == T.TYPE_MAP and self.peek_is(T.LBRACKET):
            self.next_token()
            self.next_token()
            key = self.parse_type_annotation()
            if key is None or not self.expect_peek(T.RBRACKET):
                return None
            self.next_token()
            value = self.parse_type_annotation()
            if value is None:
                return None
            return TypeAnnotation.map_of(key, value)

        if T.is_type_keyword(tok.type) or tok.type == T.IDENT:
            return TypeAnnotation(tok.value)

        found = self.describe(tok)
        self.report(f"expected type annotation, got {found}",
                    catalog.invalid_type_annotation(found, self.location(tok)))
        return None

    def parse_function_parameters(self) -> Optional[Tuple[List[ast.Identifier], Optional[List[ast.TypedParameter]]]]:
        """Parse ``(a, b: int)`` with the current token on ``(``.

        The typed list is ``None`` unless at least one parameter carries
        an annotation, in which case it has one entry per parameter.
        """
        identifiers: List[ast.Identifier] = []
        typed: List[ast.TypedParameter] = []
        has_types = False

        if self.peek_is(T.RPAREN):
            self.next_token()
            return identifiers, None

        while True:
            if not self.expect_peek(T.IDENT):
                return None
            ident = ast.Identifier(self.cur_token, self.cur_token.value)
            annotation = None
            if self.peek_is(T.COLON):
                self.next_token()
                self.next_token()
                annotation = self.parse_type_annotation()
                if annotation is None:
                    return None
                has_types = True
            identifiers.append(ident)
            typed.append(ast.TypedParameter(ident, annotation))
            if not self.peek_is(T.COMMA):
                break
            self.next_token()

        if not self.expect_peek(T.RPAREN):
            return None
        return identifiers, (typed if has_types else None)

    def parse_return_types(self) -> Optional[List[TypeAnnotation]]:
        result: List[TypeAnnotation] = []
        while True:
            self.next_token()
            annotation = self.parse_type_annotation()
            if annotation is None:
                return None
            result.append(annotation)
            if not self.peek_is(T.COMMA):
                return result
            self.next_token()

    def parse_function_rest(self, tok: Token, name: str = "") -> Optional[ast.FunctionLiteral]:
        """Parse parameters, return types and body, starting before ``(``."""
        if not self.expect_peek(T.LPAREN):
            return None
        params = self.parse_function_parameters()
        if params is None:
            return None
        identifiers, typed = params

        return_types = None
        if self.peek_is(T.ARROW_RETURN):
            self.next_token()
            return_types = self.parse_return_types()
            if return_types is None:
                return None

        if not self.expect_peek(T.LBRACE):
            return None
        body = self.parse_block_statement()
        return ast.FunctionLiteral(tok, identifiers, body, typed, return_types, name)

    ###########################################################################
    # Expressions
    ###########################################################################

    def parse_expression(self, precedence: int) -> Optional[ast.Expression]:
        prefix = self.prefix_fns.get(self.cur_token.type)
        if prefix is None:
            self.no_prefix_parse_fn_error(self.cur_token)
            return None
        return self.parse_infix_chain(prefix(), precedence)

    def parse_infix_chain(self, left: Optional[ast.Expression], precedence: int) -> Optional[ast.Expression]:
        while left is not None and not self.peek_is(T.SEMICOLON) and precedence < self.peek_precedence():
            infix = self.infix_fns.get(self.peek_token.type)
            if infix is None:
                return left
            self.next_token()
            left = infix(left)
        return left

    def parse_identifier(self) -> Optional[ast.Expression]:
        ident = ast.Identifier(self.cur_token, self.cur_token.value)
        if self.allow_struct_literal and self.peek_is(T.LBRACE):
            return self.parse_struct_instantiation(ident)
        return ident

    def parse_type_keyword_as_identifier(self) -> ast.Expression:
        return ast.Identifier(self.cur_token, self.cur_token.value)

    def parse_struct_instantiation(self, name: ast.Identifier) -> Optional[ast.StructInstantiation]:
        self.next_token()
        fields: List[Tuple[str, ast.Expression]] = []
        while not self.peek_is(T.RBRACE):
            self.next_token()
            if self.cur_token.type not in (T.IDENT, T.STRING):
                self.peek_error_at_current(T.IDENT)
                return None
            key = self.cur_token.value
            if not self.expect_peek(T.COLON):
                return None
            self.next_token()
            with self.struct_literals(True):
                value = self.parse_expression(LOWEST)
            if value is None:
                return None
            fields.append((key, value))
            if not self.peek_is(T.RBRACE) and not self.expect_peek(T.COMMA):
                return None
        self.next_token()
        return ast.StructInstantiation(name.token, name, fields)

    def peek_error_at_current(self, kind: str) -> None:
        """Report the current token as unexpected where ``kind`` was wanted."""
        self.pos -= 1
        self.peek_error(kind)
        self.pos += 1

    def parse_integer_literal(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        try:
            value = int(tok.value, 10)
        except ValueError:
            value = None
        if value is None or value > INT64_MAX:
            self.report(f"could not parse {tok.value!r} as integer",
                        catalog.invalid_integer(tok.value, self.location(tok)))
            return None
        return ast.IntegerLiteral(tok, value)

    def parse_float_literal(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        try:
            value = float(tok.value)
        except ValueError:
            self.report(f"could not parse {tok.value!r} as float",
                        catalog.invalid_float(tok.value, self.location(tok)))
            return None
        return ast.FloatLiteral(tok, value)

    def parse_string_literal(self) -> ast.Expression:
        tok = self.cur_token
        quote = '"'
        if self.source and tok.start_pos is not None and tok.start_pos < len(self.source):
            quote = self.source[tok.start_pos]
        return ast.StringLiteral(tok, tok.value, quote)

    def parse_boolean(self) -> ast.Expression:
        return ast.Boolean(self.cur_token, self.cur_is(T.TRUE))

    def parse_prefix_expression(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        self.next_token()
        right = self.parse_expression(PREFIX)
        if right is None:
            return None
        return ast.PrefixExpression(tok, tok.value, right)

    def parse_prefix_inc_dec(self) -> Optional[ast.Expression]:
        return self.parse_prefix_expression()

    def parse_spread_expression(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        self.next_token()
        right = self.parse_expression(PREFIX)
        if right is None:
            return None
        return ast.SpreadExpression(tok, right)

    def arrow_parameters_ahead(self) -> Optional[int]:
        """Length of an arrow-function parameter list starting at the peek token.

        Recognises ``)`` ``=>``, ``x )`` ``=>`` and ``x , y ... )`` ``=>``
        and returns the number of tokens up to and including ``)``, or
        ``None`` when the parenthesis opens an ordinary group.
        """
        offset = 1
        if self.ahead(offset).type == T.RPAREN:
            return offset if self.ahead(offset + 1).type == T.ARROW else None
        while self.ahead(offset).type == T.IDENT:
            nxt = self.ahead(offset + 1).type
            if nxt == T.COMMA:
                offset += 2
                continue
            if nxt == T.RPAREN and self.ahead(offset + 2).type == T.ARROW:
                return offset + 1
            return None
        return None

    def parse_grouped_expression(self) -> Optional[ast.Expression]:
        length = self.arrow_parameters_ahead()
        if length is not None:
            params: List[ast.Identifier] = []
            for _ in range(length):
                self.next_token()
                if self.cur_is(T.IDENT):
                    params.append(ast.Identifier(self.cur_token, self.cur_token.value))
            self.next_token()
            arrow = self.cur_token
            self.next_token()
            body = self.parse_expression(ARROW)
            if body is None:
                return None
            return ast.ArrowFunction(arrow, params, body)

        self.next_token()
        with self.struct_literals(True):
            exp = self.parse_expression(LOWEST)
        if exp is None or not self.expect_peek(T.RPAREN):
            return None
        return exp

    def parse_arrow_function(self, left: ast.Expression) -> Optional[ast.Expression]:
        arrow = self.cur_token
        if not isinstance(left, ast.Identifier):
            message = f"expected identifier before '=>', got {left}"
            self.report(message, catalog.parse_error(message, self.location(arrow))
                        .with_help("arrow functions take identifiers: x => x * 2 or (a, b) => a + b"))
            return None
        self.next_token()
        body = self.parse_expression(ARROW)
        if body is None:
            return None
        return ast.ArrowFunction(arrow, [left], body)

    def parse_if_expression(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        if not self.expect_peek(T.LPAREN):
            return None
        self.next_token()
        with self.struct_literals(True):
            condition = self.parse_expression(LOWEST)
        if condition is None or not self.expect_peek(T.RPAREN):
            return None
        if not self.expect_peek(T.LBRACE):
            return None
        consequence = self.parse_block_statement()

        alternative = None
        if self.peek_is(T.ELSE):
            self.next_token()
            if self.peek_is(T.IF):
                self.next_token()
                nested = self.parse_if_expression()
                if nested is None:
                    return None
                alternative = ast.BlockStatement(nested.token, [ast.ExpressionStatement(nested.token, nested)])
            else:
                if not self.expect_peek(T.LBRACE):
                    return None
                alternative = self.parse_block_statement()
        return ast.IfExpression(tok, condition, consequence, alternative)

    def parse_function_literal(self) -> Optional[ast.Expression]:
        return self.parse_function_rest(self.cur_token)

    def parse_expression_list(self, end: str) -> Optional[List[ast.Expression]]:
        items: List[ast.Expression] = []
        if self.peek_is(end):
            self.next_token()
            return items
        with self.struct_literals(True):
            self.next_token()
            item = self.parse_expression(LOWEST)
            if item is None:
                return None
            items.append(item)
            while self.peek_is(T.COMMA):
                self.next_token()
                self.next_token()
                item = self.parse_expression(LOWEST)
                if item is None:
                    return None
                items.append(item)
        if not self.expect_peek(end):
            return None
        return items

    def parse_call_expression(self, function: ast.Expression) -> Optional[ast.Expression]:
        tok = self.cur_token
        args = self.parse_expression_list(T.RPAREN)
        if args is None:
            return None
        return ast.CallExpression(tok, function, args)

    def parse_array_literal(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        elements = self.parse_expression_list(T.RBRACKET)
        if elements is None:
            return None
        return ast.ArrayLiteral(tok, elements)

    def parse_index_expression(self, left: ast.Expression) -> Optional[ast.Expression]:
        """``a[i]``, ``a[:j]``, ``a[i:]`` or ``a[i:j]``."""
        tok = self.cur_token
        self.next_token()
        with self.struct_literals(True):
            if self.cur_is(T.COLON):
                return self.parse_slice_end(ast.SliceExpression(tok, left, None))

            first = self.parse_expression(LOWEST)
            if first is None:
                return None
            if self.peek_is(T.COLON):
                self.next_token()
                return self.parse_slice_end(ast.SliceExpression(tok, left, first))

        if not self.expect_peek(T.RBRACKET):
            return None
        return ast.IndexExpression(tok, left, first)

    def parse_slice_end(self, node: ast.SliceExpression) -> Optional[ast.Expression]:
        # The current token is the ':'.
        if self.peek_is(T.RBRACKET):
            self.next_token()
            return node
        self.next_token()
        node.end = self.parse_expression(LOWEST)
        if node.end is None or not self.expect_peek(T.RBRACKET):
            return None
        return node

    def parse_hash_literal(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        pairs: List[Tuple[ast.Expression, ast.Expression]] = []
        with self.struct_literals(True):
            while not self.peek_is(T.RBRACE):
                self.next_token()
                key = self.parse_expression(LOWEST)
                if key is None or not self.expect_peek(T.COLON):
                    return None
                self.next_token()
                value = self.parse_expression(LOWEST)
                if value is None:
                    return None
                pairs.append((key, value))
                if not self.peek_is(T.RBRACE) and not self.expect_peek(T.COMMA):
                    return None
        self.next_token()
        return ast.HashLiteral(tok, pairs)

    def parse_while_expression(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        if not self.expect_peek(T.LPAREN):
            return None
        self.next_token()
        with self.struct_literals(True):
            condition = self.parse_expression(LOWEST)
        if condition is None or not self.expect_peek(T.RPAREN):
            return None
        if not self.expect_peek(T.LBRACE):
            return None
        return ast.WhileExpression(tok, condition, self.parse_block_statement())

    def parse_for_expression(self) -> Optional[ast.Expression]:
        if self.peek_is(T.LPAREN):
            return self.parse_c_for_expression()
        tok = self.cur_token
        if not self.expect_peek(T.IDENT):
            return None
        first = ast.Identifier(self.cur_token, self.cur_token.value)
        second = None
        if self.peek_is(T.COMMA):
            self.next_token()
            if not self.expect_peek(T.IDENT):
                return None
            second = ast.Identifier(self.cur_token, self.cur_token.value)
        if not self.expect_peek(T.IN):
            return None
        self.next_token()
        # A name followed by '{' here is the iterable, not a struct literal.
        with self.struct_literals(False):
            iterable = self.parse_expression(LOWEST)
        if iterable is None or not self.expect_peek(T.LBRACE):
            return None
        body = self.parse_block_statement()
        if second is None:
            return ast.ForExpression(tok, first, iterable, body)
        return ast.ForInIndexExpression(tok, first, second, iterable, body)

    def parse_c_for_expression(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        self.next_token()
        self.next_token()

        init = None
        if not self.cur_is(T.SEMICOLON):
            init = self.parse_statement()
            if init is None:
                return None
            if not self.cur_is(T.SEMICOLON) and not self.expect_peek(T.SEMICOLON):
                return None
        self.next_token()

        condition = None
        if not self.cur_is(T.SEMICOLON):
            condition = self.parse_expression(LOWEST)
            if condition is None or not self.expect_peek(T.SEMICOLON):
                return None
        self.next_token()

        update = None
        if not self.cur_is(T.RPAREN):
            update = self.parse_statement()
            if update is None or not self.expect_peek(T.RPAREN):
                return None

        if not self.expect_peek(T.LBRACE):
            return None
        return ast.CForExpression(tok, init, condition, update, self.parse_block_statement())

    def parse_dot_expression(self, left: ast.Expression) -> Optional[ast.Expression]:
        tok = self.cur_token
        self.next_token()
        name = self.cur_token
        # Keywords are fine as member names: arr.map, obj.type
        if name.type != T.IDENT and not str(name).isidentifier():
            self.peek_error_at_current(T.IDENT)
            return None
        return ast.InfixExpression(tok, left, ".", ast.Identifier(name, name.value))

    def parse_postfix_expression(self, left: ast.Expression) -> ast.Expression:
        return ast.PostfixExpression(self.cur_token, left, self.cur_token.value)

    def parse_switch_expression(self) -> Optional[ast.Expression]:
        tok = self.cur_token
        if not self.expect_peek(T.LPAREN):
            return None
        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None or not self.expect_peek(T.RPAREN) or not self.expect_peek(T.LBRACE):
            return None

        node = ast.SwitchExpression(tok, value, [])
        self.next_token()
        while not self.cur_is(T.RBRACE) and not self.cur_is(T.EOF):
            if self.cur_is(T.CASE):
                case_tok = self.cur_token
                self.next_token()
                case_value = self.parse_expression(LOWEST)
                if case_value is None or not self.expect_peek(T.COLON) or not self.expect_peek(T.LBRACE):
                    return None
                node.cases.append(ast.CaseExpression(case_tok, case_value, self.parse_block_statement()))
            elif self.cur_is(T.DEFAULT):
                if not self.expect_peek(T.COLON) or not self.expect_peek(T.LBRACE):
                    return None
                node.default = self.parse_block_statement()
            else:
                self.peek_error_at_current(T.CASE)
                return None
            self.next_token()
        if self.cur_is(T.EOF):
            self.peek_error_at_current(T.RBRACE)
            return None
        return node

    def parse_ternary_expression(self, condition: ast.Expression) -> Optional[ast.Expression]:
        tok = self.cur_token
        self.next_token()
        consequence = self.parse_expression(LOWEST)
        if consequence is None or not self.expect_peek(T.COLON):
            return None
        self.next_token()
        alternative = self.parse_expression(TERNARY - 1)
        if alternative is None:
            return None
        return ast.TernaryExpression(tok, condition, consequence, alternative)

    def parse_range_expression(self, start: ast.Expression) -> Optional[ast.Expression]:
        tok = self.cur_token
        self.next_token()
        end = self.parse_expression(RANGE)
        if end is None:
            return None
        return ast.RangeExpression(tok, start, end)

    def parse_infix_expression(self, left: ast.Expression) -> Optional[ast.Expression]:
        tok = self.cur_token
        precedence = self.cur_precedence()
        self.next_token()
        if tok.type in ASSIGNMENT_KINDS:
            # Right-associative: a = b = 1 is a = (b = 1).
            precedence = LOWEST
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return ast.InfixExpression(tok, left, tok.value, right)


def parse_program(source: str, filename: str = "") -> ast.Program:
    """Parse ``source`` into a :class:`~victoria.ast.Program`.

    Raises :class:`~victoria.errors.VictoriaError` carrying every
    diagnostic when the source does not parse.
    """
    parser = Parser(tokenize(source), source, filename)
    program = parser.parse_program()
    if parser.rich_errors:
        raise VictoriaError(parser.rich_errors)
    return program
