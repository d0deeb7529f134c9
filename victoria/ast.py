"""Abstract Syntax Tree (AST) definitions for the Victoria language.

Each node keeps the token it was parsed from so that runtime errors can
point back at the source. Tokens take no part in node equality: two
trees are equal when they have the same shape and the same values.

``str(node)`` prints the node back as Victoria source. Compound
expressions are fully parenthesised, so the printed text parses back to
an equal tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from lark import Token

from .errors import SourceLocation
from .types import TypeAnnotation


@dataclass
class Node:
    """Base class for all AST nodes."""
    token: Token = field(compare=False, repr=False)

    @property
    def location(self) -> SourceLocation:
        tok = self.token
        line = getattr(tok, "line", None) or 0
        column = getattr(tok, "column", None) or 0
        end_line = getattr(tok, "end_line", None) or line
        end_column = getattr(tok, "end_column", None) or column + max(len(str(tok)), 1)
        return SourceLocation(line, column, end_line, end_column)


# Statements and expressions share the base class; the aliases document
# which kind a child slot expects.
Statement = Node
Expression = Node


def _join(nodes) -> str:
    return ", ".join(str(n) for n in nodes)


###############################################################################
# Program and statements
###############################################################################

@dataclass
class Program(Node):
    statements: List[Statement]

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self.statements)


@dataclass
class BlockStatement(Node):
    statements: List[Statement]

    def __str__(self) -> str:
        if not self.statements:
            return "{ }"
        return "{ " + " ".join(str(s) for s in self.statements) + " }"


@dataclass
class ExpressionStatement(Node):
    expression: Expression

    def __str__(self) -> str:
        return f"{self.expression};"


@dataclass
class LetStatement(Node):
    name: "Identifier"
    value: Expression
    type: Optional[TypeAnnotation] = None

    keyword = "let"

    def __str__(self) -> str:
        ann = f": {self.type}" if self.type is not None else ""
        return f"{self.keyword} {self.name}{ann} = {self.value};"


@dataclass
class ConstStatement(LetStatement):
    keyword = "const"


@dataclass
class ReturnStatement(Node):
    value: Optional[Expression] = None

    def __str__(self) -> str:
        if self.value is None:
            return "return;"
        return f"return {self.value};"


@dataclass
class IncludeStatement(Node):
    modules: List[str]

    def __str__(self) -> str:
        if len(self.modules) == 1:
            return f'include "{self.modules[0]}";'
        return "include (" + ", ".join(f'"{m}"' for m in self.modules) + ");"


@dataclass
class TryStatement(Node):
    """``try { ... } catch (e) { ... }``. Also usable as an expression."""
    block: "BlockStatement"
    catch_variable: Optional["Identifier"] = None
    catch_block: Optional["BlockStatement"] = None

    def __str__(self) -> str:
        text = f"try {self.block}"
        if self.catch_block is not None:
            text += " catch"
            if self.catch_variable is not None:
                text += f" ({self.catch_variable})"
            text += f" {self.catch_block}"
        return text


@dataclass
class StructStatement(Node):
    name: "Identifier"
    fields: List["Identifier"]

    def __str__(self) -> str:
        return f"struct {self.name} {{ {_join(self.fields)} }}"


@dataclass
class EnumVariant:
    name: "Identifier"
    value: Optional[Expression] = None

    def __str__(self) -> str:
        if self.value is None:
            return str(self.name)
        return f"{self.name} = {self.value}"


@dataclass
class EnumStatement(Node):
    name: "Identifier"
    variants: List[EnumVariant]

    def __str__(self) -> str:
        return f"enum {self.name} {{ {_join(self.variants)} }}"


@dataclass
class MethodDefinition(Node):
    struct_name: "Identifier"
    method_name: "Identifier"
    function: "FunctionLiteral"

    def __str__(self) -> str:
        return f"define {self.struct_name}.{self.method_name}{self.function.signature()} {self.function.body}"


@dataclass
class BreakStatement(Node):
    def __str__(self) -> str:
        return "break;"


@dataclass
class ContinueStatement(Node):
    def __str__(self) -> str:
        return "continue;"


###############################################################################
# Literals and names
###############################################################################

@dataclass
class Identifier(Node):
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass
class IntegerLiteral(Node):
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class FloatLiteral(Node):
    value: float

    def __str__(self) -> str:
        literal = str(self.token)
        return literal if literal[:1].isdigit() or literal[:1] == "." else repr(self.value)


@dataclass
class StringLiteral(Node):
    """A string literal. ``value`` is the raw text between the quotes."""
    value: str
    quote: str = '"'

    def __str__(self) -> str:
        return f"{self.quote}{self.value}{self.quote}"


@dataclass
class Boolean(Node):
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass
class ArrayLiteral(Node):
    elements: List[Expression]

    def __str__(self) -> str:
        return f"[{_join(self.elements)}]"


@dataclass
class HashLiteral(Node):
    pairs: List[Tuple[Expression, Expression]]

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.pairs) + "}"


@dataclass
class StructInstantiation(Node):
    name: Identifier
    fields: List[Tuple[str, Expression]]

    def __str__(self) -> str:
        body = ", ".join(f"{k}: {v}" for k, v in self.fields)
        return f"{self.name} {{ {body} }}"


###############################################################################
# Operators
###############################################################################

@dataclass
class PrefixExpression(Node):
    operator: str
    right: Expression

    def __str__(self) -> str:
        sep = " " if self.operator.isalpha() else ""
        return f"({self.operator}{sep}{self.right})"


@dataclass
class InfixExpression(Node):
    """Binary operators, assignments and ``.`` member access."""
    left: Expression
    operator: str
    right: Expression

    def __str__(self) -> str:
        if self.operator == ".":
            return f"({self.left}.{self.right})"
        return f"({self.left} {self.operator} {self.right})"


@dataclass
class PostfixExpression(Node):
    left: Expression
    operator: str

    def __str__(self) -> str:
        return f"({self.left}{self.operator})"


@dataclass
class TernaryExpression(Node):
    condition: Expression
    consequence: Expression
    alternative: Expression

    def __str__(self) -> str:
        return f"({self.condition} ? {self.consequence} : {self.alternative})"


@dataclass
class RangeExpression(Node):
    start: Expression
    end: Expression

    def __str__(self) -> str:
        return f"({self.start}..{self.end})"


@dataclass
class SpreadExpression(Node):
    right: Expression

    def __str__(self) -> str:
        return f"...{self.right}"


@dataclass
class CallExpression(Node):
    function: Expression
    arguments: List[Expression]

    def __str__(self) -> str:
        return f"{self.function}({_join(self.arguments)})"


@dataclass
class IndexExpression(Node):
    left: Expression
    index: Expression

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


@dataclass
class SliceExpression(Node):
    left: Expression
    start: Optional[Expression] = None
    end: Optional[Expression] = None

    def __str__(self) -> str:
        start = "" if self.start is None else str(self.start)
        end = "" if self.end is None else str(self.end)
        return f"({self.left}[{start}:{end}])"


###############################################################################
# Functions
###############################################################################

@dataclass
class TypedParameter:
    name: Identifier
    type: Optional[TypeAnnotation] = None

    def __str__(self) -> str:
        if self.type is None:
            return str(self.name)
        return f"{self.name}: {self.type}"


@dataclass
class FunctionLiteral(Node):
    parameters: List[Identifier]
    body: BlockStatement
    typed_parameters: Optional[List[TypedParameter]] = None
    return_types: Optional[List[TypeAnnotation]] = None
    name: str = ""

    def signature(self) -> str:
        params = self.typed_parameters if self.typed_parameters is not None else self.parameters
        text = f"({_join(params)})"
        if self.return_types:
            text += " -> " + _join(self.return_types)
        return text

    def __str__(self) -> str:
        return f"define{self.signature()} {self.body}"


@dataclass
class ArrowFunction(Node):
    parameters: List[Identifier]
    body: Expression

    def __str__(self) -> str:
        return f"(({_join(self.parameters)}) => {self.body})"


###############################################################################
# Control flow
###############################################################################

@dataclass
class IfExpression(Node):
    condition: Expression
    consequence: BlockStatement
    alternative: Optional[BlockStatement] = None

    def __str__(self) -> str:
        text = f"if ({self.condition}) {self.consequence}"
        if self.alternative is not None:
            text += f" else {self.alternative}"
        return text


@dataclass
class WhileExpression(Node):
    condition: Expression
    body: BlockStatement

    def __str__(self) -> str:
        return f"while ({self.condition}) {self.body}"


@dataclass
class ForExpression(Node):
    """``for item in iterable { ... }``"""
    item: Identifier
    iterable: Expression
    body: BlockStatement

    def __str__(self) -> str:
        return f"for {self.item} in {self.iterable} {self.body}"


@dataclass
class ForInIndexExpression(Node):
    """``for index, value in iterable { ... }``"""
    index: Identifier
    value: Identifier
    iterable: Expression
    body: BlockStatement

    def __str__(self) -> str:
        return f"for {self.index}, {self.value} in {self.iterable} {self.body}"


@dataclass
class CForExpression(Node):
    """``for (init; condition; update) { ... }``"""
    init: Optional[Statement]
    condition: Optional[Expression]
    update: Optional[Statement]
    body: BlockStatement

    def __str__(self) -> str:
        init = str(self.init) if self.init is not None else ";"
        cond = str(self.condition) if self.condition is not None else ""
        update = self.update
        if isinstance(update, ExpressionStatement):
            update = update.expression
        upd = "" if update is None else str(update).rstrip(";")
        return f"for ({init} {cond}; {upd}) {self.body}"


@dataclass
class CaseExpression(Node):
    value: Expression
    body: BlockStatement

    def __str__(self) -> str:
        return f"case {self.value}: {self.body}"


@dataclass
class SwitchExpression(Node):
    value: Expression
    cases: List[CaseExpression]
    default: Optional[BlockStatement] = None

    def __str__(self) -> str:
        parts = [str(c) for c in self.cases]
        if self.default is not None:
            parts.append(f"default: {self.default}")
        return f"switch ({self.value}) {{ " + " ".join(parts) + " }"
