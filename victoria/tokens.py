"""Token kinds and the keyword table for Victoria.

Tokens are :class:`lark.Token` instances: the token ``type`` holds one
of the kind names below and the string value is the verbatim source
text. Line and column numbers are 1-based; ``end_column`` points one
past the last character of the token.
"""

from __future__ import annotations

from typing import Dict

from lark import Token


ILLEGAL = "ILLEGAL"
EOF = "EOF"
UNTERMINATED_STRING = "UNTERMINATED_STRING"

IDENT = "IDENT"
INT = "INT"
FLOAT = "FLOAT"
STRING = "STRING"

# Operators
ASSIGN = "ASSIGN"
PLUS = "PLUS"
MINUS = "MINUS"
BANG = "BANG"
ASTERISK = "ASTERISK"
SLASH = "SLASH"
MODULO = "MODULO"
PLUS_ASSIGN = "PLUS_ASSIGN"
MINUS_ASSIGN = "MINUS_ASSIGN"
ASTERISK_ASSIGN = "ASTERISK_ASSIGN"
SLASH_ASSIGN = "SLASH_ASSIGN"
MODULO_ASSIGN = "MODULO_ASSIGN"
INC = "INC"
DEC = "DEC"
LT = "LT"
GT = "GT"
EQ = "EQ"
NOT_EQ = "NOT_EQ"
LTE = "LTE"
GTE = "GTE"
AND_AND = "AND_AND"
OR_OR = "OR_OR"
QUESTION = "QUESTION"
RANGE = "RANGE"
SPREAD = "SPREAD"
ARROW = "ARROW"
ARROW_RETURN = "ARROW_RETURN"

# Punctuation
COMMA = "COMMA"
SEMICOLON = "SEMICOLON"
COLON = "COLON"
DOT = "DOT"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
LBRACE = "LBRACE"
RBRACE = "RBRACE"
LBRACKET = "LBRACKET"
RBRACKET = "RBRACKET"

# Keywords
FUNCTION = "FUNCTION"
LET = "LET"
CONST = "CONST"
TRUE = "TRUE"
FALSE = "FALSE"
IF = "IF"
ELSE = "ELSE"
RETURN = "RETURN"
STRUCT = "STRUCT"
ENUM = "ENUM"
WHILE = "WHILE"
FOR = "FOR"
IN = "IN"
INCLUDE = "INCLUDE"
TRY = "TRY"
CATCH = "CATCH"
BREAK = "BREAK"
CONTINUE = "CONTINUE"
SWITCH = "SWITCH"
CASE = "CASE"
DEFAULT = "DEFAULT"
AND = "AND"
OR = "OR"
NOT = "NOT"

TYPE_INT = "TYPE_INT"
TYPE_FLOAT = "TYPE_FLOAT"
TYPE_STRING = "TYPE_STRING"
TYPE_BOOL = "TYPE_BOOL"
TYPE_CHAR = "TYPE_CHAR"
TYPE_BYTE = "TYPE_BYTE"
TYPE_RUNE = "TYPE_RUNE"
TYPE_ARRAY = "TYPE_ARRAY"
TYPE_MAP = "TYPE_MAP"
TYPE_ANY = "TYPE_ANY"
TYPE_VOID = "TYPE_VOID"


TYPE_KEYWORDS: Dict[str, str] = {
    "int": TYPE_INT,
    "float": TYPE_FLOAT,
    "string": TYPE_STRING,
    "bool": TYPE_BOOL,
    "char": TYPE_CHAR,
    "byte": TYPE_BYTE,
    "rune": TYPE_RUNE,
    "array": TYPE_ARRAY,
    "map": TYPE_MAP,
    "any": TYPE_ANY,
    "void": TYPE_VOID,
}

KEYWORDS: Dict[str, str] = {
    "define": FUNCTION,
    "let": LET,
    "const": CONST,
    "true": TRUE,
    "false": FALSE,
    "if": IF,
    "else": ELSE,
    "return": RETURN,
    "struct": STRUCT,
    "enum": ENUM,
    "while": WHILE,
    "for": FOR,
    "in": IN,
    "and": AND,
    "or": OR,
    "not": NOT,
    "include": INCLUDE,
    "try": TRY,
    "catch": CATCH,
    "break": BREAK,
    "continue": CONTINUE,
    "switch": SWITCH,
    "case": CASE,
    "default": DEFAULT,
    **TYPE_KEYWORDS,
}

# Two-character operators, looked up on (current char, next char).
DOUBLE_OPERATORS: Dict[str, str] = {
    "==": EQ,
    "!=": NOT_EQ,
    "<=": LTE,
    ">=": GTE,
    "+=": PLUS_ASSIGN,
    "-=": MINUS_ASSIGN,
    "*=": ASTERISK_ASSIGN,
    "/=": SLASH_ASSIGN,
    "%=": MODULO_ASSIGN,
    "++": INC,
    "--": DEC,
    "&&": AND_AND,
    "||": OR_OR,
    "=>": ARROW,
    "->": ARROW_RETURN,
}

SINGLE_OPERATORS: Dict[str, str] = {
    "=": ASSIGN,
    "+": PLUS,
    "-": MINUS,
    "!": BANG,
    "*": ASTERISK,
    "/": SLASH,
    "%": MODULO,
    "<": LT,
    ">": GT,
    "?": QUESTION,
    ",": COMMA,
    ";": SEMICOLON,
    ":": COLON,
    "(": LPAREN,
    ")": RPAREN,
    "{": LBRACE,
    "}": RBRACE,
    "[": LBRACKET,
    "]": RBRACKET,
}

# Printable spelling of each kind, used in "expected X" messages.
SPELLING: Dict[str, str] = {
    **{kind: text for text, kind in DOUBLE_OPERATORS.items()},
    **{kind: text for text, kind in SINGLE_OPERATORS.items()},
    **{kind: word for word, kind in KEYWORDS.items()},
    DOT: ".",
    RANGE: "..",
    SPREAD: "...",
    IDENT: "identifier",
    INT: "integer",
    FLOAT: "float",
    STRING: "string",
    EOF: "end of file",
}


def lookup_ident(word: str) -> str:
    return KEYWORDS.get(word, IDENT)


def is_type_keyword(kind: str) -> bool:
    return kind in TYPE_KEYWORDS.values()


def spell(kind: str) -> str:
    return SPELLING.get(kind, kind)


def make_token(kind: str, literal: str, line: int, column: int, end_column: int, start_pos: int = 0,
               end_line: int = 0) -> Token:
    return Token(kind, literal, start_pos=start_pos, line=line, column=column,
                 end_line=end_line or line, end_column=end_column)
