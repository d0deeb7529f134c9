"""Lexer for the Victoria language.

The lexer is a cursor over the source text that hands out one token per
call to :meth:`Lexer.next_token`. It never raises: characters it does
not understand come back as ``ILLEGAL`` tokens and a string that runs
into the end of input comes back as ``UNTERMINATED_STRING``. The parser
turns those into diagnostics.
"""

from __future__ import annotations

from typing import List

from lark import Token

from . import tokens as T


def is_letter(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


class Lexer:
    def __init__(self, source: str):
        self.source = source
        self.position = 0       # index of the current character
        self.read_position = 0  # index of the next character
        self.ch = ""            # current character, "" at end of input
        self.line = 1
        self.line_start = 0
        self.column = 0
        self.read_char()

    def read_char(self) -> None:
        if self.read_position >= len(self.source):
            self.ch = ""
        else:
            self.ch = self.source[self.read_position]
        self.position = self.read_position
        self.read_position += 1
        self.column = self.position - self.line_start + 1

    def peek_char(self, offset: int = 0) -> str:
        idx = self.read_position + offset
        if idx >= len(self.source):
            return ""
        return self.source[idx]

    def newline(self) -> None:
        self.line += 1
        self.line_start = self.read_position

    def token(self, kind: str, literal: str, column: int, end_column: int, start: int) -> Token:
        return T.make_token(kind, literal, self.line, column, end_column, start_pos=start)

    def next_token(self) -> Token:
        self.skip_trivia()
        ch = self.ch
        col = self.column
        start = self.position

        if ch == "":
            return self.token(T.EOF, "", col, col, start)

        if ch == ".":
            if self.peek_char() == ".":
                if self.peek_char(1) == ".":
                    self.read_char()
                    self.read_char()
                    self.read_char()
                    return self.token(T.SPREAD, "...", col, col + 3, start)
                self.read_char()
                self.read_char()
                return self.token(T.RANGE, "..", col, col + 2, start)
            if is_digit(self.peek_char()):
                literal = self.read_number()
                return self.token(T.FLOAT, literal, col, self.column, start)
            self.read_char()
            return self.token(T.DOT, ".", col, col + 1, start)

        pair = ch + self.peek_char()
        if pair in T.DOUBLE_OPERATORS:
            self.read_char()
            self.read_char()
            return self.token(T.DOUBLE_OPERATORS[pair], pair, col, col + 2, start)

        if ch in T.SINGLE_OPERATORS:
            self.read_char()
            return self.token(T.SINGLE_OPERATORS[ch], ch, col, col + 1, start)

        if ch == '"' or ch == "`":
            return self.read_string(ch, col, start)

        if is_letter(ch):
            literal = self.read_identifier()
            return self.token(T.lookup_ident(literal), literal, col, self.column, start)

        if is_digit(ch):
            literal = self.read_number()
            kind = T.FLOAT if "." in literal else T.INT
            return self.token(kind, literal, col, self.column, start)

        # '&' and '|' on their own land here too.
        self.read_char()
        return self.token(T.ILLEGAL, ch, col, col + 1, start)

    def skip_trivia(self) -> None:
        """Skip whitespace and comments, keeping the line counter current."""
        while True:
            if self.ch in (" ", "\t", "\r", "\n"):
                if self.ch == "\n":
                    self.newline()
                self.read_char()
            elif self.ch == "/" and self.peek_char() == "/":
                while self.ch not in ("\n", ""):
                    self.read_char()
            elif self.ch == "/" and self.peek_char() == "*":
                self.read_char()
                self.read_char()
                while self.ch != "":
                    if self.ch == "*" and self.peek_char() == "/":
                        self.read_char()
                        self.read_char()
                        break
                    if self.ch == "\n":
                        self.newline()
                    self.read_char()
            else:
                return

    def read_identifier(self) -> str:
        start = self.position
        while is_letter(self.ch) or is_digit(self.ch):
            self.read_char()
        return self.source[start:self.position]

    def read_number(self) -> str:
        start = self.position
        while is_digit(self.ch):
            self.read_char()
        if self.ch == "." and is_digit(self.peek_char()):
            self.read_char()
            while is_digit(self.ch):
                self.read_char()
        return self.source[start:self.position]

    def read_string(self, quote: str, col: int, start: int) -> Token:
        """Read a quoted string. The literal is the raw text between quotes.

        Double-quoted strings honour backslash escapes (the escaped
        character never closes the string); escape sequences themselves
        are decoded later by the evaluator. Backtick strings are raw.
        Both kinds may span lines.
        """
        start_line = self.line
        self.read_char()
        body_start = self.position
        while self.ch != quote:
            if self.ch == "":
                literal = self.source[body_start:self.position]
                return T.make_token(T.UNTERMINATED_STRING, literal, start_line, col, col + 1,
                                    start_pos=start, end_line=self.line)
            if self.ch == "\\" and quote == '"' and self.peek_char() != "":
                self.read_char()
            if self.ch == "\n":
                self.newline()
            self.read_char()
        literal = self.source[body_start:self.position]
        self.read_char()
        end_col = self.column if self.line == start_line else col + len(literal) + 2
        return T.make_token(T.STRING, literal, start_line, col, end_col, start_pos=start, end_line=self.line)


def tokenize(source: str) -> List[Token]:
    """Return every token of ``source``, ending with the EOF token."""
    lexer = Lexer(source)
    result: List[Token] = []
    while True:
        tok = lexer.next_token()
        result.append(tok)
        if tok.type == T.EOF:
            return result
