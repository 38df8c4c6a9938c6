"""
Parser for the prefix S-expression language used by rewrite rules.

Grammar::

    expr    := number | ident | "(" op expr expr ")" | "(" "-" expr ")"
             | "(" function expr* ")"
    op      := "+" | "-" | "*" | "/"
    number  := digits ["." digits] ["e" ["+" | "-"] digits]
    ident   := [a-z][a-zA-Z0-9]*

Identifiers become ``Variable`` nodes. Each distinct name receives an id the
first time a given ``Parser`` sees it, so parsing a rule's pattern and then
its rewrite with the same parser keeps the holes consistent.
"""

import math
import re
from enum import Enum
from typing import Dict, List, Optional

from herbie_lint.lisp.expr import BINARY_OPS, FUNCTIONS, NEG, Binary, Call, Expr, Literal, Unary, Variable

_FLOAT_RE = re.compile(r"\d+(?:\.\d*)?(?:[eE][+-]?\d+)?")
_FLOAT_CHARS = frozenset("0123456789.eE+-")


class ParseErrorKind(str, Enum):
    """Kinds of DSL parse errors."""
    UNEXPECTED = "unexpected"
    EXPECTED = "expected"
    ARITY = "arity"
    IDENT = "ident"
    FLOAT = "float"
    EOE = "eoe"


class ParseError(ValueError):
    """Raised when DSL text is malformed."""

    def __init__(self, kind: ParseErrorKind, char: Optional[str] = None, position: int = 0):
        self.kind = kind
        self.char = char
        self.position = position
        detail = f" {char!r}" if char is not None else ""
        super().__init__(f"{kind.value}{detail} at position {position}")


class Parser:
    """
    Stateful DSL parser.

    Args:
        names: Optional initial name -> id table. Names in it keep their ids,
            new names are numbered after the largest known id.
    """

    def __init__(self, names: Optional[Dict[str, int]] = None):
        self.names: Dict[str, int] = dict(names or {})
        self._text = ""
        self._pos = 0

    def parse(self, text: str) -> Expr:
        """Parse a complete expression, rejecting trailing characters."""
        self._text = text
        self._pos = 0

        expr = self._parse_expr()
        if self._peek() is not None:
            raise ParseError(ParseErrorKind.EOE, position=self._pos)
        return expr

    # Character helpers

    def _skip_whitespace(self):
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def _peek(self) -> Optional[str]:
        """Return the next non-whitespace character without consuming it."""
        self._skip_whitespace()
        if self._pos < len(self._text):
            return self._text[self._pos]
        return None

    def _next(self) -> Optional[str]:
        c = self._peek()
        if c is not None:
            self._pos += 1
        return c

    def _expect(self, expected: str):
        if self._next() != expected:
            raise ParseError(ParseErrorKind.EXPECTED, expected, self._pos)

    # Grammar

    def _parse_expr(self) -> Expr:
        c = self._peek()
        if c is None:
            raise ParseError(ParseErrorKind.EOE, position=self._pos)
        if c == "(":
            self._pos += 1
            return self._parse_form()
        if c.isdigit():
            return self._parse_float()
        if "a" <= c <= "z":
            return self._parse_ident()
        raise ParseError(ParseErrorKind.UNEXPECTED, c, self._pos)

    def _parse_form(self) -> Expr:
        c = self._peek()
        if c is None:
            raise ParseError(ParseErrorKind.EOE, position=self._pos)
        if c in BINARY_OPS:
            self._pos += 1
            return self._parse_op(c)
        if "a" <= c <= "z":
            return self._parse_call()
        raise ParseError(ParseErrorKind.UNEXPECTED, c, self._pos)

    def _parse_op(self, op: str) -> Expr:
        lhs = self._parse_expr()
        if self._peek() == ")":
            if op != NEG:
                raise ParseError(ParseErrorKind.ARITY, op, self._pos)
            self._pos += 1
            return Unary(NEG, lhs)

        rhs = self._parse_expr()
        self._expect(")")
        return Binary(op, lhs, rhs)

    def _parse_call(self) -> Expr:
        start = self._pos
        name = self._read_word()
        if name != "sqr" and name not in FUNCTIONS:
            raise ParseError(ParseErrorKind.IDENT, position=start)

        args: List[Expr] = []
        while True:
            c = self._peek()
            if c is None:
                raise ParseError(ParseErrorKind.EXPECTED, ")", self._pos)
            if c == ")":
                self._pos += 1
                break
            args.append(self._parse_expr())

        if name == "sqr":
            if len(args) != 1:
                raise ParseError(ParseErrorKind.ARITY, position=start)
            return Binary("*", args[0], args[0])

        if len(args) != FUNCTIONS[name][1]:
            raise ParseError(ParseErrorKind.ARITY, position=start)
        return Call(name, tuple(args))

    def _parse_float(self) -> Expr:
        start = self._pos
        while self._pos < len(self._text) and self._text[self._pos] in _FLOAT_CHARS:
            self._pos += 1

        token = self._text[start:self._pos]
        if not _FLOAT_RE.fullmatch(token):
            raise ParseError(ParseErrorKind.FLOAT, token, start)
        value = float(token)
        # Overflowing literals such as 1e400 would print back as "inf"
        if not math.isfinite(value):
            raise ParseError(ParseErrorKind.FLOAT, token, start)
        return Literal(value)

    def _parse_ident(self) -> Expr:
        name = self._read_word()
        if name not in self.names:
            self.names[name] = max(self.names.values(), default=-1) + 1
        return Variable(self.names[name])

    def _read_word(self) -> str:
        start = self._pos
        while self._pos < len(self._text) and self._text[self._pos].isalnum() and self._text[self._pos].isascii():
            self._pos += 1
        return self._text[start:self._pos]


def parse(text: str) -> Expr:
    """Parse DSL text with a fresh name table."""
    return Parser().parse(text)
