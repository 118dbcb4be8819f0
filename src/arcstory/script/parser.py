"""Recursive-descent parser producing an expression AST.

Precedence, lowest to highest::

    ||  (or)
    &&  (and)
    ==  !=  (is, is not)
    <  >  <=  >=
    +  -
    *  /  %
    unary  !  -  +  (not)
    literal | name | call | ( expression )
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Tuple, Union

from arcstory.core.values import Value
from arcstory.script.errors import ParseError
from arcstory.script.tokens import (
    COMMA,
    EOF,
    LITERAL,
    LPAREN,
    NAME,
    NUMBER,
    OP,
    RPAREN,
    STRING,
    Token,
    tokenize,
)


@dataclass(frozen=True, slots=True)
class Literal:
    value: Value


@dataclass(frozen=True, slots=True)
class Name:
    name: str


@dataclass(frozen=True, slots=True)
class Unary:
    operator: str
    operand: "Expression"


@dataclass(frozen=True, slots=True)
class Binary:
    operator: str
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True, slots=True)
class Logical:
    operator: str
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True, slots=True)
class Call:
    name: str
    args: Tuple["Expression", ...]


Expression = Union[Literal, Name, Unary, Binary, Logical, Call]

_EQUALITY = ("==", "!=")
_RELATIONAL = ("<", ">", "<=", ">=")
_ADDITIVE = ("+", "-")
_MULTIPLICATIVE = ("*", "/", "%")
_UNARY = ("!", "-", "+")


class Parser:
    """Turns a token list into an Expression tree."""

    def __init__(self, tokens: List[Token]) -> None:
        self._tokens = tokens
        self._index = 0

    def parse(self) -> Expression:
        if self._peek().kind == EOF:
            raise ParseError("Empty expression.", position=0)
        expression = self._or()
        token = self._peek()
        if token.kind != EOF:
            raise ParseError(
                f"Unexpected token {token.value!r} at position {token.position}.",
                position=token.position,
            )
        return expression

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != EOF:
            self._index += 1
        return token

    def _match_op(self, operators: Tuple[str, ...]) -> str | None:
        token = self._peek()
        if token.kind == OP and token.value in operators:
            self._advance()
            return str(token.value)
        return None

    def _or(self) -> Expression:
        left = self._and()
        while self._match_op(("||",)):
            left = Logical("||", left, self._and())
        return left

    def _and(self) -> Expression:
        left = self._equality()
        while self._match_op(("&&",)):
            left = Logical("&&", left, self._equality())
        return left

    def _equality(self) -> Expression:
        left = self._relational()
        while True:
            operator = self._match_op(_EQUALITY)
            if operator is None:
                return left
            left = Binary(operator, left, self._relational())

    def _relational(self) -> Expression:
        left = self._additive()
        while True:
            operator = self._match_op(_RELATIONAL)
            if operator is None:
                return left
            left = Binary(operator, left, self._additive())

    def _additive(self) -> Expression:
        left = self._multiplicative()
        while True:
            operator = self._match_op(_ADDITIVE)
            if operator is None:
                return left
            left = Binary(operator, left, self._multiplicative())

    def _multiplicative(self) -> Expression:
        left = self._unary()
        while True:
            operator = self._match_op(_MULTIPLICATIVE)
            if operator is None:
                return left
            left = Binary(operator, left, self._unary())

    def _unary(self) -> Expression:
        operator = self._match_op(_UNARY)
        if operator is not None:
            return Unary(operator, self._unary())
        return self._primary()

    def _primary(self) -> Expression:
        token = self._advance()
        if token.kind in (NUMBER, STRING, LITERAL):
            return Literal(token.value)  # type: ignore[arg-type]
        if token.kind == NAME:
            if self._peek().kind == LPAREN:
                self._advance()
                return Call(str(token.value), self._arguments())
            return Name(str(token.value))
        if token.kind == LPAREN:
            expression = self._or()
            self._expect(RPAREN, "')'")
            return expression
        if token.kind == EOF:
            raise ParseError("Unexpected end of expression.", position=token.position)
        raise ParseError(
            f"Unexpected token {token.value!r} at position {token.position}.",
            position=token.position,
        )

    def _arguments(self) -> Tuple[Expression, ...]:
        args: List[Expression] = []
        if self._peek().kind == RPAREN:
            self._advance()
            return ()
        while True:
            args.append(self._or())
            if self._peek().kind == COMMA:
                self._advance()
                continue
            self._expect(RPAREN, "')' or ','")
            return tuple(args)

    def _expect(self, kind: str, description: str) -> Token:
        token = self._peek()
        if token.kind != kind:
            raise ParseError(
                f"Expected {description} at position {token.position}.",
                position=token.position,
            )
        return self._advance()


@lru_cache(maxsize=512)
def parse_expression(source: str) -> Expression:
    """Parse expression text; results are cached since the AST is immutable."""
    try:
        return Parser(tokenize(source.strip())).parse()
    except RecursionError as exc:
        raise ParseError("Expression is nested too deeply.") from exc


__all__ = [
    "Binary",
    "Call",
    "Expression",
    "Literal",
    "Logical",
    "Name",
    "Parser",
    "Unary",
    "parse_expression",
]
