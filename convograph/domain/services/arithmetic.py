"""
Domain service: arithmetic expression recognition and evaluation.
Zero external dependencies.

The evaluator is a recursive-descent parser over numeric literals,
``+ - * /``, unary signs and parentheses. It cannot express anything but
arithmetic, so user text never reaches a generic code evaluator.

Grammar::

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("+" | "-") unary | primary
    primary    := NUMBER | "(" expression ")"
"""

import math
import re
from dataclasses import dataclass

ARITHMETIC_PATTERN = re.compile(r"[0-9+\-*/.()\s]+")

_TOKEN_PATTERN = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|(.))")
_WHITESPACE = re.compile(r"\s*")
_MAX_DEPTH = 100

MAX_EXPRESSION_LENGTH = 1000


class ExpressionError(ValueError):
    """Base class for expressions that cannot be turned into a number."""


class ArithmeticSyntaxError(ExpressionError):
    pass


class NonFiniteResultError(ExpressionError):
    """Division by zero, overflow, or any other result that is not a finite number."""


def is_arithmetic(text: str | None) -> bool:
    """True when *text*, once trimmed, is non-empty and uses only the arithmetic alphabet."""
    if not text:
        return False
    stripped = text.strip()
    return bool(stripped) and ARITHMETIC_PATTERN.fullmatch(stripped) is not None


@dataclass(frozen=True)
class _Token:
    kind: str  # "number" | "op" | "end"
    value: str
    position: int


def _tokenize(expression: str) -> list[_Token]:
    tokens: list[_Token] = []
    length = len(expression)
    position = _WHITESPACE.match(expression).end()
    while position < length:
        match = _TOKEN_PATTERN.match(expression, position)
        number, symbol = match.group(1), match.group(2)
        if number is not None:
            tokens.append(_Token("number", number, match.start(1)))
        elif symbol in "+-*/()":
            tokens.append(_Token("op", symbol, match.start(2)))
        else:
            raise ArithmeticSyntaxError(
                f"Unexpected character {symbol!r} at position {match.start(2)}"
            )
        position = _WHITESPACE.match(expression, match.end()).end()
    tokens.append(_Token("end", "", length))
    return tokens


class _Parser:
    def __init__(self, expression: str) -> None:
        self._tokens = _tokenize(expression)
        self._index = 0
        self._depth = 0

    @property
    def _current(self) -> _Token:
        return self._tokens[self._index]

    def _advance(self) -> _Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _accept(self, *ops: str) -> str | None:
        token = self._current
        if token.kind == "op" and token.value in ops:
            self._index += 1
            return token.value
        return None

    def parse(self) -> float:
        if self._current.kind == "end":
            raise ArithmeticSyntaxError("Empty expression")
        value = self._expression()
        if self._current.kind != "end":
            raise ArithmeticSyntaxError(
                f"Unexpected {self._current.value!r} at position {self._current.position}"
            )
        return value

    def _expression(self) -> float:
        value = self._term()
        while (op := self._accept("+", "-")) is not None:
            right = self._term()
            value = value + right if op == "+" else value - right
        return value

    def _term(self) -> float:
        value = self._unary()
        while (op := self._accept("*", "/")) is not None:
            right = self._unary()
            if op == "*":
                value = value * right
            elif right == 0:
                raise NonFiniteResultError("Division by zero")
            else:
                value = value / right
        return value

    def _unary(self) -> float:
        sign = 1.0
        while (op := self._accept("+", "-")) is not None:
            if op == "-":
                sign = -sign
        return sign * self._primary()

    def _primary(self) -> float:
        token = self._current
        if token.kind == "number":
            self._advance()
            return float(token.value)
        if self._accept("("):
            self._depth += 1
            if self._depth > _MAX_DEPTH:
                raise ArithmeticSyntaxError("Expression is nested too deeply")
            value = self._expression()
            if not self._accept(")"):
                raise ArithmeticSyntaxError(
                    f"Expected ')' at position {self._current.position}"
                )
            self._depth -= 1
            return value
        if token.kind == "end":
            raise ArithmeticSyntaxError("Unexpected end of expression")
        raise ArithmeticSyntaxError(
            f"Unexpected {token.value!r} at position {token.position}"
        )


def evaluate(expression: str) -> float:
    """Evaluate an arithmetic *expression* and return a finite float.

    Raises:
        ArithmeticSyntaxError: malformed expression or a character outside the
                               arithmetic alphabet, or longer than
                               MAX_EXPRESSION_LENGTH characters.
        NonFiniteResultError:  division by zero or a result that overflows.
    """
    if not is_arithmetic(expression):
        raise ArithmeticSyntaxError(f"Not an arithmetic expression: {expression!r}")
    expression = expression.strip()
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise ArithmeticSyntaxError(
            f"Expression is longer than {MAX_EXPRESSION_LENGTH} characters"
        )
    result = _Parser(expression).parse()
    if not math.isfinite(result):
        raise NonFiniteResultError(f"Result is not a finite number: {result}")
    return result


def format_number(value: float) -> str:
    """Render *value* the way a calculator display would: ``8`` rather than ``8.0``."""
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)
