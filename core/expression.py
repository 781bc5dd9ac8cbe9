"""Arithmetic expression evaluator used to compute generated answers.

Supports numbers, ``+ - * /``, unary minus, parentheses, a postfix ``%``
(divide by 100) and ``of`` as multiplication, so both ``(-3) - 5`` and
``25% of 80`` evaluate. Multiplication and division bind tighter than
addition and subtraction; operators of equal precedence associate left.
"""

import re

_TOKEN_RE = re.compile(r'\s*(?:(\d+(?:\.\d+)?)|(of)\b|(.))')


class ExpressionError(ValueError):
    """Raised for malformed expressions or division by zero."""


def tokenize(text: str) -> list[str]:
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            break
        number, keyword, symbol = match.groups()
        token = number or keyword or symbol
        if symbol is not None and symbol not in '+-*/()%':
            raise ExpressionError(f"Unexpected character {symbol!r} at {match.start(3)}")
        tokens.append(token)
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, tokens: list[str]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def take(self) -> str:
        token = self.peek()
        if token is None:
            raise ExpressionError("Unexpected end of expression")
        self.pos += 1
        return token

    def expression(self) -> float:
        value = self.term()
        while self.peek() in ('+', '-'):
            if self.take() == '+':
                value += self.term()
            else:
                value -= self.term()
        return value

    def term(self) -> float:
        value = self.unary()
        while self.peek() in ('*', '/', 'of'):
            op = self.take()
            rhs = self.unary()
            if op == '/':
                if rhs == 0:
                    raise ExpressionError("Division by zero")
                value /= rhs
            else:
                value *= rhs
        return value

    def unary(self) -> float:
        if self.peek() == '-':
            self.take()
            return -self.unary()
        if self.peek() == '+':
            self.take()
            return self.unary()
        value = self.primary()
        while self.peek() == '%':
            self.take()
            value /= 100
        return value

    def primary(self) -> float:
        token = self.take()
        if token == '(':
            value = self.expression()
            if self.take() != ')':
                raise ExpressionError("Expected ')'")
            return value
        try:
            return float(token)
        except ValueError:
            raise ExpressionError(f"Unexpected token {token!r}") from None


def evaluate(text: str) -> float:
    """Evaluate an arithmetic expression and return its value."""
    tokens = tokenize(text)
    if not tokens:
        raise ExpressionError("Empty expression")
    parser = _Parser(tokens)
    value = parser.expression()
    if parser.peek() is not None:
        raise ExpressionError(f"Unexpected token {parser.peek()!r}")
    return value
