"""Tokenizer for calculator expressions.

Produces LITERAL, OPERATOR, VARIABLE, FUNCTION, COMMA, END_GROUP and INVALID
tokens. An identifier directly followed by '(' is a FUNCTION token that
swallows the parenthesis; a bare '(' is a FUNCTION token with an empty name.
'-' is always an operator (no negative literal tokens).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from pupil.operators import Operator


class TokenKind(enum.Enum):
    LITERAL = 'literal'        # value: float
    OPERATOR = 'operator'      # value: Operator
    VARIABLE = 'variable'      # value: str
    FUNCTION = 'function'      # value: str, '' for a plain group
    COMMA = 'comma'            # value: None
    END_GROUP = 'end_group'    # value: None
    INVALID = 'invalid'        # value: int, offending position


@dataclass(frozen=True)
class Token:
    """Represents a token with kind, value, and character position."""
    kind: TokenKind
    value: Any = None
    pos: int = 0

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.value!r}, pos={self.pos})"


_OPERATOR_CHARS = set('+-*/%^')
_NUMBER_CHARS = set('0123456789.')


class Lexer:
    """Lazily splits text into tokens. Stops after the first INVALID token."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.len = len(text)

    def _peek(self, n: int = 0) -> str:
        i = self.pos + n
        return self.text[i] if i < self.len else ''

    def _advance(self, n: int = 1) -> None:
        self.pos += n

    def _skip_whitespace(self) -> None:
        while self._peek() and self._peek().isspace():
            self._advance()

    def _read_number(self) -> Token:
        start = self.pos
        while self._peek() and self._peek() in _NUMBER_CHARS:
            self._advance()
        raw = self.text[start:self.pos]
        try:
            return Token(TokenKind.LITERAL, float(raw), start)
        except ValueError:
            # e.g. '.' or '1.2.3'
            return Token(TokenKind.INVALID, start, start)

    def _read_ident(self) -> Optional[Token]:
        start = self.pos
        while self._peek() and (self._peek().isalnum() or self._peek() == '_'):
            self._advance()
        name = self.text[start:self.pos]
        if self._peek() == '(':
            self._advance()
            return Token(TokenKind.FUNCTION, name, start)
        if name:
            return Token(TokenKind.VARIABLE, name, start)
        return None

    def tokenize(self) -> Iterator[Token]:
        while True:
            self._skip_whitespace()
            ch = self._peek()
            if ch == '':
                return
            start = self.pos
            if ch in _OPERATOR_CHARS:
                self._advance()
                yield Token(TokenKind.OPERATOR, Operator.from_symbol(ch), start)
                continue
            if ch == ',':
                self._advance()
                yield Token(TokenKind.COMMA, None, start)
                continue
            if ch == ')':
                self._advance()
                yield Token(TokenKind.END_GROUP, None, start)
                continue
            if ch in _NUMBER_CHARS:
                token = self._read_number()
            else:
                token = self._read_ident()
            if token is None or token.kind is TokenKind.INVALID:
                # Hand the position upstream and abandon the rest of the input
                self.pos = self.len
                yield Token(TokenKind.INVALID, start, start)
                return
            yield token


def tokenize(text: str) -> Iterator[Token]:
    """Convenience wrapper returning a fresh lazy token iterator for ``text``."""
    return Lexer(text).tokenize()
