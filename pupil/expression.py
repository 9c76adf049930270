"""Incremental expression evaluator.

Tokens are consumed one at a time and evaluated in a single pass with two
stacks: pending calls (operators and functions) and computed values. No
syntax tree is built; a pending call is applied as soon as precedence allows.

Function calls and parenthesised groups are pushed with the FN_BARRIER
precedence, which is lower than any operator, so draining for an operator
never reaches past an unclosed call. Commas and closing parentheses drain
everything above the barrier; the closing parenthesis then applies the call
that owns it.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterable, List

from pupil.builtins import Builtin
from pupil.environment import Environment
from pupil.errors import (
    ExpressionSyntaxError,
    IncompleteExpressionError,
    InvalidOperationError,
    InvalidTokenError,
    StackUnderflowError,
    UnbalancedExpressionError,
)
from pupil.lexer import Token, TokenKind, tokenize
from pupil.operators import Associativity, Operator, Order

logger = logging.getLogger(__name__)


class State(enum.Enum):
    EXPECT_VALUE = 'value'
    EXPECT_OPERATOR = 'operator'
    FINISHED = 'finished'


@dataclass
class PendingCall:
    """An operator or function waiting for its arguments."""
    function: Builtin
    order: Order
    nargs: int
    name: str = ''


class ValueStack:
    """Stack of computed values; calls take their arguments off the top."""

    def __init__(self) -> None:
        self._values: List[float] = []

    def __len__(self) -> int:
        return len(self._values)

    def push(self, value: float) -> None:
        self._values.append(value)

    def pop(self) -> float:
        if not self._values:
            raise StackUnderflowError("Attempting to pop a value from an empty stack")
        return self._values.pop()

    def top(self, n: int) -> List[float]:
        """Remove and return the top ``n`` values, oldest first."""
        if n > len(self._values):
            raise StackUnderflowError(
                f"A call needs {n} argument(s) but only {len(self._values)} value(s) are stacked")
        if n == 0:
            return []
        args = self._values[-n:]
        del self._values[-n:]
        return args


class Expression:
    """Evaluation context for a single expression.

    Feed tokens with :meth:`parse` (or text with :meth:`feed`), possibly over
    several calls, then call :meth:`result` once. An instance that raised is
    in an undefined state and should be discarded.
    """

    def __init__(self, env: Environment):
        self.env = env
        self.calls: List[PendingCall] = []
        self.values = ValueStack()
        self.state = State.EXPECT_VALUE

    # --------------------------
    # Public surface
    # --------------------------

    def parse(self, token: Token) -> None:
        """Consume the next token."""
        logger.debug("Parsing %r in state %s", token, self.state.name)
        if self.state is State.EXPECT_OPERATOR:
            self._parse_operator(token)
        elif self.state is State.EXPECT_VALUE:
            self._parse_value(token)
        else:
            raise InvalidOperationError(
                "No new tokens can be parsed because the expression is finished, "
                "create a new expression to start over")

    def feed_tokens(self, tokens: Iterable[Token]) -> None:
        for token in tokens:
            self.parse(token)

    def feed(self, text: str) -> None:
        """Tokenize and parse ``text``; may be called repeatedly."""
        self.feed_tokens(tokenize(text))

    def result(self) -> float:
        """Force evaluation of everything pending and return the final value."""
        if self.state is State.FINISHED:
            raise InvalidOperationError("The result of this expression was already taken")
        if self.state is State.EXPECT_VALUE:
            raise IncompleteExpressionError(
                "The expression is unfinished because it ends with an operator")
        self._drain_above(Order.FN_BARRIER)
        if len(self.values) != 1 or self.calls:
            raise UnbalancedExpressionError(
                "The expression contains unevaluated functions, add closing parentheses")
        self.state = State.FINISHED
        return self.values.pop()

    @classmethod
    def evaluate(cls, env: Environment, text: str) -> float:
        """Convenience helper to tokenize, parse and calculate ``text``."""
        expr = cls(env)
        expr.feed(text)
        return expr.result()

    # --------------------------
    # State handlers
    # --------------------------

    def _parse_value(self, token: Token) -> None:
        kind = token.kind
        if kind is TokenKind.INVALID:
            raise InvalidTokenError(token.value)
        if kind is TokenKind.LITERAL:
            self.values.push(float(token.value))
            self.state = State.EXPECT_OPERATOR
        elif kind is TokenKind.OPERATOR:
            op: Operator = token.value
            if not op.unary():
                raise ExpressionSyntaxError(
                    f"Cannot use '{op.value}' as a unary operator at position {token.pos}")
            self.calls.append(PendingCall(op.builtin(), Order.UNARY, 1, op.name.lower()))
            # state stays EXPECT_VALUE
        elif kind is TokenKind.VARIABLE:
            self.values.push(self._resolve(token.value))
            self.state = State.EXPECT_OPERATOR
        elif kind is TokenKind.FUNCTION:
            name = token.value.lower()
            func = self.env.lookup_function(name)
            self.calls.append(PendingCall(func, Order.FN_BARRIER, 1, name))
            # the call expects its first argument next
        elif kind is TokenKind.COMMA:
            raise ExpressionSyntaxError(f"Did not expect a comma at position {token.pos}")
        elif kind is TokenKind.END_GROUP:
            raise ExpressionSyntaxError(
                f"Did not expect a closing parenthesis at position {token.pos}")
        else:
            raise ExpressionSyntaxError(f"Unknown token kind: {kind}")

    def _parse_operator(self, token: Token) -> None:
        kind = token.kind
        if kind is TokenKind.INVALID:
            raise InvalidTokenError(token.value)
        if kind is TokenKind.LITERAL:
            raise ExpressionSyntaxError(
                f"Did not expect the literal {token.value!r} at position {token.pos}")
        if kind is TokenKind.OPERATOR:
            self._push_binary(token.value)
        elif kind in (TokenKind.VARIABLE, TokenKind.FUNCTION):
            logger.debug("Inserting implicit multiplication before %r", token.value)
            self._push_binary(Operator.IMUL)
            self._parse_value(token)
        elif kind is TokenKind.COMMA:
            # Finish the previous argument without crossing the call's barrier
            self._drain_above(Order.FN_BARRIER)
            if not self.calls:
                raise ExpressionSyntaxError(
                    f"Found a comma outside a function call at position {token.pos}")
            self.calls[-1].nargs += 1
            self.state = State.EXPECT_VALUE
        elif kind is TokenKind.END_GROUP:
            self._drain_above(Order.FN_BARRIER)
            if not self.calls:
                raise UnbalancedExpressionError(
                    f"Unmatched closing parenthesis at position {token.pos}")
            self._apply()
            self.state = State.EXPECT_OPERATOR
        else:
            raise ExpressionSyntaxError(f"Unknown token kind: {kind}")

    # --------------------------
    # Evaluation
    # --------------------------

    def _push_binary(self, op: Operator) -> None:
        order = op.precedence()
        if op.associativity() is Associativity.LEFT:
            self._drain_from(order)
        else:
            self._drain_above(order)
        self.calls.append(PendingCall(op.builtin(), order, 2, op.name.lower()))
        self.state = State.EXPECT_VALUE

    def _drain_from(self, order: Order) -> None:
        """Apply pending calls with precedence >= ``order`` (left associative)."""
        while self.calls and self.calls[-1].order >= order:
            self._apply()

    def _drain_above(self, order: Order) -> None:
        """Apply pending calls with precedence > ``order`` (right associative, groups)."""
        while self.calls and self.calls[-1].order > order:
            self._apply()

    def _apply(self) -> None:
        if not self.calls:
            raise StackUnderflowError("Attempting to apply a call when none are pending")
        call = self.calls.pop()
        args = self.values.top(call.nargs)
        value = call.function(self.env, args)
        logger.debug("Applied %s%r -> %r", call.name or 'group', tuple(args), value)
        self.values.push(value)

    def _resolve(self, name: str) -> float:
        # Zero-argument functions (constants) shadow variables of the same name
        if self.env.has_function(name):
            return self.env.lookup_function(name)(self.env, [])
        return self.env.lookup_variable(name)
