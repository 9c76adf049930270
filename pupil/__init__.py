"""Pupil: a single-pass, token-driven arithmetic expression evaluator."""

from pupil.environment import Environment
from pupil.errors import (
    ExpressionSyntaxError,
    IncompleteExpressionError,
    InvalidArgumentCountError,
    InvalidOperationError,
    InvalidTokenError,
    PupilError,
    StackUnderflowError,
    UnbalancedExpressionError,
    UnknownIdentifierError,
)
from pupil.expression import Expression
from pupil.lexer import Lexer, Token, TokenKind, tokenize
from pupil.operators import Associativity, Operator, Order

__all__ = [
    'Environment', 'Expression', 'Lexer', 'Token', 'TokenKind', 'tokenize',
    'Operator', 'Order', 'Associativity',
    'PupilError', 'InvalidTokenError', 'ExpressionSyntaxError', 'UnknownIdentifierError',
    'InvalidArgumentCountError', 'UnbalancedExpressionError', 'InvalidOperationError',
    'IncompleteExpressionError', 'StackUnderflowError',
]
