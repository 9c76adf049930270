"""Operator metadata: precedence, associativity, unary use and bound builtin.

Every ``Operator`` has exactly one entry in each table below. ``IMUL`` has no
symbol; the evaluator synthesizes it when two values are juxtaposed.
"""

from __future__ import annotations

import enum
from typing import Dict

from pupil import builtins
from pupil.builtins import Builtin


class Operator(enum.Enum):
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    REM = '%'
    IMUL = ''
    POW = '^'

    @classmethod
    def from_symbol(cls, symbol: str) -> Operator:
        """Map a lexed symbol to its operator. IMUL is never returned."""
        if not symbol:
            raise ValueError("Implicit multiplication has no symbol")
        return cls(symbol)

    def precedence(self) -> Order:
        return _PRECEDENCE[self]

    def associativity(self) -> Associativity:
        return _ASSOCIATIVITY[self]

    def unary(self) -> bool:
        return _UNARY[self]

    def builtin(self) -> Builtin:
        return _BUILTIN[self]


class Associativity(enum.Enum):
    LEFT = 'left'
    RIGHT = 'right'


class Order(enum.IntEnum):
    """Precedence levels, lowest first. Higher number binds tighter."""
    FN_BARRIER = 0
    ADD_SUB = 1
    MUL_DIV = 2
    IMUL = 3
    UNARY = 4
    EXP = 5


_PRECEDENCE: Dict[Operator, Order] = {
    Operator.ADD: Order.ADD_SUB,
    Operator.SUB: Order.ADD_SUB,
    Operator.MUL: Order.MUL_DIV,
    Operator.DIV: Order.MUL_DIV,
    Operator.REM: Order.MUL_DIV,
    Operator.IMUL: Order.IMUL,
    Operator.POW: Order.EXP,
}

_ASSOCIATIVITY: Dict[Operator, Associativity] = {
    Operator.ADD: Associativity.LEFT,
    Operator.SUB: Associativity.LEFT,
    Operator.MUL: Associativity.LEFT,
    Operator.DIV: Associativity.LEFT,
    Operator.REM: Associativity.LEFT,
    Operator.IMUL: Associativity.LEFT,
    Operator.POW: Associativity.RIGHT,
}

# Unary '+' is identity and unary '-' is negation: add/sub accept one argument.
_UNARY: Dict[Operator, bool] = {
    Operator.ADD: True,
    Operator.SUB: True,
    Operator.MUL: False,
    Operator.DIV: False,
    Operator.REM: False,
    Operator.IMUL: False,
    Operator.POW: False,
}

_BUILTIN: Dict[Operator, Builtin] = {
    Operator.ADD: builtins.add,
    Operator.SUB: builtins.sub,
    Operator.MUL: builtins.mul,
    Operator.DIV: builtins.div,
    Operator.REM: builtins.rem,
    Operator.IMUL: builtins.mul,
    Operator.POW: builtins.pow_,
}
