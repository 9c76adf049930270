"""Builtin numeric operations.

Every builtin is called as ``fn(env, args)`` with the arguments taken off the
value stack in left-to-right order, and returns a float. Argument counts are
checked here as well as by the evaluator so the functions are safe to call
directly. Arithmetic runs on numpy float64 with floating point errors
silenced, so division by zero and domain errors produce inf/nan instead of
raising.
"""

from __future__ import annotations

import functools
import math
from typing import TYPE_CHECKING, Callable, Dict, List, Sequence

import numpy as np

from pupil.errors import InvalidArgumentCountError

if TYPE_CHECKING:
    from pupil.environment import Environment

Builtin = Callable[["Environment", Sequence[float]], float]

# --------------------------
# Helpers
# --------------------------

def _ieee(func: Builtin) -> Builtin:
    """Run a builtin with IEEE-754 semantics and coerce its result to float."""
    @functools.wraps(func)
    def wrapper(env: Environment, args: Sequence[float]) -> float:
        with np.errstate(all='ignore'):
            return float(func(env, args))
    return wrapper

def _expect(name: str, args: Sequence[float], *counts: int) -> None:
    if len(args) not in counts:
        wanted = " or ".join(str(c) for c in counts)
        raise InvalidArgumentCountError(
            f"{name or 'group'}() takes {wanted} argument(s), got {len(args)}")

def _expect_some(name: str, args: Sequence[float]) -> np.ndarray:
    if len(args) == 0:
        raise InvalidArgumentCountError(f"{name}() takes at least 1 argument, got 0")
    return np.asarray(args, dtype=np.float64)

def _unary(name: str, ufunc: Callable[[np.float64], np.float64]) -> Builtin:
    """Wrap a one-argument numpy function as a builtin."""
    def builtin(env: Environment, args: Sequence[float]) -> float:
        _expect(name, args, 1)
        return ufunc(np.float64(args[0]))
    builtin.__name__ = name
    return _ieee(builtin)

def _constant(name: str, value: float) -> Builtin:
    def builtin(env: Environment, args: Sequence[float]) -> float:
        _expect(name, args, 0)
        return value
    builtin.__name__ = name
    return _ieee(builtin)

# --------------------------
# Operators
# --------------------------

@_ieee
def identity(env: Environment, args: Sequence[float]) -> float:
    """Value of a parenthesised group."""
    _expect('', args, 1)
    return args[0]

@_ieee
def add(env: Environment, args: Sequence[float]) -> float:
    return np.sum(_expect_some('add', args))

@_ieee
def sub(env: Environment, args: Sequence[float]) -> float:
    _expect('sub', args, 1, 2)
    if len(args) == 1:
        return -np.float64(args[0])
    return np.float64(args[0]) - np.float64(args[1])

@_ieee
def mul(env: Environment, args: Sequence[float]) -> float:
    return np.prod(_expect_some('mul', args))

@_ieee
def div(env: Environment, args: Sequence[float]) -> float:
    _expect('div', args, 2)
    return np.divide(np.float64(args[0]), np.float64(args[1]))

@_ieee
def rem(env: Environment, args: Sequence[float]) -> float:
    """Truncated remainder; the result has the sign of the dividend."""
    _expect('rem', args, 2)
    return np.fmod(np.float64(args[0]), np.float64(args[1]))

@_ieee
def pow_(env: Environment, args: Sequence[float]) -> float:
    _expect('pow', args, 2)
    return np.power(np.float64(args[0]), np.float64(args[1]))

# --------------------------
# Rounding and misc
# --------------------------

@_ieee
def round_(env: Environment, args: Sequence[float]) -> float:
    _expect('round', args, 1, 2)
    x = np.float64(args[0])
    if len(args) == 1:
        return np.round(x)
    if not np.isfinite(args[1]):
        return np.nan
    # 10**digits must stay finite; past float64's exponent range the result is x or zero
    if args[1] > 308:
        return x
    if args[1] < -308:
        return np.copysign(0.0, x)
    return np.round(x, int(args[1]))

@_ieee
def minimum(env: Environment, args: Sequence[float]) -> float:
    return np.min(_expect_some('min', args))

@_ieee
def maximum(env: Environment, args: Sequence[float]) -> float:
    return np.max(_expect_some('max', args))

def _gamma(x: np.float64) -> float:
    # math.gamma raises at poles and on overflow where IEEE gives nan/inf
    try:
        return math.gamma(x)
    except ValueError:
        return math.nan
    except OverflowError:
        return math.inf

# --------------------------
# Logarithms
# --------------------------

@_ieee
def log(env: Environment, args: Sequence[float]) -> float:
    """Natural logarithm, or ``log(x, base)``."""
    _expect('log', args, 1, 2)
    if len(args) == 1:
        return np.log(np.float64(args[0]))
    return np.log(np.float64(args[0])) / np.log(np.float64(args[1]))

# --------------------------
# Statistics
# --------------------------

@_ieee
def mean(env: Environment, args: Sequence[float]) -> float:
    return np.mean(_expect_some('mean', args))

@_ieee
def median(env: Environment, args: Sequence[float]) -> float:
    return np.median(_expect_some('median', args))

@_ieee
def value_range(env: Environment, args: Sequence[float]) -> float:
    return np.ptp(_expect_some('range', args))

@_ieee
def variance(env: Environment, args: Sequence[float]) -> float:
    """Population variance."""
    return np.var(_expect_some('var', args))

@_ieee
def stddev(env: Environment, args: Sequence[float]) -> float:
    return np.std(_expect_some('stddev', args))

@_ieee
def atan2(env: Environment, args: Sequence[float]) -> float:
    _expect('atan2', args, 2)
    return np.arctan2(np.float64(args[0]), np.float64(args[1]))

# --------------------------
# Registry
# --------------------------

# Builtins registry: map lower-case names to callables.
BUILTINS: Dict[str, Builtin] = {}

def _register(name: str, func: Builtin) -> None:
    BUILTINS[name] = func

# The empty name is what a bare '(' resolves to.
_register('', identity)
_register('add', add)
_register('sub', sub)
_register('mul', mul)
_register('div', div)
_register('rem', rem)
_register('pow', pow_)

_register('floor', _unary('floor', np.floor))
_register('ceil', _unary('ceil', np.ceil))
_register('round', round_)
_register('abs', _unary('abs', np.abs))
_register('sqr', _unary('sqr', np.square))
_register('cube', _unary('cube', lambda x: x * x * x))
_register('sqrt', _unary('sqrt', np.sqrt))
_register('cbrt', _unary('cbrt', np.cbrt))
_register('min', minimum)
_register('max', maximum)
_register('gamma', _unary('gamma', _gamma))
_register('fac', _unary('fac', lambda x: _gamma(x + 1.0)))

_register('exp', _unary('exp', np.exp))
_register('exp2', _unary('exp2', np.exp2))
_register('expm1', _unary('expm1', np.expm1))
_register('ln', _unary('ln', np.log))
_register('log', log)
_register('log2', _unary('log2', np.log2))
_register('log10', _unary('log10', np.log10))
_register('ln1p', _unary('ln1p', np.log1p))
_register('e', _constant('e', math.e))

_register('mean', mean)
_register('median', median)
_register('range', value_range)
_register('var', variance)
_register('stddev', stddev)
_register('stdev', stddev)

_register('deg', _unary('deg', np.degrees))
_register('rad', _unary('rad', np.radians))
_register('pi', _constant('pi', math.pi))
_register('tau', _constant('tau', math.tau))
_register('sin', _unary('sin', np.sin))
_register('cos', _unary('cos', np.cos))
_register('tan', _unary('tan', np.tan))
_register('asin', _unary('asin', np.arcsin))
_register('acos', _unary('acos', np.arccos))
_register('atan', _unary('atan', np.arctan))
_register('atan2', atan2)
_register('sinh', _unary('sinh', np.sinh))
_register('cosh', _unary('cosh', np.cosh))
_register('tanh', _unary('tanh', np.tanh))

# Names for help/completion; the anonymous group entry is not listed.
BUILTIN_NAMES: List[str] = sorted(name for name in BUILTINS if name)
