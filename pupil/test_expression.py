# test_expression.py

import logging
import math

import pytest

from pupil.environment import Environment
from pupil.errors import (
    ExpressionSyntaxError,
    IncompleteExpressionError,
    InvalidArgumentCountError,
    InvalidOperationError,
    InvalidTokenError,
    StackUnderflowError,
    UnbalancedExpressionError,
    UnknownIdentifierError,
)
from pupil.expression import Expression, PendingCall, State, ValueStack
from pupil.lexer import Token, TokenKind, tokenize
from pupil.operators import Operator, Order


def evaluate(text, env=None):
    return Expression.evaluate(env if env is not None else Environment(), text)

# ---------------------------
# Concrete scenarios
# ---------------------------

@pytest.mark.parametrize("expr,expected", [
    ("2+3*4", 14),
    ("(2+3)*4", 20),
    ("2^3^2", 512),
    ("sin(0)", 0),
    ("min(5,2,9)", 2),
    ("1 - 2 - 3", -4),
    ("64 / 4 / 2", 8),
    ("7 % 4 * 2", 6),
    ("-5", -5),
    ("--5", 5),
    ("+5", 5),
    ("-(-(-2))", -2),
    ("-2^2", -4),
    ("2^-1", 0.5),
    ("((2))", 2),
    ("2(3)", 6),
    ("(1 + 2) (3 + 4)", 21),
    ("max(1, min(5, 3), 2)", 3),
    ("add(1, 2, 3, 4)", 10),
    ("sqrt(16) + 1", 5),
    ("3.5 + 2.5", 6),
])
def test_evaluate_values(expr, expected):
    assert evaluate(expr) == expected


def test_implicit_multiplication_with_constant():
    assert math.isclose(evaluate("2 pi"), 2 * math.pi)
    assert math.isclose(evaluate("2pi"), 6.283185307, rel_tol=1e-9)

# ---------------------------
# Precedence and associativity
# ---------------------------

def test_left_associative_chains_group_left_to_right():
    env = Environment({'a': 10, 'b': 4, 'c': 3})
    assert evaluate("a - b - c", env) == (10 - 4) - 3
    assert evaluate("a / b / c", env) == (10 / 4) / 3


def test_exponentiation_groups_right_to_left():
    env = Environment({'a': 2, 'b': 3, 'c': 2})
    assert evaluate("a ^ b ^ c", env) == 2 ** (3 ** 2)


def test_implicit_multiplication_binds_tighter_than_division():
    env = Environment({'x': 2})
    # 8 / (2 x), not (8 / 2) x
    assert evaluate("8 / 2x", env) == 2


def test_implicit_multiplication_binds_looser_than_exponent_and_unary():
    env = Environment({'x': 3})
    assert evaluate("2 x ^ 2", env) == 18
    assert evaluate("-2 x", env) == -6
    assert evaluate("x sin(0) + 1", env) == 1


def test_function_arguments_are_isolated_by_barrier():
    assert evaluate("min(1+2, 3*4)") == 3
    assert evaluate("2 * max(1, 2 + 3) - 1") == 9
    assert evaluate("mul(2 + 1, 2) ^ 2") == 36


def test_round_trip_determinism():
    tokens = list(tokenize("sin(1.3) / 7 + 2 pi - mean(1, 2.5, 9) ^ 0.5"))
    first = Expression(Environment())
    first.feed_tokens(tokens)
    second = Expression(Environment())
    second.feed_tokens(tokens)
    a, b = first.result(), second.result()
    assert a.hex() == b.hex()

# ---------------------------
# Incremental feeding
# ---------------------------

def test_tokens_across_multiple_feeds():
    expr = Expression(Environment())
    expr.feed("2 +")
    expr.feed(" 3 *")
    expr.feed("4")
    assert expr.result() == 14


def test_parse_single_tokens():
    expr = Expression(Environment())
    assert expr.state is State.EXPECT_VALUE
    expr.parse(Token(TokenKind.FUNCTION, "MAX"))
    expr.parse(Token(TokenKind.LITERAL, 1.0))
    assert expr.state is State.EXPECT_OPERATOR
    expr.parse(Token(TokenKind.COMMA))
    assert expr.calls[-1].nargs == 2
    expr.parse(Token(TokenKind.LITERAL, 4.0))
    expr.parse(Token(TokenKind.END_GROUP))
    assert expr.result() == 4
    assert expr.state is State.FINISHED


def test_token_dispatch_is_logged_at_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger="pupil.expression"):
        evaluate("1 + 2")
    messages = [r.getMessage() for r in caplog.records if r.name == "pupil.expression"]
    assert any(m.startswith("Parsing Token(LITERAL, 1.0") and m.endswith("EXPECT_VALUE") for m in messages)
    assert any("Token(OPERATOR" in m and m.endswith("EXPECT_OPERATOR") for m in messages)


def test_identifiers_are_case_insensitive():
    env = Environment({'Rate': 2})
    assert evaluate("RATE * SIN(0) + rate", env) == 2
    assert math.isclose(evaluate("PI", env), math.pi)


def test_ans_variable_is_read_from_environment():
    env = Environment()
    env.set_variable('ans', 41)
    assert evaluate("ans + 1", env) == 42


def test_evaluator_does_not_mutate_environment():
    env = Environment({'x': 1})
    before = dict(env.variables)
    evaluate("x + 1", env)
    assert env.variables == before


def test_ieee_results_propagate():
    assert evaluate("1 / 0") == math.inf
    assert math.isnan(evaluate("sqrt(-1)"))

# ---------------------------
# Errors
# ---------------------------

@pytest.mark.parametrize("expr", ["2 +", "-", "", "min(1,"])
def test_ending_on_operator_is_incomplete(expr):
    with pytest.raises(IncompleteExpressionError) as e:
        evaluate(expr)
    assert isinstance(e.value, ExpressionSyntaxError)
    assert isinstance(e.value, InvalidOperationError)


@pytest.mark.parametrize("expr", ["sin(1", "(1 + 2", "max(1, (2)"])
def test_unclosed_call_is_unbalanced(expr):
    with pytest.raises(UnbalancedExpressionError):
        evaluate(expr)


@pytest.mark.parametrize("expr", ["1)", "(1))", "2 + 3)"])
def test_stray_closing_parenthesis_is_unbalanced(expr):
    with pytest.raises(UnbalancedExpressionError):
        evaluate(expr)


@pytest.mark.parametrize("expr,name", [("foo(1)", "foo"), ("bar", "bar"), ("2 bar", "bar")])
def test_unknown_identifiers(expr, name):
    with pytest.raises(UnknownIdentifierError) as e:
        evaluate(expr)
    assert e.value.name == name


@pytest.mark.parametrize("expr", [
    "* 2",
    "^ 2",
    "1 2",
    "(1) 2",
    ", 1",
    ")",
    "1 + )",
    "1, 2",
    "min(1, , 2)",
])
def test_syntax_errors(expr):
    with pytest.raises(ExpressionSyntaxError):
        evaluate(expr)


def test_comma_outside_call_message():
    with pytest.raises(ExpressionSyntaxError) as e:
        evaluate("1, 2")
    assert "comma outside a function call" in str(e.value)


def test_invalid_token_carries_position():
    with pytest.raises(InvalidTokenError) as e:
        evaluate("1 + $")
    assert e.value.position == 4
    with pytest.raises(InvalidTokenError):
        evaluate("1 $")


@pytest.mark.parametrize("expr", ["sin(1, 2)", "(1, 2)", "atan2(1)", "pi(1)"])
def test_argument_count_mismatch(expr):
    with pytest.raises(InvalidArgumentCountError):
        evaluate(expr)


def test_function_used_as_variable_is_called_without_arguments():
    with pytest.raises(InvalidArgumentCountError):
        evaluate("sin")


def test_finished_expression_rejects_more_tokens():
    expr = Expression(Environment())
    expr.feed("1 + 1")
    assert expr.result() == 2
    with pytest.raises(InvalidOperationError):
        expr.parse(Token(TokenKind.OPERATOR, Operator.ADD))
    with pytest.raises(InvalidOperationError):
        expr.feed("1")
    with pytest.raises(InvalidOperationError):
        expr.result()

# ---------------------------
# Internals
# ---------------------------

def test_value_stack_top_returns_oldest_first():
    stack = ValueStack()
    for v in (1.0, 2.0, 3.0):
        stack.push(v)
    assert stack.top(2) == [2.0, 3.0]
    assert len(stack) == 1
    assert stack.top(0) == []
    assert stack.pop() == 1.0


def test_value_stack_underflow():
    stack = ValueStack()
    stack.push(1.0)
    with pytest.raises(StackUnderflowError):
        stack.top(2)
    stack.pop()
    with pytest.raises(StackUnderflowError):
        stack.pop()


def test_apply_with_too_few_values_is_an_internal_error():
    expr = Expression(Environment())
    expr.calls.append(PendingCall(Operator.ADD.builtin(), Order.ADD_SUB, 2, 'add'))
    expr.values.push(1.0)
    with pytest.raises(StackUnderflowError):
        expr._apply()


def test_user_registered_function():
    env = Environment()
    env.register('double', lambda env, args: 2.0 * args[0])
    assert evaluate("double(3) + 1", env) == 7
