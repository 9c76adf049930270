# --------------------------
# Exceptions
# --------------------------

class PupilError(Exception):
    """Base class for all expression evaluation errors."""
    pass

class InvalidTokenError(PupilError):
    """Raised when the lexer reports a character it cannot classify."""

    def __init__(self, position: int):
        super().__init__(f"Invalid token at position {position}")
        self.position = position

class ExpressionSyntaxError(PupilError):
    """Raised when a token is not allowed in the current parser state."""
    pass

class UnknownIdentifierError(PupilError):
    """Raised when a variable or function name is not in the environment."""

    def __init__(self, name: str, kind: str = "variable or constant"):
        super().__init__(f"The {kind} '{name}' was not found in the environment")
        self.name = name

class InvalidArgumentCountError(PupilError):
    """Raised by builtins receiving an unsupported number of arguments."""
    pass

class UnbalancedExpressionError(PupilError):
    """Raised at finalization when calls or values are left over."""
    pass

class InvalidOperationError(PupilError):
    """Raised when the expression is used after it has produced its result."""
    pass

class IncompleteExpressionError(ExpressionSyntaxError, InvalidOperationError):
    """Raised when a result is requested while the expression ends on an operator."""
    pass

class StackUnderflowError(PupilError):
    """Internal invariant violation: a call wants more values than are stacked."""
    pass
