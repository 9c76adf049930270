"""Variables and functions visible to an expression.

Names are case-insensitive. The evaluator only reads from the environment;
the driver updates ``ans`` between evaluations.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from pupil.builtins import BUILTINS, Builtin
from pupil.errors import UnknownIdentifierError

logger = logging.getLogger(__name__)


class Environment:
    """Evaluation context holding variables and the function registry."""

    def __init__(self, variables: Optional[Dict[str, float]] = None):
        self.variables: Dict[str, float] = {'ans': 0.0}
        self.functions: Dict[str, Builtin] = dict(BUILTINS)
        for name, value in (variables or {}).items():
            self.set_variable(name, value)

    def has_function(self, name: str) -> bool:
        return name.lower() in self.functions

    def lookup_function(self, name: str) -> Builtin:
        try:
            return self.functions[name.lower()]
        except KeyError:
            raise UnknownIdentifierError(name, kind="function") from None

    def lookup_variable(self, name: str) -> float:
        try:
            return self.variables[name.lower()]
        except KeyError:
            raise UnknownIdentifierError(name) from None

    def set_variable(self, name: str, value: float) -> None:
        self.variables[name.lower()] = float(value)

    def register(self, name: str, func: Builtin) -> None:
        """Add or replace a function; user functions take the same (env, args) form."""
        key = name.lower()
        if key in self.functions:
            logger.info("Replacing function %r", key)
        self.functions[key] = func
