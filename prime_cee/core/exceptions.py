"""Custom exceptions for prime_cee.

The engine never lets these cross its public boundary: expression errors are
converted to an ``ExpressionOutcome`` by the evaluator.
"""

from __future__ import annotations

from typing import Any


class PrimeCeeError(Exception):
    """Base exception for all prime_cee errors."""
    pass


# --- Expression Errors ---

class ExpressionError(PrimeCeeError):
    """A valorisation formula could not be evaluated."""

    def __init__(self, expression: str, reason: str = ""):
        self.expression = expression
        self.reason = reason
        msg = f"Invalid expression '{expression}'"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)


class UnsupportedExpressionError(ExpressionError):
    """The expression uses syntax outside plain arithmetic."""
    pass


class UnknownVariableError(ExpressionError):
    """The expression references a variable missing from the context."""

    def __init__(self, expression: str, name: Any):
        self.name = name
        super().__init__(expression, f"unknown variable '{name}'")


# --- Configuration Errors ---

class ConfigurationError(PrimeCeeError):
    """Error in engine configuration."""
    pass
