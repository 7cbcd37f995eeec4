"""Sandboxed arithmetic over named variables.

Valorisation formulas are stored as plain text ("KWH_CUMAC * BONUS_DOM *
LED_WATT / MWH_DIVISOR"). They are parsed with ``ast`` and evaluated by a
whitelist walker: numbers, variables, + - * / % ** (and ^ as power), unary
signs and parentheses. Nothing else is executed.
"""

from __future__ import annotations

import ast
import math
import operator
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from prime_cee.core.exceptions import ExpressionError, UnknownVariableError, UnsupportedExpressionError
from prime_cee.core.numbers import to_finite_number
from prime_cee.core.settings import get_settings

MAX_NODES = 200
MAX_EXPONENT = 64

_BINARY_OPERATORS: dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.BitXor: operator.pow,
}

_UNARY_OPERATORS: dict[type, Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


@dataclass(frozen=True)
class ExpressionOutcome:
    """Result of an evaluation: a finite ``value`` or an ``error`` message."""

    value: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


class _Evaluator:
    def __init__(self, expression: str, variables: Mapping[str, Any]):
        self.expression = expression
        self.variables = variables

    def visit(self, node: ast.AST) -> float:
        if isinstance(node, ast.Expression):
            return self.visit(node.body)

        if isinstance(node, ast.Constant):
            value = node.value
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise UnsupportedExpressionError(self.expression, f"literal {value!r}")
            try:
                return float(value)
            except OverflowError:
                raise ExpressionError(self.expression, "overflow") from None

        if isinstance(node, ast.Name):
            return self._lookup(node.id)

        if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
            return _UNARY_OPERATORS[type(node.op)](self.visit(node.operand))

        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
            left = self.visit(node.left)
            right = self.visit(node.right)
            return self._apply(node.op, left, right)

        raise UnsupportedExpressionError(self.expression, type(node).__name__)

    def _lookup(self, name: str) -> float:
        for key in (name, name.upper()):
            if key in self.variables:
                value = to_finite_number(self.variables[key])
                if value is None:
                    raise ExpressionError(self.expression, f"variable '{name}' is not a finite number")
                return value
        raise UnknownVariableError(self.expression, name)

    def _apply(self, op: ast.operator, left: float, right: float) -> float:
        if isinstance(op, (ast.Pow, ast.BitXor)) and abs(right) > MAX_EXPONENT:
            raise ExpressionError(self.expression, f"exponent {right:g} out of range")
        try:
            result = _BINARY_OPERATORS[type(op)](left, right)
        except ZeroDivisionError:
            raise ExpressionError(self.expression, "division by zero") from None
        except OverflowError:
            raise ExpressionError(self.expression, "overflow") from None
        if isinstance(result, complex):
            raise ExpressionError(self.expression, "complex result")
        return result


def parse_expression(expression: str, max_length: Optional[int] = None) -> ast.Expression:
    """Parse and size-check an expression without evaluating it.

    Raises:
        ExpressionError: On empty, oversized or syntactically invalid input.
    """
    if not isinstance(expression, str) or not expression.strip():
        raise ExpressionError(str(expression), "empty expression")

    limit = max_length if max_length is not None else get_settings().max_expression_length
    if len(expression) > limit:
        raise ExpressionError(expression[:50] + "...", f"longer than {limit} characters")

    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise UnsupportedExpressionError(expression, f"syntax error: {e.msg}") from None

    if sum(1 for _ in ast.walk(tree)) > MAX_NODES:
        raise ExpressionError(expression, f"more than {MAX_NODES} nodes")
    return tree


def evaluate_expression(expression: str, variables: Mapping[str, Any]) -> ExpressionOutcome:
    """Evaluate ``expression`` over ``variables``.

    Never raises: every failure (syntax, unknown variable, division by zero,
    non-finite result) is reported through ``ExpressionOutcome.error``.
    """
    try:
        tree = parse_expression(expression)
        value = _Evaluator(expression, variables).visit(tree)
    except ExpressionError as e:
        return ExpressionOutcome(error=str(e))

    if not math.isfinite(value):
        return ExpressionOutcome(error=f"Invalid expression '{expression}' - non-finite result")
    return ExpressionOutcome(value=value)
