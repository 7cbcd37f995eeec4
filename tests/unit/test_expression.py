"""Unit tests for the sandboxed expression evaluator."""

import pytest

from prime_cee.core.exceptions import ExpressionError, UnknownVariableError, UnsupportedExpressionError
from prime_cee.domain.calculator.expression import evaluate_expression, parse_expression

VARIABLES = {"KWH_CUMAC": 400, "BONUS_DOM": 1.3, "LED_WATT": 30, "MWH_DIVISOR": 1000}


class TestEvaluateExpression:
    """Tests for evaluate_expression."""

    def test_lighting_formula(self):
        outcome = evaluate_expression("KWH_CUMAC * BONUS_DOM * LED_WATT / MWH_DIVISOR", VARIABLES)
        assert outcome.ok
        assert outcome.value == pytest.approx(15.6)

    def test_lower_case_names_resolve(self):
        outcome = evaluate_expression("kwh_cumac / 2", VARIABLES)
        assert outcome.value == pytest.approx(200)

    def test_operators(self):
        assert evaluate_expression("(1 + 2) * 3 - 4 / 2", {}).value == pytest.approx(7)
        assert evaluate_expression("7 % 4", {}).value == pytest.approx(3)
        assert evaluate_expression("2 ** 3", {}).value == pytest.approx(8)
        assert evaluate_expression("2 ^ 3", {}).value == pytest.approx(8)
        assert evaluate_expression("-KWH_CUMAC + +1", VARIABLES).value == pytest.approx(-399)

    def test_string_variable_values_are_parsed(self):
        assert evaluate_expression("A * 2", {"A": "1,5"}).value == pytest.approx(3)

    @pytest.mark.parametrize(
        "expression",
        [
            "__import__('os')",
            "KWH_CUMAC.real",
            "VALUES[0]",
            "1 < 2",
            "'abc'",
            "True + 1",
            "lambda: 1",
        ],
    )
    def test_rejects_non_arithmetic(self, expression):
        outcome = evaluate_expression(expression, {"KWH_CUMAC": 1, "VALUES": [1]})
        assert not outcome.ok
        assert outcome.value is None
        assert outcome.error

    def test_unknown_variable(self):
        outcome = evaluate_expression("MISSING * 2", VARIABLES)
        assert not outcome.ok
        assert "MISSING" in outcome.error

    def test_division_by_zero(self):
        outcome = evaluate_expression("KWH_CUMAC / 0", VARIABLES)
        assert "division by zero" in outcome.error

    def test_exponent_limit(self):
        assert not evaluate_expression("10 ** 100", {}).ok
        assert evaluate_expression("2 ** 64", {}).ok

    def test_non_finite_variable(self):
        assert not evaluate_expression("A + 1", {"A": float("nan")}).ok

    def test_overflow_is_an_error(self):
        assert not evaluate_expression("1e308 * 10", {}).ok

    def test_literal_beyond_float_range(self):
        outcome = evaluate_expression("1" + "0" * 400, {})
        assert not outcome.ok
        assert "overflow" in outcome.error


class TestParseExpression:
    """Tests for parse_expression size limits."""

    def test_empty(self):
        with pytest.raises(ExpressionError):
            parse_expression("   ")

    def test_too_long(self):
        with pytest.raises(ExpressionError):
            parse_expression("1 + " * 200 + "1")

    def test_explicit_max_length(self):
        with pytest.raises(ExpressionError):
            parse_expression("1 + 1", max_length=3)

    def test_too_many_nodes(self):
        with pytest.raises(ExpressionError):
            parse_expression("+".join(["1"] * 120), max_length=5000)

    def test_syntax_error(self):
        with pytest.raises(UnsupportedExpressionError):
            parse_expression("1 +* ")

    def test_exception_hierarchy(self):
        assert issubclass(UnknownVariableError, ExpressionError)
        error = UnknownVariableError("A + B", "B")
        assert error.name == "B"
        assert error.expression == "A + B"
        assert "unknown variable 'B'" in str(error)
