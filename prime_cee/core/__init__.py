"""Core settings, logging, numeric helpers and vocabulary."""

from .exceptions import (
    ConfigurationError,
    ExpressionError,
    PrimeCeeError,
    UnknownVariableError,
    UnsupportedExpressionError,
)
from .glossary import (
    DynamicParams,
    FormulaTemplate,
    MeasurementMode,
    ParamKey,
    ProductCategory,
    TravauxOption,
)
from .numbers import (
    clamp_zero,
    first_number,
    pick_number,
    round_two,
    sanitize_number,
    to_finite_number,
)
from .settings import EngineSettings, get_settings

__all__ = [
    "EngineSettings",
    "get_settings",
    # Numbers
    "to_finite_number",
    "sanitize_number",
    "first_number",
    "pick_number",
    "round_two",
    "clamp_zero",
    # Glossary
    "DynamicParams",
    "ParamKey",
    "ProductCategory",
    "FormulaTemplate",
    "TravauxOption",
    "MeasurementMode",
    # Exceptions
    "PrimeCeeError",
    "ExpressionError",
    "UnsupportedExpressionError",
    "UnknownVariableError",
    "ConfigurationError",
]
