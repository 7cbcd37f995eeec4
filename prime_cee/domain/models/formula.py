"""Valorisation formula descriptors and product CEE configuration.

Both are stored as free-form JSON on catalog records. The normalizers below
turn any stored shape (camelCase, snake_case, legacy ``defaults`` block or an
already-normalized model) into one canonical, frozen model.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from prime_cee.core.glossary import (
    TEMPLATE_EXPRESSIONS,
    FormulaTemplate,
    ParamKey,
    ProductCategory,
    canonical_param_key,
    default_multiplier_key,
    LEGACY_QUANTITY_KEY,
    resolve_multiplier_key_for_category,
)
from prime_cee.core.numbers import first_number, to_positive_number

_CAMEL_CONFIG = {
    "frozen": True,
    "populate_by_name": True,
    "alias_generator": to_camel,
}

# Where a fixture count may hide in legacy descriptors, in lookup order
FIXTURE_VALUE_FIELDS = (
    "variableValue",
    "variable_value",
    "nombre_led",
    "nombreLed",
    "Nombre Led",
    "nombre_luminaire",
    "nombreLuminaire",
)


class ValorisationFormula(BaseModel):
    """Canonical formula descriptor: which parameter multiplies the valorisation."""

    variable_key: str = Field(..., min_length=1, description="Dynamic parameter key")
    variable_label: Optional[str] = Field(None, description="Display label")
    coefficient: Optional[float] = Field(None, gt=0, description="Multiplier coefficient")
    variable_value: Optional[float] = Field(None, ge=0, description="Stored parameter value")

    model_config = _CAMEL_CONFIG

    @property
    def is_quantity(self) -> bool:
        return self.variable_key == LEGACY_QUANTITY_KEY


class ProductCeeConfig(BaseModel):
    """Normalized CEE configuration of a catalog product."""

    category: ProductCategory = Field(default=ProductCategory.ISOLATION, description="CEE category")
    formula_template: FormulaTemplate = Field(default=FormulaTemplate.STANDARD, description="Formula template")
    formula_expression: Optional[str] = Field(None, description="Expression evaluated instead of the standard formula")
    prime_multiplier_param: Optional[str] = Field(
        default=ParamKey.SURFACE_ISOLEE.value, description="Parameter multiplying the per-unit prime"
    )
    prime_multiplier_coefficient: Optional[float] = Field(None, gt=0, description="Coefficient of the multiplier")
    led_watt_constant: Optional[float] = Field(None, gt=0, description="Fixed LED wattage (lighting only)")

    model_config = _CAMEL_CONFIG


DEFAULT_PRODUCT_CEE_CONFIG = ProductCeeConfig()


def _as_mapping(value: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return value
    return None


def _first_text(raw: Mapping[str, Any], keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str):
            return value
    return None


def normalize_valorisation_formula(value: Any) -> Optional[ValorisationFormula]:
    """Canonicalize a stored formula descriptor.

    Fixture-count synonyms ("Nombre Led", "nombre_de_luminaire"...) collapse
    to ``nombre_luminaire``, whose value is searched across the legacy fields
    and defaults to 0. Other keys keep a positive ``variableValue`` only.

    Returns:
        The descriptor, or None when no variable key is present.
    """
    raw = _as_mapping(value)
    if raw is None:
        return None

    raw_key = (_first_text(raw, ("variableKey", "variable_key")) or "").strip()
    if not raw_key:
        return None

    is_fixture = canonical_param_key(raw_key) is ParamKey.NOMBRE_LUMINAIRE
    variable_key = ParamKey.NOMBRE_LUMINAIRE.value if is_fixture else raw_key

    label = _first_text(raw, ("variableLabel", "variable_label"))
    if label is not None and not label.strip():
        label = None

    coefficient = to_positive_number(raw.get("coefficient"))

    if is_fixture:
        variable_value = first_number(
            (raw[field] for field in FIXTURE_VALUE_FIELDS if field in raw), default=0.0
        )
    else:
        variable_value = first_number(
            raw[field] for field in ("variableValue", "variable_value") if field in raw
        )

    return ValorisationFormula(
        variable_key=variable_key,
        variable_label=label,
        coefficient=coefficient,
        variable_value=variable_value,
    )


def normalize_product_cee_config(value: Any) -> ProductCeeConfig:
    """Normalize a stored product CEE configuration.

    Non-mapping input yields the default configuration. Unknown categories and
    templates fall back to the defaults; the LED wattage constant only
    survives on lighting products.
    """
    raw = _as_mapping(value)
    if raw is None:
        return DEFAULT_PRODUCT_CEE_CONFIG.model_copy()

    legacy_defaults = raw.get("defaults") if isinstance(raw.get("defaults"), Mapping) else {}
    legacy_multiplier = (
        legacy_defaults.get("multiplier") if isinstance(legacy_defaults.get("multiplier"), Mapping) else {}
    )

    raw_category = _first_text(raw, ("category", "category_key"))
    try:
        category = ProductCategory(raw_category)
    except ValueError:
        category = DEFAULT_PRODUCT_CEE_CONFIG.category

    raw_template = _first_text(raw, ("formulaTemplate", "formula_template"))
    try:
        template = FormulaTemplate(raw_template)
    except ValueError:
        template = DEFAULT_PRODUCT_CEE_CONFIG.formula_template

    if template is FormulaTemplate.CUSTOM:
        raw_expression = _first_text(raw, ("formulaExpression", "formula_expression"))
        expression = raw_expression.strip() if raw_expression and raw_expression.strip() else None
    else:
        expression = TEMPLATE_EXPRESSIONS[template]

    raw_multiplier = raw.get("primeMultiplierParam")
    if raw_multiplier is None:
        raw_multiplier = raw.get("prime_multiplier_param")
    multiplier_param = (
        resolve_multiplier_key_for_category(raw_multiplier, category)
        or resolve_multiplier_key_for_category(legacy_multiplier.get("key"), category)
        or default_multiplier_key(category)
        or LEGACY_QUANTITY_KEY
    )

    coefficient = first_number(
        (
            raw.get("primeMultiplierCoefficient"),
            raw.get("prime_multiplier_coefficient"),
            legacy_multiplier.get("coefficient"),
        )
    )

    led_watt = first_number(
        (
            raw.get("ledWattConstant"),
            raw.get("led_watt_constant"),
            legacy_defaults.get("led_watt_constant"),
        )
    )

    return ProductCeeConfig(
        category=category,
        formula_template=template,
        formula_expression=expression,
        prime_multiplier_param=multiplier_param,
        prime_multiplier_coefficient=coefficient,
        led_watt_constant=led_watt if category is ProductCategory.LIGHTING else None,
    )


def format_coefficient(value: float) -> str:
    """Render a coefficient the way labels show it ("2", "1.50", "0.33")."""
    if value == int(value):
        return str(int(value))
    return f"{value:.2f}"


def format_multiplier_label(label: str, coefficient: Optional[float]) -> str:
    """Append "× coefficient" to a multiplier label when it is not 1."""
    if not coefficient or coefficient == 1:
        return label
    return f"{label} × {format_coefficient(coefficient)}"
