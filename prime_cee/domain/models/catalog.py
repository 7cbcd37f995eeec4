"""Product catalog data models.

A catalog entry describes a CEE product: its parameter schema, its
valorisation overrides and the regulatory kWh cumac bases per building type.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from prime_cee.core.glossary import ProductCategory, canonical_param_key
from prime_cee.core.numbers import to_finite_number, to_positive_number
from .formula import (
    DEFAULT_PRODUCT_CEE_CONFIG,
    ProductCeeConfig,
    ValorisationFormula,
    normalize_product_cee_config,
    normalize_valorisation_formula,
)


class SchemaField(BaseModel):
    """One field of a product parameter schema."""

    name: Optional[str] = Field(None, description="Parameter key in dynamic_params")
    label: Optional[str] = Field(None, description="Display label")
    type: Optional[str] = Field(None, description="Input type")
    unit: Optional[str] = Field(None, description="Display unit")
    min: Optional[float] = Field(None, description="Minimum value")
    max: Optional[float] = Field(None, description="Maximum value")
    options: list[Any] = Field(default_factory=list, description="Allowed values")

    model_config = {
        "extra": "allow",
    }

    @field_validator("name", "label", "type", "unit", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("min", "max", mode="before")
    @classmethod
    def _number_or_none(cls, value: Any) -> Optional[float]:
        return to_finite_number(value)

    @field_validator("options", mode="before")
    @classmethod
    def _list_or_empty(cls, value: Any) -> list[Any]:
        return list(value) if isinstance(value, (list, tuple)) else []


class KwhCumacValue(BaseModel):
    """Regulatory kWh cumac bases of a product for one building type.

    Non-positive values are stored as None: a product may legitimately have
    no base for a given building type or surface band.
    """

    building_type: str = Field(default="", description="Building type key")
    kwh_cumac_lt_400: Optional[float] = Field(None, description="Base below the surface threshold")
    kwh_cumac_gte_400: Optional[float] = Field(None, description="Base at or above the surface threshold")
    kwh_cumac: Optional[float] = Field(None, description="Legacy single base column")

    model_config = {
        "extra": "allow",
    }

    @field_validator("building_type", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("kwh_cumac_lt_400", "kwh_cumac_gte_400", "kwh_cumac", mode="before")
    @classmethod
    def _positive_or_none(cls, value: Any) -> Optional[float]:
        return to_positive_number(value)

    @property
    def is_missing(self) -> bool:
        return self.kwh_cumac_lt_400 is None and self.kwh_cumac_gte_400 is None and self.kwh_cumac is None


def _schema_fields(value: Any) -> list[Any]:
    """Accept a bare field list or an object holding a ``fields`` list."""
    if isinstance(value, Mapping):
        value = value.get("fields")
    if not isinstance(value, (list, tuple)):
        return []
    return [field for field in value if isinstance(field, (Mapping, SchemaField))]


class ProductCatalogEntry(BaseModel):
    """CEE product as stored in the catalog.

    Bonification, coefficient and formula descriptor may live at top level
    or inside ``default_params``; they are lifted to top level on validation.
    """

    id: str = Field(..., description="Product identifier")
    name: str = Field(default="", description="Product name")
    code: str = Field(default="", description="Product code (e.g. BAR-EN-101)")
    category: Optional[str] = Field(None, description="Raw catalog category")
    is_active: bool = Field(default=True, description="Available for new projects")

    params_schema: list[SchemaField] = Field(default_factory=list, description="Ordered parameter schema")
    default_params: dict[str, Any] = Field(default_factory=dict, description="Default parameter values")

    bonification: Optional[float] = Field(None, description="Product bonification override")
    coefficient: Optional[float] = Field(None, description="Product coefficient override")
    valorisation_formula: Optional[ValorisationFormula] = Field(None, description="Formula descriptor")
    cee_config: ProductCeeConfig = Field(
        default_factory=DEFAULT_PRODUCT_CEE_CONFIG.model_copy, description="Normalized CEE configuration"
    )

    kwh_cumac_values: list[KwhCumacValue] = Field(default_factory=list, description="kWh cumac bases")

    model_config = {
        "extra": "allow",
    }

    @model_validator(mode="before")
    @classmethod
    def _lift_default_params(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        defaults = data.get("default_params")
        if not isinstance(defaults, Mapping):
            defaults = {}
            data["default_params"] = defaults

        for key in ("bonification", "coefficient"):
            if data.get(key) is None and key in defaults:
                data[key] = defaults[key]

        if data.get("valorisation_formula") is None:
            data["valorisation_formula"] = data.get("valorisationFormula") or defaults.get(
                "valorisation_formula", defaults.get("valorisationFormula")
            )
        return data

    @field_validator("id", "name", "code", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return str(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else value

    @field_validator("category", mode="before")
    @classmethod
    def _category_text(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("is_active", mode="before")
    @classmethod
    def _active_flag(cls, value: Any) -> bool:
        return True if value is None else bool(value)

    @field_validator("params_schema", mode="before")
    @classmethod
    def _parse_schema(cls, value: Any) -> list[Any]:
        return _schema_fields(value)

    @field_validator("bonification", "coefficient", mode="before")
    @classmethod
    def _positive_override(cls, value: Any) -> Optional[float]:
        return to_positive_number(value)

    @field_validator("valorisation_formula", mode="before")
    @classmethod
    def _normalize_formula(cls, value: Any) -> Optional[ValorisationFormula]:
        return normalize_valorisation_formula(value)

    @field_validator("cee_config", mode="before")
    @classmethod
    def _normalize_config(cls, value: Any) -> ProductCeeConfig:
        return normalize_product_cee_config(value)

    @field_validator("kwh_cumac_values", mode="before")
    @classmethod
    def _kwh_list(cls, value: Any) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [entry for entry in value if isinstance(entry, (Mapping, KwhCumacValue))]

    @property
    def product_category(self) -> ProductCategory:
        """Category from the raw catalog value, else from the CEE configuration."""
        return ProductCategory.parse(self.category) or self.cee_config.category

    def schema_field(self, key: str) -> Optional[SchemaField]:
        """Schema field named ``key``, else one sharing its canonical parameter."""
        exact = next((field for field in self.params_schema if field.name == key), None)
        if exact is not None:
            return exact
        canonical = canonical_param_key(key)
        if canonical is None:
            return None
        return next(
            (field for field in self.params_schema if field.name and canonical_param_key(field.name) is canonical),
            None,
        )
