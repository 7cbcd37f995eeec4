"""Valorisation result models.

Per-product results and project totals of the Prime CEE computation, plus
the inputs and outputs of the config-style valorisation API.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, Field, computed_field, field_validator

from prime_cee.core.numbers import to_finite_number

_FROZEN = {
    "frozen": True,
}


class MultiplierDetection(BaseModel):
    """Quantity multiplying the per-unit valorisation of a product."""

    value: float = Field(..., gt=0, description="Multiplier value")
    label: str = Field(..., description="Display label")
    field_name: Optional[str] = Field(None, description="Dynamic parameter key it was read from")

    model_config = _FROZEN


class ValorisationResult(BaseModel):
    """Valorisation of one project product."""

    project_product_id: str = Field(..., description="Project-product identifier")
    product_id: str = Field(..., description="Catalog product identifier")
    product_code: Optional[str] = Field(None, description="Product code")
    product_name: Optional[str] = Field(None, description="Product name")

    base_kwh: float = Field(default=0.0, description="kWh cumac base used")
    bonification: float = Field(default=0.0, description="Bonification applied")
    coefficient: float = Field(default=0.0, description="Coefficient applied")
    valorisation_per_unit_mwh: float = Field(default=0.0, description="MWh per unit")
    valorisation_per_unit_eur: float = Field(default=0.0, description="€ per unit")
    valorisation_label: str = Field(default="Valorisation", description="Display label")
    multiplier: float = Field(default=0.0, description="Multiplier value")
    multiplier_label: str = Field(default="", description="Multiplier label")
    valorisation_total_mwh: float = Field(default=0.0, description="Total MWh")
    valorisation_total_eur: float = Field(default=0.0, description="Total €")
    delegate_price: float = Field(default=0.0, description="Delegate price in €/MWh")
    total_prime: float = Field(default=0.0, description="Prime CEE in €")

    has_missing_kwh_cumac: bool = Field(default=False, description="No kWh base for the building type")
    has_missing_multiplier: bool = Field(default=False, description="No positive multiplier found")

    model_config = _FROZEN


class ProjectCeeTotals(BaseModel):
    """Project totals: the sum of the included per-product totals."""

    total_prime: float = Field(default=0.0, description="Prime CEE in €")
    total_valorisation_eur: float = Field(default=0.0, description="Valorisation in €")
    total_valorisation_mwh: float = Field(default=0.0, description="Valorisation in MWh")

    model_config = _FROZEN


class PrimeCeeComputation(ProjectCeeTotals):
    """Project totals with the per-product breakdown."""

    delegate_price: float = Field(default=0.0, description="Delegate price in €/MWh")
    products: list[ValorisationResult] = Field(default_factory=list, description="Included products")
    missing_kwh_product_ids: list[str] = Field(
        default_factory=list, description="Products skipped for a missing kWh base"
    )

    @computed_field
    @property
    def has_warnings(self) -> bool:
        """True when a product lacks its kWh base or its multiplier."""
        return bool(self.missing_kwh_product_ids) or any(
            p.has_missing_kwh_cumac or p.has_missing_multiplier for p in self.products
        )


class PrimeCeeDisplayInfo(BaseModel):
    """UI metadata merged into a computed product row."""

    product_code: Optional[str] = None
    product_name: Optional[str] = None

    model_config = {
        "extra": "allow",
    }


class PrimeCeeEntry(ValorisationResult):
    """Computed product row ready for display."""

    valorisation_per_unit: float = Field(default=0.0, description="€ per unit at the delegate price")


# --- Config-style API ---

class CeeOverrides(BaseModel):
    """Values that win over the direct inputs of a ``CeeConfig``."""

    kwh_cumac: Optional[float] = None
    bonification: Optional[float] = None
    coefficient: Optional[float] = None
    multiplier: Optional[float] = None
    delegate_price_eur_per_mwh: Optional[float] = None
    valorisation_tarif: Optional[float] = None
    led_watt: Optional[float] = None
    mwh_divisor: Optional[float] = None

    @field_validator("*", mode="before")
    @classmethod
    def _lenient(cls, value: Any) -> Optional[float]:
        return to_finite_number(value)


class CeeConfig(BaseModel):
    """Direct valorisation inputs of a single operation."""

    kwh_cumac: Optional[float] = Field(None, description="kWh cumac base")
    bonification: Optional[float] = None
    coefficient: Optional[float] = None
    multiplier: Optional[float] = None
    quantity: Optional[float] = None
    delegate_price_eur_per_mwh: Optional[float] = None
    dynamic_params: dict[str, Any] = Field(default_factory=dict)
    valorisation_formula: Union[str, dict[str, Any], None] = Field(
        None, description="Expression string or {'expression': ...}"
    )
    overrides: CeeOverrides = Field(default_factory=CeeOverrides)

    @field_validator(
        "kwh_cumac", "bonification", "coefficient", "multiplier", "quantity",
        "delegate_price_eur_per_mwh", mode="before",
    )
    @classmethod
    def _lenient(cls, value: Any) -> Optional[float]:
        return to_finite_number(value)

    @field_validator("dynamic_params", mode="before")
    @classmethod
    def _params_mapping(cls, value: Any) -> dict[str, Any]:
        return dict(value) if isinstance(value, Mapping) else {}

    @field_validator("overrides", mode="before")
    @classmethod
    def _overrides(cls, value: Any) -> Any:
        return CeeOverrides() if value is None else value

    @property
    def expression(self) -> Optional[str]:
        formula = self.valorisation_formula
        if isinstance(formula, Mapping):
            formula = formula.get("expression")
        if isinstance(formula, str) and formula.strip():
            return formula.strip()
        return None


class ValorisationMwh(BaseModel):
    multiplier: float = 0.0
    valorisation_per_unit_mwh: float = 0.0
    valorisation_total_mwh: float = 0.0

    model_config = _FROZEN


class ValorisationEur(ValorisationMwh):
    delegate_price: float = 0.0
    valorisation_per_unit_eur: float = 0.0
    valorisation_total_eur: float = 0.0


class PrimeCeeResult(ValorisationEur):
    total_prime: float = 0.0
