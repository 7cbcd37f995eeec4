"""Rentability data models.

Inputs are parsed leniently: live form state reaches the calculator with
empty strings, comma decimals and missing fields, none of which may raise.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from prime_cee.core.glossary import MeasurementMode, TaxMode, TravauxOption
from prime_cee.core.numbers import to_boolean, to_finite_number


def _lenient_number(value: Any) -> Optional[float]:
    return to_finite_number(value)


def _cost_lines(value: Any) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        return []
    return [line for line in value if isinstance(line, (Mapping, AdditionalCostLine))]


class AdditionalCostLine(BaseModel):
    """Extra cost of a site (skip rental, travel...)."""

    label: str = Field(default="", description="Cost label")
    amount_ht: Optional[float] = Field(None, description="Amount before tax")
    taxes: Optional[float] = Field(None, description="Explicit tax amount")
    amount_ttc: Optional[float] = Field(None, description="Tax-inclusive amount")
    tva_rate: Optional[float] = Field(None, description="VAT rate in %")

    model_config = {
        "extra": "allow",
    }

    @field_validator("label", mode="before")
    @classmethod
    def _label(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @field_validator("amount_ht", "taxes", "amount_ttc", "tva_rate", mode="before")
    @classmethod
    def _lenient(cls, value: Any) -> Optional[float]:
        return _lenient_number(value)


class RentabilityInput(BaseModel):
    """Canonical rentability input of a site."""

    revenue: Optional[float] = Field(None, description="Quoted revenue")
    original_revenue: Optional[float] = Field(None, description="Revenue before the prime (defaults to revenue)")
    prime_cee: Optional[float] = Field(None, description="Subsidy value in €")

    labor_cost_per_unit: Optional[float] = Field(None, description="Labor cost per unit")
    material_cost_per_unit: Optional[float] = Field(None, description="Material cost per unit")
    units_used: Optional[float] = Field(None, description="Executed units")
    billed_units: Optional[float] = Field(None, description="Billed units")

    commission: Optional[float] = Field(None, description="Fixed commission")
    commission_per_unit: Optional[float] = Field(None, description="Commission per unit")
    commission_per_unit_active: bool = Field(default=False, description="Per-unit commission enabled")

    travaux_option: TravauxOption = Field(default=TravauxOption.NA, description="Non-subsidized works policy")
    travaux_amount: Optional[float] = Field(None, description="Non-subsidized works amount")

    additional_costs: list[AdditionalCostLine] = Field(default_factory=list, description="Additional cost lines")
    frais_tva_percentage: Optional[float] = Field(None, description="Project VAT % of additional costs")

    subcontractor_rate_per_unit: Optional[float] = Field(None, description="Subcontractor rate per unit")
    subcontractor_base_units: Optional[float] = Field(None, description="Subcontractor units override")
    subcontractor_payment_confirmed: bool = Field(default=False, description="Subcontractor payment confirmed")

    measurement_mode: MeasurementMode = Field(default=MeasurementMode.SURFACE, description="surface or luminaire")
    unit_label: Optional[str] = Field(None, description="Unit display label")
    project_category: Optional[str] = Field(None, description="Project category")

    model_config = {
        "extra": "allow",
    }

    @field_validator(
        "revenue", "original_revenue", "prime_cee", "labor_cost_per_unit", "material_cost_per_unit",
        "units_used", "billed_units", "commission", "commission_per_unit", "travaux_amount",
        "frais_tva_percentage", "subcontractor_rate_per_unit", "subcontractor_base_units",
        mode="before",
    )
    @classmethod
    def _lenient(cls, value: Any) -> Optional[float]:
        return _lenient_number(value)

    @field_validator("commission_per_unit_active", "subcontractor_payment_confirmed", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return to_boolean(value)

    @field_validator("travaux_option", mode="before")
    @classmethod
    def _travaux_option(cls, value: Any) -> TravauxOption:
        return TravauxOption.parse(value)

    @field_validator("measurement_mode", mode="before")
    @classmethod
    def _measurement_mode(cls, value: Any) -> MeasurementMode:
        return MeasurementMode.parse(value)

    @field_validator("additional_costs", mode="before")
    @classmethod
    def _additional_costs(cls, value: Any) -> list[Any]:
        return _cost_lines(value)

    @field_validator("unit_label", "project_category", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None


class CostBreakdown(BaseModel):
    labor: float = 0.0
    material: float = 0.0
    commission: float = 0.0
    commission_per_unit: float = 0.0
    subcontractor: float = 0.0
    additional: float = 0.0
    travaux: float = 0.0

    model_config = {
        "frozen": True,
    }


class RentabilityResult(BaseModel):
    """Revenue, cost and margin breakdown of a site."""

    ca: float = Field(default=0.0, description="Total revenue (chiffre d'affaires)")
    revenue: float = Field(default=0.0, description="Same as ca")
    original_revenue: float = Field(default=0.0, description="Revenue before prime and works")
    prime_cee: float = Field(default=0.0, description="Subsidy value")
    travaux_revenue: float = Field(default=0.0, description="Works share billed to the client")
    travaux_cost: float = Field(default=0.0, description="Works share absorbed in the margin")
    total_costs: float = Field(default=0.0, description="Total costs")
    additional_costs_total: float = Field(default=0.0, description="Additional costs, taxes included")
    frais_total_ttc: float = Field(default=0.0, description="Same as additional_costs_total")
    margin_total: float = Field(default=0.0, description="ca - total_costs")
    margin_per_unit: float = Field(default=0.0, description="Margin per effective unit")
    margin_rate: float = Field(default=0.0, description="Margin over ca")
    units_used: float = Field(default=0.0, description="Effective units")
    base_units: float = Field(default=0.0, description="Units before normalization")
    unit_label: str = Field(default="m²", description="Unit display label")
    measurement_mode: MeasurementMode = Field(default=MeasurementMode.SURFACE)
    cost_breakdown: CostBreakdown = Field(default_factory=CostBreakdown)

    subcontractor_rate: float = Field(default=0.0, description="Subcontractor rate per unit")
    subcontractor_base_units: float = Field(default=0.0, description="Subcontractor units")
    subcontractor_estimated_cost: float = Field(default=0.0, description="Units × rate, confirmed or not")
    subcontractor_payment_confirmed: bool = Field(default=False)

    model_config = {
        "frozen": True,
    }

    def to_snapshot(self) -> dict[str, Any]:
        """Fields persisted on the site record."""
        return {
            "ca_ttc": self.ca,
            "cout_chantier_ttc": self.total_costs,
            "marge_totale_ttc": self.margin_total,
            "profit_margin": self.margin_rate,
            "rentability_total_costs": self.total_costs,
            "rentability_margin_total": self.margin_total,
            "rentability_margin_per_unit": self.margin_per_unit,
            "rentability_margin_rate": self.margin_rate,
            "rentability_unit_label": self.unit_label,
            "rentability_unit_count": self.units_used,
            "rentability_additional_costs_total": self.additional_costs_total,
            "subcontractor_payment_amount": self.subcontractor_estimated_cost,
            "subcontractor_payment_units": self.subcontractor_base_units,
            "subcontractor_payment_unit_label": self.unit_label,
            "subcontractor_payment_rate": self.subcontractor_rate,
            "subcontractor_base_units": self.subcontractor_base_units,
        }


class SiteRentabilitySource(BaseModel):
    """Legacy site record fields read by the rentability adapter.

    Everything is optional and untyped: the adapter does the parsing.
    """

    revenue: Any = None
    cout_main_oeuvre_m2_ht: Any = None
    cout_isolation_m2: Any = None
    isolation_utilisee_m2: Any = None
    surface_facturee: Any = None
    montant_commission: Any = None
    travaux_non_subventionnes: Any = None
    travaux_non_subventionnes_montant: Any = None
    valorisation_cee: Any = None
    project_prime_cee: Any = None
    project_prime_cee_total_cents: Any = None
    commission_eur_per_m2_enabled: Any = None
    commission_eur_per_m2: Any = None
    commission_commerciale_ht: Any = None
    commission_commerciale_ht_montant: Any = None
    frais_tva_percentage: Any = None
    subcontractor_pricing_details: Any = None
    subcontractor_payment_confirmed: Any = None
    subcontractor_base_units: Any = None
    subcontractor_payment_amount: Any = None
    subcontractor_payment_units: Any = None
    subcontractor_payment_rate: Any = None
    subcontractor_payment_unit_label: Any = None
    project_category: Any = None
    additional_costs: Any = None
    product_name: Any = None

    model_config = {
        "extra": "allow",
    }


# --- Category VAT rentability ---

class CategoryRentabilityInput(BaseModel):
    """Inputs of the HT/TTC rentability of a lighting or isolation site."""

    prime_cee_ttc: float = Field(default=0.0, description="Prime CEE, taxes included")
    travaux_non_subv_ht: float = Field(default=0.0, description="Non-subsidized works before tax")
    commission_ht: float = Field(default=0.0, description="Commission before tax")
    frais_additionnels: list[AdditionalCostLine] = Field(default_factory=list, description="Additional costs")

    # Lighting
    labor_ht: float = Field(default=0.0, description="Labor before tax (lighting)")
    material_ht: float = Field(default=0.0, description="Materials before tax")
    nb_luminaires: float = Field(default=0.0, description="Fixture count (lighting)")

    # Isolation
    surface_facturee_m2: float = Field(default=0.0, description="Billed surface")
    surface_posee_m2: float = Field(default=0.0, description="Laid surface")
    labor_ht_per_m2: float = Field(default=0.0, description="Labor per m² before tax")
    use_surface_posee_for_labor: bool = Field(default=False, description="Labor on laid surface")

    mode: TaxMode = Field(default=TaxMode.TTC, description="HT or TTC")

    model_config = {
        "extra": "allow",
    }

    @field_validator(
        "prime_cee_ttc", "travaux_non_subv_ht", "commission_ht", "labor_ht", "material_ht",
        "nb_luminaires", "surface_facturee_m2", "surface_posee_m2", "labor_ht_per_m2",
        mode="before",
    )
    @classmethod
    def _lenient(cls, value: Any) -> float:
        return _lenient_number(value) or 0.0

    @field_validator("frais_additionnels", mode="before")
    @classmethod
    def _additional_costs(cls, value: Any) -> list[Any]:
        return _cost_lines(value)

    @field_validator("use_surface_posee_for_labor", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return to_boolean(value)

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, value: Any) -> TaxMode:
        return TaxMode.parse(value)


class CategoryRentabilityOutput(BaseModel):
    ca: float = 0.0
    cout_chantier: float = 0.0
    marge_totale: float = 0.0
    marge_par_unite: float = 0.0
    frais_additionnels: float = 0.0

    model_config = {
        "frozen": True,
    }
