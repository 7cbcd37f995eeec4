"""Site rentability calculator.

CA = original revenue + Prime CEE + works share billed to the client.
Costs = labor + materials + additional costs + commissions
        + confirmed subcontractor payment + works share absorbed.
Margin = CA - costs.
"""

from __future__ import annotations

from typing import Any, Optional

from prime_cee.core.glossary import MeasurementMode, TravauxOption
from prime_cee.core.logging import get_logger
from prime_cee.core.numbers import clamp_zero
from prime_cee.core.settings import EngineSettings, get_settings
from prime_cee.domain.models.rentability import CostBreakdown, RentabilityInput, RentabilityResult
from .additional_costs import additional_costs_total
from .category import strategy_for

log = get_logger(__name__)


def _non_negative(value: Optional[float]) -> float:
    return max(0.0, value or 0.0)


def effective_units(executed_units: float, billed_units: float, prefers_billed: bool) -> float:
    """Units the per-unit costs apply to: preferred source first, then the larger count."""
    primary, secondary = (billed_units, executed_units) if prefers_billed else (executed_units, billed_units)
    base = primary or secondary
    effective = base if base > 0 else max(billed_units, executed_units)
    return max(0.0, effective)


def split_travaux(option: TravauxOption, amount: float) -> tuple[float, float]:
    """Split the non-subsidized works amount into (revenue, cost)."""
    if amount <= 0:
        return 0.0, 0.0
    if option is TravauxOption.CLIENT:
        return amount, 0.0
    if option is TravauxOption.MARGE:
        return 0.0, amount
    if option is TravauxOption.PARTAGE:
        return amount / 2, amount / 2
    return 0.0, 0.0


def calculate_rentability(
    data: Any,
    settings: Optional[EngineSettings] = None,
) -> RentabilityResult:
    """Compute the revenue, cost and margin breakdown of a site.

    Args:
        data: ``RentabilityInput`` or a mapping of its fields.
        settings: Engine settings (zero tolerance).

    Returns:
        Frozen result; values within the zero tolerance are exactly 0.
    """
    settings = settings or get_settings()
    data = data if isinstance(data, RentabilityInput) else RentabilityInput.model_validate(data or {})

    def clean(value: float) -> float:
        return clamp_zero(value, settings.zero_tolerance)

    original_revenue = _non_negative(data.original_revenue if data.original_revenue is not None else data.revenue)
    prime_cee = _non_negative(data.prime_cee)
    labor_rate = _non_negative(data.labor_cost_per_unit)
    material_rate = _non_negative(data.material_cost_per_unit)

    mode = data.measurement_mode
    label = (data.unit_label or "").strip() or mode.default_unit_label

    # 1. Units
    strategy = strategy_for(data.project_category)
    prefers_billed = strategy.prefers_billed_units or mode is MeasurementMode.FIXTURE
    billed = _non_negative(data.billed_units)
    executed = _non_negative(data.units_used)
    units = effective_units(executed, billed, prefers_billed)

    # 2. Non-subsidized works
    travaux_revenue, travaux_cost = split_travaux(data.travaux_option, _non_negative(data.travaux_amount))

    # 3. Additional costs
    additional = additional_costs_total(data.additional_costs, data.frais_tva_percentage)

    # 4. Commission
    commission_fixed = _non_negative(data.commission)
    commission_per_unit = (
        _non_negative(data.commission_per_unit) * units if data.commission_per_unit_active else 0.0
    )

    # 5. Subcontractor
    subcontractor_rate = _non_negative(data.subcontractor_rate_per_unit)
    subcontractor_units = _non_negative(data.subcontractor_base_units) or units
    subcontractor_estimate = subcontractor_units * subcontractor_rate
    subcontractor_cost = subcontractor_estimate if data.subcontractor_payment_confirmed else 0.0

    # 6. Totals
    labor = units * labor_rate
    material = units * material_rate
    ca = original_revenue + prime_cee + travaux_revenue
    total_costs = (
        labor + material + additional + commission_fixed + commission_per_unit + subcontractor_cost + travaux_cost
    )

    # 7. Margins
    margin = ca - total_costs
    margin_rate = margin / ca if ca > 0 else 0.0
    margin_per_unit = margin / units if units > 0 else 0.0

    log.debug(
        "rentability_computed",
        ca=round(ca, 2),
        total_costs=round(total_costs, 2),
        units=units,
        travaux_option=data.travaux_option.value,
    )

    return RentabilityResult(
        ca=clean(ca),
        revenue=clean(ca),
        original_revenue=clean(original_revenue),
        prime_cee=clean(prime_cee),
        travaux_revenue=clean(travaux_revenue),
        travaux_cost=clean(travaux_cost),
        total_costs=clean(total_costs),
        additional_costs_total=clean(additional),
        frais_total_ttc=clean(additional),
        margin_total=clean(margin),
        margin_per_unit=clean(margin_per_unit),
        margin_rate=clean(margin_rate),
        units_used=clean(units),
        base_units=clean(units),
        unit_label=label,
        measurement_mode=mode,
        cost_breakdown=CostBreakdown(
            labor=clean(labor),
            material=clean(material),
            commission=clean(commission_fixed),
            commission_per_unit=clean(commission_per_unit),
            subcontractor=clean(subcontractor_cost),
            additional=clean(additional),
            travaux=clean(travaux_cost),
        ),
        subcontractor_rate=clean(subcontractor_rate),
        subcontractor_base_units=clean(subcontractor_units),
        subcontractor_estimated_cost=clean(subcontractor_estimate),
        subcontractor_payment_confirmed=data.subcontractor_payment_confirmed,
    )
