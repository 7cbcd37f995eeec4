"""Site record to rentability input adapter.

Site records accumulated several names for the same figure over time (three
Prime CEE sources, two commission toggles, stored subcontractor amounts).
The adapter picks one value per input field; the calculation itself is
untouched.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from prime_cee.core.glossary import MeasurementMode
from prime_cee.core.numbers import first_number, remove_diacritics, sanitize_number, to_boolean, to_finite_number
from prime_cee.domain.calculator.rentability import calculate_rentability
from prime_cee.domain.models.rentability import RentabilityInput, RentabilityResult, SiteRentabilitySource

_NON_ALPHANUMERIC = re.compile(r"[^0-9a-z]+")


def is_led_product(product_name: Optional[str]) -> bool:
    """True when the product name mentions LEDs or fixtures."""
    if not isinstance(product_name, str):
        return False
    normalized = _NON_ALPHANUMERIC.sub(" ", remove_diacritics(product_name).lower()).strip()
    if not normalized:
        return False
    return "led" in normalized or "luminaire" in normalized


def _as_source(values: Any) -> SiteRentabilitySource:
    if isinstance(values, SiteRentabilitySource):
        return values
    if isinstance(values, Mapping):
        return SiteRentabilitySource.model_validate(values)
    return SiteRentabilitySource()


def _prime_cee(source: SiteRentabilitySource) -> float:
    cents = to_finite_number(source.project_prime_cee_total_cents)
    return first_number(
        (
            cents / 100 if cents is not None else None,
            source.project_prime_cee,
            source.valorisation_cee,
        ),
        default=0.0,
    )


def _first_present(*values: Any) -> Any:
    return next((value for value in values if value is not None), None)


def _subcontractor(source: SiteRentabilitySource) -> tuple[float, float]:
    """Subcontractor (base units, rate per unit)."""
    base_units = first_number(
        (source.subcontractor_base_units, source.subcontractor_payment_units), default=0.0
    )

    rate = sanitize_number(source.subcontractor_pricing_details)
    if rate <= 0:
        stored_rate = sanitize_number(source.subcontractor_payment_rate)
        stored_amount = sanitize_number(source.subcontractor_payment_amount)
        if stored_rate > 0:
            rate = stored_rate
        elif base_units > 0 and stored_amount > 0:
            rate = stored_amount / base_units
    return base_units, max(0.0, rate)


def build_rentability_input_from_site(values: Any) -> RentabilityInput:
    """Map a site record onto the canonical rentability input.

    Args:
        values: ``SiteRentabilitySource`` or a mapping of site fields.

    Returns:
        The input; LED products switch to fixture counting.
    """
    source = _as_source(values)

    led = is_led_product(source.product_name)
    category = source.project_category if isinstance(source.project_category, str) else None
    if category is None and led:
        category = "eclairage"
    mode = MeasurementMode.FIXTURE if led else MeasurementMode.SURFACE

    travaux_amount = to_finite_number(source.travaux_non_subventionnes_montant)
    if travaux_amount is None:
        travaux_amount = to_finite_number(source.travaux_non_subventionnes)

    base_units, rate = _subcontractor(source)

    return RentabilityInput(
        revenue=source.revenue,
        original_revenue=source.revenue,
        prime_cee=_prime_cee(source),
        labor_cost_per_unit=source.cout_main_oeuvre_m2_ht,
        material_cost_per_unit=source.cout_isolation_m2,
        units_used=sanitize_number(source.isolation_utilisee_m2),
        billed_units=sanitize_number(source.surface_facturee),
        commission=source.montant_commission,
        commission_per_unit=sanitize_number(
            _first_present(source.commission_eur_per_m2, source.commission_commerciale_ht_montant)
        ),
        commission_per_unit_active=to_boolean(
            _first_present(source.commission_eur_per_m2_enabled, source.commission_commerciale_ht)
        ),
        travaux_option=source.travaux_non_subventionnes,
        travaux_amount=travaux_amount,
        additional_costs=source.additional_costs,
        frais_tva_percentage=source.frais_tva_percentage,
        subcontractor_rate_per_unit=rate,
        subcontractor_base_units=base_units,
        subcontractor_payment_confirmed=source.subcontractor_payment_confirmed,
        measurement_mode=mode,
        unit_label=mode.default_unit_label,
        project_category=category,
    )


def calculate_site_rentability(values: Any) -> RentabilityResult:
    """Rentability of a site record."""
    return calculate_rentability(build_rentability_input_from_site(values))
