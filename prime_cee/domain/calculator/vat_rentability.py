"""HT / TTC rentability per category.

Each cost family carries its own VAT factor: labor 2.1 %, lighting materials
8.5 %, isolation materials none, commission and non-subsidized works 8.5 %.
The Prime CEE is received taxes included.
"""

from __future__ import annotations

from typing import Any

from prime_cee.core.glossary import (
    TVA_COMMISSION,
    TVA_LABOR,
    TVA_TRAVAUX,
    ProductCategory,
    TaxMode,
)
from prime_cee.core.numbers import round_two
from prime_cee.domain.models.rentability import (
    AdditionalCostLine,
    CategoryRentabilityInput,
    CategoryRentabilityOutput,
)
from .additional_costs import line_total
from .category import CategoryStrategy, strategy_for


def _as_input(data: Any) -> CategoryRentabilityInput:
    if isinstance(data, CategoryRentabilityInput):
        return data
    return CategoryRentabilityInput.model_validate(data or {})


def _frais_ht(lines: list[AdditionalCostLine]) -> float:
    return sum(max(0.0, line.amount_ht or 0.0) for line in lines)


def _frais_ttc(lines: list[AdditionalCostLine]) -> float:
    return sum(
        line.amount_ttc if line.amount_ttc is not None and line.amount_ttc > 0 else line_total(line)
        for line in lines
    )


def _compute(
    data: CategoryRentabilityInput,
    labor_ht: float,
    units: float,
    material_factor: float,
    mode: TaxMode,
) -> CategoryRentabilityOutput:
    if mode is TaxMode.HT:
        ca = data.prime_cee_ttc / TVA_TRAVAUX + data.travaux_non_subv_ht
        frais = _frais_ht(data.frais_additionnels)
        cost = labor_ht + data.material_ht + frais
        commission = data.commission_ht
    else:
        ca = data.prime_cee_ttc + data.travaux_non_subv_ht * TVA_TRAVAUX
        frais = _frais_ttc(data.frais_additionnels)
        cost = labor_ht * TVA_LABOR + data.material_ht * material_factor + frais
        commission = data.commission_ht * TVA_COMMISSION

    margin = ca - cost - commission
    return CategoryRentabilityOutput(
        ca=ca,
        cout_chantier=cost,
        marge_totale=margin,
        marge_par_unite=margin / max(units, 1.0),
        frais_additionnels=frais,
    )


def _mode(data: CategoryRentabilityInput, mode: Any) -> TaxMode:
    return TaxMode.parse(mode) if mode is not None else data.mode


def _surface_rentability(data: Any, strategy: CategoryStrategy, mode: Any) -> CategoryRentabilityOutput:
    data = _as_input(data)
    surface = data.surface_posee_m2 if data.use_surface_posee_for_labor else data.surface_facturee_m2
    labor = surface * data.labor_ht_per_m2 if data.labor_ht_per_m2 > 0 else data.labor_ht
    return _compute(data, labor, data.surface_facturee_m2, strategy.material_vat_factor, _mode(data, mode))


def calculate_lighting_rentability(data: Any, mode: Any = None) -> CategoryRentabilityOutput:
    """Lighting site: labor given as a total, margin per fixture."""
    data = _as_input(data)
    strategy = strategy_for(ProductCategory.LIGHTING)
    return _compute(data, data.labor_ht, data.nb_luminaires, strategy.material_vat_factor, _mode(data, mode))


def calculate_isolation_rentability(data: Any, mode: Any = None) -> CategoryRentabilityOutput:
    """Isolation site: labor per m², margin per billed m².

    Labor is charged on the billed surface unless the laid surface is
    requested. A site without a per-m² rate falls back to its labor total.
    """
    return _surface_rentability(data, strategy_for(ProductCategory.ISOLATION), mode)


def calculate_category_rentability(
    data: Any,
    category: Any,
    mode: Any = None,
) -> CategoryRentabilityOutput:
    """Dispatch on the category strategy.

    Lighting counts fixtures; every other category is surface based and
    uses its own material VAT factor.
    """
    strategy = strategy_for(category)
    if strategy.is_lighting:
        return calculate_lighting_rentability(data, mode)
    return _surface_rentability(data, strategy, mode)


def calculate_category_snapshot(data: Any, category: Any) -> dict[str, float]:
    """TTC totals persisted on the site record."""
    result = calculate_category_rentability(data, category, TaxMode.TTC)
    return {
        "ca_ttc": round_two(result.ca),
        "cout_chantier_ttc": round_two(result.cout_chantier),
        "marge_totale_ttc": round_two(result.marge_totale),
    }
