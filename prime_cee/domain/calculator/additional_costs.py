"""Additional cost lines of a site.

Stored lines come in several shapes (HT + explicit taxes, TTC only, HT +
VAT rate, bare HT with a project-wide VAT percentage). ``line_total`` reads
any of them; ``normalize_additional_cost`` rewrites a line into the current
HT / allowed-rate / TTC shape.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from prime_cee.core.glossary import ADDITIONAL_COST_TVA_RATES
from prime_cee.core.numbers import (
    clamp_percentage,
    first_number,
    round_two,
    to_finite_number,
)
from prime_cee.domain.models.rentability import AdditionalCostLine

DEFAULT_TVA_RATE = 20.0


def line_total(line: AdditionalCostLine, project_vat_percentage: Optional[float] = None) -> float:
    """Tax-inclusive amount of one line.

    Order: explicit TTC (never below HT), HT + explicit taxes, HT at the
    line's VAT rate, HT at the project VAT percentage, HT alone.
    """
    ht = max(0.0, line.amount_ht or 0.0)

    if line.amount_ttc is not None and line.amount_ttc > 0:
        return max(ht, line.amount_ttc)
    if line.taxes is not None:
        return ht + max(0.0, line.taxes)
    if line.tva_rate is not None:
        return ht * (1 + clamp_percentage(line.tva_rate) / 100)

    rate = clamp_percentage(project_vat_percentage or 0.0)
    if rate > 0:
        return ht * (1 + rate / 100)
    return ht


def additional_costs_total(
    lines: Iterable[AdditionalCostLine],
    project_vat_percentage: Optional[float] = None,
) -> float:
    return sum(line_total(line, project_vat_percentage) for line in lines)


def is_allowed_tva_rate(value: Any) -> bool:
    rate = to_finite_number(value)
    return rate is not None and rate in ADDITIONAL_COST_TVA_RATES


def closest_tva_rate(rate: float) -> float:
    return min(ADDITIONAL_COST_TVA_RATES, key=lambda candidate: abs(candidate - rate))


def resolve_tva_rate(
    raw_rate: Any,
    amount_ht: float,
    taxes: float,
    fallback: float = DEFAULT_TVA_RATE,
) -> float:
    """Stored rate when allowed, else the allowed rate closest to taxes / HT."""
    if is_allowed_tva_rate(raw_rate):
        rate = to_finite_number(raw_rate)
        if rate != fallback:
            return rate

    if amount_ht <= 0 or taxes <= 0:
        return fallback
    return closest_tva_rate(taxes / amount_ht * 100)


def compute_amount_ttc(amount_ht: float, tva_rate: float) -> float:
    rate = tva_rate if tva_rate in ADDITIONAL_COST_TVA_RATES else 0.0
    return round_two(amount_ht * (1 + rate / 100))


def normalize_additional_cost(raw: Any, fallback_rate: float = DEFAULT_TVA_RATE) -> AdditionalCostLine:
    """Rewrite a stored cost line as label / HT / allowed rate / TTC."""
    if isinstance(raw, AdditionalCostLine):
        cost: Mapping[str, Any] = raw.model_dump()
    elif isinstance(raw, Mapping):
        cost = raw
    else:
        cost = {}

    label = cost.get("label").strip() if isinstance(cost.get("label"), str) else ""

    amount_ht = first_number(
        (cost.get(key) for key in ("amount_ht", "amount", "total_ht", "ht")),
        default=None,
    )
    amount_ttc = to_finite_number(cost.get("amount_ttc"))
    if amount_ht is None:
        amount_ht = amount_ttc if amount_ttc is not None and amount_ttc > 0 else 0.0

    taxes = first_number((cost.get("montant_tva"), cost.get("taxes")), predicate=lambda v: True)
    if taxes is None:
        taxes = amount_ttc - amount_ht if amount_ttc is not None and amount_ttc > amount_ht else 0.0

    rate = resolve_tva_rate(cost.get("tva_rate"), amount_ht, taxes, fallback_rate)
    return AdditionalCostLine(
        label=label,
        amount_ht=amount_ht,
        tva_rate=rate,
        amount_ttc=compute_amount_ttc(amount_ht, rate),
    )


def normalize_additional_costs(raw_costs: Any, fallback_rate: float = DEFAULT_TVA_RATE) -> list[AdditionalCostLine]:
    if not isinstance(raw_costs, (list, tuple)):
        return []
    return [
        normalize_additional_cost(cost, fallback_rate)
        for cost in raw_costs
        if isinstance(cost, (Mapping, AdditionalCostLine))
    ]
