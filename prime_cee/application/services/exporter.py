"""Summary tables for the UI.

Builds pandas DataFrames from computed results: one row per valorised
product, one row per rentability cost line. Nothing is written to disk.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

from prime_cee.core.logging import get_logger
from prime_cee.domain.models.formula import format_multiplier_label
from prime_cee.domain.models.rentability import RentabilityResult
from prime_cee.domain.models.valorisation import PrimeCeeComputation

log = get_logger(__name__)

PRIME_CEE_COLUMNS = [
    "Code",
    "Produit",
    "Base kWh cumac",
    "Bonification",
    "Multiplicateur",
    "Quantité",
    "MWh / unité",
    "€ / unité",
    "Total MWh",
    "Prime CEE (€)",
    "Alerte",
]

RENTABILITY_COLUMNS = ["Poste", "Montant (€)", "Part du CA (%)"]

_COST_LINE_LABELS = {
    "labor": "Main d'oeuvre",
    "material": "Matériaux",
    "commission": "Commission",
    "commission_per_unit": "Commission par unité",
    "subcontractor": "Sous-traitance",
    "additional": "Frais additionnels",
    "travaux": "Travaux non subventionnés",
}


def _warning(has_missing_kwh: bool, has_missing_multiplier: bool) -> str:
    if has_missing_kwh:
        return "Base kWh manquante"
    if has_missing_multiplier:
        return "Multiplicateur manquant"
    return ""


def prime_cee_table(computation: Optional[PrimeCeeComputation]) -> pd.DataFrame:
    """One row per valorised product, in computation order."""
    if computation is None or not computation.products:
        return pd.DataFrame(columns=PRIME_CEE_COLUMNS)

    data = []
    for p in computation.products:
        data.append({
            "Code": p.product_code or "",
            "Produit": p.product_name or "",
            "Base kWh cumac": p.base_kwh,
            "Bonification": p.bonification,
            "Multiplicateur": format_multiplier_label(p.multiplier_label, p.coefficient),
            "Quantité": p.multiplier,
            "MWh / unité": p.valorisation_per_unit_mwh,
            "€ / unité": p.valorisation_per_unit_eur,
            "Total MWh": p.valorisation_total_mwh,
            "Prime CEE (€)": p.total_prime,
            "Alerte": _warning(p.has_missing_kwh_cumac, p.has_missing_multiplier),
        })

    df = pd.DataFrame(data, columns=PRIME_CEE_COLUMNS)
    log.debug("prime_cee_table_built", rows=len(df))
    return df


def rentability_breakdown_table(result: RentabilityResult) -> pd.DataFrame:
    """Cost lines of a site with their share of the revenue.

    Zero lines are dropped; the share is 0 when the revenue is 0.
    """
    costs = result.cost_breakdown.model_dump()
    rows = [
        (_COST_LINE_LABELS[key], amount)
        for key, amount in costs.items()
        if amount > 0
    ]
    if not rows:
        return pd.DataFrame(columns=RENTABILITY_COLUMNS)

    df = pd.DataFrame(rows, columns=RENTABILITY_COLUMNS[:2])
    if result.ca > 0:
        df["Part du CA (%)"] = (df["Montant (€)"] / result.ca * 100).round(2)
    else:
        df["Part du CA (%)"] = 0.0
    return df
