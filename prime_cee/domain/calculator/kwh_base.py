"""kWh cumac base selection.

Regulatory sheets give one base per building type, sometimes split by
building surface (below / at or above 400 m²).
"""

from __future__ import annotations

from typing import Iterable, Optional

from prime_cee.core.numbers import to_finite_number
from prime_cee.core.settings import get_settings
from prime_cee.domain.models.catalog import KwhCumacValue


def normalize_building_type(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def find_kwh_entry(
    entries: Iterable[KwhCumacValue],
    building_type: Optional[str],
) -> Optional[KwhCumacValue]:
    """First entry whose building type matches, ignoring case and padding."""
    target = normalize_building_type(building_type)
    if not target:
        return None
    return next((e for e in entries if normalize_building_type(e.building_type) == target), None)


def select_kwh_base(
    entries: Iterable[KwhCumacValue],
    building_type: Optional[str],
    building_surface: Optional[float] = None,
    threshold: Optional[float] = None,
) -> Optional[float]:
    """Pick the kWh base of a product for a building.

    Unknown or small surfaces prefer the below-threshold base; surfaces at or
    above the threshold prefer the other one. Each falls back to the other
    band, then to the legacy single column.

    Returns:
        The base, or None when the building type has no usable value.
    """
    entry = find_kwh_entry(entries, building_type)
    if entry is None:
        return None

    if threshold is None:
        threshold = get_settings().surface_threshold_m2
    surface = to_finite_number(building_surface)

    if surface is not None and surface >= threshold:
        ordered = (entry.kwh_cumac_gte_400, entry.kwh_cumac_lt_400)
    else:
        ordered = (entry.kwh_cumac_lt_400, entry.kwh_cumac_gte_400)

    return next((value for value in (*ordered, entry.kwh_cumac) if value is not None), None)
