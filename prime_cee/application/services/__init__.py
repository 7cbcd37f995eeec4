"""Application services."""

from .exporter import prime_cee_table, rentability_breakdown_table
from .prime_aggregator import (
    PrimeCeeAggregator,
    build_prime_cee_entries,
    compute_prime_cee,
    compute_project_cee_totals,
    is_product_excluded,
)
from .rentability_adapter import (
    build_rentability_input_from_site,
    calculate_site_rentability,
    is_led_product,
)

__all__ = [
    "PrimeCeeAggregator",
    "compute_prime_cee",
    "compute_project_cee_totals",
    "build_prime_cee_entries",
    "is_product_excluded",
    "build_rentability_input_from_site",
    "calculate_site_rentability",
    "is_led_product",
    "prime_cee_table",
    "rentability_breakdown_table",
]
