"""Data models for prime_cee."""

from .catalog import KwhCumacValue, ProductCatalogEntry, SchemaField
from .formula import (
    DEFAULT_PRODUCT_CEE_CONFIG,
    ProductCeeConfig,
    ValorisationFormula,
    normalize_product_cee_config,
    normalize_valorisation_formula,
)
from .project import Delegate, ProjectProductLink
from .rentability import (
    AdditionalCostLine,
    CategoryRentabilityInput,
    CategoryRentabilityOutput,
    CostBreakdown,
    RentabilityInput,
    RentabilityResult,
    SiteRentabilitySource,
)
from .valorisation import (
    CeeConfig,
    CeeOverrides,
    MultiplierDetection,
    PrimeCeeComputation,
    PrimeCeeDisplayInfo,
    PrimeCeeEntry,
    PrimeCeeResult,
    ProjectCeeTotals,
    ValorisationEur,
    ValorisationMwh,
    ValorisationResult,
)

__all__ = [
    "SchemaField",
    "KwhCumacValue",
    "ProductCatalogEntry",
    "ValorisationFormula",
    "ProductCeeConfig",
    "DEFAULT_PRODUCT_CEE_CONFIG",
    "normalize_valorisation_formula",
    "normalize_product_cee_config",
    "ProjectProductLink",
    "Delegate",
    "MultiplierDetection",
    "ValorisationResult",
    "ProjectCeeTotals",
    "PrimeCeeComputation",
    "PrimeCeeDisplayInfo",
    "PrimeCeeEntry",
    "CeeConfig",
    "CeeOverrides",
    "ValorisationMwh",
    "ValorisationEur",
    "PrimeCeeResult",
    "AdditionalCostLine",
    "RentabilityInput",
    "CostBreakdown",
    "RentabilityResult",
    "SiteRentabilitySource",
    "CategoryRentabilityInput",
    "CategoryRentabilityOutput",
]
