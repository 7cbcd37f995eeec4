"""Prime CEE aggregation service.

Valorises every product of a project and sums the results into the project
Prime CEE. Missing data never raises: unknown or ineligible products are
skipped, incomplete lighting rows are kept with warning flags.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from prime_cee.core.glossary import QUANTITY_LABEL
from prime_cee.core.logging import get_logger
from prime_cee.core.numbers import round_two, sanitize_number
from prime_cee.core.settings import EngineSettings, get_settings
from prime_cee.domain.calculator.category import CategoryStrategy, led_watt_for, strategy_for
from prime_cee.domain.calculator.kwh_base import normalize_building_type, select_kwh_base
from prime_cee.domain.calculator.multiplier import declared_formula, resolve_multiplier
from prime_cee.domain.calculator.valorisation import (
    build_expression_context,
    compute_valorisation,
    resolve_bonification,
    resolve_coefficient,
)
from prime_cee.domain.models.catalog import ProductCatalogEntry
from prime_cee.domain.models.formula import ValorisationFormula
from prime_cee.domain.models.project import Delegate, ProjectProductLink
from prime_cee.domain.models.valorisation import (
    MultiplierDetection,
    PrimeCeeComputation,
    PrimeCeeDisplayInfo,
    PrimeCeeEntry,
    ProjectCeeTotals,
    ValorisationResult,
)

log = get_logger(__name__)


def is_product_excluded(entry: ProductCatalogEntry, prefixes: Optional[Iterable[str]] = None) -> bool:
    """True when the product's category or code starts with an excluded prefix."""
    if prefixes is None:
        prefixes = get_settings().excluded_product_prefixes
    category = (entry.category or "").upper()
    code = (entry.code or "").upper()
    return any(
        category.startswith(prefix) or code.startswith(prefix)
        for prefix in (p.strip().upper() for p in prefixes)
        if prefix
    )


def _as_link(raw: Any) -> Optional[ProjectProductLink]:
    if isinstance(raw, ProjectProductLink):
        return raw
    if not isinstance(raw, Mapping) or not raw.get("product_id"):
        return None
    return ProjectProductLink.model_validate(raw)


def _as_entry(raw: Any) -> Optional[ProductCatalogEntry]:
    if isinstance(raw, ProductCatalogEntry):
        return raw
    if not isinstance(raw, Mapping) or not raw.get("id"):
        return None
    return ProductCatalogEntry.model_validate(raw)


def _as_delegate(raw: Any) -> Delegate:
    if isinstance(raw, Delegate):
        return raw
    if isinstance(raw, Mapping):
        return Delegate.model_validate(raw)
    return Delegate()


class PrimeCeeAggregator:
    """Computes the Prime CEE of a project from its product links."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or get_settings()

    def compute(
        self,
        products: Iterable[Any],
        product_map: Mapping[str, Any],
        building_type: Optional[str],
        delegate: Any = None,
        prime_bonification: Optional[float] = None,
        building_surface: Optional[float] = None,
    ) -> Optional[PrimeCeeComputation]:
        """Valorise and sum the products of a project.

        Args:
            products: Project product links (models or mappings).
            product_map: Catalog entries keyed by product id.
            building_type: Building type selecting the kWh bases.
            delegate: Delegate pricing; an unknown price values € at 0.
            prime_bonification: Project-level bonification.
            building_surface: Building surface selecting the kWh band.

        Returns:
            The computation, or None without a building type.
        """
        if not normalize_building_type(building_type):
            return None

        delegate_price = _as_delegate(delegate).price
        results: list[ValorisationResult] = []
        missing_kwh: list[str] = []

        for raw_link in products or []:
            link = _as_link(raw_link)
            if link is None:
                log.debug("product_skipped", reason="invalid_link")
                continue

            entry = _as_entry(product_map.get(link.product_id))
            if entry is None:
                log.debug("product_skipped", product_id=link.product_id, reason="unknown_product")
                continue
            if is_product_excluded(entry, self.settings.excluded_product_prefixes):
                log.debug("product_skipped", product_id=entry.id, reason="excluded_category")
                continue

            strategy = strategy_for(entry.product_category)
            raw_kwh = select_kwh_base(
                entry.kwh_cumac_values,
                building_type,
                building_surface,
                self.settings.surface_threshold_m2,
            )
            formula = declared_formula(entry, strategy)
            detection = resolve_multiplier(entry, link, formula)

            if not strategy.keeps_incomplete_rows:
                if raw_kwh is None:
                    missing_kwh.append(link.project_product_id)
                    log.debug("product_skipped", product_id=entry.id, reason="missing_kwh_base")
                    continue
                if detection is None:
                    log.debug("product_skipped", product_id=entry.id, reason="missing_multiplier")
                    continue

            results.append(
                self._valorise(
                    entry, link, strategy, formula, detection, raw_kwh, delegate_price, prime_bonification
                )
            )

        totals = compute_project_cee_totals(results)
        log.debug(
            "prime_cee_computed",
            products=len(results),
            skipped_missing_kwh=len(missing_kwh),
            total_prime=totals.total_prime,
        )
        return PrimeCeeComputation(
            **totals.model_dump(),
            delegate_price=round_two(delegate_price),
            products=results,
            missing_kwh_product_ids=missing_kwh,
        )

    def _valorise(
        self,
        entry: ProductCatalogEntry,
        link: ProjectProductLink,
        strategy: CategoryStrategy,
        formula: Optional[ValorisationFormula],
        detection: Optional[MultiplierDetection],
        raw_kwh: Optional[float],
        delegate_price: float,
        prime_bonification: Optional[float],
    ) -> ValorisationResult:
        settings = self.settings
        params = link.params
        config = entry.cee_config

        base_kwh = strategy.adjust_base_kwh(raw_kwh, params, config, settings) if raw_kwh else 0.0
        bonification = resolve_bonification(entry.bonification, prime_bonification, settings=settings)
        coefficient = resolve_coefficient(
            entry.coefficient, formula.coefficient if formula else None, settings=settings
        )

        variables = None
        if config.formula_expression:
            variables = build_expression_context(
                raw_kwh or 0.0,
                bonification,
                coefficient,
                params,
                led_watt=led_watt_for(params, config, settings),
                settings=settings,
            )

        multiplier = detection.value if detection else 0.0
        figures = compute_valorisation(
            base_kwh,
            multiplier,
            bonification,
            coefficient,
            delegate_price,
            expression=config.formula_expression,
            variables=variables,
            settings=settings,
        )

        if detection is not None:
            label = detection.label
        else:
            label = (formula.variable_label if formula else None) or strategy.default_multiplier_label or QUANTITY_LABEL

        return ValorisationResult(
            project_product_id=link.project_product_id,
            product_id=entry.id,
            product_code=entry.code or None,
            product_name=entry.name or None,
            base_kwh=round_two(base_kwh),
            bonification=bonification,
            coefficient=coefficient,
            valorisation_per_unit_mwh=figures.per_unit_mwh,
            valorisation_per_unit_eur=figures.per_unit_eur,
            valorisation_label=f"Valorisation {label}",
            multiplier=round_two(multiplier),
            multiplier_label=label,
            valorisation_total_mwh=figures.total_mwh,
            valorisation_total_eur=figures.total_eur,
            delegate_price=round_two(delegate_price),
            total_prime=figures.total_eur,
            has_missing_kwh_cumac=raw_kwh is None,
            has_missing_multiplier=detection is None,
        )


def compute_prime_cee(
    products: Iterable[Any],
    product_map: Mapping[str, Any],
    building_type: Optional[str],
    delegate: Any = None,
    prime_bonification: Optional[float] = None,
    building_surface: Optional[float] = None,
    settings: Optional[EngineSettings] = None,
) -> Optional[PrimeCeeComputation]:
    """Functional entry point over ``PrimeCeeAggregator.compute``."""
    return PrimeCeeAggregator(settings).compute(
        products,
        product_map,
        building_type,
        delegate=delegate,
        prime_bonification=prime_bonification,
        building_surface=building_surface,
    )


def _result_value(result: Any, field: str) -> float:
    if isinstance(result, Mapping):
        return sanitize_number(result.get(field))
    return sanitize_number(getattr(result, field, None))


def compute_project_cee_totals(results: Iterable[Any]) -> ProjectCeeTotals:
    """Sum per-product results (models or mappings) into project totals."""
    results = list(results or [])
    return ProjectCeeTotals(
        total_prime=round_two(sum(_result_value(r, "total_prime") for r in results)),
        total_valorisation_eur=round_two(sum(_result_value(r, "valorisation_total_eur") for r in results)),
        total_valorisation_mwh=round_two(sum(_result_value(r, "valorisation_total_mwh") for r in results)),
    )


def build_prime_cee_entries(
    computation: Optional[PrimeCeeComputation],
    display_map: Mapping[str, Any],
) -> list[PrimeCeeEntry]:
    """Merge display metadata into computed rows.

    Rows without metadata or without a positive multiplier are dropped; the
    per-unit € value is recomputed at the computation's delegate price.
    """
    if computation is None:
        return []

    entries: list[PrimeCeeEntry] = []
    for product in computation.products:
        raw_info = display_map.get(product.project_product_id)
        if raw_info is None or product.multiplier <= 0:
            continue

        info = raw_info if isinstance(raw_info, PrimeCeeDisplayInfo) else PrimeCeeDisplayInfo.model_validate(raw_info)
        data = product.model_dump()
        if info.product_code is not None:
            data["product_code"] = info.product_code
        if info.product_name is not None:
            data["product_name"] = info.product_name

        entries.append(
            PrimeCeeEntry(
                **data,
                valorisation_per_unit=product.valorisation_per_unit_mwh * computation.delegate_price,
            )
        )
    return entries
