"""Multiplier resolution.

The per-unit valorisation of a product is multiplied by one quantity read
from the project link: insulated surface, fixture count, generic quantity...
Formula-declared variables outrank the schema heuristics, and a missing
value never defaults to a non-zero multiplier.
"""

from __future__ import annotations

from typing import Optional

from prime_cee.core.glossary import QUANTITY_LABEL, is_quantity_sentinel
from prime_cee.core.numbers import normalize_label, to_positive_number
from prime_cee.domain.models.catalog import ProductCatalogEntry, SchemaField
from prime_cee.domain.models.formula import ValorisationFormula
from prime_cee.domain.models.project import ProjectProductLink
from prime_cee.domain.models.valorisation import MultiplierDetection
from .category import CategoryStrategy, strategy_for

# Schema fields searched when no formula variable resolves, highest priority first
SCHEMA_PRIORITY_TIERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("surface_isolee", "surface isolée"), "Surface isolée"),
    (("nombre_led", "nombre de led"), "Nombre de LED"),
    (("quantity", "quantité"), "Quantité"),
    (("surface_facturee", "surface facturée"), "Surface facturée"),
    (("nombre_de_luminaire", "nombre de luminaire", "nombre_luminaire"), "Nombre de luminaire"),
    (("surface",), "Surface"),
)


def _matches(field: SchemaField, targets: tuple[str, ...]) -> bool:
    name = normalize_label(field.name) if field.name else ""
    label = normalize_label(field.label) if field.label else ""
    return any(normalize_label(t) in (name, label) for t in targets)


def declared_formula(
    entry: ProductCatalogEntry,
    strategy: Optional[CategoryStrategy] = None,
) -> Optional[ValorisationFormula]:
    """Formula variable a product declares, explicitly or through its category.

    Order: the entry's own descriptor, the CEE configuration's multiplier
    parameter when the configuration targets the product's category, then the
    category's default multiplier.
    """
    if entry.valorisation_formula is not None:
        return entry.valorisation_formula

    category = entry.product_category
    config = entry.cee_config
    if config.category is category and config.prime_multiplier_param:
        return ValorisationFormula(
            variable_key=config.prime_multiplier_param,
            coefficient=config.prime_multiplier_coefficient,
        )

    strategy = strategy or strategy_for(category)
    if strategy.default_multiplier_key:
        return ValorisationFormula(
            variable_key=strategy.default_multiplier_key,
            variable_label=strategy.default_multiplier_label,
        )
    return None


def _quantity(link: ProjectProductLink, label: str = QUANTITY_LABEL) -> Optional[MultiplierDetection]:
    quantity = to_positive_number(link.quantity)
    if quantity is None:
        return None
    return MultiplierDetection(value=quantity, label=label, field_name="quantity")


def resolve_multiplier(
    entry: ProductCatalogEntry,
    link: ProjectProductLink,
    formula: Optional[ValorisationFormula] = None,
) -> Optional[MultiplierDetection]:
    """Find the multiplier of a project product.

    Args:
        entry: Catalog entry (schema and formula).
        link: Project link holding quantity and dynamic parameters.
        formula: Declared formula; resolved from the entry when omitted.

    Returns:
        The detection, or None when nothing positive was found.
    """
    formula = formula or declared_formula(entry)
    params = link.params

    # 1-2. Formula-declared variable
    if formula is not None:
        if is_quantity_sentinel(formula.variable_key):
            detection = _quantity(link, formula.variable_label or QUANTITY_LABEL)
            if detection is not None:
                return detection
        else:
            value = params.lookup_number(formula.variable_key)
            if value is not None:
                field = entry.schema_field(formula.variable_key)
                label = formula.variable_label or (field.label if field and field.label else None)
                return MultiplierDetection(
                    value=value,
                    label=label or formula.variable_key,
                    field_name=formula.variable_key,
                )

    # 3. Schema heuristics
    for targets, fallback_label in SCHEMA_PRIORITY_TIERS:
        field = next((f for f in entry.params_schema if _matches(f, targets)), None)
        if field is None or not field.name:
            continue
        value = params.lookup_number(field.name)
        if value is not None:
            return MultiplierDetection(value=value, label=field.label or fallback_label, field_name=field.name)

    # 4. Generic quantity
    return _quantity(link)
