"""Category strategies.

Isolation, lighting and every other category differ in a handful of places:
the default multiplier, the unit counted on site, how the kWh base is
adjusted and the VAT of materials. Each category gets one strategy object,
selected once per product or site with ``strategy_for``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from prime_cee.core.glossary import (
    CATEGORY_MULTIPLIER_KEYS,
    CATEGORY_MULTIPLIER_LABELS,
    DynamicParams,
    MeasurementMode,
    ParamKey,
    ProductCategory,
    TVA_MATERIAL_ISOLATION,
    TVA_MATERIAL_LIGHTING,
)
from prime_cee.core.settings import EngineSettings, get_settings
from prime_cee.domain.models.formula import ProductCeeConfig


@dataclass(frozen=True)
class CategoryStrategy:
    """Behaviour shared by categories without specific rules."""

    category: ProductCategory = ProductCategory.OTHER
    measurement_mode: MeasurementMode = MeasurementMode.SURFACE
    prefers_billed_units: bool = False
    keeps_incomplete_rows: bool = False
    material_vat_factor: float = TVA_MATERIAL_LIGHTING

    @property
    def default_multiplier_key(self) -> Optional[str]:
        key = CATEGORY_MULTIPLIER_KEYS.get(self.category)
        return key.value if key else None

    @property
    def default_multiplier_label(self) -> Optional[str]:
        return CATEGORY_MULTIPLIER_LABELS.get(self.category)

    @property
    def is_lighting(self) -> bool:
        return self.category is ProductCategory.LIGHTING

    def adjust_base_kwh(
        self,
        kwh: float,
        params: DynamicParams,
        config: Optional[ProductCeeConfig] = None,
        settings: Optional[EngineSettings] = None,
    ) -> float:
        """kWh base valorised by the standard formula."""
        return kwh


@dataclass(frozen=True)
class IsolationStrategy(CategoryStrategy):
    """Insulation: billed per insulated m², materials without VAT."""

    category: ProductCategory = ProductCategory.ISOLATION
    material_vat_factor: float = TVA_MATERIAL_ISOLATION


@dataclass(frozen=True)
class LightingStrategy(CategoryStrategy):
    """LED lighting: counted per fixture, base scaled by the fixture wattage.

    Incomplete rows (no base, no fixture count) are kept with zero values so
    that the missing data can be reported.
    """

    category: ProductCategory = ProductCategory.LIGHTING
    measurement_mode: MeasurementMode = MeasurementMode.FIXTURE
    prefers_billed_units: bool = True
    keeps_incomplete_rows: bool = True
    material_vat_factor: float = TVA_MATERIAL_LIGHTING

    def adjust_base_kwh(
        self,
        kwh: float,
        params: DynamicParams,
        config: Optional[ProductCeeConfig] = None,
        settings: Optional[EngineSettings] = None,
    ) -> float:
        """Scale the base to the installed wattage.

        The product's fixed LED wattage, else the link's ``led_watt``, and the
        link's ``bonus_dom`` scale the base relative to the reference wattage
        of the regulatory sheet.
        """
        settings = settings or get_settings()
        led_watt = led_watt_for(params, config, settings)
        bonus_dom = params.lookup_number(ParamKey.BONUS_DOM.value, default=settings.lighting_default_bonus_dom)
        return kwh * bonus_dom * led_watt / settings.lighting_reference_led_watt


_STRATEGIES: dict[ProductCategory, CategoryStrategy] = {
    ProductCategory.ISOLATION: IsolationStrategy(),
    ProductCategory.LIGHTING: LightingStrategy(),
    ProductCategory.HEATING: CategoryStrategy(category=ProductCategory.HEATING),
    ProductCategory.VENTILATION: CategoryStrategy(category=ProductCategory.VENTILATION),
    ProductCategory.OTHER: CategoryStrategy(),
}


def strategy_for(category: Any) -> CategoryStrategy:
    """Strategy of a category given as member, raw catalog text or None."""
    parsed = ProductCategory.parse(category)
    return _STRATEGIES[parsed or ProductCategory.OTHER]


def led_watt_for(
    params: DynamicParams,
    config: Optional[ProductCeeConfig] = None,
    settings: Optional[EngineSettings] = None,
) -> float:
    """Installed LED wattage: product constant, then link parameter, then reference."""
    settings = settings or get_settings()
    if config is not None and config.led_watt_constant:
        return config.led_watt_constant
    return params.lookup_number(ParamKey.LED_WATT.value, default=settings.lighting_reference_led_watt)
