"""Valorisation calculator.

Valorisation CEE = (kWh cumac × bonification × coefficient) / 1000 MWh per
unit, converted to € at the delegate price and multiplied by the product's
multiplier. A custom expression may replace the standard per-unit formula.

Values are rounded to 2 decimals on the way out only.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from prime_cee.core.glossary import DynamicParams, ParamKey
from prime_cee.core.logging import get_logger
from prime_cee.core.numbers import first_number, is_non_negative, round_two
from prime_cee.core.settings import EngineSettings, get_settings
from prime_cee.domain.models.valorisation import (
    CeeConfig,
    PrimeCeeResult,
    ValorisationEur,
    ValorisationMwh,
)
from .expression import evaluate_expression

log = get_logger(__name__)


@dataclass(frozen=True)
class ValorisationFigures:
    """Rounded per-unit and total valorisation of one product."""

    per_unit_mwh: float = 0.0
    per_unit_eur: float = 0.0
    total_mwh: float = 0.0
    total_eur: float = 0.0


ZERO_FIGURES = ValorisationFigures()


def resolve_bonification(*candidates: Any, settings: Optional[EngineSettings] = None) -> float:
    """First positive candidate (product, then project), else the configured default."""
    settings = settings or get_settings()
    return first_number(candidates, default=settings.default_bonification)


def resolve_coefficient(*candidates: Any, settings: Optional[EngineSettings] = None) -> float:
    settings = settings or get_settings()
    return first_number(candidates, default=settings.default_coefficient)


def build_expression_context(
    kwh_cumac: float,
    bonification: float,
    coefficient: float,
    params: Optional[DynamicParams] = None,
    led_watt: Optional[float] = None,
    mwh_divisor: Optional[float] = None,
    settings: Optional[EngineSettings] = None,
) -> dict[str, float]:
    """Variables available to custom valorisation formulas."""
    settings = settings or get_settings()
    params = params if params is not None else DynamicParams()
    return {
        "KWH_CUMAC": kwh_cumac,
        "BONIFICATION": bonification,
        "BONUS_DOM": params.lookup_number(ParamKey.BONUS_DOM.value, default=bonification),
        "LED_WATT": led_watt if led_watt is not None else params.lookup_number(
            ParamKey.LED_WATT.value, default=settings.lighting_reference_led_watt
        ),
        "MWH_DIVISOR": mwh_divisor or settings.mwh_divisor,
        "COEFFICIENT": coefficient,
    }


def per_unit_mwh(
    base_kwh: float,
    bonification: float,
    coefficient: float,
    expression: Optional[str] = None,
    variables: Optional[Mapping[str, Any]] = None,
    mwh_divisor: Optional[float] = None,
    settings: Optional[EngineSettings] = None,
) -> float:
    """Unrounded MWh per unit; 0 when the expression fails or goes negative."""
    settings = settings or get_settings()
    value = base_kwh * bonification * coefficient / (mwh_divisor or settings.mwh_divisor)

    if expression:
        outcome = evaluate_expression(expression, variables or {})
        if not outcome.ok:
            log.warning("valorisation_formula_failed", expression=expression, error=outcome.error)
            return 0.0
        value = outcome.value

    if not math.isfinite(value) or value < 0:
        if expression:
            log.warning("valorisation_formula_failed", expression=expression, error="negative result")
        return 0.0
    return value


def compute_valorisation(
    base_kwh: Optional[float],
    multiplier: Optional[float],
    bonification: float,
    coefficient: float,
    delegate_price: float,
    expression: Optional[str] = None,
    variables: Optional[Mapping[str, Any]] = None,
    settings: Optional[EngineSettings] = None,
) -> ValorisationFigures:
    """Per-unit and total valorisation of one product.

    A missing or non-positive base or multiplier is the "not applicable yet"
    state: every figure is exactly 0.
    """
    if not base_kwh or base_kwh <= 0 or not multiplier or multiplier <= 0:
        return ZERO_FIGURES

    mwh = per_unit_mwh(base_kwh, bonification, coefficient, expression, variables, settings=settings)
    eur = mwh * delegate_price
    return ValorisationFigures(
        per_unit_mwh=round_two(mwh),
        per_unit_eur=round_two(eur),
        total_mwh=round_two(mwh * multiplier),
        total_eur=round_two(eur * multiplier),
    )


# --- Config-style API ---

_CONFIG_LED_WATT = 1.0


def _as_config(config: Any) -> CeeConfig:
    return config if isinstance(config, CeeConfig) else CeeConfig.model_validate(config or {})


def _config_multiplier(config: CeeConfig) -> float:
    direct = first_number((config.overrides.multiplier, config.multiplier, config.quantity))
    if direct is not None:
        return direct
    return DynamicParams(config.dynamic_params).lookup_number(ParamKey.QUANTITY.value, default=0.0)


def compute_valorisation_mwh(config: Any, settings: Optional[EngineSettings] = None) -> ValorisationMwh:
    """MWh valorisation of a single operation described by a ``CeeConfig``.

    Overrides win over direct values; the multiplier falls back to the
    quantity, then to a quantity parameter.
    """
    settings = settings or get_settings()
    config = _as_config(config)
    overrides = config.overrides

    kwh = first_number((overrides.kwh_cumac, config.kwh_cumac), default=0.0)
    multiplier = _config_multiplier(config)
    if kwh <= 0 or multiplier <= 0:
        return ValorisationMwh(multiplier=round_two(multiplier))

    bonification = resolve_bonification(overrides.bonification, config.bonification, settings=settings)
    coefficient = resolve_coefficient(overrides.coefficient, config.coefficient, settings=settings)
    divisor = first_number((overrides.mwh_divisor,), default=settings.mwh_divisor)

    variables = None
    if config.expression:
        params = DynamicParams(config.dynamic_params)
        led_watt = first_number(
            (overrides.led_watt, params.lookup_number(ParamKey.LED_WATT.value)), default=_CONFIG_LED_WATT
        )
        variables = build_expression_context(
            kwh, bonification, coefficient, params, led_watt=led_watt, mwh_divisor=divisor, settings=settings
        )

    mwh = per_unit_mwh(
        kwh, bonification, coefficient, config.expression, variables, mwh_divisor=divisor, settings=settings
    )
    if mwh <= 0:
        return ValorisationMwh(multiplier=round_two(multiplier))

    return ValorisationMwh(
        multiplier=round_two(multiplier),
        valorisation_per_unit_mwh=round_two(mwh),
        valorisation_total_mwh=round_two(mwh * multiplier),
    )


def _config_delegate_price(config: CeeConfig) -> float:
    overrides = config.overrides
    return first_number(
        (overrides.valorisation_tarif, overrides.delegate_price_eur_per_mwh, config.delegate_price_eur_per_mwh),
        predicate=is_non_negative,
        default=0.0,
    )


def compute_valorisation_eur(config: Any, settings: Optional[EngineSettings] = None) -> ValorisationEur:
    """€ valorisation of the rounded MWh figures at the delegate price."""
    config = _as_config(config)
    mwh = compute_valorisation_mwh(config, settings=settings)
    price = _config_delegate_price(config)
    return ValorisationEur(
        **mwh.model_dump(),
        delegate_price=round_two(price),
        valorisation_per_unit_eur=round_two(mwh.valorisation_per_unit_mwh * price),
        valorisation_total_eur=round_two(mwh.valorisation_total_mwh * price),
    )


def compute_prime_cee_eur(config: Any, settings: Optional[EngineSettings] = None) -> PrimeCeeResult:
    """Prime CEE of a single operation: its total € valorisation."""
    eur = compute_valorisation_eur(config, settings=settings)
    return PrimeCeeResult(**eur.model_dump(), total_prime=eur.valorisation_total_eur)
