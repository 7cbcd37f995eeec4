"""Engine settings with environment variable support.

Uses pydantic-settings for typed configuration validation.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from .exceptions import ConfigurationError


class EngineSettings(BaseSettings):
    """Engine configuration loaded from environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Render logs as JSON")
    log_file: Optional[str] = Field(default=None, description="Optional rotating log file path")

    # Valorisation defaults
    default_bonification: float = Field(default=2.0, gt=0, description="Bonification when none is configured")
    default_coefficient: float = Field(default=1.0, gt=0, description="Coefficient when none is configured")
    mwh_divisor: float = Field(default=1000.0, gt=0, description="kWh to MWh divisor")
    surface_threshold_m2: float = Field(default=400.0, gt=0, description="Building surface splitting kWh bases")

    # Lighting
    lighting_reference_led_watt: float = Field(default=250.0, gt=0, description="Reference LED wattage of kWh bases")
    lighting_default_bonus_dom: float = Field(default=1.0, gt=0, description="BONUS_DOM when the link has none")

    # Eligibility
    excluded_product_prefixes: list[str] = Field(
        default_factory=lambda: ["ECO"],
        description="Category/code prefixes of products outside the CEE scheme",
    )

    # Numerics
    zero_tolerance: float = Field(default=1e-6, ge=0, description="Results closer to 0 are clamped")
    max_expression_length: int = Field(default=500, ge=1, le=5000)

    model_config = {
        "env_prefix": "PRIMECEE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached engine settings."""
    try:
        return EngineSettings()
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
