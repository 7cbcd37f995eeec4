"""Project-side inputs of the valorisation: product links and delegate pricing."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from prime_cee.core.glossary import DynamicParams
from prime_cee.core.numbers import to_finite_number, to_non_negative_number


class ProjectProductLink(BaseModel):
    """A catalog product configured on a project."""

    product_id: str = Field(..., description="Catalog product identifier")
    quantity: Optional[float] = Field(None, description="Generic quantity")
    dynamic_params: dict[str, Any] = Field(default_factory=dict, description="Parameter values by key")
    id: Optional[str] = Field(None, description="Stable project-product identifier")

    model_config = {
        "extra": "allow",
    }

    @field_validator("product_id", "id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("quantity", mode="before")
    @classmethod
    def _lenient_quantity(cls, value: Any) -> Optional[float]:
        return to_finite_number(value)

    @field_validator("dynamic_params", mode="before")
    @classmethod
    def _params_mapping(cls, value: Any) -> dict[str, Any]:
        return dict(value) if isinstance(value, Mapping) else {}

    @property
    def params(self) -> DynamicParams:
        """Synonym-aware view of ``dynamic_params``."""
        return DynamicParams(self.dynamic_params)

    @property
    def project_product_id(self) -> str:
        return self.id or self.product_id


class Delegate(BaseModel):
    """Entity buying the certificates at a quoted EUR/MWh rate."""

    price_eur_per_mwh: Optional[float] = Field(None, description="Price in €/MWh")

    model_config = {
        "extra": "allow",
    }

    @field_validator("price_eur_per_mwh", mode="before")
    @classmethod
    def _lenient_price(cls, value: Any) -> Optional[float]:
        return to_finite_number(value)

    @property
    def price(self) -> float:
        """Usable price: finite and non-negative, else 0."""
        return to_non_negative_number(self.price_eur_per_mwh) or 0.0
