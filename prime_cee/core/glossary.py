"""
Canonical vocabulary of the engine.
Single Source of Truth for parameter keys, categories and policy values.

Stored records use many spellings for the same dynamic parameter
("Nombre Led", "nombreLed", "nombre_de_luminaire"...). The synonym table maps
them to one canonical key; ``DynamicParams`` applies it once when a link's
parameters enter the engine.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Iterator, Mapping, Optional

from .numbers import Predicate, compact_key, first_number, is_positive, normalize_key

LEGACY_QUANTITY_KEY = "__quantity__"
QUANTITY_LABEL = "Quantité"


class ParamKey(str, Enum):
    SURFACE_ISOLEE = "surface_isolee"
    NOMBRE_LUMINAIRE = "nombre_luminaire"
    QUANTITY = "quantity"
    SURFACE_FACTUREE = "surface_facturee"
    SURFACE = "surface"
    LED_WATT = "led_watt"
    BONUS_DOM = "bonus_dom"


_SYNONYMS: dict[ParamKey, tuple[str, ...]] = {
    ParamKey.NOMBRE_LUMINAIRE: (
        "nombre_led", "nombre_leds", "nombre_de_led", "nombre_de_leds",
        "nombre_luminaire", "nombre_luminaires", "nombre_de_luminaire",
        "nombre_de_luminaires", "nb_luminaires", "nb_luminaire", "nb_led",
    ),
    ParamKey.QUANTITY: ("quantity", "quantite", "qty"),
    ParamKey.SURFACE_ISOLEE: ("surface_isolee", "surface_isolee_m2"),
    ParamKey.SURFACE_FACTUREE: ("surface_facturee", "surface_facturee_m2"),
    ParamKey.SURFACE: ("surface",),
    ParamKey.LED_WATT: ("led_watt", "puissance_led"),
    ParamKey.BONUS_DOM: ("bonus_dom",),
}

SYNONYM_TABLE: dict[str, ParamKey] = {
    compact_key(alias): canonical
    for canonical, aliases in _SYNONYMS.items()
    for alias in aliases
}


def canonical_param_key(key: Any) -> Optional[ParamKey]:
    """Resolve a raw parameter name to its canonical key, if it has one."""
    if not isinstance(key, str) or not key.strip():
        return None
    return SYNONYM_TABLE.get(compact_key(key))


def is_quantity_sentinel(key: Any) -> bool:
    """True for the legacy "__quantity__" marker and the bare "quantity" key."""
    if not isinstance(key, str):
        return False
    trimmed = key.strip()
    return trimmed == LEGACY_QUANTITY_KEY or trimmed.lower() == ParamKey.QUANTITY.value


class DynamicParams(Mapping[str, Any]):
    """Read-only view over a link's ``dynamic_params`` with synonym lookup.

    Indexing uses the raw keys; ``lookup_number`` tries the exact key first,
    then every raw key sharing its canonical form.
    """

    def __init__(self, raw: Optional[Mapping[str, Any]] = None):
        self._raw: dict[str, Any] = dict(raw) if isinstance(raw, Mapping) else {}
        self._by_canonical: dict[str, list[str]] = {}
        for key in self._raw:
            canonical = canonical_param_key(key)
            slot = canonical.value if canonical else normalize_key(str(key))
            self._by_canonical.setdefault(slot, []).append(key)

    def __getitem__(self, key: str) -> Any:
        return self._raw[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._raw)

    def __len__(self) -> int:
        return len(self._raw)

    def candidates(self, key: str) -> list[str]:
        """Raw keys that may hold ``key``, exact match first."""
        canonical = canonical_param_key(key)
        slot = canonical.value if canonical else normalize_key(key)
        keys = [key] if key in self._raw else []
        keys.extend(k for k in self._by_canonical.get(slot, []) if k != key)
        return keys

    def lookup_number(
        self,
        key: str,
        predicate: Predicate = is_positive,
        default: Optional[float] = None,
    ) -> Optional[float]:
        return first_number((self._raw[k] for k in self.candidates(key)), predicate, default)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._raw)


# --- Enumerations ---

class ProductCategory(str, Enum):
    ISOLATION = "isolation"
    HEATING = "heating"
    LIGHTING = "lighting"
    VENTILATION = "ventilation"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> Optional[ProductCategory]:
        """Map free-form category text ("Éclairage LED", "isolation") to a member."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            return None
        slug = normalize_key(value)
        exact = _CATEGORY_ALIASES.get(slug)
        if exact is not None:
            return exact
        for fragment, category in _CATEGORY_FRAGMENTS:
            if fragment in slug:
                return category
        return None


_CATEGORY_ALIASES: dict[str, ProductCategory] = {
    "isolation": ProductCategory.ISOLATION,
    "heating": ProductCategory.HEATING,
    "chauffage": ProductCategory.HEATING,
    "lighting": ProductCategory.LIGHTING,
    "eclairage": ProductCategory.LIGHTING,
    "ventilation": ProductCategory.VENTILATION,
    "other": ProductCategory.OTHER,
    "autre": ProductCategory.OTHER,
}

_CATEGORY_FRAGMENTS: tuple[tuple[str, ProductCategory], ...] = (
    ("eclair", ProductCategory.LIGHTING),
    ("lighting", ProductCategory.LIGHTING),
    ("luminaire", ProductCategory.LIGHTING),
    ("isol", ProductCategory.ISOLATION),
    ("chauff", ProductCategory.HEATING),
    ("ventil", ProductCategory.VENTILATION),
)

CATEGORY_LABELS: dict[ProductCategory, str] = {
    ProductCategory.ISOLATION: "Isolation",
    ProductCategory.HEATING: "Chauffage",
    ProductCategory.LIGHTING: "Éclairage",
    ProductCategory.VENTILATION: "Ventilation",
    ProductCategory.OTHER: "Autre",
}

# Multiplier parameter used when a product declares none
CATEGORY_MULTIPLIER_KEYS: dict[ProductCategory, ParamKey] = {
    ProductCategory.ISOLATION: ParamKey.SURFACE_ISOLEE,
    ProductCategory.LIGHTING: ParamKey.NOMBRE_LUMINAIRE,
}

CATEGORY_MULTIPLIER_LABELS: dict[ProductCategory, str] = {
    ProductCategory.ISOLATION: "Surface isolée",
    ProductCategory.LIGHTING: "Nombre de luminaires",
}


def default_multiplier_key(category: Any) -> Optional[str]:
    key = CATEGORY_MULTIPLIER_KEYS.get(ProductCategory.parse(category))
    return key.value if key else None


def resolve_multiplier_key_for_category(key: Any, category: Any) -> Optional[str]:
    """Trim a stored multiplier key, mapping the quantity sentinel to the category default."""
    if not isinstance(key, str) or not key.strip():
        return None
    if is_quantity_sentinel(key):
        return default_multiplier_key(category) or LEGACY_QUANTITY_KEY
    return key.strip()


class FormulaTemplate(str, Enum):
    STANDARD = "standard"
    LIGHTING_LED = "lighting-led"
    CUSTOM = "custom"


# Fixed expressions of the non-custom templates (None = standard formula)
TEMPLATE_EXPRESSIONS: dict[FormulaTemplate, Optional[str]] = {
    FormulaTemplate.STANDARD: None,
    FormulaTemplate.LIGHTING_LED: "KWH_CUMAC * BONUS_DOM * LED_WATT / MWH_DIVISOR",
    FormulaTemplate.CUSTOM: None,
}


class TravauxOption(str, Enum):
    """Who carries the non-subsidized works amount."""

    NA = "NA"
    CLIENT = "CLIENT"
    MARGE = "MARGE"
    PARTAGE = "PARTAGE"

    @classmethod
    def parse(cls, value: Any) -> TravauxOption:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.NA
        normalized = value.strip().upper()
        if normalized == "MOITIE":
            return cls.PARTAGE
        try:
            return cls(normalized)
        except ValueError:
            return cls.NA


TRAVAUX_OPTION_LABELS: dict[TravauxOption, str] = {
    TravauxOption.NA: "N/A",
    TravauxOption.CLIENT: "Client",
    TravauxOption.MARGE: "Marge",
    TravauxOption.PARTAGE: "Partagé",
}


class MeasurementMode(str, Enum):
    SURFACE = "surface"
    FIXTURE = "luminaire"

    @classmethod
    def parse(cls, value: Any) -> MeasurementMode:
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and normalize_key(value) in {"luminaire", "luminaires", "fixture", "fixtures"}:
            return cls.FIXTURE
        return cls.SURFACE

    @property
    def default_unit_label(self) -> str:
        return "luminaire" if self is MeasurementMode.FIXTURE else "m²"


class TaxMode(str, Enum):
    HT = "HT"
    TTC = "TTC"

    @classmethod
    def parse(cls, value: Any) -> TaxMode:
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().upper() == "HT":
            return cls.HT
        return cls.TTC


# Category VAT factors of the HT/TTC rentability
TVA_LABOR = 1.021
TVA_MATERIAL_LIGHTING = 1.085
TVA_MATERIAL_ISOLATION = 1.0
TVA_COMMISSION = 1.085
TVA_TRAVAUX = 1.085

# Allowed VAT rates (%) of additional cost lines
ADDITIONAL_COST_TVA_RATES: tuple[float, ...] = (0.0, 5.5, 10.0, 20.0)
