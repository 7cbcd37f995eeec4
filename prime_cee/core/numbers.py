"""Lenient numeric parsing and rounding helpers.

Every value handed to the engine comes from live form state or stored
records, so parsing never raises: malformed input maps to ``None`` or to a
documented default.
"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

Predicate = Callable[[float], bool]

_WHITESPACE = re.compile(r"\s+")
_SEPARATORS = re.compile(r"[-\s]+")
_TRUTHY = {"true", "t", "1", "oui", "yes", "on"}


def is_positive(value: float) -> bool:
    return value > 0


def is_non_negative(value: float) -> bool:
    return value >= 0


def to_finite_number(value: Any) -> Optional[float]:
    """Parse a number leniently.

    Accepts ints/floats and strings using a comma decimal separator or
    thousands spaces ("1 250,5"). Booleans, NaN and infinities are rejected.

    Returns:
        The parsed float, or None when the value is not a finite number.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None

    if isinstance(value, str):
        cleaned = _WHITESPACE.sub("", value).replace(",", ".", 1)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
        return number if math.isfinite(number) else None

    return None


def to_positive_number(value: Any) -> Optional[float]:
    number = to_finite_number(value)
    if number is None or number <= 0:
        return None
    return number


def to_non_negative_number(value: Any) -> Optional[float]:
    number = to_finite_number(value)
    if number is None or number < 0:
        return None
    return number


def sanitize_number(value: Any, default: float = 0.0) -> float:
    """Parse a number, falling back to ``default`` on failure."""
    number = to_finite_number(value)
    return default if number is None else number


def first_number(
    candidates: Iterable[Any],
    predicate: Predicate = is_positive,
    default: Optional[float] = None,
) -> Optional[float]:
    """Return the first candidate that parses and satisfies ``predicate``.

    Candidates are evaluated lazily, so a generator of accessors only
    computes what it needs.
    """
    for candidate in candidates:
        number = to_finite_number(candidate)
        if number is not None and predicate(number):
            return number
    return default


def pick_number(
    source: Optional[Mapping[str, Any]],
    keys: Sequence[str],
    predicate: Predicate = is_positive,
    default: Optional[float] = None,
) -> Optional[float]:
    """Read ``keys`` from ``source`` in order; first match wins.

    Missing keys are skipped rather than treated as invalid values.
    """
    if not source:
        return default
    return first_number((source[key] for key in keys if key in source), predicate, default)


def round_two(value: float) -> float:
    """Round half up to 2 decimals (output boundary only)."""
    if not math.isfinite(value):
        return 0.0
    rounded = math.floor(value * 100 + 0.5) / 100
    # Avoid returning -0.0
    return rounded + 0.0


def clamp_zero(value: float, tolerance: float = 1e-6) -> float:
    """Map non-finite values and near-zero noise to exactly 0."""
    if not math.isfinite(value) or abs(value) < tolerance:
        return 0.0
    return value


def clamp_percentage(value: float) -> float:
    if not math.isfinite(value) or value < 0:
        return 0.0
    return min(value, 100.0)


def to_boolean(value: Any) -> bool:
    """Interpret checkbox-like values (bool, 0/1, "oui", "true", ...)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


# --- Text keys ---

def remove_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.replace("œ", "oe").replace("Œ", "OE").replace("æ", "ae").replace("Æ", "AE")


def normalize_key(value: str) -> str:
    """Slug used to compare parameter keys ("Nombre LED" -> "nombre_led")."""
    return _SEPARATORS.sub("_", remove_diacritics(value).strip()).lower()


def compact_key(value: str) -> str:
    """Separator-free slug, so camelCase and snake_case compare equal."""
    return re.sub(r"[\s_\-]+", "", remove_diacritics(value)).lower()


def normalize_label(value: str) -> str:
    """Lower-cased, accent-free text for label comparisons."""
    return remove_diacritics(value).strip().lower()
