"""Measurement unit normalization.

Every recognized spelling of a unit reduces to one canonical name, so
"Tbsp", "tablespoons" and "T" all become "tablespoon".
"""

from types import MappingProxyType
from typing import Optional


# Canonical unit -> spellings (matched case-insensitively)
UNIT_VARIANTS = MappingProxyType({
    # Volume
    "cup": ("cup", "cups", "c"),
    "gallon": ("gallon", "gallons", "gal", "gals"),
    "quart": ("quart", "quarts", "qt", "qts"),
    "pint": ("pint", "pints", "pt", "pts"),
    "tablespoon": ("tablespoon", "tablespoons", "tbsp", "tbs"),
    "teaspoon": ("teaspoon", "teaspoons", "tsp", "ts"),
    "liter": ("liter", "liters", "litre", "litres", "l"),
    "milliliter": ("milliliter", "milliliters", "millilitre", "millilitres", "ml"),
    # Weight
    "pound": ("pound", "pounds", "lb", "lbs"),
    "ounce": ("ounce", "ounces", "oz"),
    "kilogram": ("kilogram", "kilograms", "kg", "kgs"),
    "gram": ("gram", "grams", "g", "gm", "gms"),
    "milligram": ("milligram", "milligrams", "mg"),
    # Count / informal
    "pinch": ("pinch", "pinches"),
    "dash": ("dash", "dashes"),
    "clove": ("clove", "cloves"),
    "package": ("package", "packages", "pkg", "pkgs"),
    "can": ("can", "cans"),
    "jar": ("jar", "jars"),
    "slice": ("slice", "slices"),
    "piece": ("piece", "pieces"),
    "whole": ("whole",),
    "bunch": ("bunch", "bunches"),
    "head": ("head", "heads"),
    "stick": ("stick", "sticks"),
})

# Single letters where case carries meaning; checked before the lookup below
CASE_SENSITIVE_UNITS = MappingProxyType({
    "T": "tablespoon",
    "t": "teaspoon",
})

_VARIANT_TO_CANONICAL = MappingProxyType({
    variant: canonical
    for canonical, variants in UNIT_VARIANTS.items()
    for variant in variants
})


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    """
    Map a unit spelling to its canonical name.

    Unrecognized units come back trimmed and lowercased. Empty, blank or
    missing input returns None.
    """
    if not unit:
        return None

    trimmed = unit.strip()
    if not trimmed:
        return None
    if trimmed in CASE_SENSITIVE_UNITS:
        return CASE_SENSITIVE_UNITS[trimmed]

    lowered = trimmed.lower()
    return _VARIANT_TO_CANONICAL.get(lowered, lowered)


def is_recognized_unit(unit: Optional[str]) -> bool:
    """True when the unit maps to a canonical name."""
    if not unit:
        return False
    trimmed = unit.strip()
    return trimmed in CASE_SENSITIVE_UNITS or trimmed.lower() in _VARIANT_TO_CANONICAL


def get_canonical_units() -> list[str]:
    return list(UNIT_VARIANTS)


def get_unit_variations(canonical: str) -> list[str]:
    """Reverse lookup: all spellings for a canonical unit (empty if unknown)."""
    variations = list(UNIT_VARIANTS.get(canonical, ()))
    variations.extend(k for k, v in CASE_SENSITIVE_UNITS.items() if v == canonical)
    return variations


def all_unit_spellings() -> list[str]:
    """Every spelling, longest first, for building token regexes."""
    spellings = set(_VARIANT_TO_CANONICAL) | set(CASE_SENSITIVE_UNITS)
    return sorted(spellings, key=lambda s: (-len(s), s))
