"""Text parsing helpers shared by the structured-data and AI paths.

Durations, fractions, yields and free-form ingredient lines.
"""

import math
import re
from fractions import Fraction
from typing import Any, Optional

from recipe_parser.services.units import all_unit_spellings, normalize_unit


# PnDTnHnMnS (date part limited to days; recipes never use months/years)
ISO_DURATION_PATTERN = re.compile(
    r"^P(?:(\d+(?:\.\d+)?)D)?"
    r"(?:T(?:(\d+(?:\.\d+)?)H)?(?:(\d+(?:\.\d+)?)M)?(?:(\d+(?:\.\d+)?)S)?)?$",
    re.IGNORECASE,
)

# Checked in order; the first pattern that matches wins
SERVINGS_PATTERNS = [
    re.compile(r"(\d+)\s*servings?", re.IGNORECASE),
    re.compile(r"serves?\s*(\d+)", re.IGNORECASE),
    re.compile(r"makes?\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*portions?", re.IGNORECASE),
    re.compile(r"(\d+)\s*people", re.IGNORECASE),
    re.compile(r"yield:?\s*(\d+)", re.IGNORECASE),
    re.compile(r"^(\d+)$"),
    re.compile(r"(\d+)\s*-\s*(\d+)"),
]

QUANTITY_PATTERN = re.compile(r"^(\d+(?:\.\d+)?(?:\s+\d+/\d+|/\d+)?)\s*")
UNIT_PATTERN = re.compile(
    r"^(" + "|".join(re.escape(u) for u in all_unit_spellings()) + r")\.?\s+",
    re.IGNORECASE,
)

MIXED_NUMBER = re.compile(r"^(\d+)\s+(\d+)/(\d+)$")
SIMPLE_FRACTION = re.compile(r"^(\d+)/(\d+)$")
LEADING_NUMBER = re.compile(r"^\d+(?:\.\d+)?")

# Artifacts copied from recipe-plugin checkboxes and budget blogs
CHECKBOX_CHARS = ("▢", "□")
PRICE_SUFFIX = re.compile(r"\s*\(\$[\d.]+\)\s*$")


def parse_iso_duration(duration: Any) -> Optional[int]:
    """
    Convert an ISO 8601 duration (PT1H30M) to whole minutes.

    Seconds round up to the next minute. Zero, negative or malformed
    durations return None.
    """
    if duration is None or isinstance(duration, bool):
        return None
    if isinstance(duration, (int, float)):
        minutes = math.ceil(duration)
        return minutes if minutes > 0 else None
    if not isinstance(duration, str):
        return None

    match = ISO_DURATION_PATTERN.match(duration.strip())
    if not match or not any(match.groups()):
        return None

    days, hours, minutes, seconds = (float(g) if g else 0.0 for g in match.groups())
    total = days * 24 * 60 + hours * 60 + minutes + seconds / 60
    total_minutes = math.ceil(total)
    return total_minutes if total_minutes > 0 else None


def parse_fraction(value: Optional[str]) -> Optional[float]:
    """
    Parse "2", "1.5", "1/2" or "1 1/2" into a number.

    A zero denominator returns None.
    """
    if not value:
        return None
    text = value.strip()

    mixed = MIXED_NUMBER.match(text)
    if mixed:
        whole, num, den = (int(g) for g in mixed.groups())
        if den == 0:
            return None
        return float(whole + Fraction(num, den))

    fraction = SIMPLE_FRACTION.match(text)
    if fraction:
        num, den = (int(g) for g in fraction.groups())
        if den == 0:
            return None
        return float(Fraction(num, den))

    leading = LEADING_NUMBER.match(text)
    if leading:
        return float(leading.group(0))
    return None


def parse_servings(value: Any) -> Optional[int]:
    """
    Extract a serving count from a yield value.

    Numbers are used directly when positive. Strings go through
    SERVINGS_PATTERNS; a range keeps its first number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else None
    if isinstance(value, list):
        for item in value:
            if isinstance(item, (int, float)) and not isinstance(item, bool) and item > 0:
                return int(item)
        return parse_servings(" ".join(str(item) for item in value))
    if not isinstance(value, str):
        return None

    text = value.strip()
    for pattern in SERVINGS_PATTERNS:
        match = pattern.search(text)
        if match:
            number = int(match.group(1))
            if number > 0:
                return number
    return None


def clean_ingredient_text(text: str) -> str:
    """Strip checkbox glyphs, price notes and extra whitespace."""
    for char in CHECKBOX_CHARS:
        text = text.replace(char, "")
    text = PRICE_SUFFIX.sub("", text)
    return " ".join(text.split())


def parse_ingredient(text: str) -> dict:
    """
    Split an ingredient line into quantity, unit and name.

    "1 1/2 cups flour" -> {"quantity": 1.5, "unit": "cup", "name": "flour"}
    Lines without a leading number keep the whole text as the name.
    """
    cleaned = clean_ingredient_text(text)
    quantity = None
    unit = None
    name = cleaned

    qty_match = QUANTITY_PATTERN.match(cleaned)
    if qty_match:
        quantity = parse_fraction(qty_match.group(1))
        remaining = cleaned[qty_match.end():]

        unit_match = UNIT_PATTERN.match(remaining)
        if unit_match:
            unit = normalize_unit(unit_match.group(1))
            remaining = remaining[unit_match.end():]
        name = remaining.strip()

    return {
        "quantity": quantity,
        "unit": unit,
        "name": name or cleaned,
    }
