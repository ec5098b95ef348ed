"""
Recipe assembly.

Converts loosely-typed extraction output (AI JSON or schema.org data) into
ParsedRecipe-shaped dicts: sections re-indexed from 0, units normalized,
empty sections dropped. Also owns confidence scoring.
"""

import re
from typing import Any, Optional

from recipe_parser.models.schemas import ParsedRecipe
from recipe_parser.services.parsing import parse_fraction, parse_ingredient, parse_iso_duration, parse_servings
from recipe_parser.services.units import normalize_unit


TAG_TYPES = ("cuisine", "meal_type", "occasion")

# Image extraction is noisier than text, so it never reaches "high"
IMAGE_CONFIDENCE_CAP = {"high": "medium", "medium": "low", "low": "low"}

NUMERIC_TEXT = re.compile(r"^\d+(?:\.\d+)?$")
HUMAN_HOURS = re.compile(r"(\d+(?:\.\d+)?)\s*(?:h|hr|hrs|hour|hours)(?![a-z])", re.IGNORECASE)
HUMAN_MINUTES = re.compile(r"(\d+)\s*(?:m|min|mins|minute|minutes)\b", re.IGNORECASE)


# ============================================================
# Field Coercion
# ============================================================

def _clean_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = " ".join(value.split())
    return value or None


def to_minutes(value: Any) -> Optional[int]:
    """Accept minutes as a number, numeric string, ISO duration or '1 hour 20 min'."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return parse_iso_duration(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if NUMERIC_TEXT.match(text):
        return parse_iso_duration(float(text))
    if text[:1] in ("P", "p"):
        return parse_iso_duration(text)

    hours = HUMAN_HOURS.search(text)
    minutes = HUMAN_MINUTES.search(text)
    if not hours and not minutes:
        return None
    total = (float(hours.group(1)) * 60 if hours else 0) + (int(minutes.group(1)) if minutes else 0)
    return parse_iso_duration(total)


def to_servings(value: Any) -> Optional[int]:
    """Servings as given by the source. Zero and negative integers pass through."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value))
    return parse_servings(value)


def to_quantity(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return parse_fraction(value)
    return None


def normalize_tags(raw: Any) -> Optional[list[dict]]:
    """Keep well-formed {type, name} tags; None when the source gave none."""
    if not isinstance(raw, list):
        return None
    tags = []
    for tag in raw:
        if not isinstance(tag, dict):
            continue
        name = _clean_str(tag.get("name"))
        if tag.get("type") in TAG_TYPES and name:
            tags.append({"type": tag["type"], "name": name})
    return tags


# ============================================================
# Sections
# ============================================================

def _ingredient_item(item: Any) -> Optional[dict]:
    if isinstance(item, str):
        if not item.strip():
            return None
        return parse_ingredient(item)
    if not isinstance(item, dict):
        return None

    name = _clean_str(item.get("name"))
    if not name:
        return None
    unit = item.get("unit")
    return {
        "quantity": to_quantity(item.get("quantity")),
        "unit": normalize_unit(unit) if isinstance(unit, str) else None,
        "name": name,
    }


def _instruction_item(item: Any) -> Optional[dict]:
    if isinstance(item, str):
        text = _clean_str(item)
        return {"instruction": text, "imageUrl": None} if text else None
    if not isinstance(item, dict):
        return None

    text = _clean_str(item.get("instruction")) or _clean_str(item.get("text")) or _clean_str(item.get("name"))
    if not text:
        return None
    image_url = item.get("imageUrl")
    return {
        "instruction": text,
        "imageUrl": image_url if isinstance(image_url, str) and image_url.strip() else None,
    }


def normalize_ingredient_sections(sections: Any) -> list[dict]:
    """Index ingredients per section and drop sections left empty."""
    result = []
    for section in sections if isinstance(sections, list) else []:
        if not isinstance(section, dict):
            continue
        items = [i for i in map(_ingredient_item, section.get("ingredients") or []) if i]
        if not items:
            continue
        result.append({
            "name": _clean_str(section.get("name")),
            "ingredients": [{"index": index, **item} for index, item in enumerate(items)],
        })
    return result


def normalize_instruction_sections(sections: Any) -> list[dict]:
    """Index instructions per section and drop sections left empty."""
    result = []
    for section in sections if isinstance(sections, list) else []:
        if not isinstance(section, dict):
            continue
        items = [i for i in map(_instruction_item, section.get("instructions") or []) if i]
        if not items:
            continue
        result.append({
            "name": _clean_str(section.get("name")),
            "instructions": [{"index": index, **item} for index, item in enumerate(items)],
        })
    return result


def _sections_or_flat(ai: dict, sections_key: str, flat_key: str) -> list:
    sections = ai.get(sections_key)
    if isinstance(sections, list) and sections:
        return sections
    flat = ai.get(flat_key)
    return [{"name": None, flat_key: flat if isinstance(flat, list) else []}]


def assemble_ai_recipe(
    ai: Any,
    source_type: str,
    source_url: Optional[str] = None,
    images: Optional[list[str]] = None,
) -> dict:
    """
    Convert model output to a ParsedRecipe-shaped dict.

    Accepts both the sectioned shape (ingredientSections/instructionSections)
    and the flat shape (ingredients/instructions). Validation is left to the
    caller; nothing here fills in missing required data.
    """
    if not isinstance(ai, dict):
        ai = {}

    return {
        "name": _clean_str(ai.get("name")) or "",
        "description": _clean_str(ai.get("description")),
        "prepTime": to_minutes(ai.get("prepTime")),
        "cookTime": to_minutes(ai.get("cookTime")),
        "totalTime": to_minutes(ai.get("totalTime")),
        "servings": to_servings(ai.get("servings")),
        "sourceUrl": source_url,
        "sourceType": source_type,
        "ingredientSections": normalize_ingredient_sections(
            _sections_or_flat(ai, "ingredientSections", "ingredients")
        ),
        "instructionSections": normalize_instruction_sections(
            _sections_or_flat(ai, "instructionSections", "instructions")
        ),
        "images": list(images or []),
        "suggestedTags": normalize_tags(ai.get("suggestedTags")),
    }


# ============================================================
# Confidence
# ============================================================

def compute_confidence(recipe: ParsedRecipe, source: str = "text") -> str:
    """
    Coarse quality estimate for the UI.

    high:   >= 3 ingredients, >= 2 instructions and a name over 3 characters
    low:    < 2 ingredients or no instructions
    medium: everything else
    Image-sourced recipes drop one level.
    """
    ingredient_count = sum(len(s.ingredients) for s in recipe.ingredientSections)
    instruction_count = sum(len(s.instructions) for s in recipe.instructionSections)

    if ingredient_count >= 3 and instruction_count >= 2 and len(recipe.name) > 3:
        confidence = "high"
    elif ingredient_count < 2 or instruction_count < 1:
        confidence = "low"
    else:
        confidence = "medium"

    if source == "image":
        return IMAGE_CONFIDENCE_CAP[confidence]
    return confidence
