"""
Structured recipe extraction.

Reads schema.org Recipe markup embedded by recipe sites, no AI involved:
1. JSON-LD blocks (bare objects, arrays, @graph wrappers)
2. Microdata (itemtype*="Recipe") as a fallback
"""

import html as html_lib
import json
import re
from typing import Any, Optional
from urllib.parse import urljoin

import extruct
from bs4 import BeautifulSoup
from lxml import etree

from recipe_parser.models.schemas import ParsedRecipe, validate_recipe
from recipe_parser.services.assembler import normalize_ingredient_sections, normalize_instruction_sections
from recipe_parser.services.html_cleaner import image_value_urls, load_jsonld_blocks
from recipe_parser.services.parsing import parse_ingredient, parse_iso_duration, parse_servings


MEAL_TYPES = [
    "breakfast",
    "lunch",
    "dinner",
    "dessert",
    "snack",
    "appetizer",
    "main course",
    "side dish",
]

MAX_CUISINE_TAGS = 2

TAG_PATTERN = re.compile(r"<[^>]+>")


def _as_list(value: Any) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _schema_types(node: dict) -> list[str]:
    """@type values with any vocabulary prefix removed."""
    return [str(t).rsplit("/", 1)[-1] for t in _as_list(node.get("@type"))]


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = TAG_PATTERN.sub(" ", html_lib.unescape(value))
    text = " ".join(text.split())
    return text or None


class StructuredDataExtractor:
    """Converts schema.org Recipe markup into ParsedRecipe."""

    @classmethod
    def extract(cls, html: str, source_url: str) -> Optional[ParsedRecipe]:
        """
        Extract a recipe from embedded structured data.

        Args:
            html: Raw page HTML
            source_url: Page URL (used for sourceUrl and to resolve images)

        Returns:
            ParsedRecipe, or None when the page has no usable Recipe markup.
            None is a normal outcome, not an error.
        """
        soup = BeautifulSoup(html, "lxml")

        node = cls._find_jsonld_recipe(html, source_url, soup)

        if node is None:
            node = cls._extract_microdata_recipe(html, source_url)
            if node:
                print("📋 Found microdata recipe")
        else:
            print("📋 Found JSON-LD recipe schema")

        if node is None or not cls.is_complete(node):
            return None

        ingredient_groups = cls._extract_ingredient_groups_from_html(soup)
        recipe, errors = validate_recipe(cls.to_recipe(node, source_url, ingredient_groups))
        if errors:
            print(f"⚠️ Structured recipe failed validation: {errors[0].get('msg')}")
            return None
        return recipe

    @classmethod
    def _find_jsonld_recipe(cls, html: str, url: str, soup: BeautifulSoup) -> Optional[dict]:
        """JSON-LD via extruct, then a block-by-block manual pass."""
        try:
            data = extruct.extract(html, base_url=url, syntaxes=["json-ld"])
            node = cls.find_recipe(data.get("json-ld", []))
            if node:
                return node
        except (ValueError, etree.LxmlError) as e:
            print(f"⚠️ extruct JSON-LD parsing failed, trying script tags: {str(e)[:100]}")

        # One malformed block fails extruct for the whole page
        return cls.find_recipe(load_jsonld_blocks(soup))

    @classmethod
    def find_recipe(cls, data: Any) -> Optional[dict]:
        """Depth-first search for the first node typed Recipe."""
        if isinstance(data, list):
            for item in data:
                found = cls.find_recipe(item)
                if found:
                    return found
            return None

        if not isinstance(data, dict):
            return None
        if "Recipe" in _schema_types(data):
            return data
        if "@graph" in data:
            return cls.find_recipe(data["@graph"])
        return None

    @staticmethod
    def is_complete(node: dict) -> bool:
        """Name, at least one ingredient string and instructions must all be present."""
        if not _clean_text(node.get("name")):
            return False
        ingredients = _as_list(node.get("recipeIngredient") or node.get("ingredients"))
        if not any(isinstance(i, str) and i.strip() for i in ingredients):
            return False
        return bool(node.get("recipeInstructions"))

    # ============================================================
    # Microdata
    # ============================================================

    @classmethod
    def _extract_microdata_recipe(cls, html: str, url: str) -> Optional[dict]:
        data = extruct.extract(html, base_url=url, syntaxes=["microdata"], uniform=False)
        items = [cls._microdata_to_jsonld(item) for item in data.get("microdata", [])]
        return cls.find_recipe(items)

    @classmethod
    def _microdata_to_jsonld(cls, item: Any) -> Any:
        """Reshape extruct microdata items ({type, properties}) into JSON-LD nodes."""
        if isinstance(item, list):
            return [cls._microdata_to_jsonld(i) for i in item]
        if isinstance(item, dict) and "properties" in item:
            node = {"@type": item.get("type")}
            for key, value in item["properties"].items():
                node[key] = cls._microdata_to_jsonld(value)
            return node
        return item

    # ============================================================
    # Conversion
    # ============================================================

    @classmethod
    def to_recipe(cls, node: dict, source_url: str, ingredient_groups: Optional[list] = None) -> dict:
        """Convert a Recipe node to a ParsedRecipe-shaped dict."""
        raw_ingredients = [
            i for i in _as_list(node.get("recipeIngredient") or node.get("ingredients"))
            if isinstance(i, str) and i.strip()
        ]

        if ingredient_groups and len(ingredient_groups) > 1:
            print(f"📋 Using {len(ingredient_groups)} ingredient groups from page markup")
            ingredient_sections = [
                {"name": group["name"] or None, "ingredients": [parse_ingredient(i) for i in group["ingredients"]]}
                for group in ingredient_groups
            ]
        else:
            ingredient_sections = [
                {"name": None, "ingredients": [parse_ingredient(i) for i in raw_ingredients]}
            ]

        ingredient_sections = normalize_ingredient_sections(ingredient_sections)
        instruction_sections = normalize_instruction_sections(
            cls._instruction_sections(node.get("recipeInstructions"), source_url)
        )

        return {
            "name": _clean_text(node.get("name")) or "",
            "description": _clean_text(node.get("description")),
            "prepTime": parse_iso_duration(node.get("prepTime")),
            "cookTime": parse_iso_duration(node.get("cookTime")),
            "totalTime": parse_iso_duration(node.get("totalTime")),
            "servings": parse_servings(node.get("recipeYield")),
            "sourceUrl": source_url,
            "sourceType": "url",
            "ingredientSections": cls._default_first(ingredient_sections),
            "instructionSections": cls._default_first(instruction_sections),
            "images": cls._images(node.get("image"), source_url),
            "suggestedTags": cls._tags(node),
        }

    @staticmethod
    def _default_first(sections: list[dict]) -> list[dict]:
        """Unnamed (default) sections sort ahead of named ones; order is otherwise kept."""
        return sorted(sections, key=lambda s: s["name"] is not None)

    @staticmethod
    def _images(value: Any, base_url: str) -> list[str]:
        urls = []
        for url in image_value_urls(value):
            absolute = urljoin(base_url, url.strip())
            if absolute not in urls:
                urls.append(absolute)
        return urls

    @classmethod
    def _step(cls, item: Any, base_url: str) -> Optional[dict]:
        if isinstance(item, str):
            text = _clean_text(item)
            return {"instruction": text, "imageUrl": None} if text else None
        if not isinstance(item, dict):
            return None

        text = _clean_text(item.get("text")) or _clean_text(item.get("name"))
        if not text:
            return None
        image_urls = image_value_urls(item.get("image"))
        return {
            "instruction": text,
            "imageUrl": urljoin(base_url, image_urls[0]) if image_urls else None,
        }

    @classmethod
    def _instruction_sections(cls, raw: Any, base_url: str) -> list[dict]:
        """
        Group instructions into sections.

        Loose steps collect into one unnamed section; each HowToSection
        becomes a named section with its itemListElement steps.
        """
        # A single text blob lists one step per line
        if isinstance(raw, str):
            raw = [line for line in raw.splitlines() if line.strip()]

        default_steps = []
        named_sections = []

        def collect(items: list):
            for item in items:
                if isinstance(item, list):
                    collect(item)
                elif isinstance(item, dict) and "HowToSection" in _schema_types(item):
                    steps = [
                        step for step in (cls._step(sub, base_url) for sub in _as_list(item.get("itemListElement")))
                        if step
                    ]
                    if steps:
                        named_sections.append({"name": _clean_text(item.get("name")), "instructions": steps})
                else:
                    step = cls._step(item, base_url)
                    if step:
                        default_steps.append(step)

        collect(_as_list(raw))

        sections = []
        if default_steps:
            sections.append({"name": None, "instructions": default_steps})
        sections.extend(named_sections)
        return sections

    @staticmethod
    def _tags(node: dict) -> list[dict]:
        """Up to two cuisine tags plus at most one meal-type tag."""
        tags = []
        cuisines = [c.strip() for c in _as_list(node.get("recipeCuisine")) if isinstance(c, str) and c.strip()]
        for cuisine in cuisines[:MAX_CUISINE_TAGS]:
            tags.append({"type": "cuisine", "name": cuisine})

        for category in _as_list(node.get("recipeCategory")):
            if not isinstance(category, str) or not category.strip():
                continue
            category_lower = category.lower()
            if any(meal in category_lower for meal in MEAL_TYPES):
                tags.append({"type": "meal_type", "name": category.strip()})
                break

        return tags

    # ============================================================
    # Ingredient Groups From Markup
    # ============================================================

    @classmethod
    def _extract_ingredient_groups_from_html(cls, soup: BeautifulSoup) -> list:
        """
        Ingredient groups from recipe-plugin markup.

        JSON-LD flattens "For the sauce:" style groups; WPRM and Tasty
        Recipes keep them in the page. Returns [{"name", "ingredients"}].
        """
        groups = []

        # WPRM plugin (most WordPress recipe blogs)
        for group in soup.find_all(class_="wprm-recipe-ingredient-group"):
            name_elem = group.find(class_="wprm-recipe-group-name")
            ingredients = [
                text for text in (
                    li.get_text(separator=" ", strip=True)
                    for li in group.find_all("li", class_=lambda x: x and "ingredient" in str(x).lower())
                )
                if text
            ]
            if ingredients:
                groups.append({
                    "name": name_elem.get_text(strip=True) if name_elem else "",
                    "ingredients": ingredients,
                })
        if groups:
            return groups

        # Tasty Recipes plugin: h4/h5 headers followed by a list
        tasty_container = soup.find(class_="tasty-recipes-ingredients")
        if tasty_container:
            for header in tasty_container.find_all(["h4", "h5"]):
                if header.find_parent("li"):
                    continue
                name = header.get_text(strip=True)
                if name.lower() in ["ingredients", "ingredient"]:
                    continue
                next_ul = header.find_next_sibling("ul") or header.find_next("ul")
                if next_ul:
                    ingredients = [
                        li.get_text(separator=" ", strip=True)
                        for li in next_ul.find_all("li")
                        if li.get_text(strip=True)
                    ]
                    if ingredients:
                        groups.append({"name": name, "ingredients": ingredients})

        return groups


# Singleton instance
structured_data_extractor = StructuredDataExtractor()


def extract_structured_recipe(html: str, source_url: str) -> Optional[ParsedRecipe]:
    return structured_data_extractor.extract(html, source_url)


def structured_hint(recipe: ParsedRecipe) -> str:
    """Compact rendering of a structured recipe appended to AI prompts."""
    payload = recipe.model_dump(exclude={"sourceUrl", "sourceType", "images"}, exclude_none=True)
    return "\n\n[STRUCTURED DATA]\n" + json.dumps(payload, ensure_ascii=False)
