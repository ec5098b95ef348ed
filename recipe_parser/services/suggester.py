"""
Suggest-from-ingredients: identify what is in a fridge photo, suggest
recipes for a list of ingredients, and write out a full recipe for a pick.
"""

import uuid
from typing import Optional, Union

from recipe_parser.config import get_settings
from recipe_parser.models.schemas import (
    IdentifyIngredientsSuccess,
    ParseFailure,
    ParseMetadata,
    ParseResponse,
    ParseSuccess,
    RecipeSuggestion,
    SuggestRecipesSuccess,
    parse_failure,
    validate_recipe,
)
from recipe_parser.services import errors
from recipe_parser.services.assembler import assemble_ai_recipe, to_minutes
from recipe_parser.services.llm_client import llm_service
from recipe_parser.services.parser import validate_image_payload
from recipe_parser.services.prompts import (
    INGREDIENT_IDENTIFICATION_SYSTEM_PROMPT,
    RECIPE_SUGGESTIONS_SYSTEM_PROMPT,
    SUGGESTION_RECIPE_SYSTEM_PROMPT,
    get_ingredient_identification_prompt,
    get_recipe_suggestions_prompt,
    get_suggestion_recipe_prompt,
)


MIN_SUGGESTIONS = 1
MAX_SUGGESTIONS = 10
CONFIDENCE_LEVELS = ("high", "medium", "low")
DIFFICULTY_LEVELS = ("easy", "medium", "hard")


def generate_suggestion_id() -> str:
    return f"suggestion-{uuid.uuid4().hex[:12]}"


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def normalize_ingredient_names(raw) -> list[str]:
    """Lowercase, trim and de-duplicate, keeping first-seen order."""
    names = [name.lower() for name in _string_list(raw)]
    return list(dict.fromkeys(names))


def to_suggestion(raw: dict) -> RecipeSuggestion:
    """Fill defaults for whatever the model left out."""
    difficulty = raw.get("difficulty")
    return RecipeSuggestion(
        id=str(raw.get("id") or generate_suggestion_id()),
        name=str(raw.get("name") or "").strip(),
        description=str(raw.get("description") or "").strip(),
        estimatedTime=to_minutes(raw.get("estimatedTime")) or 30,
        difficulty=difficulty if difficulty in DIFFICULTY_LEVELS else "medium",
        matchedIngredients=_string_list(raw.get("matchedIngredients")),
        additionalIngredients=_string_list(raw.get("additionalIngredients")),
    )


class RecipeSuggester:
    """Ingredient identification and recipe suggestions."""

    def __init__(self, llm=None):
        self.llm = llm or llm_service

    async def identify_ingredients(
        self, image_base64: str, mime_type: Optional[str]
    ) -> Union[IdentifyIngredientsSuccess, ParseFailure]:
        """
        List the food items visible in a photo.

        Returns:
            IdentifyIngredientsSuccess, or a failure with INVALID_MIME_TYPE /
            INVALID_BASE64 / IMAGE_TOO_LARGE / AI_RESPONSE_EMPTY /
            AI_PARSE_FAILED / NO_INGREDIENTS_FOUND
        """
        invalid = validate_image_payload(image_base64, mime_type)
        if invalid:
            return invalid

        print("📸 Identifying ingredients from photo...")
        result = await self.llm.analyze_image_json(
            INGREDIENT_IDENTIFICATION_SYSTEM_PROMPT,
            get_ingredient_identification_prompt(),
            image_base64,
            mime_type,
        )
        if not result.success:
            return parse_failure(result.error_code or errors.AI_PARSE_FAILED, result.error or "Failed to identify ingredients")
        if not isinstance(result.data, dict):
            return parse_failure(errors.AI_PARSE_FAILED, "Failed to identify ingredients")

        ingredients = normalize_ingredient_names(result.data.get("ingredients"))
        if not ingredients:
            return parse_failure(errors.NO_INGREDIENTS_FOUND, errors.ERROR_MESSAGES[errors.NO_INGREDIENTS_FOUND])

        confidence = result.data.get("confidence")
        print(f"✅ Identified {len(ingredients)} ingredient(s)")
        return IdentifyIngredientsSuccess(
            ingredients=ingredients,
            confidence=confidence if confidence in CONFIDENCE_LEVELS else "medium",
        )

    async def suggest_recipes(
        self, ingredients: list[str], count: int = 5
    ) -> Union[SuggestRecipesSuccess, ParseFailure]:
        """Recipe ideas that use the given ingredients."""
        if not ingredients:
            return parse_failure(errors.NO_INGREDIENTS, errors.ERROR_MESSAGES[errors.NO_INGREDIENTS])
        if not MIN_SUGGESTIONS <= count <= MAX_SUGGESTIONS:
            return parse_failure(errors.INVALID_COUNT, errors.ERROR_MESSAGES[errors.INVALID_COUNT])

        print(f"💡 Suggesting {count} recipe(s) for {len(ingredients)} ingredient(s)...")
        result = await self.llm.generate_json(
            RECIPE_SUGGESTIONS_SYSTEM_PROMPT,
            get_recipe_suggestions_prompt(ingredients, count),
            model=get_settings().suggestion_model,
        )
        if not result.success:
            return parse_failure(errors.AI_FAILED, result.error or "Failed to generate suggestions")

        raw_suggestions = result.data.get("suggestions") if isinstance(result.data, dict) else None
        if not isinstance(raw_suggestions, list):
            return parse_failure(errors.AI_FAILED, "AI response did not include suggestions")

        suggestions = [
            suggestion
            for suggestion in (to_suggestion(s) for s in raw_suggestions if isinstance(s, dict))
            if suggestion.name
        ]
        if not suggestions:
            return parse_failure(errors.NO_SUGGESTIONS, errors.ERROR_MESSAGES[errors.NO_SUGGESTIONS])
        return SuggestRecipesSuccess(suggestions=suggestions)

    async def generate_from_suggestion(
        self, suggestion: RecipeSuggestion, available_ingredients: list[str]
    ) -> ParseResponse:
        """Write out a full recipe for a chosen suggestion."""
        print(f"🍳 Generating recipe for suggestion: {suggestion.name}")
        result = await self.llm.generate_json(
            SUGGESTION_RECIPE_SYSTEM_PROMPT,
            get_suggestion_recipe_prompt(
                suggestion.name,
                suggestion.description,
                available_ingredients,
                suggestion.additionalIngredients,
            ),
            model=get_settings().suggestion_model,
        )
        if not result.success:
            return parse_failure(errors.AI_FAILED, result.error or "Failed to generate recipe")

        recipe, validation_errors = validate_recipe(assemble_ai_recipe(result.data, "ai"))
        if validation_errors:
            return parse_failure(errors.VALIDATION_FAILED, errors.ERROR_MESSAGES[errors.VALIDATION_FAILED])

        return ParseSuccess(
            data=recipe,
            metadata=ParseMetadata(source="text", parseMethod="ai_only", confidence="medium"),
        )


# Singleton instance
recipe_suggester = RecipeSuggester()
