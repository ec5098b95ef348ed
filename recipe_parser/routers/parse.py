"""Recipe parsing API endpoints."""

from typing import Any, Union

from fastapi import APIRouter, Body, Depends

from recipe_parser.models.schemas import (
    ChatInput,
    ChatResponse,
    GenerateFromSuggestionInput,
    IdentifyIngredientsInput,
    IdentifyIngredientsSuccess,
    ParseFailure,
    ParseResponse,
    SuggestRecipesInput,
    SuggestRecipesSuccess,
)
from recipe_parser.services.generator import RecipeGenerator, recipe_generator
from recipe_parser.services.parser import RecipeParser, recipe_parser
from recipe_parser.services.suggester import RecipeSuggester, recipe_suggester

router = APIRouter(prefix="/api", tags=["parse"])


def get_recipe_parser() -> RecipeParser:
    return recipe_parser


def get_recipe_suggester() -> RecipeSuggester:
    return recipe_suggester


def get_recipe_generator() -> RecipeGenerator:
    return recipe_generator


# ============================================================
# Parse
# ============================================================

@router.post("/parse", response_model=ParseResponse)
async def parse_recipe(
    payload: Any = Body(...),
    parser: RecipeParser = Depends(get_recipe_parser),
):
    """
    Parse a recipe from a URL, free text or a photo.

    Body is one of:
    - {"type": "url", "data": "https://...", "structuredOnly": false}
    - {"type": "text", "data": "..."}
    - {"type": "image", "data": "<base64>", "mimeType": "image/jpeg"}

    Always HTTP 200; check `success` and `error.code`.
    """
    if not isinstance(payload, dict):
        payload = {}
    return await parser.parse(payload)


# ============================================================
# Suggest From Ingredients
# ============================================================

@router.post("/identify-ingredients", response_model=Union[IdentifyIngredientsSuccess, ParseFailure])
async def identify_ingredients(
    request: IdentifyIngredientsInput,
    suggester: RecipeSuggester = Depends(get_recipe_suggester),
):
    """Identify food items in a fridge or pantry photo."""
    return await suggester.identify_ingredients(request.imageBase64, request.mimeType)


@router.post("/suggest", response_model=Union[SuggestRecipesSuccess, ParseFailure])
async def suggest_recipes(
    request: SuggestRecipesInput,
    suggester: RecipeSuggester = Depends(get_recipe_suggester),
):
    """Suggest recipes for a list of ingredients (1-10 suggestions)."""
    return await suggester.suggest_recipes(request.ingredients, request.count)


@router.post("/suggest/generate", response_model=ParseResponse)
async def generate_from_suggestion(
    request: GenerateFromSuggestionInput,
    suggester: RecipeSuggester = Depends(get_recipe_suggester),
):
    """Generate the full recipe for a picked suggestion."""
    return await suggester.generate_from_suggestion(request.suggestion, request.availableIngredients)


# ============================================================
# Conversational Generation
# ============================================================

@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatInput,
    generator: RecipeGenerator = Depends(get_recipe_generator),
):
    """
    One turn of the recipe-building chat.

    Send the whole conversation and the last returned state; the reply is
    either the next question or, once everything is known, the recipe.
    """
    return await generator.process_chat(request.messages, request.conversationState)
