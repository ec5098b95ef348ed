import json
from unittest.mock import AsyncMock, MagicMock

import fakeredis.aioredis
import pytest

from recipe_parser.services.llm_client import LLMService
from recipe_parser.services.parser import RecipeParser
from recipe_parser.services.storage import StorageService


RECIPE_URL = "https://www.example-recipes.com/recipes/lemon-garlic-chicken"

# Model output in the sectioned shape the prompts ask for
AI_RECIPE = {
    "name": "Lemon Garlic Chicken",
    "description": "Weeknight roast chicken thighs with lemon and garlic.",
    "prepTime": 10,
    "cookTime": 35,
    "totalTime": 45,
    "servings": 4,
    "ingredientSections": [
        {
            "name": None,
            "ingredients": [
                {"quantity": 6, "unit": "pieces", "name": "chicken thighs"},
                {"quantity": 2, "unit": "Tbsp", "name": "olive oil"},
                {"quantity": 4, "unit": "cloves", "name": "garlic, minced"},
                {"quantity": 1, "unit": None, "name": "lemon, juiced"},
            ],
        }
    ],
    "instructionSections": [
        {
            "name": None,
            "instructions": [
                {"instruction": "Preheat the oven to 425°F.", "imageUrl": None},
                {"instruction": "Toss the chicken with oil, garlic and lemon.", "imageUrl": None},
                {"instruction": "Roast for 35 minutes until golden.", "imageUrl": None},
            ],
        }
    ],
    "suggestedTags": [{"type": "meal_type", "name": "dinner"}],
}

JSONLD_RECIPE = {
    "@context": "https://schema.org",
    "@type": "Recipe",
    "name": "Lemon Garlic Chicken",
    "description": "Weeknight roast chicken thighs with lemon and garlic.",
    "image": ["https://www.example-recipes.com/images/chicken.jpg"],
    "prepTime": "PT10M",
    "cookTime": "PT35M",
    "totalTime": "PT45M",
    "recipeYield": ["4", "4 servings"],
    "recipeCuisine": "Mediterranean",
    "recipeCategory": "Dinner",
    "recipeIngredient": [
        "6 chicken thighs",
        "2 Tbsp olive oil",
        "4 cloves garlic, minced",
        "1 lemon, juiced",
    ],
    "recipeInstructions": [
        {"@type": "HowToStep", "text": "Preheat the oven to 425°F."},
        {"@type": "HowToStep", "text": "Toss the chicken with oil, garlic and lemon."},
        {"@type": "HowToStep", "text": "Roast for 35 minutes until golden."},
    ],
}

BLOG_TEXT = (
    "Every family has a chicken recipe they come back to, and this is ours. "
    "The lemon keeps it bright and the garlic makes the kitchen smell incredible. "
)


def recipe_page(jsonld=None, body_text=BLOG_TEXT * 3) -> str:
    """A recipe blog page, optionally with a JSON-LD block."""
    script = ""
    if jsonld is not None:
        script = f'<script type="application/ld+json">{json.dumps(jsonld)}</script>'
    return f"""
<html>
  <head><title>Lemon Garlic Chicken</title>{script}</head>
  <body>
    <nav>Home | Recipes | About</nav>
    <article>
      <h1>Lemon Garlic Chicken</h1>
      <p>{body_text}</p>
      <img src="/images/chicken.jpg" width="800" height="600">
      <ol>
        <li>Preheat the oven to 425°F.</li>
        <li>Toss the chicken with oil, garlic and lemon.</li>
        <li>Roast for 35 minutes until golden.</li>
      </ol>
    </article>
    <footer>Copyright</footer>
  </body>
</html>
"""


def model_response(payload) -> dict:
    """A runner response in the {"response": "<json>"} shape."""
    return {"response": payload if isinstance(payload, str) else json.dumps(payload)}


@pytest.fixture
def kv():
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def runner():
    """Model runner stub; set runner.run.return_value / side_effect per test."""
    runner = MagicMock()
    runner.run = AsyncMock(return_value=model_response(AI_RECIPE))
    return runner


@pytest.fixture
def llm(runner):
    return LLMService(runner=runner)


@pytest.fixture
def storage():
    storage = MagicMock(spec=StorageService)
    storage.reupload_images = AsyncMock(side_effect=lambda urls, source_url: list(urls))
    return storage


@pytest.fixture
def parser(llm, kv, storage):
    return RecipeParser(llm=llm, kv=kv, storage=storage)
