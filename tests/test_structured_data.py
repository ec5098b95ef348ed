"""Tests for schema.org recipe extraction (JSON-LD and microdata)."""

import copy
import json
from unittest.mock import patch

from conftest import JSONLD_RECIPE, RECIPE_URL, recipe_page

from recipe_parser.services import structured_data as structured_module
from recipe_parser.services.structured_data import (
    StructuredDataExtractor,
    extract_structured_recipe,
    structured_hint,
)


def _page(jsonld) -> str:
    return recipe_page(jsonld=jsonld)


def test_extracts_bare_jsonld_recipe():
    recipe = extract_structured_recipe(_page(JSONLD_RECIPE), RECIPE_URL)

    assert recipe is not None
    assert recipe.name == "Lemon Garlic Chicken"
    assert recipe.sourceType == "url"
    assert recipe.sourceUrl == RECIPE_URL
    assert (recipe.prepTime, recipe.cookTime, recipe.totalTime) == (10, 35, 45)
    assert recipe.servings == 4
    assert recipe.images == ["https://www.example-recipes.com/images/chicken.jpg"]

    ingredients = recipe.ingredientSections[0].ingredients
    assert [i.index for i in ingredients] == [0, 1, 2, 3]
    assert (ingredients[1].quantity, ingredients[1].unit, ingredients[1].name) == (2, "tablespoon", "olive oil")
    assert (ingredients[2].unit, ingredients[2].name) == ("clove", "garlic, minced")

    steps = recipe.instructionSections[0].instructions
    assert [s.instruction for s in steps][0] == "Preheat the oven to 425°F."
    assert all(s.imageUrl is None for s in steps)

    tags = [(t.type, t.name) for t in recipe.suggestedTags]
    assert tags == [("cuisine", "Mediterranean"), ("meal_type", "Dinner")]


def test_finds_recipe_inside_graph_and_arrays():
    wrapped = {"@context": "https://schema.org", "@graph": [
        {"@type": "WebPage", "name": "Page"},
        [{"@type": ["Recipe", "NewsArticle"], **{k: v for k, v in JSONLD_RECIPE.items() if k != "@type"}}],
    ]}
    recipe = extract_structured_recipe(_page(wrapped), RECIPE_URL)
    assert recipe is not None
    assert recipe.name == "Lemon Garlic Chicken"


def test_no_recipe_markup_returns_none():
    assert extract_structured_recipe(_page(None), RECIPE_URL) is None
    assert extract_structured_recipe(_page({"@type": "Article", "name": "News"}), RECIPE_URL) is None


def test_recipe_without_instructions_returns_none():
    partial = copy.deepcopy(JSONLD_RECIPE)
    del partial["recipeInstructions"]
    assert extract_structured_recipe(_page(partial), RECIPE_URL) is None


def test_recipe_without_ingredients_or_name_returns_none():
    no_ingredients = {**JSONLD_RECIPE, "recipeIngredient": []}
    no_name = {**JSONLD_RECIPE, "name": "  "}
    assert extract_structured_recipe(_page(no_ingredients), RECIPE_URL) is None
    assert extract_structured_recipe(_page(no_name), RECIPE_URL) is None


def test_invalid_json_block_is_skipped():
    html = (
        '<html><head><script type="application/ld+json">{not json</script>'
        f'<script type="application/ld+json">{json.dumps(JSONLD_RECIPE)}</script></head><body></body></html>'
    )
    assert extract_structured_recipe(html, RECIPE_URL) is not None


def test_jsonld_is_read_through_extruct():
    with patch.object(structured_module.extruct, "extract", wraps=structured_module.extruct.extract) as extract:
        recipe = extract_structured_recipe(_page(JSONLD_RECIPE), RECIPE_URL)

    assert recipe is not None
    assert extract.call_args_list[0].kwargs["syntaxes"] == ["json-ld"]


def test_script_tags_are_read_when_extruct_fails():
    with patch.object(structured_module.extruct, "extract", side_effect=ValueError("Expecting value")):
        recipe = extract_structured_recipe(_page(JSONLD_RECIPE), RECIPE_URL)

    assert recipe is not None
    assert recipe.name == "Lemon Garlic Chicken"


def test_howto_sections_become_named_sections_after_loose_steps():
    node = {**JSONLD_RECIPE, "recipeInstructions": [
        {"@type": "HowToSection", "name": "Make the sauce", "itemListElement": [
            {"@type": "HowToStep", "text": "Simmer the tomatoes."},
            {"@type": "HowToStep", "name": "Season to taste."},
        ]},
        {"@type": "HowToStep", "text": "Boil the pasta.", "image": [
            {"@type": "ImageObject", "url": "/steps/boil.jpg"},
            "/steps/other.jpg",
        ]},
        "Serve hot.",
    ]}
    recipe = extract_structured_recipe(_page(node), RECIPE_URL)

    first, second = recipe.instructionSections
    assert first.name is None
    assert [s.instruction for s in first.instructions] == ["Boil the pasta.", "Serve hot."]
    assert first.instructions[0].imageUrl == "https://www.example-recipes.com/steps/boil.jpg"
    assert second.name == "Make the sauce"
    assert [(s.index, s.instruction) for s in second.instructions] == [(0, "Simmer the tomatoes."), (1, "Season to taste.")]


def test_instruction_text_blob_splits_into_lines():
    node = {**JSONLD_RECIPE, "recipeInstructions": "Mix everything.\n\nBake for 20 minutes.\n"}
    recipe = extract_structured_recipe(_page(node), RECIPE_URL)
    assert [s.instruction for s in recipe.instructionSections[0].instructions] == [
        "Mix everything.",
        "Bake for 20 minutes.",
    ]


def test_tag_limits():
    node = {
        **JSONLD_RECIPE,
        "recipeCuisine": ["Italian", "French", "Spanish"],
        "recipeCategory": ["Quick", "Main Course", "Dessert"],
    }
    tags = [(t.type, t.name) for t in extract_structured_recipe(_page(node), RECIPE_URL).suggestedTags]
    assert tags == [("cuisine", "Italian"), ("cuisine", "French"), ("meal_type", "Main Course")]


def test_wprm_ingredient_groups_become_sections():
    html = recipe_page(jsonld=JSONLD_RECIPE).replace("</article>", """
      <div class="wprm-recipe-ingredient-group">
        <h4 class="wprm-recipe-group-name">For the chicken</h4>
        <ul><li class="wprm-recipe-ingredient">6 chicken thighs</li>
            <li class="wprm-recipe-ingredient">2 Tbsp olive oil</li></ul>
      </div>
      <div class="wprm-recipe-ingredient-group">
        <h4 class="wprm-recipe-group-name">For the sauce</h4>
        <ul><li class="wprm-recipe-ingredient">4 cloves garlic, minced</li>
            <li class="wprm-recipe-ingredient">1 lemon, juiced</li></ul>
      </div>
    </article>""")
    recipe = extract_structured_recipe(html, RECIPE_URL)

    assert [s.name for s in recipe.ingredientSections] == ["For the chicken", "For the sauce"]
    assert [i.index for i in recipe.ingredientSections[1].ingredients] == [0, 1]
    assert recipe.ingredientSections[1].ingredients[0].name == "garlic, minced"


def test_microdata_fallback():
    html = """
    <html><body>
      <div itemscope itemtype="https://schema.org/Recipe">
        <h1 itemprop="name">Microdata Muffins</h1>
        <meta itemprop="prepTime" content="PT15M">
        <span itemprop="recipeYield">12 muffins</span>
        <ul>
          <li itemprop="recipeIngredient">2 cups flour</li>
          <li itemprop="recipeIngredient">1 cup blueberries</li>
        </ul>
        <div itemprop="recipeInstructions">Mix and bake at 375°F for 20 minutes.</div>
      </div>
    </body></html>
    """
    recipe = extract_structured_recipe(html, "https://muffins.example.com/blueberry")

    assert recipe is not None
    assert recipe.name == "Microdata Muffins"
    assert recipe.prepTime == 15
    assert recipe.ingredientSections[0].ingredients[0].unit == "cup"
    assert recipe.instructionSections[0].instructions[0].instruction == "Mix and bake at 375°F for 20 minutes."


def test_find_recipe_stops_at_first_match():
    data = [{"@type": "Recipe", "name": "First"}, {"@type": "Recipe", "name": "Second"}]
    assert StructuredDataExtractor.find_recipe(data)["name"] == "First"


def test_structured_hint_block():
    recipe = extract_structured_recipe(_page(JSONLD_RECIPE), RECIPE_URL)
    hint = structured_hint(recipe)
    assert hint.startswith("\n\n[STRUCTURED DATA]\n")
    payload = json.loads(hint.split("\n", 3)[3])
    assert payload["name"] == "Lemon Garlic Chicken"
    assert "sourceUrl" not in payload
