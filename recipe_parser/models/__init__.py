from .schemas import (
    Ingredient,
    Instruction,
    IngredientSection,
    InstructionSection,
    Tag,
    ParsedRecipe,
    ParseMetadata,
    ParseSuccess,
    ParseFailure,
    validate_recipe,
)

__all__ = [
    "Ingredient",
    "Instruction",
    "IngredientSection",
    "InstructionSection",
    "Tag",
    "ParsedRecipe",
    "ParseMetadata",
    "ParseSuccess",
    "ParseFailure",
    "validate_recipe",
]
