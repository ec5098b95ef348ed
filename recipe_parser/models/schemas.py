"""Pydantic schemas for parsed recipes and the parse service envelope.

Field names are camelCase so that a dumped recipe is byte-compatible with
the JSON the mobile app and the shared recipe cache already use:
- ParsedRecipe
- IngredientSection / InstructionSection
- ParseMetadata
- etc.
"""

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator, model_validator
from typing import Annotated, Literal, Optional, Union


SourceType = Literal["url", "image", "text", "ai", "manual", "user"]
TagType = Literal["cuisine", "meal_type", "occasion"]
Confidence = Literal["high", "medium", "low"]
ParseMethod = Literal["structured_data", "ai_enhanced", "ai_only"]


def _check_contiguous(indices: list[int], label: str) -> None:
    if indices != list(range(len(indices))):
        raise ValueError(f"{label} indices must be 0..{len(indices) - 1}, got {indices}")


# ============================================================
# Recipe Structure
# ============================================================

class Ingredient(BaseModel):
    """Single ingredient line. `unit` is canonical when recognized."""
    index: int = Field(ge=0)
    quantity: Optional[float] = None
    unit: Optional[str] = None
    name: str = Field(min_length=1)

    class Config:
        frozen = True


class Instruction(BaseModel):
    """Single instruction step with an optional step photo."""
    index: int = Field(ge=0)
    instruction: str = Field(min_length=1)
    imageUrl: Optional[str] = None

    class Config:
        frozen = True


class IngredientSection(BaseModel):
    """A group of ingredients (e.g. 'For the Sauce'). `name=None` renders flat."""
    name: Optional[str] = None
    ingredients: list[Ingredient] = Field(min_length=1)

    @model_validator(mode="after")
    def _indices_contiguous(self):
        _check_contiguous([i.index for i in self.ingredients], "ingredient")
        return self

    class Config:
        frozen = True


class InstructionSection(BaseModel):
    """A group of instruction steps."""
    name: Optional[str] = None
    instructions: list[Instruction] = Field(min_length=1)

    @model_validator(mode="after")
    def _indices_contiguous(self):
        _check_contiguous([i.index for i in self.instructions], "instruction")
        return self

    class Config:
        frozen = True


class Tag(BaseModel):
    type: TagType
    name: str

    class Config:
        frozen = True


class ParsedRecipe(BaseModel):
    """
    The canonical parse output.

    Built once per parse call and never mutated. Times are whole minutes.
    Servings are not range-checked; consumers clamp zero/negative values.
    """
    name: str
    description: Optional[str] = None
    prepTime: Optional[int] = None
    cookTime: Optional[int] = None
    totalTime: Optional[int] = None
    servings: Optional[int] = None
    sourceUrl: Optional[str] = None
    sourceType: SourceType
    ingredientSections: list[IngredientSection] = Field(min_length=1)
    instructionSections: list[InstructionSection] = Field(min_length=1)
    images: list[str] = []
    suggestedTags: Optional[list[Tag]] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value

    class Config:
        frozen = True


def validate_recipe(data) -> tuple[Optional[ParsedRecipe], list[dict]]:
    """
    Validate assembled recipe data.

    Returns (recipe, []) on success or (None, errors) where errors is the
    structured pydantic error list. Never raises for invalid data.
    """
    if isinstance(data, ParsedRecipe):
        return data, []
    try:
        return ParsedRecipe.model_validate(data), []
    except ValidationError as e:
        return None, e.errors(include_url=False)


# ============================================================
# Parse Service Envelope
# ============================================================

class UrlParseInput(BaseModel):
    type: Literal["url"]
    data: str
    structuredOnly: bool = False


class TextParseInput(BaseModel):
    type: Literal["text"]
    data: str


class ImageParseInput(BaseModel):
    type: Literal["image"]
    data: str = ""
    # Missing or unsupported types surface as INVALID_MIME_TYPE, not INVALID_INPUT_TYPE
    mimeType: Optional[str] = None


ParseInput = Annotated[
    Union[UrlParseInput, TextParseInput, ImageParseInput],
    Field(discriminator="type"),
]

parse_input_adapter = TypeAdapter(ParseInput)


class ParseMetadata(BaseModel):
    """Provenance returned alongside (never stored with) a recipe."""
    source: Literal["url", "text", "image"]
    parseMethod: Optional[ParseMethod] = None
    confidence: Confidence
    cached: Optional[bool] = None


class ParseError(BaseModel):
    code: str
    message: str


class ParseSuccess(BaseModel):
    success: Literal[True] = True
    data: ParsedRecipe
    metadata: ParseMetadata


class ParseFailure(BaseModel):
    success: Literal[False] = False
    error: ParseError


ParseResponse = Union[ParseSuccess, ParseFailure]


def parse_failure(code: str, message: str) -> ParseFailure:
    """Build a failure envelope."""
    return ParseFailure(error=ParseError(code=code, message=message))


# ============================================================
# Suggest-from-ingredients
# ============================================================

class IdentifyIngredientsInput(BaseModel):
    imageBase64: str
    mimeType: Optional[str] = None


class IdentifyIngredientsSuccess(BaseModel):
    success: Literal[True] = True
    ingredients: list[str]
    confidence: Confidence = "medium"


class RecipeSuggestion(BaseModel):
    id: str
    name: str
    description: str = ""
    estimatedTime: int = 30
    difficulty: str = "medium"
    matchedIngredients: list[str] = []
    additionalIngredients: list[str] = []


class SuggestRecipesInput(BaseModel):
    ingredients: list[str]
    count: int = 5


class SuggestRecipesSuccess(BaseModel):
    success: Literal[True] = True
    suggestions: list[RecipeSuggestion]


class GenerateFromSuggestionInput(BaseModel):
    suggestion: RecipeSuggestion
    availableIngredients: list[str] = []


# ============================================================
# Conversational Generation
# ============================================================

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class RecipeConversationState(BaseModel):
    ingredients: Optional[list[str]] = None
    cuisinePreference: Optional[str] = None
    willingToShop: Optional[bool] = None
    maxCookingTime: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """All four questions answered."""
        return (
            bool(self.ingredients)
            and self.cuisinePreference is not None
            and self.willingToShop is not None
            and self.maxCookingTime is not None
        )


class ChatInput(BaseModel):
    messages: list[ChatMessage] = []
    conversationState: RecipeConversationState = RecipeConversationState()


class ChatMessageResponse(BaseModel):
    type: Literal["message"] = "message"
    message: str
    suggestedReplies: Optional[list[str]] = None
    updatedState: RecipeConversationState
    isComplete: Literal[False] = False


class ChatRecipeResponse(BaseModel):
    type: Literal["recipe"] = "recipe"
    recipe: ParsedRecipe
    isComplete: Literal[True] = True


class ChatErrorResponse(BaseModel):
    type: Literal["error"] = "error"
    error: ParseError


ChatResponse = Union[ChatMessageResponse, ChatRecipeResponse, ChatErrorResponse]


# ============================================================
# Utility Schemas
# ============================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    environment: str
    cache: str = "connected"
