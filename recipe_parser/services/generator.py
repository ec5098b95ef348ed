"""Conversational recipe generation: ask a few questions, then write a recipe."""

from typing import Optional

from pydantic import ValidationError

from recipe_parser.models.schemas import (
    ChatErrorResponse,
    ChatMessage,
    ChatMessageResponse,
    ChatRecipeResponse,
    ChatResponse,
    ParseError,
    RecipeConversationState,
    validate_recipe,
)
from recipe_parser.services import errors
from recipe_parser.services.assembler import assemble_ai_recipe
from recipe_parser.services.llm_client import llm_service
from recipe_parser.services.prompts import (
    CONVERSATION_SYSTEM_PROMPT,
    GENERATION_SYSTEM_PROMPT,
    get_conversation_prompt,
    get_generation_prompt,
)


DEFAULT_SERVINGS = 4

GREETING = (
    "Hi! I'm here to help you create a delicious recipe. "
    "What ingredients do you have available to cook with today?"
)
GREETING_REPLIES = [
    "Chicken, rice, and vegetables",
    "Pasta and tomatoes",
    "I'll tell you what I have",
]
FALLBACK_MESSAGE = "I'd love to help you cook something delicious! What ingredients do you have?"


def _chat_error(code: str, message: str) -> ChatErrorResponse:
    return ChatErrorResponse(error=ParseError(code=code, message=message))


def initial_message() -> ChatMessageResponse:
    return ChatMessageResponse(
        message=GREETING,
        suggestedReplies=list(GREETING_REPLIES),
        updatedState=RecipeConversationState(),
    )


class RecipeGenerator:
    """Drives the chat flow and the final generation call."""

    def __init__(self, llm=None):
        self.llm = llm or llm_service

    async def generate_recipe(self, state: RecipeConversationState) -> ChatResponse:
        print(f"🍳 Generating recipe from chat ({len(state.ingredients or [])} ingredients)")
        result = await self.llm.generate_json(
            GENERATION_SYSTEM_PROMPT,
            get_generation_prompt(state.model_dump()),
            use_responses=True,
        )
        if not result.success:
            return _chat_error(errors.GENERATION_ERROR, result.error or "Failed to generate recipe. Please try again.")
        if not isinstance(result.data, dict):
            return _chat_error(errors.GENERATION_ERROR, "Failed to generate recipe. Please try again.")

        data = assemble_ai_recipe(result.data, "ai")
        if not data["servings"]:
            data["servings"] = DEFAULT_SERVINGS

        recipe, validation_errors = validate_recipe(data)
        if validation_errors:
            return _chat_error(errors.GENERATION_ERROR, errors.ERROR_MESSAGES[errors.VALIDATION_FAILED])

        print(f"✅ Generated recipe: {recipe.name}")
        return ChatRecipeResponse(recipe=recipe)

    async def process_chat(
        self,
        messages: list[ChatMessage],
        state: Optional[RecipeConversationState] = None,
    ) -> ChatResponse:
        """
        Handle one chat turn.

        Args:
            messages: Full conversation so far, oldest first
            state: What has been collected (ingredients, preference, shopping, time)

        Returns:
            A follow-up message, the generated recipe once everything is
            known, or an error (CHAT_ERROR / GENERATION_ERROR)
        """
        state = state or RecipeConversationState()
        if not messages:
            return initial_message()

        if state.is_complete:
            return await self.generate_recipe(state)

        result = await self.llm.generate_json(
            CONVERSATION_SYSTEM_PROMPT,
            get_conversation_prompt([m.model_dump() for m in messages], state.model_dump()),
            use_responses=True,
        )
        if not result.success:
            return _chat_error(errors.CHAT_ERROR, result.error or "Something went wrong. Please try again.")
        if not isinstance(result.data, dict):
            return _chat_error(errors.CHAT_ERROR, "Something went wrong. Please try again.")

        updated_state = state
        if isinstance(result.data.get("updatedState"), dict):
            try:
                updated_state = RecipeConversationState.model_validate(result.data["updatedState"])
            except ValidationError:
                print("⚠️ Ignoring malformed conversation state from model")

        if result.data.get("readyToGenerate") and updated_state.is_complete:
            return await self.generate_recipe(updated_state)

        replies = result.data.get("suggestedReplies")
        return ChatMessageResponse(
            message=result.data.get("message") or FALLBACK_MESSAGE,
            suggestedReplies=[r for r in replies if isinstance(r, str)] if isinstance(replies, list) else None,
            updatedState=updated_state,
        )


# Singleton instance
recipe_generator = RecipeGenerator()
