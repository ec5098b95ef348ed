"""Services module for recipe parsing."""

from .llm_client import llm_service, LLMService
from .parser import recipe_parser, RecipeParser
from .social import social_service, SocialService
from .storage import storage_service, StorageService
from .suggester import recipe_suggester, RecipeSuggester
from .generator import recipe_generator, RecipeGenerator

__all__ = [
    "llm_service",
    "LLMService",
    "recipe_parser",
    "RecipeParser",
    "social_service",
    "SocialService",
    "storage_service",
    "StorageService",
    "recipe_suggester",
    "RecipeSuggester",
    "recipe_generator",
    "RecipeGenerator",
]
