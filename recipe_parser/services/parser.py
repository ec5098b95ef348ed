"""
Recipe parse orchestration.

Routes a parse input (url / text / image) through cache, fetch, structured
data and AI extraction, and always returns a ParseSuccess or ParseFailure
envelope. Nothing raises across this boundary.
"""

import base64
import binascii
from typing import Optional, Union
from urllib.parse import urlparse

import sentry_sdk
from pydantic import ValidationError

from recipe_parser.config import get_settings
from recipe_parser.models.schemas import (
    ImageParseInput,
    ParsedRecipe,
    ParseFailure,
    ParseMetadata,
    ParseResponse,
    ParseSuccess,
    TextParseInput,
    UrlParseInput,
    parse_failure,
    parse_input_adapter,
    validate_recipe,
)
from recipe_parser.services import errors
from recipe_parser.services.assembler import assemble_ai_recipe, compute_confidence
from recipe_parser.services.browser import requires_browser_rendering
from recipe_parser.services.cache import cache_recipe, get_cached_recipe, get_redis
from recipe_parser.services.fetcher import fetch_html
from recipe_parser.services.html_cleaner import clean_html, extract_image_urls, extract_step_image_context
from recipe_parser.services.llm_client import AIResult, llm_service
from recipe_parser.services.social import social_service
from recipe_parser.services.storage import storage_service
from recipe_parser.services.structured_data import extract_structured_recipe, structured_hint


MIN_TEXT_LENGTH = 50
MAX_TEXT_LENGTH = 10000
MIN_PAGE_CONTENT_LENGTH = 100
MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_PAGE_IMAGES = 10

SUPPORTED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")


def validate_image_payload(data: str, mime_type: Optional[str]) -> Optional[ParseFailure]:
    """
    Local checks for a base64 image. Returns a failure envelope or None.

    Shared with ingredient identification, which takes the same payload.
    """
    if mime_type not in SUPPORTED_MIME_TYPES:
        return parse_failure(
            errors.INVALID_MIME_TYPE,
            f"Invalid image type. Supported: {', '.join(SUPPORTED_MIME_TYPES)}",
        )
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return parse_failure(errors.INVALID_BASE64, errors.ERROR_MESSAGES[errors.INVALID_BASE64])
    if len(decoded) > MAX_IMAGE_BYTES:
        return parse_failure(errors.IMAGE_TOO_LARGE, "Image must be under 10MB")
    return None


def _is_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class RecipeParser:
    """
    Parse orchestrator.

    Collaborators are injectable so tests can swap the model runner,
    the key-value store and the image storage.
    """

    def __init__(self, llm=None, kv=None, storage=None):
        self.llm = llm or llm_service
        self._kv = kv
        self.storage = storage or storage_service

    async def get_kv(self):
        if self._kv is None:
            self._kv = await get_redis()
        return self._kv

    async def parse(self, payload: Union[dict, UrlParseInput, TextParseInput, ImageParseInput]) -> ParseResponse:
        """
        Parse one input into a recipe.

        Args:
            payload: {"type": "url"|"text"|"image", "data": ..., ...} or a parsed input model

        Returns:
            ParseSuccess with the recipe and metadata, or ParseFailure with an error code
        """
        if isinstance(payload, dict):
            try:
                payload = parse_input_adapter.validate_python(payload)
            except ValidationError:
                return parse_failure(errors.INVALID_INPUT_TYPE, errors.ERROR_MESSAGES[errors.INVALID_INPUT_TYPE])

        try:
            if isinstance(payload, UrlParseInput):
                return await self.parse_url(payload.data, structured_only=payload.structuredOnly)
            if isinstance(payload, TextParseInput):
                return await self.parse_text(payload.data)
            if isinstance(payload, ImageParseInput):
                return await self.parse_image(payload.data, payload.mimeType)
        except Exception as e:
            print(f"❌ Unexpected parse error: {type(e).__name__}: {e}")
            sentry_sdk.capture_exception(e)
            return parse_failure(errors.INTERNAL_ERROR, errors.ERROR_MESSAGES[errors.INTERNAL_ERROR])

        return parse_failure(errors.INVALID_INPUT_TYPE, errors.ERROR_MESSAGES[errors.INVALID_INPUT_TYPE])

    # ============================================================
    # Helpers
    # ============================================================

    def _fail(
        self,
        source: str,
        code: str,
        message: str,
        url: Optional[str] = None,
        extra_context: Optional[dict] = None,
    ) -> ParseFailure:
        errors.log_parse_failure(source, code, message, url=url, extra_context=extra_context)
        return parse_failure(code, message)

    def _ai_failure(self, source: str, result: AIResult, url: Optional[str] = None) -> ParseFailure:
        return self._fail(
            source,
            result.error_code or errors.AI_PARSE_FAILED,
            result.error or "AI extraction failed",
            url=url,
            extra_context={"model": result.model_used},
        )

    def _validate(self, source: str, data: dict, url: Optional[str] = None) -> Union[ParsedRecipe, ParseFailure]:
        recipe, validation_errors = validate_recipe(data)
        if validation_errors:
            print(f"⚠️ Assembled recipe failed validation: {validation_errors[:3]}")
            return self._fail(
                source,
                errors.VALIDATION_FAILED,
                errors.ERROR_MESSAGES[errors.VALIDATION_FAILED],
                url=url,
                extra_context={"validation_errors": [e["msg"] for e in validation_errors[:5]]},
            )
        return recipe

    async def _write_through(self, url: str, recipe: ParsedRecipe) -> None:
        await cache_recipe(await self.get_kv(), url, recipe, ttl_seconds=get_settings().cache_ttl_seconds)

    # ============================================================
    # URL
    # ============================================================

    async def parse_url(self, url: str, structured_only: bool = False) -> ParseResponse:
        """
        Cache check, then social or website routing.

        structured_only never invokes the model: no structured data is a
        NO_STRUCTURED_DATA failure and social links are UNSUPPORTED_URL.
        """
        url = url.strip()
        if not _is_http_url(url):
            return parse_failure(errors.INVALID_INPUT, "Please provide a valid http(s) URL")

        kv = await self.get_kv()
        cached = await get_cached_recipe(kv, url)
        if cached:
            print(f"✅ Cache hit for {url}")
            return ParseSuccess(
                data=cached,
                metadata=ParseMetadata(source="url", confidence="high", cached=True),
            )

        if requires_browser_rendering(url):
            if structured_only:
                return self._fail("url", errors.UNSUPPORTED_URL, errors.ERROR_MESSAGES[errors.UNSUPPORTED_URL], url=url)
            return await self._parse_social(url)

        return await self._parse_website(url, structured_only)

    async def _parse_website(self, url: str, structured_only: bool) -> ParseResponse:
        print(f"🌐 Fetching {url}")
        fetched = await fetch_html(url)
        if not fetched.success:
            return self._fail(
                "url",
                errors.FETCH_FAILED,
                fetched.error or "Failed to fetch URL",
                url=url,
                extra_context={"status_code": fetched.status_code, "error_type": fetched.error_type},
            )
        html = fetched.html

        try:
            structured = extract_structured_recipe(html, url)
        except Exception as e:
            # Broken markup only costs us the hint; the model still sees the page
            print(f"⚠️ Structured data extraction failed: {type(e).__name__}: {e}")
            structured = None

        if structured_only:
            if structured is None:
                return self._fail(
                    "url", errors.NO_STRUCTURED_DATA, errors.ERROR_MESSAGES[errors.NO_STRUCTURED_DATA], url=url
                )
            recipe = self._validate("url", structured.model_dump(), url=url)
            if isinstance(recipe, ParseFailure):
                return recipe
            await self._write_through(url, recipe)
            print(f"✅ Basic import from structured data: {recipe.name}")
            return ParseSuccess(
                data=recipe,
                metadata=ParseMetadata(source="url", parseMethod="structured_data", confidence="high"),
            )

        content = clean_html(html)
        if len(content) < MIN_PAGE_CONTENT_LENGTH and structured is None:
            return self._fail(
                "url",
                errors.NO_CONTENT,
                errors.ERROR_MESSAGES[errors.NO_CONTENT],
                url=url,
                extra_context={"content_length": len(content)},
            )

        images = extract_image_urls(html, url)[:MAX_PAGE_IMAGES]
        if structured is not None:
            # Structured images come first; they are the ones the site picked
            images = list(dict.fromkeys(structured.images + images))[:MAX_PAGE_IMAGES]

        prompt_content = content + extract_step_image_context(html, url)
        if structured is not None:
            prompt_content += structured_hint(structured)

        result = await self.llm.extract_from_html(prompt_content)
        if not result.success:
            return self._ai_failure("url", result, url=url)

        recipe = self._validate("url", assemble_ai_recipe(result.data, "url", source_url=url, images=images), url=url)
        if isinstance(recipe, ParseFailure):
            return recipe

        await self._write_through(url, recipe)
        if structured is not None:
            metadata = ParseMetadata(source="url", parseMethod="ai_enhanced", confidence="high")
        else:
            metadata = ParseMetadata(source="url", parseMethod="ai_only", confidence="medium")
        print(f"✅ Parsed {recipe.name} ({metadata.parseMethod})")
        return ParseSuccess(data=recipe, metadata=metadata)

    async def _parse_social(self, url: str) -> ParseResponse:
        content = await social_service.fetch_content(url)
        if not content.success:
            return self._fail(
                content.platform,
                content.error_code or errors.NO_CONTENT,
                content.error or errors.ERROR_MESSAGES[errors.NO_CONTENT],
                url=url,
            )

        result = await self.llm.extract_from_social(content.platform, content.text)
        if not result.success:
            return self._ai_failure(content.platform, result, url=url)

        images = await self.storage.reupload_images(content.images, url)
        recipe = self._validate(
            content.platform,
            assemble_ai_recipe(result.data, "url", source_url=url, images=images),
            url=url,
        )
        if isinstance(recipe, ParseFailure):
            return recipe

        await self._write_through(url, recipe)
        print(f"✅ Parsed {recipe.name} from {content.platform} ({content.method})")
        return ParseSuccess(
            data=recipe,
            metadata=ParseMetadata(source="url", parseMethod="ai_only", confidence="medium"),
        )

    # ============================================================
    # Text and Image
    # ============================================================

    async def parse_text(self, text: str) -> ParseResponse:
        text = text.strip()
        if len(text) < MIN_TEXT_LENGTH:
            return parse_failure(errors.INVALID_INPUT, "Text must be at least 50 characters")
        if len(text) > MAX_TEXT_LENGTH:
            return parse_failure(errors.INPUT_TOO_LONG, "Text must be under 10,000 characters")

        result = await self.llm.extract_from_text(text)
        if not result.success:
            return self._ai_failure("text", result)

        recipe = self._validate("text", assemble_ai_recipe(result.data, "text"))
        if isinstance(recipe, ParseFailure):
            return recipe
        return ParseSuccess(
            data=recipe,
            metadata=ParseMetadata(source="text", parseMethod="ai_only", confidence=compute_confidence(recipe, "text")),
        )

    async def parse_image(self, data: str, mime_type: Optional[str]) -> ParseResponse:
        invalid = validate_image_payload(data, mime_type)
        if invalid:
            return invalid

        result = await self.llm.extract_from_image(data, mime_type)
        if not result.success:
            return self._ai_failure("image", result)

        recipe = self._validate("image", assemble_ai_recipe(result.data, "image"))
        if isinstance(recipe, ParseFailure):
            return recipe
        return ParseSuccess(
            data=recipe,
            metadata=ParseMetadata(source="image", parseMethod="ai_only", confidence=compute_confidence(recipe, "image")),
        )


# Singleton instance
recipe_parser = RecipeParser()


async def parse(payload) -> ParseResponse:
    """Module-level entry point using the shared parser."""
    return await recipe_parser.parse(payload)
