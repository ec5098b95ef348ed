"""LLM service for recipe extraction from text, webpages and images."""

import json
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

from openai import AsyncOpenAI

from recipe_parser.config import get_settings
from recipe_parser.services import errors
from recipe_parser.services.prompts import (
    IMAGE_EXTRACTION_SYSTEM_PROMPT,
    RECIPE_EXTRACTION_SYSTEM_PROMPT,
    get_html_extraction_prompt,
    get_image_extraction_prompt,
    get_social_extraction_prompt,
    get_text_extraction_prompt,
)


@dataclass
class AIResult:
    """Result of one model call, parsed to JSON."""
    success: bool
    data: Optional[Any] = None
    raw_text: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    model_used: Optional[str] = None
    latency_seconds: Optional[float] = None


# Fallback patterns for JSON buried in prose, most specific first
JSON_OBJECT_PATTERNS = [
    re.compile(r'\{\s*"suggestions"\s*:\s*\[.*\]\s*\}', re.DOTALL),
    re.compile(r'\{\s*"ingredients"\s*:\s*\[.*\].*\}', re.DOTALL),
    re.compile(r'\{\s*"name"\s*:.*\}', re.DOTALL),
    re.compile(r"\{.*\}", re.DOTALL),
]


def extract_response_text(response: Any) -> str:
    """
    Pull the generated text out of a model response.

    Tries, in order: plain string, responses-API output items,
    chat-completion choices, {"response"}, {"generated_text"}.
    Unknown shapes return "".
    """
    if isinstance(response, str):
        return response
    if hasattr(response, "model_dump"):
        response = response.model_dump()
    if not isinstance(response, dict):
        return ""

    output = response.get("output")
    if isinstance(output, list):
        for item in output:
            if isinstance(item, dict) and item.get("type") == "message":
                for part in item.get("content") or []:
                    if isinstance(part, dict) and isinstance(part.get("text"), str):
                        return part["text"]

    choices = response.get("choices")
    if isinstance(choices, list) and choices:
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]

    value = response.get("response")
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        # Some runtimes hand back JSON already parsed
        return json.dumps(value)

    generated = response.get("generated_text")
    if isinstance(generated, str):
        return generated
    return ""


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_json_response(raw_content: str) -> Optional[Any]:
    """
    Parse JSON from model output, handling markdown code blocks and chatter.

    Returns None when nothing parseable is found.
    """
    if not raw_content:
        return None

    cleaned = _strip_code_fences(raw_content)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    # Fenced block somewhere in the middle of prose
    fenced = re.search(r"```(?:json)?\s*(.*?)```", raw_content, re.DOTALL)
    if fenced:
        try:
            return json.loads(fenced.group(1).strip())
        except json.JSONDecodeError:
            pass

    for pattern in JSON_OBJECT_PATTERNS:
        match = pattern.search(cleaned)
        if not match:
            continue
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            continue

    return None


def sanitize_text(text: str) -> str:
    """Clean text to prevent Unicode issues with the API."""
    # Remove emojis and pictographs
    text = re.sub(
        r'[\U0001F600-\U0001F64F]|[\U0001F300-\U0001F5FF]|'
        r'[\U0001F680-\U0001F6FF]|[\U0001F1E0-\U0001F1FF]|'
        r'[\U0001F900-\U0001F9FF]|[\U00002600-\U000026FF]|[\U00002700-\U000027BF]',
        ' ', text
    )
    # Replace smart quotes
    text = text.replace("“", '"').replace("”", '"')
    text = text.replace("‘", "'").replace("’", "'")
    # Replace ellipsis
    text = text.replace("…", "...")
    # Collapse runs of spaces but keep line breaks (captions use them for lists)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n+", "\n\n", text)
    return text.strip()


class OpenAIModelRunner:
    """
    Runs a model on an OpenAI-compatible endpoint.

    Inputs are either {"messages": [...]} (chat completions) or
    {"instructions": str, "input": str} (responses API). The raw response is
    returned as a dict for extract_response_text.
    """

    def __init__(self):
        self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the API client."""
        if self._client is None:
            settings = get_settings()
            self._client = AsyncOpenAI(
                api_key=settings.ai_api_key,
                base_url=settings.resolved_ai_base_url,
                timeout=settings.ai_timeout,
                # Model calls are not retried; callers decide
                max_retries=0,
            )
        return self._client

    async def run(self, model: str, inputs: dict) -> Any:
        if "messages" in inputs:
            completion = await self.client.chat.completions.create(
                model=model,
                messages=inputs["messages"],
                max_tokens=inputs.get("max_tokens", get_settings().ai_max_tokens),
                temperature=0.1,
            )
            return completion.model_dump()

        response = await self.client.responses.create(
            model=model,
            instructions=inputs.get("instructions"),
            input=inputs["input"],
        )
        return response.model_dump()


class LLMService:
    """
    Service for model-based recipe extraction.

    One call per extraction, no fallback model: a failed call is reported
    with AI_PARSE_FAILED or AI_RESPONSE_EMPTY and the parse stops there.
    """

    def __init__(self, runner=None):
        self.runner = runner or OpenAIModelRunner()

    async def run_json(self, model: str, inputs: dict) -> AIResult:
        """Invoke the model and parse its text as JSON."""
        start_time = time.time()
        try:
            response = await self.runner.run(model, inputs)
        except Exception as e:
            print(f"❌ Model call failed ({model}): {str(e)[:200]}")
            return AIResult(
                success=False,
                error=f"AI request failed: {e}",
                error_code=errors.AI_PARSE_FAILED,
                model_used=model,
                latency_seconds=time.time() - start_time,
            )

        latency = time.time() - start_time
        raw_text = extract_response_text(response).strip()
        if not raw_text:
            return AIResult(
                success=False,
                error=errors.ERROR_MESSAGES[errors.AI_RESPONSE_EMPTY],
                error_code=errors.AI_RESPONSE_EMPTY,
                model_used=model,
                latency_seconds=latency,
            )

        data = parse_json_response(raw_text)
        if data is None:
            return AIResult(
                success=False,
                raw_text=raw_text,
                error=f"Failed to parse AI response as JSON: {raw_text[:500]}",
                error_code=errors.AI_PARSE_FAILED,
                model_used=model,
                latency_seconds=latency,
            )

        print(f"🤖 {model} responded in {latency:.1f}s")
        return AIResult(
            success=True,
            data=data,
            raw_text=raw_text,
            model_used=model,
            latency_seconds=latency,
        )

    async def _extract_recipe(self, model: str, inputs: dict) -> AIResult:
        result = await self.run_json(model, inputs)
        if result.success and not isinstance(result.data, dict):
            return AIResult(
                success=False,
                raw_text=result.raw_text,
                error="AI response was not a JSON object",
                error_code=errors.AI_PARSE_FAILED,
                model_used=result.model_used,
                latency_seconds=result.latency_seconds,
            )
        return result

    async def extract_from_text(self, text: str) -> AIResult:
        """Extract a recipe from free-form text."""
        print(f"🤖 Extracting recipe from text ({len(text)} chars)...")
        return await self._extract_recipe(get_settings().text_model, {
            "messages": [
                {"role": "system", "content": RECIPE_EXTRACTION_SYSTEM_PROMPT},
                {"role": "user", "content": get_text_extraction_prompt(sanitize_text(text))},
            ],
        })

    async def extract_from_html(self, cleaned_content: str) -> AIResult:
        """
        Extract a recipe from cleaned webpage text.

        Args:
            cleaned_content: Main page text plus any [STEP IMAGES] /
                [STRUCTURED DATA] hint blocks
        """
        print(f"🤖 Extracting recipe from webpage ({len(cleaned_content)} chars)...")
        return await self._extract_recipe(get_settings().text_model, {
            "instructions": RECIPE_EXTRACTION_SYSTEM_PROMPT,
            "input": get_html_extraction_prompt(cleaned_content),
        })

    async def extract_from_social(self, platform: str, caption: str) -> AIResult:
        """Extract a recipe from a social post caption or rendered page text."""
        print(f"🤖 Extracting recipe from {platform} post ({len(caption)} chars)...")
        return await self._extract_recipe(get_settings().text_model, {
            "messages": [
                {"role": "system", "content": RECIPE_EXTRACTION_SYSTEM_PROMPT},
                {"role": "user", "content": get_social_extraction_prompt(platform, sanitize_text(caption))},
            ],
        })

    async def extract_from_image(self, image_base64: str, mime_type: str) -> AIResult:
        """Extract a recipe from a photo (OCR) with the vision model."""
        print(f"📸 Extracting recipe from image ({len(image_base64) // 1024}KB base64)...")
        return await self._extract_recipe(get_settings().vision_model, {
            "messages": [
                {"role": "system", "content": IMAGE_EXTRACTION_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": get_image_extraction_prompt()},
                        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_base64}"}},
                    ],
                },
            ],
        })

    async def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        use_responses: bool = False,
    ) -> AIResult:
        """Generic prompt -> JSON call used by suggestions and chat."""
        model = model or get_settings().suggestion_model
        if use_responses:
            inputs = {"instructions": system_prompt, "input": user_prompt}
        else:
            inputs = {
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            }
        return await self.run_json(model, inputs)

    async def analyze_image_json(
        self,
        system_prompt: str,
        user_prompt: str,
        image_base64: str,
        mime_type: str,
    ) -> AIResult:
        """Vision call returning JSON, for prompts other than recipe extraction."""
        return await self.run_json(get_settings().vision_model, {
            "messages": [
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": user_prompt},
                        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_base64}"}},
                    ],
                },
            ],
            "max_tokens": 2048,
        })


# Singleton instance
llm_service = LLMService()
