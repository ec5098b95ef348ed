"""Error codes surfaced in parse envelopes and failure reporting."""

import sentry_sdk
from urllib.parse import urlparse
from typing import Optional


# ============================================================
# Error Codes
# ============================================================

# Input validation (checked before any network or model call)
INVALID_INPUT_TYPE = "INVALID_INPUT_TYPE"
INVALID_MIME_TYPE = "INVALID_MIME_TYPE"
IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
INVALID_BASE64 = "INVALID_BASE64"
INVALID_INPUT = "INVALID_INPUT"
INPUT_TOO_LONG = "INPUT_TOO_LONG"
NO_INGREDIENTS = "NO_INGREDIENTS"
INVALID_COUNT = "INVALID_COUNT"

# Retrieval
FETCH_FAILED = "FETCH_FAILED"
UNSUPPORTED_URL = "UNSUPPORTED_URL"
NO_CONTENT = "NO_CONTENT"
TIKTOK_PARSE_FAILED = "TIKTOK_PARSE_FAILED"
INSTAGRAM_PARSE_FAILED = "INSTAGRAM_PARSE_FAILED"

# Basic import tier
NO_STRUCTURED_DATA = "NO_STRUCTURED_DATA"

# Model
AI_PARSE_FAILED = "AI_PARSE_FAILED"
AI_RESPONSE_EMPTY = "AI_RESPONSE_EMPTY"
AI_FAILED = "AI_FAILED"
GENERATION_ERROR = "GENERATION_ERROR"
CHAT_ERROR = "CHAT_ERROR"
NO_SUGGESTIONS = "NO_SUGGESTIONS"
NO_INGREDIENTS_FOUND = "NO_INGREDIENTS_FOUND"

# Post-processing
VALIDATION_FAILED = "VALIDATION_FAILED"
INTERNAL_ERROR = "INTERNAL_ERROR"


# User-facing messages for codes whose wording never varies
ERROR_MESSAGES = {
    INVALID_INPUT_TYPE: "Invalid input type",
    INVALID_BASE64: "Invalid base64 image data",
    NO_CONTENT: "Not enough content found on the page",
    NO_STRUCTURED_DATA: "No recipe data found on this page. Try the full import instead.",
    UNSUPPORTED_URL: "This link needs a full import. Basic import only supports recipe websites.",
    VALIDATION_FAILED: "AI output did not match expected schema",
    AI_RESPONSE_EMPTY: "AI returned empty response",
    INTERNAL_ERROR: "An unexpected error occurred",
    NO_INGREDIENTS: "At least one ingredient is required",
    INVALID_COUNT: "Count must be between 1 and 10",
    NO_SUGGESTIONS: "Could not generate recipe suggestions",
    NO_INGREDIENTS_FOUND: "Could not identify any ingredients in the image",
}


def get_domain(url: str) -> str:
    """Extract domain from URL for logging."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "unknown"
    return parsed.netloc.lower().replace("www.", "") or "unknown"


def log_parse_failure(
    source: str,
    error_code: str,
    error_detail: str,
    url: Optional[str] = None,
    extra_context: Optional[dict] = None,
):
    """Log a terminal parse failure to Sentry with rich context."""
    domain = get_domain(url) if url else None

    sentry_sdk.capture_message(
        f"Recipe parse failed: {error_code}",
        level="warning",
        extras={
            "url": url,
            "domain": domain,
            "source": source,
            "error_code": error_code,
            "error_detail": error_detail,
            **(extra_context or {}),
        },
        tags={
            "feature": "recipe_parse",
            "source": source,
            "error_code": error_code,
            "domain": domain or "none",
        }
    )
    print(f"📡 Logged to Sentry: {error_code} ({source}{', ' + domain if domain else ''})")
