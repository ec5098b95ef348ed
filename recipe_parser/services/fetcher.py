"""Page fetching with user-agent rotation and retry/backoff."""

import asyncio
import itertools
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import httpx

from recipe_parser.config import get_settings


@dataclass
class FetchResult:
    """Result of fetching a page."""
    success: bool
    html: Optional[str] = None
    status_code: Optional[int] = None
    attempts: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None  # fetch_404, fetch_403, fetch_timeout, fetch_failed


USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (iPhone17,2; CPU iPhone OS 18_3_1 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Mobile/15E148",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (iPhone16,2; CPU iPhone OS 17_5_1 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Mobile/15E148",
    "Mozilla/5.0 (Linux; Android 14; Pixel 9 Pro Build/AD1A.240418.003; wv) AppleWebKit/537.36 (KHTML, like Gecko) Mobile Safari/537.36",
    "Mozilla/5.0 (Linux; Android 13; SM-S908B) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/112.0.0.0 Mobile Safari/537.36",
]

BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    # Don't set Accept-Encoding manually - let httpx handle it with its defaults
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
}

# Statuses worth another attempt with a different user agent
RETRYABLE_STATUSES = {403, 408, 425, 429, 500, 502, 503, 504}

_user_agent_cycle = itertools.cycle(USER_AGENTS)


def next_user_agent() -> str:
    return next(_user_agent_cycle)


def build_headers(url: str, user_agent: str) -> dict:
    parsed = urlparse(url)
    headers = dict(BASE_HEADERS)
    headers["User-Agent"] = user_agent
    headers["Referer"] = f"{parsed.scheme}://{parsed.netloc}/"
    return headers


def _error_type_for_status(status: int) -> str:
    if status == 404:
        return "fetch_404"
    if status == 403:
        return "fetch_403"
    return "fetch_failed"


async def fetch_html(
    url: str,
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    timeout: Optional[float] = None,
) -> FetchResult:
    """
    Fetch a page's HTML.

    Each attempt uses the next user agent from the pool. Network errors,
    timeouts and RETRYABLE_STATUSES back off base_delay * 2^attempt before
    retrying; other HTTP errors (404 etc.) fail immediately.

    Returns:
        FetchResult with html on success, error/error_type after the last attempt
    """
    settings = get_settings()
    max_attempts = max_attempts or settings.fetch_max_attempts
    base_delay = settings.fetch_base_delay if base_delay is None else base_delay
    timeout = timeout or settings.fetch_timeout

    last_error = "Failed to fetch URL"
    last_error_type = "fetch_failed"
    last_status = None

    for attempt in range(max_attempts):
        if attempt > 0:
            wait_time = base_delay * (2 ** attempt)
            print(f"   Retry {attempt}/{max_attempts - 1} after {wait_time:.1f}s...")
            await asyncio.sleep(wait_time)

        headers = build_headers(url, next_user_agent())
        try:
            async with httpx.AsyncClient(
                follow_redirects=True,
                timeout=timeout,
                http2=True  # Some sites prefer HTTP/2
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.TimeoutException:
            print(f"⚠️ Timeout fetching {url} (attempt {attempt + 1})")
            last_error, last_error_type = "Timed out fetching URL", "fetch_timeout"
            continue
        except httpx.HTTPError as e:
            print(f"⚠️ Network error fetching {url}: {e}")
            last_error, last_error_type = f"Failed to fetch URL: {e}", "fetch_failed"
            continue

        if response.is_success:
            print(f"📄 Fetched {len(response.text)} chars from {url}")
            return FetchResult(
                success=True,
                html=response.text,
                status_code=response.status_code,
                attempts=attempt + 1,
            )

        last_status = response.status_code
        last_error = f"Failed to fetch URL: {response.status_code} {response.reason_phrase}"
        last_error_type = _error_type_for_status(response.status_code)
        print(f"❌ HTTP {response.status_code} fetching {url}")

        if response.status_code not in RETRYABLE_STATUSES:
            return FetchResult(
                success=False,
                status_code=last_status,
                attempts=attempt + 1,
                error=last_error,
                error_type=last_error_type,
            )

    return FetchResult(
        success=False,
        status_code=last_status,
        attempts=max_attempts,
        error=last_error,
        error_type=last_error_type,
    )
