"""Headless browser rendering for JavaScript-heavy social pages."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PWTimeoutError
from playwright.async_api import async_playwright

from recipe_parser.config import get_settings


# Domains that only render their content with JavaScript
BROWSER_REQUIRED_DOMAINS = ("instagram.com", "tiktok.com")

# Instagram shows more of the caption to mobile browsers
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
MOBILE_VIEWPORT = {"width": 390, "height": 844}

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--mute-audio",
    "--no-first-run",
]

SETTLE_SECONDS = 2.0
MIN_CAPTION_SPAN_LENGTH = 50
SOCIAL_IMAGE_HOSTS = ("cdninstagram", "fbcdn", "tiktokcdn")


@dataclass
class RenderedPage:
    """A browser-rendered page with its best caption and post images."""
    html: str
    caption: Optional[str] = None
    images: list[str] = field(default_factory=list)


def requires_browser_rendering(url: str) -> bool:
    """True for hosts on BROWSER_REQUIRED_DOMAINS (including subdomains)."""
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    return any(hostname == d or hostname.endswith(f".{d}") for d in BROWSER_REQUIRED_DOMAINS)


async def _dismiss_overlays(page) -> None:
    """Best-effort close of login/consent modals."""
    try:
        close_button = page.locator('[aria-label="Close"]')
        if await close_button.count() > 0:
            await close_button.first.click(timeout=2000)
            await asyncio.sleep(0.5)
    except PlaywrightError as e:
        print(f"⚠️ Could not dismiss overlay: {str(e)[:80]}")


@asynccontextmanager
async def open_mobile_page(url: str, timeout_ms: Optional[int] = None):
    """
    Launch headless Chromium, open url with a mobile profile, yield the page.

    The browser is closed on every exit path. A navigation timeout is not
    fatal: whatever rendered before the deadline is used.
    """
    timeout_ms = timeout_ms or get_settings().browser_timeout_ms

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=LAUNCH_ARGS)
        try:
            context = await browser.new_context(
                user_agent=MOBILE_USER_AGENT,
                viewport=MOBILE_VIEWPORT,
                is_mobile=True,
                has_touch=True,
            )
            page = await context.new_page()
            page.set_default_timeout(timeout_ms)

            print(f"🌐 Rendering {url} in headless browser...")
            try:
                await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            except PWTimeoutError:
                print(f"⚠️ Navigation timed out after {timeout_ms}ms, using partial render")

            await asyncio.sleep(SETTLE_SECONDS)
            await _dismiss_overlays(page)
            yield page
        finally:
            await browser.close()


async def fetch_html_with_browser(url: str, timeout_ms: Optional[int] = None) -> str:
    """Fully rendered HTML for a JavaScript-heavy page."""
    async with open_mobile_page(url, timeout_ms) as page:
        return await page.content()


async def render_social_page(url: str, timeout_ms: Optional[int] = None) -> RenderedPage:
    """Render a social post and pull its caption and images from the DOM."""
    html = await fetch_html_with_browser(url, timeout_ms)
    return RenderedPage(
        html=html,
        caption=extract_caption(html),
        images=extract_social_images(html),
    )


def extract_caption(html: str) -> Optional[str]:
    """
    Best caption candidate from a rendered social page.

    Order: og:description, meta description, then the longest <span>
    inside <article> that is over 50 characters.
    """
    soup = BeautifulSoup(html, "lxml")

    og_desc = soup.find("meta", property="og:description")
    if og_desc and og_desc.get("content", "").strip():
        return og_desc["content"].strip()

    desc = soup.find("meta", attrs={"name": "description"})
    if desc and desc.get("content", "").strip():
        return desc["content"].strip()

    article = soup.find("article")
    if article:
        longest = ""
        for span in article.find_all("span"):
            text = span.get_text().strip()
            if len(text) > len(longest) and len(text) > MIN_CAPTION_SPAN_LENGTH:
                longest = text
        if longest:
            return longest

    return None


def extract_social_images(html: str) -> list[str]:
    """CDN-hosted post images (no profile pictures) and video posters."""
    soup = BeautifulSoup(html, "lxml")
    images = []

    for img in soup.find_all("img"):
        src = img.get("src")
        if (
            src
            and src not in images
            and "profile" not in src
            and "avatar" not in src
            and any(host in src for host in SOCIAL_IMAGE_HOSTS)
        ):
            images.append(src)

    for video in soup.find_all("video"):
        poster = video.get("poster")
        if poster and poster not in images:
            images.append(poster)

    return images
