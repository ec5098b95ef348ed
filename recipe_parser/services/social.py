"""
Social media post content (Instagram, TikTok).

Strategy per post:
1. Provider oEmbed endpoint for caption + thumbnail (cheap, reliable)
2. Headless browser render when the caption is missing or too short:
   caption meta tags first, then the cleaned page text
"""

import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote, urlparse

import httpx
from playwright.async_api import Error as PlaywrightError

from recipe_parser.config import get_settings
from recipe_parser.services import errors
from recipe_parser.services.browser import render_social_page
from recipe_parser.services.html_cleaner import clean_html


MIN_CAPTION_LENGTH = 50
MIN_PAGE_TEXT_LENGTH = 100

OEMBED_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
}

PLATFORMS = {
    "instagram": {
        "name": "Instagram",
        "domain": "instagram.com",
        "oembed": "https://www.instagram.com/api/v1/oembed/?url={url}",
        "error_code": errors.INSTAGRAM_PARSE_FAILED,
    },
    "tiktok": {
        "name": "TikTok",
        "domain": "tiktok.com",
        "oembed": "https://www.tiktok.com/oembed?url={url}",
        "error_code": errors.TIKTOK_PARSE_FAILED,
    },
}

INSTAGRAM_POST_PATH = re.compile(r"^/(p|reel|reels)/([A-Za-z0-9_-]+)")


@dataclass
class OEmbedMetadata:
    """Caption and thumbnail from a provider oEmbed endpoint."""
    caption: Optional[str] = None
    thumbnail: Optional[str] = None
    author_name: Optional[str] = None


@dataclass
class SocialContent:
    """Text and images gathered for a social post."""
    success: bool
    platform: str
    url: str
    text: Optional[str] = None
    images: list[str] = field(default_factory=list)
    method: Optional[str] = None  # oembed | browser_caption | page_text
    error: Optional[str] = None
    error_code: Optional[str] = None


class SocialService:
    """Fetches caption text and images for Instagram and TikTok posts."""

    @staticmethod
    def detect_platform(url: str) -> Optional[str]:
        """Platform key for supported social hosts, else None."""
        try:
            hostname = (urlparse(url).hostname or "").lower()
        except ValueError:
            return None
        for key, platform in PLATFORMS.items():
            domain = platform["domain"]
            if hostname == domain or hostname.endswith(f".{domain}"):
                return key
        return None

    @staticmethod
    def normalize_instagram_url(url: str) -> str:
        """Drop query, force trailing slash, /reels/ -> /reel/."""
        clean_url = url.split("?")[0]
        if not clean_url.endswith("/"):
            clean_url += "/"
        return clean_url.replace("/reels/", "/reel/")

    @staticmethod
    def normalize_tiktok_url(url: str) -> str:
        """oEmbed only accepts /video/ paths."""
        normalized = re.sub(r"/(photo|reel)/", "/video/", url, count=1)
        return normalized.split("?")[0]

    @classmethod
    def normalize_url(cls, url: str, platform: str) -> str:
        if platform == "instagram":
            return cls.normalize_instagram_url(url)
        if platform == "tiktok":
            return cls.normalize_tiktok_url(url)
        return url

    @staticmethod
    def is_instagram_post_url(url: str) -> bool:
        try:
            return bool(INSTAGRAM_POST_PATH.match(urlparse(url).path))
        except ValueError:
            return False

    @staticmethod
    def extract_shortcode(url: str) -> Optional[str]:
        """Instagram post shortcode (the id after /p/ or /reel/)."""
        match = re.search(r"/(p|reel|reels)/([A-Za-z0-9_-]+)", url)
        return match.group(2) if match else None

    async def fetch_oembed(self, url: str, platform: str) -> OEmbedMetadata:
        """Fetch oEmbed metadata; any failure returns empty metadata."""
        endpoint = PLATFORMS[platform]["oembed"].format(url=quote(url, safe=""))
        try:
            async with httpx.AsyncClient(timeout=get_settings().oembed_timeout) as client:
                response = await client.get(endpoint, headers=OEMBED_HEADERS)
                if response.status_code != 200:
                    print(f"⚠️ {PLATFORMS[platform]['name']} oEmbed returned {response.status_code}")
                    return OEmbedMetadata()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            print(f"❌ oEmbed fetch failed for {platform}: {e}")
            return OEmbedMetadata()

        if not isinstance(data, dict):
            return OEmbedMetadata()
        return OEmbedMetadata(
            caption=(data.get("title") or "").strip() or None,
            thumbnail=data.get("thumbnail_url"),
            author_name=data.get("author_name"),
        )

    async def fetch_content(self, url: str) -> SocialContent:
        """
        Gather recipe text for a social post.

        Args:
            url: Instagram or TikTok post URL

        Returns:
            SocialContent with text and images, or an error code:
            UNSUPPORTED_URL for non-post links, the platform's *_PARSE_FAILED
            when the page cannot be rendered, NO_CONTENT when nothing
            usable was found.
        """
        platform = self.detect_platform(url)
        if platform is None:
            return SocialContent(
                success=False, platform="unknown", url=url,
                error="Unsupported social media link", error_code=errors.UNSUPPORTED_URL,
            )

        config = PLATFORMS[platform]
        if platform == "instagram" and not self.is_instagram_post_url(url):
            return SocialContent(
                success=False, platform=platform, url=url,
                error="Only Instagram post and reel links are supported",
                error_code=errors.UNSUPPORTED_URL,
            )

        clean_url = self.normalize_url(url, platform)
        images: list[str] = []

        print(f"📱 Fetching {config['name']} oEmbed...")
        oembed = await self.fetch_oembed(clean_url, platform)
        if oembed.thumbnail:
            images.append(oembed.thumbnail)

        if oembed.caption and len(oembed.caption) >= MIN_CAPTION_LENGTH:
            print(f"✅ oEmbed caption: {len(oembed.caption)} chars")
            return SocialContent(
                success=True, platform=platform, url=clean_url,
                text=oembed.caption, images=images, method="oembed",
            )

        caption_length = len(oembed.caption) if oembed.caption else 0
        print(f"⚠️ oEmbed caption too short ({caption_length} chars), falling back to browser")

        try:
            page = await render_social_page(clean_url)
        except PlaywrightError as e:
            print(f"❌ Browser rendering failed: {e}")
            return SocialContent(
                success=False, platform=platform, url=clean_url, images=images,
                error=f"Could not load this {config['name']} post. It may be private or deleted.",
                error_code=config["error_code"],
            )

        for image in page.images:
            if image not in images:
                images.append(image)

        if page.caption and len(page.caption) >= MIN_CAPTION_LENGTH:
            print(f"✅ Browser caption: {len(page.caption)} chars")
            return SocialContent(
                success=True, platform=platform, url=clean_url,
                text=page.caption, images=images, method="browser_caption",
            )

        page_text = clean_html(page.html)
        if len(page_text) >= MIN_PAGE_TEXT_LENGTH:
            print(f"📄 Using rendered page text: {len(page_text)} chars")
            return SocialContent(
                success=True, platform=platform, url=clean_url,
                text=page_text, images=images, method="page_text",
            )

        return SocialContent(
            success=False, platform=platform, url=clean_url, images=images,
            error=f"Not enough recipe content found in this {config['name']} post",
            error_code=errors.NO_CONTENT,
        )


# Singleton instance
social_service = SocialService()
