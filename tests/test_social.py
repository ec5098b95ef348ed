"""Tests for social post content (oEmbed first, browser fallback)."""

from unittest.mock import AsyncMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from recipe_parser.services import errors
from recipe_parser.services.browser import RenderedPage, extract_caption, extract_social_images, requires_browser_rendering
from recipe_parser.services.social import OEmbedMetadata, SocialService


LONG_CAPTION = (
    "Creamy garlic pasta 🍝 You need 200g spaghetti, 3 cloves garlic, 1 cup cream and parmesan. "
    "Boil pasta, saute garlic, add cream, toss and serve!"
)
REEL_URL = "https://www.instagram.com/reels/C8abc_12-x/?igsh=xyz"
TIKTOK_URL = "https://www.tiktok.com/@chef/photo/7301234567890?lang=en"


@pytest.fixture
def service():
    return SocialService()


def test_detect_platform(service):
    assert service.detect_platform("https://instagram.com/p/abc/") == "instagram"
    assert service.detect_platform("https://m.tiktok.com/v/123") == "tiktok"
    assert service.detect_platform("https://notinstagram.com/p/abc") is None
    assert requires_browser_rendering("https://www.tiktok.com/@a/video/1")
    assert not requires_browser_rendering("https://www.allrecipes.com/recipe/1")


def test_url_normalization(service):
    assert service.normalize_url(REEL_URL, "instagram") == "https://www.instagram.com/reel/C8abc_12-x/"
    assert service.normalize_url(TIKTOK_URL, "tiktok") == "https://www.tiktok.com/@chef/video/7301234567890"
    assert service.extract_shortcode(REEL_URL) == "C8abc_12-x"


async def test_oembed_caption_is_used_when_long_enough(service):
    oembed = OEmbedMetadata(caption=LONG_CAPTION, thumbnail="https://scontent.cdninstagram.com/t.jpg")
    with patch.object(service, "fetch_oembed", AsyncMock(return_value=oembed)), \
            patch("recipe_parser.services.social.render_social_page", AsyncMock()) as render:
        content = await service.fetch_content(REEL_URL)

    assert content.success
    assert content.method == "oembed"
    assert content.text == LONG_CAPTION
    assert content.images == ["https://scontent.cdninstagram.com/t.jpg"]
    render.assert_not_awaited()


async def test_short_oembed_caption_falls_back_to_browser(service):
    short = OEmbedMetadata(caption="Best pasta ever!! Link in bio ok", thumbnail="https://p16.tiktokcdn.com/thumb.jpg")
    assert len(short.caption) < 50
    page = RenderedPage(
        html="<html></html>",
        caption=LONG_CAPTION,
        images=["https://p16.tiktokcdn.com/thumb.jpg", "https://p16.tiktokcdn.com/post.jpg"],
    )
    with patch.object(service, "fetch_oembed", AsyncMock(return_value=short)), \
            patch("recipe_parser.services.social.render_social_page", AsyncMock(return_value=page)) as render:
        content = await service.fetch_content(TIKTOK_URL)

    render.assert_awaited_once_with("https://www.tiktok.com/@chef/video/7301234567890")
    assert content.success
    assert content.method == "browser_caption"
    assert content.images == ["https://p16.tiktokcdn.com/thumb.jpg", "https://p16.tiktokcdn.com/post.jpg"]


async def test_page_text_is_last_resort(service):
    body = "Step by step: " + "whisk eggs, fold in flour, bake until golden. " * 4
    page = RenderedPage(html=f"<html><body><main>{body}</main></body></html>", caption=None)
    with patch.object(service, "fetch_oembed", AsyncMock(return_value=OEmbedMetadata())), \
            patch("recipe_parser.services.social.render_social_page", AsyncMock(return_value=page)):
        content = await service.fetch_content("https://www.instagram.com/p/XYZ123/")

    assert content.success
    assert content.method == "page_text"
    assert content.text.startswith("Step by step:")


async def test_nothing_usable_is_no_content(service):
    page = RenderedPage(html="<html><body>Log in</body></html>", caption="Log in to see")
    with patch.object(service, "fetch_oembed", AsyncMock(return_value=OEmbedMetadata())), \
            patch("recipe_parser.services.social.render_social_page", AsyncMock(return_value=page)):
        content = await service.fetch_content("https://www.instagram.com/p/XYZ123/")

    assert not content.success
    assert content.error_code == errors.NO_CONTENT


async def test_browser_failure_is_platform_error(service):
    with patch.object(service, "fetch_oembed", AsyncMock(return_value=OEmbedMetadata())), \
            patch("recipe_parser.services.social.render_social_page",
                  AsyncMock(side_effect=PlaywrightError("net::ERR_ABORTED"))):
        content = await service.fetch_content(TIKTOK_URL)

    assert not content.success
    assert content.error_code == errors.TIKTOK_PARSE_FAILED


async def test_instagram_profile_links_are_unsupported(service):
    with patch.object(service, "fetch_oembed", AsyncMock()) as oembed:
        content = await service.fetch_content("https://www.instagram.com/some.chef/")

    assert content.error_code == errors.UNSUPPORTED_URL
    oembed.assert_not_awaited()


def test_extract_caption_order():
    og = '<meta property="og:description" content="From og tags"><meta name="description" content="From meta">'
    assert extract_caption(f"<html><head>{og}</head></html>") == "From og tags"
    assert extract_caption('<html><head><meta name="description" content="From meta"></head></html>') == "From meta"

    long_span = "x" * 80
    html = f"<html><body><article><span>short</span><span>{long_span}</span></article></body></html>"
    assert extract_caption(html) == long_span
    assert extract_caption("<html><body><article><span>short</span></article></body></html>") is None


def test_extract_social_images():
    html = """
    <html><body>
      <img src="https://scontent.cdninstagram.com/post.jpg">
      <img src="https://scontent.cdninstagram.com/profile_pic.jpg">
      <img src="https://other.example.com/ad.jpg">
      <video poster="https://p16.tiktokcdn.com/poster.jpg"></video>
    </body></html>
    """
    assert extract_social_images(html) == [
        "https://scontent.cdninstagram.com/post.jpg",
        "https://p16.tiktokcdn.com/poster.jpg",
    ]
