"""Tests for headless browser rendering."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import TimeoutError as PWTimeoutError

from recipe_parser.services import browser as browser_module
from recipe_parser.services.browser import fetch_html_with_browser, requires_browser_rendering


def _fake_playwright(page):
    """Build a stand-in for async_playwright() wired to the given page."""
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=playwright)
    manager.__aexit__ = AsyncMock(return_value=False)
    return manager, browser


def _fake_page(html="<html><body>rendered</body></html>"):
    page = MagicMock()
    page.goto = AsyncMock()
    page.content = AsyncMock(return_value=html)
    page.locator.return_value.count = AsyncMock(return_value=0)
    return page


@pytest.mark.parametrize("url, expected", [
    ("https://www.instagram.com/p/C8abc123/", True),
    ("https://instagram.com/reel/xyz/", True),
    ("https://vm.tiktok.com/ZMabc/", True),
    ("https://www.seriouseats.com/lemon-chicken", False),
    ("https://notinstagram.com/p/1/", False),
    ("not a url", False),
])
def test_requires_browser_rendering(url, expected):
    assert requires_browser_rendering(url) is expected


async def test_returns_rendered_html_and_closes_browser():
    page = _fake_page()
    manager, browser = _fake_playwright(page)

    with patch.object(browser_module, "async_playwright", return_value=manager), \
            patch.object(browser_module, "SETTLE_SECONDS", 0):
        html = await fetch_html_with_browser("https://www.instagram.com/p/C8abc123/", timeout_ms=1000)

    assert html == "<html><body>rendered</body></html>"
    browser.close.assert_awaited_once()


async def test_navigation_timeout_uses_partial_render():
    page = _fake_page("<html>partial</html>")
    page.goto = AsyncMock(side_effect=PWTimeoutError("Timeout 1000ms exceeded"))
    manager, browser = _fake_playwright(page)

    with patch.object(browser_module, "async_playwright", return_value=manager), \
            patch.object(browser_module, "SETTLE_SECONDS", 0):
        html = await fetch_html_with_browser("https://www.tiktok.com/@chef/video/1", timeout_ms=1000)

    assert html == "<html>partial</html>"
    browser.close.assert_awaited_once()


async def test_browser_closed_when_rendering_fails():
    page = _fake_page()
    page.content = AsyncMock(side_effect=RuntimeError("page crashed"))
    manager, browser = _fake_playwright(page)

    with patch.object(browser_module, "async_playwright", return_value=manager), \
            patch.object(browser_module, "SETTLE_SECONDS", 0):
        with pytest.raises(RuntimeError):
            await fetch_html_with_browser("https://www.instagram.com/p/C8abc123/", timeout_ms=1000)

    browser.close.assert_awaited_once()
