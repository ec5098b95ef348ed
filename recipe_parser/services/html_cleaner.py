"""
HTML preparation for AI extraction.

Turns a raw recipe page into:
1. Bounded main-content text for the prompt
2. Candidate recipe image URLs
3. A [STEP IMAGES] hint block pairing step photos with step text
"""

import json
import re
from typing import Any, Iterator, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


MAX_CONTENT_LENGTH = 15000
MIN_IMAGE_DIMENSION = 100
STEP_SNIPPET_LENGTH = 60

NOISE_TAGS = ["script", "style", "nav", "footer", "header", "aside", "noscript", "iframe"]

NOISE_SELECTORS = ", ".join([
    ".ads",
    ".comments",
    ".sidebar",
    ".related-posts",
    ".social-share",
    '[class*="advertisement"]',
    '[class*="promo"]',
    '[id*="ad-"]',
    '[role="navigation"]',
    '[role="banner"]',
    '[role="contentinfo"]',
])

MAIN_CONTENT_SELECTOR = 'article, main, [role="main"], .recipe, .post-content'

DECORATIVE_IMAGE_PATTERN = re.compile(r"logo|icon|avatar|badge|placeholder", re.IGNORECASE)
STEP_CLASS_PATTERN = re.compile(r"step|instruction|direction", re.IGNORECASE)
WHITESPACE = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return WHITESPACE.sub(" ", text).strip()


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def clean_html(html: str) -> str:
    """Extract the page's main text with navigation, ads and scripts removed."""
    soup = _soup(html)

    for tag in soup.find_all(NOISE_TAGS):
        tag.decompose()
    for element in soup.select(NOISE_SELECTORS):
        if not element.decomposed:
            element.decompose()

    main = soup.select_one(MAIN_CONTENT_SELECTOR) or soup.body or soup
    text = _collapse(main.get_text(separator=" "))
    return text[:MAX_CONTENT_LENGTH]


def extract_text(html: str) -> str:
    """Plain body text, only scripts and styles removed."""
    soup = _soup(html)
    for tag in soup.find_all(["script", "style", "noscript"]):
        tag.decompose()
    body = soup.body or soup
    return _collapse(body.get_text(separator=" "))


# ============================================================
# Image Candidates
# ============================================================

def _declared_too_small(img: Tag) -> bool:
    for attr in ("width", "height"):
        value = img.get(attr)
        if value is None:
            continue
        match = re.match(r"\s*(\d+)", str(value))
        if match and int(match.group(1)) < MIN_IMAGE_DIMENSION:
            return True
    return False


def _resolve_image(src: Optional[str], base_url: str) -> Optional[str]:
    """Absolute http(s) URL for a usable image source, else None."""
    if not src or not isinstance(src, str):
        return None
    src = src.strip()
    # Lazy-load placeholders carry an inline data URI until scripts run
    if not src or src.startswith("data:"):
        return None
    if DECORATIVE_IMAGE_PATTERN.search(src):
        return None
    absolute = urljoin(base_url, src)
    if not absolute.startswith(("http://", "https://")):
        return None
    return absolute


def _iter_jsonld_images(node: Any) -> Iterator[Any]:
    """Yield every value stored under an `image` key in a JSON-LD tree."""
    if isinstance(node, list):
        for item in node:
            yield from _iter_jsonld_images(item)
    elif isinstance(node, dict):
        for key, value in node.items():
            if key == "image":
                yield value
            elif isinstance(value, (dict, list)):
                yield from _iter_jsonld_images(value)


def image_value_urls(value: Any) -> list[str]:
    """Flatten a schema.org image value (string, ImageObject or list)."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl") or value.get("@id")
        return [url] if isinstance(url, str) else []
    if isinstance(value, list):
        urls = []
        for item in value:
            urls.extend(image_value_urls(item))
        return urls
    return []


def load_jsonld_blocks(soup: BeautifulSoup) -> list[Any]:
    """Parse every ld+json script, skipping blocks that are not valid JSON."""
    blocks = []
    for script in soup.find_all("script", type="application/ld+json"):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            blocks.append(json.loads(raw))
        except json.JSONDecodeError:
            continue
    return blocks


def extract_image_urls(html: str, base_url: str) -> list[str]:
    """
    Collect candidate recipe images from <img> tags and JSON-LD.

    Args:
        html: Raw page HTML
        base_url: Page URL used to resolve relative sources

    Returns:
        Absolute, de-duplicated image URLs in page order
    """
    soup = _soup(html)
    urls: list[str] = []
    seen = set()

    def add(candidate: Optional[str]):
        if candidate and candidate not in seen:
            seen.add(candidate)
            urls.append(candidate)

    for img in soup.find_all("img"):
        if _declared_too_small(img):
            continue
        add(_resolve_image(img.get("src"), base_url))

    for block in load_jsonld_blocks(soup):
        for value in _iter_jsonld_images(block):
            for url in image_value_urls(value):
                add(_resolve_image(url, base_url))

    return urls


# ============================================================
# Step Image Hints
# ============================================================

def _has_step_class(element: Tag) -> bool:
    classes = element.get("class") or []
    return any(STEP_CLASS_PATTERN.search(c) for c in classes)


def _is_step_element(element: Tag) -> bool:
    if element.name == "li":
        if element.parent is not None and element.parent.name == "ol":
            return True
        return _has_step_class(element) or any(
            _has_step_class(parent) for parent in element.parents if isinstance(parent, Tag)
        )
    return element.name in ("div", "p", "section") and _has_step_class(element)


def _find_step_elements(soup: BeautifulSoup) -> list[Tag]:
    items = [li for li in soup.find_all("li") if _is_step_element(li)]
    if items:
        return items
    # No list markup: innermost step-classed blocks
    blocks = [el for el in soup.find_all(["div", "p", "section"]) if _is_step_element(el)]
    block_ids = {id(el) for el in blocks}
    return [
        el for el in blocks
        if not any(id(child) in block_ids for child in el.find_all(["div", "p", "section"]))
    ]


def _step_image(step: Tag, base_url: str) -> Optional[str]:
    """First usable image inside the step, or in the element right after it."""
    for img in step.find_all("img"):
        url = _resolve_image(img.get("src"), base_url)
        if url and not _declared_too_small(img):
            return url

    following = step.find_next_sibling()
    if following is None:
        return None
    if following.name == "img":
        candidates = [following]
    elif following.name in ("figure", "div", "p"):
        candidates = following.find_all("img")
    else:
        return None
    for img in candidates:
        url = _resolve_image(img.get("src"), base_url)
        if url and not _declared_too_small(img):
            return url
    return None


def extract_step_image_context(html: str, base_url: str) -> str:
    """
    Build the [STEP IMAGES] hint block appended to AI prompts.

    Each line reads: Step N ("<first words of the step>"): <image url>
    Returns an empty string when no step has an associated image.
    """
    soup = _soup(html)
    lines = []
    step_number = 0

    for step in _find_step_elements(soup):
        text = _collapse(step.get_text(separator=" "))
        if not text:
            continue
        step_number += 1
        url = _step_image(step, base_url)
        if url:
            lines.append(f'Step {step_number} ("{text[:STEP_SNIPPET_LENGTH]}"): {url}')

    if not lines:
        return ""
    return "\n\n[STEP IMAGES]\n" + "\n".join(lines)
