"""Tests for page cleaning, image candidates and step image hints."""

import json

from recipe_parser.services.html_cleaner import (
    MAX_CONTENT_LENGTH,
    clean_html,
    extract_image_urls,
    extract_step_image_context,
    extract_text,
)


BASE_URL = "https://cooking.example.com/recipes/pancakes"


def test_clean_html_prefers_article_and_drops_noise():
    html = """
    <html><body>
      <header>Site header</header>
      <nav>Menu</nav>
      <div class="sidebar">Popular posts</div>
      <article>
        <h1>Fluffy   Pancakes</h1>
        <script>track()</script>
        <div class="ads">Buy things</div>
        <p>Whisk the flour and milk.</p>
      </article>
      <footer>Footer</footer>
    </body></html>
    """
    text = clean_html(html)
    assert text == "Fluffy Pancakes Whisk the flour and milk."


def test_clean_html_falls_back_to_body():
    html = "<html><body><div><p>Just a plain page</p><style>p{}</style></div></body></html>"
    assert clean_html(html) == "Just a plain page"


def test_clean_html_is_capped():
    html = f"<html><body><main>{'word ' * 5000}</main></body></html>"
    assert len(clean_html(html)) == MAX_CONTENT_LENGTH


def test_extract_text_keeps_layout_elements():
    html = "<html><body><nav>Menu</nav><p>Body</p><script>x()</script></body></html>"
    assert extract_text(html) == "Menu Body"


def test_extract_image_urls_filters_and_resolves():
    jsonld = {"@type": "Recipe", "image": {"@type": "ImageObject", "url": "https://cdn.example.com/hero.jpg"}}
    html = f"""
    <html><head><script type="application/ld+json">{json.dumps(jsonld)}</script></head><body>
      <img src="/img/stack.jpg" width="800">
      <img src="/img/stack.jpg">
      <img src="/img/site-logo.png">
      <img src="/img/tiny.jpg" width="40" height="40">
      <img src="data:image/gif;base64,R0lGODlhAQABAAAAACw=">
      <img src="https://cdn.example.com/hero.jpg">
    </body></html>
    """
    assert extract_image_urls(html, BASE_URL) == [
        "https://cooking.example.com/img/stack.jpg",
        "https://cdn.example.com/hero.jpg",
    ]


def test_step_image_context_inside_and_after_steps():
    html = """
    <html><body>
      <ol>
        <li>Whisk the dry ingredients together in a large bowl. <img src="/steps/1.jpg"></li>
        <li>Pour in the milk.</li>
        <li>Cook on a hot griddle until bubbles form.</li>
        <figure><img src="/steps/3.jpg"></figure>
      </ol>
    </body></html>
    """
    context = extract_step_image_context(html, BASE_URL)
    lines = context.strip().splitlines()
    assert lines[0] == "[STEP IMAGES]"
    assert lines[1] == 'Step 1 ("Whisk the dry ingredients together in a large bowl."): https://cooking.example.com/steps/1.jpg'
    assert lines[2] == 'Step 3 ("Cook on a hot griddle until bubbles form."): https://cooking.example.com/steps/3.jpg'
    assert len(lines) == 3


def test_step_image_context_truncates_snippet():
    long_step = "Stir " * 30
    html = f'<html><body><div class="instructions"><p class="step">{long_step}<img src="/s.jpg"></p></div></body></html>'
    context = extract_step_image_context(html, BASE_URL)
    snippet = context.split('("', 1)[1].split('")', 1)[0]
    assert len(snippet) == 60


def test_step_image_context_empty_without_images():
    html = "<html><body><ol><li>Mix.</li><li>Bake.</li></ol></body></html>"
    assert extract_step_image_context(html, BASE_URL) == ""
