"""Tests for page fetching with retries."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from recipe_parser.services import fetcher
from recipe_parser.services.fetcher import USER_AGENTS, fetch_html


URL = "https://www.example-recipes.com/recipes/pie"


class FakeTransportClient:
    """Stands in for httpx.AsyncClient, replaying queued outcomes."""

    def __init__(self, outcomes: list, seen_headers: list):
        self.outcomes = outcomes
        self.seen_headers = seen_headers

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def get(self, url, headers=None):
        self.seen_headers.append(headers)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _response(status: int, text: str = "") -> httpx.Response:
    return httpx.Response(status, text=text, request=httpx.Request("GET", URL))


@pytest.fixture
def fake_http():
    """Patch AsyncClient and asyncio.sleep; returns (outcomes, seen_headers, sleep_mock)."""
    outcomes, seen_headers = [], []
    sleep = AsyncMock()
    with patch.object(fetcher.httpx, "AsyncClient", lambda **kwargs: FakeTransportClient(outcomes, seen_headers)), \
            patch.object(fetcher.asyncio, "sleep", sleep):
        yield outcomes, seen_headers, sleep


async def test_success_first_try(fake_http):
    outcomes, _, sleep = fake_http
    outcomes.append(_response(200, "<html>ok</html>"))

    result = await fetch_html(URL)

    assert result.success
    assert result.html == "<html>ok</html>"
    assert result.attempts == 1
    sleep.assert_not_awaited()


async def test_retries_with_backoff_and_rotates_user_agent(fake_http):
    outcomes, seen_headers, sleep = fake_http
    outcomes.extend([
        httpx.ConnectError("boom"),
        _response(503),
        _response(200, "<html>finally</html>"),
    ])

    result = await fetch_html(URL, max_attempts=3, base_delay=0.5)

    assert result.success
    assert result.attempts == 3
    assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]
    agents = [h["User-Agent"] for h in seen_headers]
    assert len(set(agents)) == 3
    assert set(agents) <= set(USER_AGENTS)


async def test_gives_up_after_max_attempts(fake_http):
    outcomes, _, _ = fake_http
    outcomes.extend([_response(429), _response(429), _response(429)])

    result = await fetch_html(URL, max_attempts=3, base_delay=0)

    assert not result.success
    assert result.attempts == 3
    assert result.status_code == 429
    assert result.error == "Failed to fetch URL: 429 Too Many Requests"


async def test_not_found_is_not_retried(fake_http):
    outcomes, _, sleep = fake_http
    outcomes.extend([_response(404), _response(200, "never reached")])

    result = await fetch_html(URL, max_attempts=3)

    assert not result.success
    assert result.attempts == 1
    assert result.error_type == "fetch_404"
    assert result.error == "Failed to fetch URL: 404 Not Found"
    sleep.assert_not_awaited()


async def test_timeouts_exhaust_to_failure(fake_http):
    outcomes, _, _ = fake_http
    outcomes.extend([httpx.ReadTimeout("slow"), httpx.ReadTimeout("slow")])

    result = await fetch_html(URL, max_attempts=2, base_delay=0)

    assert not result.success
    assert result.error_type == "fetch_timeout"
