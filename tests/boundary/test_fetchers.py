"""
Test suite for the web fetchers.

HTTP is served by an httpx.MockTransport; no network access.

System role: Verification of lookup tool data sources
"""

from unittest.mock import patch

import httpx
import pytest

from askrag.boundary.web.fetchers import WebFetcher, expand_template
from askrag.boundary.web.html_text import html_to_text
from askrag.configs.tools import ToolSettings
from askrag.core.exceptions import ToolExecutionError


def _fetcher_with(handler) -> tuple[WebFetcher, patch]:
    fetcher = WebFetcher(ToolSettings(min_page_chars=10))
    transport = httpx.MockTransport(handler)
    patcher = patch.object(
        fetcher,
        "_client",
        lambda timeout: httpx.AsyncClient(transport=transport, timeout=timeout),
    )
    return fetcher, patcher


class TestHelpers:
    """Test suite for template expansion and HTML stripping."""

    def test_expand_template_should_percent_encode(self) -> None:
        assert expand_template("https://x.test/?q=$q", "a b/c") == "https://x.test/?q=a%20b%2Fc"

    def test_html_to_text_should_drop_layout_blocks(self) -> None:
        # Arrange
        document = "<html><script>var x;</script><nav>menu</nav><p>Hello &amp; welcome</p></html>"

        # Act
        text = html_to_text(document)

        # Assert
        assert text == "Hello & welcome"


class TestWikipedia:
    """Test suite for MediaWiki extracts."""

    @pytest.mark.asyncio
    async def test_should_return_extract(self) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.host == "de.wikipedia.org"
            assert request.url.params["titles"] == "Mars"
            return httpx.Response(200, json={"query": {"pages": {"1": {"title": "Mars", "extract": "Planet."}}}})

        fetcher, patcher = _fetcher_with(handler)

        # Act
        with patcher:
            text = await fetcher.wikipedia("Mars", "de")

        # Assert
        assert text == "Planet."

    @pytest.mark.asyncio
    async def test_missing_page_should_raise(self) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"query": {"pages": {"-1": {"title": "Nope", "missing": ""}}}})

        fetcher, patcher = _fetcher_with(handler)

        # Act & Assert
        with patcher, pytest.raises(ToolExecutionError):
            await fetcher.wikipedia("Nope", "en")


class TestDuckDuckGo:
    """Test suite for instant answers and snippet fallback."""

    @pytest.mark.asyncio
    async def test_instant_answer(self) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"Heading": "Paris", "Abstract": "Capital of France."})

        fetcher, patcher = _fetcher_with(handler)

        # Act
        with patcher:
            text = await fetcher.duckduckgo("capital of France")

        # Assert
        assert text == "# Paris\n\nCapital of France."

    @pytest.mark.asyncio
    async def test_should_fall_back_to_html_snippets(self) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "api.duckduckgo.com":
                return httpx.Response(200, json={})
            return httpx.Response(
                200, text='<a class="result__snippet" href="#">First <b>hit</b></a>'
            )

        fetcher, patcher = _fetcher_with(handler)

        # Act
        with patcher:
            text = await fetcher.duckduckgo("obscure")

        # Assert
        assert text == 'DuckDuckGo results for "obscure":\n\n- First hit'


class TestFetchPage:
    """Test suite for generic page fetches."""

    @pytest.mark.asyncio
    async def test_short_page_should_raise(self) -> None:
        # Arrange
        fetcher, patcher = _fetcher_with(lambda request: httpx.Response(200, text="<p>tiny</p>"))

        # Act & Assert
        with patcher, pytest.raises(ToolExecutionError, match="too short"):
            await fetcher.fetch_page("https://x.test/")

    @pytest.mark.asyncio
    async def test_http_error_status_should_raise(self) -> None:
        fetcher, patcher = _fetcher_with(lambda request: httpx.Response(404, text="missing"))
        with patcher, pytest.raises(ToolExecutionError, match="HTTP 404"):
            await fetcher.fetch_page("https://x.test/")
