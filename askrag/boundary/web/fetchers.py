"""
Web fetchers used by lookup tools.

Encyclopedia and dictionary extracts via the MediaWiki API, DuckDuckGo
instant answers with an HTML snippet fallback, and generic page fetches.

Dependencies: httpx
System role: External knowledge sources for the tool gate
"""

import logging
import re
from urllib.parse import quote

import httpx

from askrag.boundary.web.html_text import html_to_text, strip_tags
from askrag.configs.tools import ToolSettings
from askrag.core.exceptions import ToolExecutionError

logger = logging.getLogger(__name__)

DDG_API_URL = "https://api.duckduckgo.com/"
DDG_HTML_URL = "https://html.duckduckgo.com/html/"
_SNIPPET_RE = re.compile(r'<a[^>]+class="result__snippet"[^>]*>(.*?)</a>', re.DOTALL)
MAX_RELATED_TOPICS = 5
MAX_SNIPPETS = 10


def expand_template(template: str, query: str) -> str:
    """Substitute the percent-encoded query for $q."""
    return template.replace("$q", quote(query, safe=""))


class WebFetcher:
    """
    HTTP fetchers sharing timeouts and user agent.

    Each call opens a short-lived httpx.AsyncClient so fetchers hold no
    connection state between requests.
    """

    def __init__(self, settings: ToolSettings) -> None:
        self.settings = settings
        self._headers = {"User-Agent": settings.user_agent}

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, headers=self._headers, follow_redirects=True)

    async def _mediawiki_extract(self, host: str, title: str, timeout: float) -> tuple[str, str]:
        params = {
            "action": "query",
            "prop": "extracts",
            "explaintext": "1",
            "redirects": "1",
            "titles": title,
            "format": "json",
        }
        try:
            async with self._client(timeout) as client:
                response = await client.get(f"https://{host}/w/api.php", params=params)
        except httpx.HTTPError as e:
            raise ToolExecutionError(f"request to {host} failed: {e}") from e
        if response.status_code != 200:
            raise ToolExecutionError(f"{host} returned HTTP {response.status_code} for {title!r}")
        if "json" not in response.headers.get("content-type", ""):
            raise ToolExecutionError(f"{host} returned unexpected content for {title!r}")
        try:
            pages = response.json().get("query", {}).get("pages", {})
        except ValueError as e:
            raise ToolExecutionError(f"{host} JSON parse error for {title!r}: {e}") from e
        for page in pages.values():
            extract = page.get("extract") or ""
            if extract:
                return page.get("title", title), extract
        raise ToolExecutionError(f"no entry found on {host} for {title!r}")

    async def wikipedia(self, title: str, lang: str) -> str:
        """Plain-text article extract."""
        _, extract = await self._mediawiki_extract(
            f"{lang}.wikipedia.org", title, self.settings.http_timeout_seconds
        )
        return extract

    async def wiktionary(self, word: str, lang: str) -> str:
        """Dictionary entry for a single word."""
        title, extract = await self._mediawiki_extract(
            f"{lang}.wiktionary.org", word, self.settings.search_timeout_seconds
        )
        return f"Wiktionary: {title}\n\n{extract}"

    async def duckduckgo(self, query: str) -> str:
        """
        Instant answer for a query, falling back to result snippets.

        Raises:
            ToolExecutionError: If neither source yields text
        """
        timeout = self.settings.search_timeout_seconds
        params = {"q": query, "format": "json", "no_html": "1", "skip_disambig": "1"}
        try:
            async with self._client(timeout) as client:
                response = await client.get(DDG_API_URL, params=params)
                data = response.json() if response.status_code == 200 else {}
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"{__name__}:duckduckgo - Instant answer failed: {e}")
            data = {}

        parts: list[str] = []
        if data.get("Heading"):
            parts.append(f"# {data['Heading']}")
        if data.get("Abstract"):
            parts.append(data["Abstract"])
            if data.get("AbstractSource"):
                parts.append(f"(Source: {data['AbstractSource']} {data.get('AbstractURL', '')})".rstrip())
        if data.get("Answer"):
            parts.append(f"Answer: {data['Answer']}")
        topics = [t for t in data.get("RelatedTopics", []) if isinstance(t, dict) and t.get("Text")]
        parts.extend(f"- {t['Text']}" for t in topics[:MAX_RELATED_TOPICS])
        text = "\n\n".join(parts)
        if text.strip():
            return text
        return await self._duckduckgo_snippets(query)

    async def _duckduckgo_snippets(self, query: str) -> str:
        try:
            async with self._client(self.settings.search_timeout_seconds) as client:
                response = await client.get(DDG_HTML_URL, params={"q": query})
        except httpx.HTTPError as e:
            raise ToolExecutionError(f"DuckDuckGo HTML fallback failed: {e}") from e
        snippets = []
        for match in _SNIPPET_RE.findall(response.text)[:MAX_SNIPPETS]:
            snippet = strip_tags(match)
            if snippet:
                snippets.append(f"- {snippet}")
        if not snippets:
            raise ToolExecutionError(f"DuckDuckGo returned no results for {query!r}")
        return f'DuckDuckGo results for "{query}":\n\n' + "\n".join(snippets)

    async def fetch_page(self, url: str) -> str:
        """
        Fetch a page and reduce it to plain text.

        Raises:
            ToolExecutionError: On HTTP errors or if too little text remains
        """
        try:
            async with self._client(self.settings.http_timeout_seconds) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise ToolExecutionError(f"request failed: {e}") from e
        if response.status_code != 200:
            raise ToolExecutionError(f"HTTP {response.status_code} for {url}")
        text = html_to_text(response.text)
        if len(text) < self.settings.min_page_chars:
            raise ToolExecutionError(f"page too short after stripping HTML ({len(text)} chars)")
        return text

    async def template_api(self, template: str, query: str) -> str:
        return await self.fetch_page(expand_template(template, query))
