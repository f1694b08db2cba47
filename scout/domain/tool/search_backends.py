"""
Default search backends for the lookup tools.

DuckDuckGo text and video search through ddgs (synchronous client, run in a
worker thread) and Wikipedia search + page summary through httpx.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote
import asyncio

import httpx
from ddgs import DDGS

WIKIPEDIA_API = "https://{lang}.wikipedia.org/w/api.php"
WIKIPEDIA_SUMMARY = "https://{lang}.wikipedia.org/api/rest_v1/page/summary/{title}"
USER_AGENT = "scout-agent/0.1 (lookup tool)"
HTTP_TIMEOUT = 15.0


def format_text_results(results: List[Dict[str, Any]]) -> str:
    if not results:
        return "No results found."
    lines = []
    for i, r in enumerate(results, 1):
        title = (r.get("title") or "").strip()
        body = (r.get("body") or "").strip()
        href = (r.get("href") or "").strip()
        lines.append(f"{i}. {title}\n{body}\nURL: {href}")
    return "\n\n".join(lines)


def format_video_results(results: List[Dict[str, Any]]) -> str:
    if not results:
        return "No videos found."
    lines = []
    for i, r in enumerate(results, 1):
        title = (r.get("title") or "").strip()
        url = (r.get("content") or r.get("url") or "").strip()
        publisher = (r.get("publisher") or r.get("uploader") or "").strip()
        duration = (r.get("duration") or "").strip()
        description = (r.get("description") or "").strip()
        header = f"{i}. {title}"
        if publisher:
            header += f" ({publisher})"
        if duration:
            header += f" [{duration}]"
        lines.append(f"{header}\n{description}\nURL: {url}")
    return "\n\n".join(lines)


class DuckDuckGoTextSearch:
    """Web search via ddgs"""

    def __init__(self, max_results: int = 5):
        self.max_results = max_results

    def _search_sync(self, query: str) -> List[Dict[str, Any]]:
        with DDGS() as ddgs:
            return list(ddgs.text(query, max_results=self.max_results))

    async def __call__(self, query: str) -> str:
        results = await asyncio.to_thread(self._search_sync, query)
        return format_text_results(results[: self.max_results])


class DuckDuckGoVideoSearch:
    """Video search via ddgs"""

    def __init__(self, max_results: int = 3):
        self.max_results = max_results

    def _search_sync(self, query: str) -> List[Dict[str, Any]]:
        with DDGS() as ddgs:
            return list(ddgs.videos(query, max_results=self.max_results))

    async def __call__(self, query: str) -> str:
        results = await asyncio.to_thread(self._search_sync, query)
        return format_video_results(results[: self.max_results])


class WikipediaSummarySearch:
    """Encyclopedia lookup: best matching article title, then its summary"""

    def __init__(self, lang: str = "en", timeout: float = HTTP_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.lang = lang
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, query: str) -> str:
        headers = {"User-Agent": USER_AGENT}
        async with httpx.AsyncClient(timeout=self.timeout, headers=headers, transport=self.transport) as client:
            search = await client.get(
                WIKIPEDIA_API.format(lang=self.lang),
                params={
                    "action": "query",
                    "list": "search",
                    "srsearch": query,
                    "srlimit": 1,
                    "format": "json",
                },
            )
            search.raise_for_status()
            hits = (search.json().get("query") or {}).get("search") or []
            if not hits:
                return f"No encyclopedia article found for: {query}."
            title = hits[0].get("title", query)

            summary = await client.get(
                WIKIPEDIA_SUMMARY.format(lang=self.lang, title=quote(title.replace(" ", "_"), safe=""))
            )
            summary.raise_for_status()
            data = summary.json()

        extract = (data.get("extract") or "").strip()
        page_url = ((data.get("content_urls") or {}).get("desktop") or {}).get("page", "")
        if not extract:
            return f"{title}: no summary available."
        parts = [f"{data.get('title') or title}", extract]
        if page_url:
            parts.append(f"URL: {page_url}")
        return "\n".join(parts)
