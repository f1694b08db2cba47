from typing import Awaitable, Callable, Optional

from scout.domain.tool.base_tool import ToolAdapter
from scout.domain.tool.search_backends import (
    DuckDuckGoTextSearch, DuckDuckGoVideoSearch, WikipediaSummarySearch
)
from scout.infrastructure.observability.event_sink import EventSink

SearchBackend = Callable[[str], Awaitable[str]]


class LookupTool(ToolAdapter):
    """Tool adapter delegating to an async search backend"""

    def __init__(self, sink: EventSink, backend: SearchBackend, timeout: float = 15.0):
        super().__init__(sink, timeout=timeout)
        self.backend = backend

    async def _search(self, query: str) -> str:
        return await self.backend(query)


class WebSearchTool(LookupTool):
    name = "web_search"
    description = (
        "Search the web for current or general information. "
        "Use for recent events, facts and anything not covered by the encyclopedia."
    )

    def __init__(self, sink: EventSink, backend: Optional[SearchBackend] = None, timeout: float = 15.0):
        super().__init__(sink, backend or DuckDuckGoTextSearch(), timeout=timeout)


class EncyclopediaTool(LookupTool):
    name = "encyclopedia"
    description = (
        "Look up an encyclopedia (Wikipedia) article summary. "
        "Use for definitions and background descriptions of a topic."
    )
    category = "reference"

    def __init__(self, sink: EventSink, backend: Optional[SearchBackend] = None, timeout: float = 15.0):
        super().__init__(sink, backend or WikipediaSummarySearch(), timeout=timeout)


class VideoSearchTool(LookupTool):
    name = "video_search"
    description = (
        "Search for videos about a topic. Returns titles, publishers and links. "
        "Use when the user asks for a video or visual explanation."
    )
    category = "media"

    def __init__(self, sink: EventSink, backend: Optional[SearchBackend] = None, timeout: float = 15.0):
        super().__init__(sink, backend or DuckDuckGoVideoSearch(), timeout=timeout)
