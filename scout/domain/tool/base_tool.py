from abc import ABC, abstractmethod
from typing import Dict, Any
import asyncio
import time

from scout.domain.errors import ToolError
from scout.domain.models.events import LogEvent
from scout.infrastructure.observability.event_sink import EventSink

RESULT_PREVIEW_CHARS = 300


def truncate(text: str, limit: int = RESULT_PREVIEW_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class ToolAdapter(ABC):
    """Uniform invoke(query) -> text contract around an external lookup"""

    name: str = ""
    description: str = ""
    category: str = "search"

    def __init__(self, sink: EventSink, timeout: float = 15.0):
        self.sink = sink
        self.timeout = timeout

    async def invoke(self, query: str) -> str:
        """Run the lookup, emitting start and end-or-error events.

        Raises:
            ToolError: on empty query, timeout, malformed response or
                upstream failure.
        """

        query = (query or "").strip()
        self.sink.emit(LogEvent.info("tool_start", tool=self.name, query=query))
        started = time.monotonic()

        try:
            if not query:
                raise ToolError(self.name, "empty query")
            result = await asyncio.wait_for(self._search(query), timeout=self.timeout)
            if not isinstance(result, str) or not result.strip():
                raise ToolError(self.name, "malformed response")
        except ToolError as e:
            self._emit_error(query, e, started)
            raise
        except asyncio.TimeoutError as e:
            error = ToolError(self.name, f"timed out after {self.timeout:g}s")
            self._emit_error(query, error, started)
            raise error from e
        except Exception as e:
            error = ToolError(self.name, f"upstream unavailable: {e}")
            self._emit_error(query, error, started)
            raise error from e

        self.sink.emit(LogEvent.info(
            "tool_end",
            tool=self.name,
            query=query,
            result=truncate(result),
            result_length=len(result),
            duration_ms=_elapsed_ms(started)
        ))
        return result

    def _emit_error(self, query: str, error: ToolError, started: float):
        self.sink.emit(LogEvent.error(
            "tool_error",
            tool=self.name,
            query=query,
            error=error.reason,
            duration_ms=_elapsed_ms(started)
        ))

    @abstractmethod
    async def _search(self, query: str) -> str:
        """Call the external capability and return its text response"""
        pass

    def get_info(self) -> Dict[str, Any]:
        """Tool description in the function-calling schema the engine binds"""
        return {
            "id": self.name,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search query"}
                },
                "required": ["query"]
            }
        }


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 2)
