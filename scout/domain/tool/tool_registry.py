from typing import Dict, List, Any, Optional

from scout.domain.errors import UnknownToolError
from scout.domain.tool.base_tool import ToolAdapter
from scout.domain.tool.lookup_tools import (
    SearchBackend, WebSearchTool, EncyclopediaTool, VideoSearchTool
)
from scout.infrastructure.observability.event_sink import EventSink


class ToolRegistry:
    """Static registry of tool adapters, selected by name"""

    def __init__(self):
        self.tools: Dict[str, ToolAdapter] = {}
        self.tool_categories: Dict[str, List[str]] = {}

    @classmethod
    def default(
        cls,
        sink: EventSink,
        timeout: float = 15.0,
        backends: Optional[Dict[str, SearchBackend]] = None
    ) -> "ToolRegistry":
        """Registry with the web, encyclopedia and video lookup tools"""

        backends = backends or {}
        registry = cls()
        for tool_cls in (WebSearchTool, EncyclopediaTool, VideoSearchTool):
            registry.register(tool_cls(sink, backend=backends.get(tool_cls.name), timeout=timeout))
        return registry

    def register(self, tool: ToolAdapter):
        """Register a tool, replacing any tool with the same name"""

        if not tool.name:
            raise ValueError("tool must have a name")

        previous = self.tools.get(tool.name)
        if previous is not None:
            self.tool_categories[previous.category].remove(tool.name)

        self.tools[tool.name] = tool
        self.tool_categories.setdefault(tool.category, []).append(tool.name)

    def get(self, name: str) -> ToolAdapter:
        tool = self.tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def names(self) -> List[str]:
        return list(self.tools)

    def describe(self) -> List[Dict[str, Any]]:
        """Descriptions of all tools, in registration order"""

        return [tool.get_info() for tool in self.tools.values()]

    def get_tools_by_category(self, category: str) -> List[ToolAdapter]:
        return [self.tools[name] for name in self.tool_categories.get(category, [])]

    def __contains__(self, name: str) -> bool:
        return name in self.tools

    def __len__(self) -> int:
        return len(self.tools)
