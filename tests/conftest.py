"""
Shared fakes: scripted reasoning engine, recording/failing log backends,
fake search backends and a streaming tool-calling chat model.
"""

import asyncio
from typing import Any, Callable, List, Optional, Union

import pytest
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessageChunk, BaseMessage
from langchain_core.outputs import ChatGenerationChunk
from pydantic import Field

from scout.domain.context.memory.checkpoint_store import CheckpointStore
from scout.domain.errors import SinkError
from scout.domain.models.events import LogEvent, Severity
from scout.domain.orchestration.core.main_agent import AgentOrchestrator
from scout.domain.orchestration.engine.base_engine import ReasoningContext, ReasoningEngine, ToolCallRequest
from scout.domain.tool.tool_registry import ToolRegistry
from scout.infrastructure.observability.event_sink import EventSink


class RecordingBackend:
    """Keeps every shipped event in memory"""

    def __init__(self):
        self.events: List[LogEvent] = []
        self.closed = False

    async def ship(self, event: LogEvent) -> None:
        self.events.append(event)

    async def aclose(self) -> None:
        self.closed = True

    def messages(self) -> List[str]:
        return [e.message for e in self.events]

    def named(self, message: str) -> List[LogEvent]:
        return [e for e in self.events if e.message == message]

    def errors(self) -> List[LogEvent]:
        return [e for e in self.events if e.severity == Severity.ERROR]


class FailingBackend:
    """Backend that is always unreachable"""

    def __init__(self):
        self.attempts = 0

    async def ship(self, event: LogEvent) -> None:
        self.attempts += 1
        raise SinkError("log backend unreachable")

    async def aclose(self) -> None:
        pass


class FakeSearch:
    """Async search backend with a canned answer"""

    def __init__(self, result: Any = "result", error: Optional[Exception] = None, delay: float = 0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.queries: List[str] = []
        self.started = asyncio.Event()
        self.finished = asyncio.Event()

    async def __call__(self, query: str) -> str:
        self.queries.append(query)
        self.started.set()
        if self.delay:
            await asyncio.sleep(self.delay)
        self.finished.set()
        if self.error is not None:
            raise self.error
        return self.result


Script = Union[List[Any], Callable[[ReasoningContext], List[Any]]]


class ScriptedEngine(ReasoningEngine):
    """Replays one script per turn.

    A script is a list of tokens, ToolCallRequests and exceptions (raised when
    reached), or a callable building that list from the context.
    """

    def __init__(self, *scripts: Script):
        self.scripts = list(scripts)
        self.contexts: List[ReasoningContext] = []
        self.observations: List[Optional[str]] = []

    async def generate(self, context: ReasoningContext):
        self.contexts.append(context)
        script = self.scripts[min(len(self.contexts), len(self.scripts)) - 1]
        items = script(context) if callable(script) else script
        for item in items:
            if isinstance(item, Exception):
                raise item
            observation = yield item
            if isinstance(item, ToolCallRequest):
                self.observations.append(observation)


class FakeToolCallingModel(BaseChatModel):
    """Chat model that streams one pre-built list of chunks per call"""

    rounds: List[List[AIMessageChunk]] = Field(default_factory=list)
    calls: int = 0
    seen: List[List[BaseMessage]] = Field(default_factory=list)
    bound_tools: List[Any] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "fake-tool-calling"

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return self

    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        raise NotImplementedError("streaming only")

    async def _astream(self, messages, stop=None, run_manager=None, **kwargs):
        self.seen.append(list(messages))
        chunks = self.rounds[self.calls]
        self.calls += 1
        for chunk in chunks:
            yield ChatGenerationChunk(message=chunk)


def tool_call_chunk(name: str, query: str, call_id: str) -> AIMessageChunk:
    return AIMessageChunk(
        content="",
        tool_call_chunks=[{
            "name": name,
            "args": '{"query": "%s"}' % query,
            "id": call_id,
            "index": 0,
            "type": "tool_call_chunk",
        }],
    )


async def collect(stream) -> List[str]:
    return [token async for token in stream]


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def sink(backend: RecordingBackend) -> EventSink:
    return EventSink(backend)


@pytest.fixture
def searches() -> dict:
    return {
        "web_search": FakeSearch("1. Machine learning - overview\nURL: https://web.example/ml"),
        "encyclopedia": FakeSearch("Machine learning\nMachine learning is a field of study in artificial intelligence."),
        "video_search": FakeSearch("1. Machine Learning Explained (ML Channel) [10:02]\nURL: https://video.example/ml"),
    }


@pytest.fixture
def registry(sink: EventSink, searches: dict) -> ToolRegistry:
    return ToolRegistry.default(sink, timeout=1.0, backends=searches)


@pytest.fixture
def memory() -> CheckpointStore:
    return CheckpointStore()


@pytest.fixture
def make_orchestrator(registry: ToolRegistry, memory: CheckpointStore, sink: EventSink):
    def factory(engine: ReasoningEngine, **kwargs) -> AgentOrchestrator:
        kwargs.setdefault("tools", registry)
        kwargs.setdefault("memory", memory)
        kwargs.setdefault("sink", sink)
        return AgentOrchestrator(engine=engine, **kwargs)
    return factory
