"""
factory - wires the orchestrator and its collaborators from Settings.
"""

from typing import Optional

from langchain_core.language_models import BaseChatModel
from langgraph.store.base import BaseStore

from scout.domain.context.memory.checkpoint_store import CheckpointStore
from scout.domain.orchestration.core.main_agent import AgentOrchestrator
from scout.domain.orchestration.engine.chat_model_engine import ChatModelEngine
from scout.domain.tool.tool_registry import ToolRegistry
from scout.infrastructure.config import Settings
from scout.infrastructure.observability.event_sink import EventSink, LogBackend, StructlogBackend
from scout.infrastructure.observability.logging import setup_logging
from scout.infrastructure.observability.loki import LokiBackend


def build_sink(settings: Settings, backend: Optional[LogBackend] = None) -> EventSink:
    if backend is None:
        if settings.loki_url:
            backend = LokiBackend(settings.loki_url, application=settings.loki_app_label)
        else:
            backend = StructlogBackend()
    return EventSink(backend, max_queue=settings.event_queue_size)


def build_orchestrator(
    llm: BaseChatModel,
    settings: Optional[Settings] = None,
    store: Optional[BaseStore] = None,
    backend: Optional[LogBackend] = None
) -> AgentOrchestrator:
    """Build an orchestrator around a tool-calling chat model"""

    settings = settings or Settings.from_env()
    setup_logging(settings)
    sink = build_sink(settings, backend)
    return AgentOrchestrator(
        engine=ChatModelEngine(llm),
        tools=ToolRegistry.default(sink, timeout=settings.tool_timeout),
        memory=CheckpointStore(store),
        sink=sink,
        max_steps=settings.max_steps,
    )
