"""
LangChain chat-model reasoning engine.

Each round streams the model with the registry tools bound. Content chunks
are yielded as tokens; tool-call chunks are accumulated and, once the round
ends, each call is yielded as a ToolCallRequest and its observation is fed
back to the model as a ToolMessage for the next round.
"""

from typing import Dict, Any, List, Optional, AsyncGenerator
import uuid

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage, AIMessageChunk, BaseMessage, HumanMessage, SystemMessage, ToolMessage
)
import structlog

from scout.domain.errors import EngineError
from scout.domain.models.conversation import Turn, StepKind, TurnStatus
from scout.domain.orchestration.engine.base_engine import (
    EngineOutput, ReasoningContext, ReasoningEngine, ToolCallRequest
)

logger = structlog.get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful research assistant. Decide for each question whether you can answer "
    "directly or need a lookup tool: web_search for current or general information, "
    "encyclopedia for descriptions and background, video_search for videos. "
    "Reuse results from earlier in the conversation instead of searching again. "
    "If a tool fails, try another tool or answer with what you know."
)


def _tool_schema(tool: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool["name"],
            "description": tool.get("description", ""),
            "parameters": tool.get("parameters", {"type": "object", "properties": {}}),
        },
    }


def _chunk_text(chunk: AIMessageChunk) -> str:
    """Text part of a streamed chunk (content may be a list of blocks)"""
    content = chunk.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def history_to_messages(history: List[Turn]) -> List[BaseMessage]:
    """Replay committed turns, including their tool observations"""
    messages: List[BaseMessage] = []
    for turn in history:
        if turn.status != TurnStatus.COMPLETED:
            continue
        messages.append(HumanMessage(content=turn.question))
        for step in turn.steps:
            if step.kind != StepKind.TOOL_CALL:
                continue
            call_id = step.call_id or f"call_{uuid.uuid4().hex[:12]}"
            messages.append(AIMessage(
                content="",
                tool_calls=[{"name": step.tool, "args": {"query": step.query}, "id": call_id}]
            ))
            messages.append(ToolMessage(content=step.observation or "", tool_call_id=call_id))
        messages.append(AIMessage(content=turn.answer))
    return messages


class ChatModelEngine(ReasoningEngine):
    """Reasoning engine backed by any tool-calling LangChain chat model"""

    def __init__(self, llm: BaseChatModel, system_prompt: str = DEFAULT_SYSTEM_PROMPT, max_rounds: int = 5):
        self.llm = llm
        self.system_prompt = system_prompt
        self.max_rounds = max_rounds

    def build_messages(self, context: ReasoningContext) -> List[BaseMessage]:
        return [
            SystemMessage(content=self.system_prompt),
            *history_to_messages(context.history),
            HumanMessage(content=context.question),
        ]

    async def generate(self, context: ReasoningContext) -> AsyncGenerator[EngineOutput, Optional[str]]:
        model = self.llm.bind_tools([_tool_schema(t) for t in context.tools]) if context.tools else self.llm
        messages = self.build_messages(context)

        for round_index in range(self.max_rounds):
            context.engine_state["model_calls"] = context.engine_state.get("model_calls", 0) + 1
            gathered: Optional[AIMessageChunk] = None

            async for chunk in model.astream(messages):
                gathered = chunk if gathered is None else gathered + chunk
                text = _chunk_text(chunk)
                if text:
                    yield text

            if gathered is None or not gathered.tool_calls:
                return

            logger.debug(
                "Model requested tools",
                conversation_id=context.conversation_id,
                round=round_index,
                tools=[tc["name"] for tc in gathered.tool_calls]
            )
            messages.append(AIMessage(content=gathered.content, tool_calls=gathered.tool_calls))
            for tool_call in gathered.tool_calls:
                call_id = tool_call.get("id") or f"call_{uuid.uuid4().hex[:12]}"
                query = str((tool_call.get("args") or {}).get("query", ""))
                observation = yield ToolCallRequest(tool=tool_call["name"], query=query, call_id=call_id)
                messages.append(ToolMessage(content=observation or "", tool_call_id=call_id))

        raise EngineError(f"model kept requesting tools after {self.max_rounds} rounds")
