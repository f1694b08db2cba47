from typing import Callable, Optional, Set, AsyncGenerator, AsyncIterator
from contextlib import aclosing
import asyncio
import functools
import structlog

from scout.domain.errors import (
    AgentError, EngineError, StepLimitExceeded, ToolError, CheckpointLoadError,
    ConversationBusyError
)
from scout.domain.context.memory.checkpoint_store import CheckpointStore
from scout.domain.models.conversation import Conversation, Turn
from scout.domain.models.events import LogEvent
from scout.domain.orchestration.engine.base_engine import (
    EngineOutput, ReasoningContext, ReasoningEngine, ToolCallRequest
)
from scout.domain.streaming.stream_interceptor import StreamInterceptor, TurnHooks
from scout.domain.tool.tool_registry import ToolRegistry
from scout.infrastructure.observability.event_sink import EventSink

logger = structlog.get_logger(__name__)

HooksFactory = Callable[[str, str], TurnHooks]

_DONE = object()


class AgentOrchestrator:
    """Reason/act/observe loop with per-turn checkpointing.

    One turn in flight per conversation id: a second ``stream`` call on a
    busy id fails fast with ConversationBusyError.
    """

    def __init__(
        self,
        engine: ReasoningEngine,
        tools: ToolRegistry,
        memory: CheckpointStore,
        sink: EventSink,
        max_steps: int = 12,
        hooks_factory: Optional[HooksFactory] = None
    ):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.engine = engine
        self.tools = tools
        self.memory = memory
        self.sink = sink
        self.max_steps = max_steps
        self.hooks_factory = hooks_factory or self._default_hooks
        self._in_flight: Set[str] = set()

    def _default_hooks(self, conversation_id: str, turn_id: str) -> TurnHooks:
        return StreamInterceptor(self.sink, conversation_id, turn_id)

    def is_busy(self, conversation_id: str) -> bool:
        return conversation_id in self._in_flight

    async def stream(self, question: str, conversation_id: str) -> AsyncIterator[str]:
        """Answer ``question`` within ``conversation_id``, yielding tokens as they are produced.

        The checkpoint is committed before the iterator is exhausted. Any
        failure ends the iterator with an exception after the tokens already
        delivered; abandoning the iterator leaves the checkpoint untouched.
        """

        question = (question or "").strip()
        if not question:
            raise ValueError("question is required")
        if not conversation_id:
            raise ValueError("conversation_id is required")

        if conversation_id in self._in_flight:
            self.sink.emit(LogEvent.warning("conversation_busy", conversation_id=conversation_id))
            raise ConversationBusyError(conversation_id)
        self._in_flight.add(conversation_id)

        turn: Optional[Turn] = None
        hooks: Optional[TurnHooks] = None
        finished = False
        try:
            conversation = await self._load(conversation_id)
            turn = Turn(question=question)
            hooks = self.hooks_factory(conversation_id, turn.id)
            context = ReasoningContext(
                conversation_id=conversation_id,
                question=question,
                history=list(conversation.turns),
                tools=self.tools.describe(),
                turn=turn,
                engine_state=conversation.engine_state
            )
            hooks.on_turn_start({
                "question": question,
                "history_turns": len(conversation.turns),
                "checkpoint_version": conversation.version,
            })

            try:
                async with aclosing(self._run_steps(context, turn, hooks)) as tokens:
                    async for token in tokens:
                        yield token

                answer = "".join(step.text for step in turn.steps)
                committed = conversation.with_turn(turn.completed(answer), context.engine_state)
                await self.memory.save(committed)
                turn.complete(answer)
            except AgentError as e:
                self._fail(turn, hooks, e)
                raise

            finished = True
            hooks.on_turn_end({
                **turn.get_summary(),
                "checkpoint_version": committed.version,
            })
            logger.info(
                "Turn completed",
                conversation_id=conversation_id,
                turn_id=turn.id,
                steps=len(turn.steps)
            )
        finally:
            self._in_flight.discard(conversation_id)
            if not finished and turn is not None and turn.ended_at is None:
                # Caller stopped consuming (aclose, garbage collection or cancellation).
                self.sink.emit(LogEvent.warning(
                    "turn_abandoned",
                    conversation_id=conversation_id,
                    turn_id=turn.id,
                    steps=len(turn.steps)
                ))

    async def _load(self, conversation_id: str) -> Conversation:
        """Load prior state; absent or unreadable checkpoints start an empty conversation"""

        try:
            conversation = await self.memory.load(conversation_id)
        except CheckpointLoadError as e:
            logger.warning("Checkpoint load failed", conversation_id=conversation_id, error=str(e))
            self.sink.emit(LogEvent.warning(
                "checkpoint_load_failed",
                conversation_id=conversation_id,
                error=e.reason
            ))
            conversation = None

        if conversation is None:
            return Conversation(conversation_id=conversation_id)
        return conversation

    async def _run_steps(
        self,
        context: ReasoningContext,
        turn: Turn,
        hooks: TurnHooks
    ) -> AsyncGenerator[str, None]:
        """Drive the engine generator: forward tokens, dispatch tool calls"""

        agen = self.engine.generate(context)
        try:
            item = await self._advance(agen, None)
            while item is not _DONE:
                if isinstance(item, ToolCallRequest):
                    self._check_step_budget(turn)
                    observation = await self._dispatch(item, context, turn, hooks)
                    item = await self._advance(agen, observation)
                    continue

                if not isinstance(item, str):
                    raise EngineError(f"engine produced unsupported output {type(item).__name__}")
                if turn.needs_token_step():
                    self._check_step_budget(turn)
                turn.add_token(item)
                yield hooks.on_token(item)
                item = await self._advance(agen, None)
        finally:
            await agen.aclose()

    async def _advance(self, agen: AsyncGenerator[EngineOutput, Optional[str]], value: Optional[str]):
        try:
            return await agen.asend(value)
        except StopAsyncIteration:
            return _DONE
        except AgentError:
            raise
        except Exception as e:
            raise EngineError(f"reasoning engine failed: {e}") from e

    def _check_step_budget(self, turn: Turn):
        if len(turn.steps) >= self.max_steps:
            raise StepLimitExceeded(self.max_steps)

    async def _dispatch(
        self,
        request: ToolCallRequest,
        context: ReasoningContext,
        turn: Turn,
        hooks: TurnHooks
    ) -> str:
        """Run one tool call to completion and record it as an observation step"""

        try:
            tool = self.tools.get(request.tool)
            # Shielded: a caller cancelling the turn does not interrupt the external call.
            task = asyncio.ensure_future(tool.invoke(request.query))
            try:
                result = await asyncio.shield(task)
            except asyncio.CancelledError:
                task.add_done_callback(functools.partial(self._on_abandoned_tool, request, context))
                raise
        except ToolError as e:
            if request.tool not in self.tools:
                self.sink.emit(LogEvent.error(
                    "tool_error",
                    conversation_id=context.conversation_id,
                    tool=request.tool,
                    query=request.query,
                    error=e.reason
                ))
            hooks.on_tool_call(request.tool, request.query, error=e)
            observation = f"tool failed: {e.reason}"
            turn.add_tool_call(request.tool, request.query, observation, call_id=request.call_id, error=e.reason)
            return observation

        hooks.on_tool_call(request.tool, request.query, result=result)
        turn.add_tool_call(request.tool, request.query, result, call_id=request.call_id)
        return result

    def _on_abandoned_tool(self, request: ToolCallRequest, context: ReasoningContext, task: asyncio.Future):
        """Collect the outcome of a tool call that outlived its turn"""

        if task.cancelled():
            return
        error = task.exception()
        self.sink.emit(LogEvent.warning(
            "tool_abandoned",
            conversation_id=context.conversation_id,
            tool=request.tool,
            query=request.query,
            error=str(error) if error is not None else None
        ))

    def _fail(self, turn: Turn, hooks: TurnHooks, error: AgentError):
        turn.fail(error.message)
        hooks.on_error(error)
        logger.warning(
            "Turn failed",
            turn_id=turn.id,
            error_type=type(error).__name__,
            error=error.message
        )
