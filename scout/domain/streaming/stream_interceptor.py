from typing import Dict, Any, List, Optional, Protocol

from scout.domain.models.events import LogEvent
from scout.infrastructure.observability.event_sink import EventSink


class TurnHooks(Protocol):
    """Lifecycle hooks the orchestrator calls during one turn"""

    def on_turn_start(self, metadata: Dict[str, Any]) -> None:
        ...

    def on_token(self, token: str) -> str:
        ...

    def on_turn_end(self, metadata: Dict[str, Any]) -> None:
        ...

    def on_tool_call(
        self,
        tool_name: str,
        query: str,
        result: Optional[str] = None,
        error: Optional[Exception] = None
    ) -> None:
        ...

    def on_error(self, error: Exception) -> None:
        ...


class StreamInterceptor:
    """Forwards tokens to the caller's stream and mirrors every lifecycle point to the event sink"""

    def __init__(self, sink: EventSink, conversation_id: str, turn_id: str):
        self.sink = sink
        self.conversation_id = conversation_id
        self.turn_id = turn_id
        self.tokens: List[str] = []

    @property
    def answer(self) -> str:
        return "".join(self.tokens)

    def _context(self) -> Dict[str, Any]:
        return {"conversation_id": self.conversation_id, "turn_id": self.turn_id}

    def on_turn_start(self, metadata: Dict[str, Any]) -> None:
        self.sink.emit(LogEvent.info("turn_start", **{**metadata, **self._context()}))

    def on_token(self, token: str) -> str:
        """Record the token and hand it back unchanged for the caller"""

        index = len(self.tokens)
        self.tokens.append(token)
        self.sink.emit(LogEvent.info("token", **self._context(), index=index, token=token))
        return token

    def on_turn_end(self, metadata: Dict[str, Any]) -> None:
        # caller metadata may repeat turn_id; the interceptor's ids win
        self.sink.emit(LogEvent.info(
            "turn_end",
            **{**metadata, **self._context(), "token_count": len(self.tokens)}
        ))

    def on_tool_call(
        self,
        tool_name: str,
        query: str,
        result: Optional[str] = None,
        error: Optional[Exception] = None
    ) -> None:
        if error is None:
            self.sink.emit(LogEvent.info(
                "tool_call",
                **self._context(),
                tool=tool_name,
                query=query,
                result_length=len(result or "")
            ))
        else:
            self.sink.emit(LogEvent.warning(
                "tool_call",
                **self._context(),
                tool=tool_name,
                query=query,
                error=str(error)
            ))

    def on_error(self, error: Exception) -> None:
        self.sink.emit(LogEvent.error(
            "turn_error",
            **self._context(),
            error_type=type(error).__name__,
            error=str(error),
            token_count=len(self.tokens)
        ))
