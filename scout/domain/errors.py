"""
Agent error taxonomy.

Engine and checkpoint-save errors end a turn and reach the caller as a
terminal error on the token stream. Tool errors are turned into observations
for the engine. Sink errors never leave the event sink.
"""

from typing import Optional


class AgentError(Exception):
    """Base class for all agent errors"""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EngineError(AgentError):
    """Reasoning engine failed; fatal to the turn"""


class StepLimitExceeded(EngineError):
    """Turn needed more reasoning steps than allowed"""

    def __init__(self, max_steps: int) -> None:
        self.max_steps = max_steps
        super().__init__(f"turn exceeded the maximum of {max_steps} steps")


class ToolError(AgentError):
    """Tool call failed (timeout, malformed response, upstream unavailable)"""

    def __init__(self, tool: str, reason: str) -> None:
        self.tool = tool
        self.reason = reason
        super().__init__(f"{tool}: {reason}")


class UnknownToolError(ToolError):
    def __init__(self, tool: str) -> None:
        super().__init__(tool, f"unknown tool '{tool}'")


class MemoryStoreError(AgentError):
    """Checkpoint load or save failed"""

    def __init__(self, conversation_id: str, reason: str) -> None:
        self.conversation_id = conversation_id
        self.reason = reason
        super().__init__(f"conversation {conversation_id}: {reason}")


class CheckpointLoadError(MemoryStoreError):
    pass


class CheckpointSaveError(MemoryStoreError):
    pass


class SinkError(AgentError):
    """Log backend could not accept an event"""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ConversationBusyError(AgentError):
    """Another turn is already in flight for this conversation"""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"conversation {conversation_id} is busy")
