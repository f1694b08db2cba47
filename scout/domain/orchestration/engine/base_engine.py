from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional, Tuple, Union, AsyncGenerator
from pydantic import BaseModel, Field
import uuid

from scout.domain.models.conversation import Turn, Step


class ToolCallRequest(BaseModel):
    """Engine request to run one tool"""
    tool: str = Field(description="Registered tool name")
    query: str = Field(description="Single text query for the tool")
    call_id: str = Field(default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}")


EngineOutput = Union[str, ToolCallRequest]


class ReasoningContext:
    """What the engine sees for one turn.

    ``steps`` is a live read-only view of the current turn, so after a tool
    call the engine can inspect the observation step that was appended.
    ``engine_state`` is checkpointed together with the turn on success.
    """

    def __init__(
        self,
        conversation_id: str,
        question: str,
        history: List[Turn],
        tools: List[Dict[str, Any]],
        turn: Turn,
        engine_state: Optional[Dict[str, Any]] = None
    ):
        self.conversation_id = conversation_id
        self.question = question
        self.history = history
        self.tools = tools
        self.engine_state: Dict[str, Any] = dict(engine_state or {})
        self._turn = turn

    @property
    def steps(self) -> Tuple[Step, ...]:
        return tuple(self._turn.steps)

    @property
    def tool_names(self) -> List[str]:
        return [t["name"] for t in self.tools]


class ReasoningEngine(ABC):
    """Opaque token-producing reasoning capability"""

    @abstractmethod
    def generate(self, context: ReasoningContext) -> AsyncGenerator[EngineOutput, Optional[str]]:
        """Yield answer tokens (str) or ToolCallRequests.

        The observation for a ToolCallRequest is sent back as the value of
        the ``yield`` expression. Returning ends the turn.
        """
        pass
