from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime, timezone
from enum import Enum
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepKind(str, Enum):
    """Kind of reasoning step within a turn"""
    TOKENS = "tokens"
    TOOL_CALL = "tool_call"


class TurnStatus(str, Enum):
    """Turn lifecycle status"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Step(BaseModel):
    """One unit of reasoning: a run of emitted tokens or one tool call"""
    kind: StepKind
    tokens: List[str] = Field(default_factory=list, description="Tokens emitted in this step")
    tool: Optional[str] = Field(None, description="Tool name for tool_call steps")
    query: Optional[str] = Field(None, description="Query sent to the tool")
    call_id: Optional[str] = Field(None, description="Engine-side identifier of the tool call")
    observation: Optional[str] = Field(None, description="Text fed back to the engine")
    error: Optional[str] = Field(None, description="Tool failure reason, if any")
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def text(self) -> str:
        return "".join(self.tokens)

    @property
    def failed(self) -> bool:
        return self.error is not None


class Turn(BaseModel):
    """One question/answer exchange"""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    question: str
    steps: List[Step] = Field(default_factory=list)
    answer: str = ""
    status: TurnStatus = Field(default=TurnStatus.RUNNING)
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=_utcnow)
    ended_at: Optional[datetime] = None

    def needs_token_step(self) -> bool:
        """True when the next token would open a new step"""
        return not self.steps or self.steps[-1].kind != StepKind.TOKENS

    def add_token(self, token: str):
        if self.needs_token_step():
            self.steps.append(Step(kind=StepKind.TOKENS))
        self.steps[-1].tokens.append(token)

    def add_tool_call(
        self,
        tool: str,
        query: str,
        observation: str,
        call_id: Optional[str] = None,
        error: Optional[str] = None
    ) -> Step:
        step = Step(
            kind=StepKind.TOOL_CALL,
            tool=tool,
            query=query,
            call_id=call_id,
            observation=observation,
            error=error
        )
        self.steps.append(step)
        return step

    @property
    def tool_steps(self) -> List[Step]:
        return [s for s in self.steps if s.kind == StepKind.TOOL_CALL]

    def complete(self, answer: str):
        self.answer = answer
        self.status = TurnStatus.COMPLETED
        self.ended_at = _utcnow()

    def completed(self, answer: str) -> "Turn":
        """Completed copy of this turn; the running turn itself is left open"""
        sealed = self.model_copy(deep=True)
        sealed.complete(answer)
        return sealed

    def fail(self, error: str):
        self.error = error
        self.status = TurnStatus.FAILED
        self.ended_at = _utcnow()

    def get_summary(self) -> Dict[str, Any]:
        return {
            "turn_id": self.id,
            "status": self.status.value,
            "steps": len(self.steps),
            "tool_calls": [s.tool for s in self.tool_steps],
            "answer_length": len(self.answer),
        }


class Conversation(BaseModel):
    """Checkpointed conversation state"""
    conversation_id: str
    turns: List[Turn] = Field(default_factory=list)
    engine_state: Dict[str, Any] = Field(default_factory=dict, description="Opaque reasoning-engine state")
    version: int = Field(default=0, description="Number of committed turns")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def with_turn(self, turn: Turn, engine_state: Optional[Dict[str, Any]] = None) -> "Conversation":
        """Return the next checkpoint: this state plus one committed turn"""
        return self.model_copy(
            update={
                "turns": [*self.turns, turn],
                "engine_state": dict(engine_state if engine_state is not None else self.engine_state),
                "version": self.version + 1,
                "updated_at": _utcnow(),
            },
            deep=True
        )
