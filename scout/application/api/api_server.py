from typing import AsyncIterator, Optional
from contextlib import asynccontextmanager, aclosing
from datetime import datetime, timezone
import json
import uuid

from fastapi import FastAPI
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
import structlog

from scout.domain.errors import AgentError, ConversationBusyError
from scout.domain.orchestration.core.main_agent import AgentOrchestrator

logger = structlog.get_logger(__name__)


class StreamRequest(BaseModel):
    """Request body for the streaming endpoint"""
    question: str = Field(..., min_length=1, description="User question for the agent")
    conversation_id: Optional[str] = Field(None, description="Reuse to continue a conversation; generated when omitted")


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def _event_stream(orchestrator: AgentOrchestrator, question: str, conversation_id: str) -> AsyncIterator[str]:
    """Translate the orchestrator token stream into Server-Sent Events"""

    tokens = []
    with structlog.contextvars.bound_contextvars(conversation_id=conversation_id):
        try:
            async with aclosing(orchestrator.stream(question, conversation_id)) as stream:
                async for token in stream:
                    tokens.append(token)
                    yield _sse("token", {"content": token})
        except ConversationBusyError as e:
            yield _sse("error", {"type": "conversation_busy", "message": e.message})
            return
        except AgentError as e:
            logger.warning("Agent stream failed", error=e.message)
            yield _sse("error", {"type": type(e).__name__, "message": e.message})
            return
        except ValueError as e:
            yield _sse("error", {"type": "invalid_request", "message": str(e)})
            return
        except Exception as e:
            logger.error("Error in agent stream", error=str(e), error_type=type(e).__name__)
            yield _sse("error", {"type": "internal_error", "message": "agent stream failed"})
            return

        yield _sse("done", {"conversation_id": conversation_id, "answer": "".join(tokens)})


def create_app(orchestrator: AgentOrchestrator) -> FastAPI:
    """HTTP surface: stream agent answers as Server-Sent Events"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await orchestrator.sink.aclose()
        logger.info("Agent server shutdown")

    app = FastAPI(title="Scout Agent Server", lifespan=lifespan)
    app.state.orchestrator = orchestrator

    @app.post("/api/v1/agent/stream")
    async def stream_endpoint(request: StreamRequest) -> StreamingResponse:
        conversation_id = request.conversation_id or str(uuid.uuid4())
        return StreamingResponse(
            _event_stream(orchestrator, request.question, conversation_id),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "X-Accel-Buffering": "no",
                "X-Conversation-ID": conversation_id,
            },
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "tools": orchestrator.tools.names(),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    return app
