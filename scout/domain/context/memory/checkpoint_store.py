from typing import Optional, Tuple
from datetime import datetime, timezone
import asyncio
import weakref

from langgraph.store.base import BaseStore
from langgraph.store.memory import InMemoryStore
from pydantic import ValidationError
import structlog

from scout.domain.errors import CheckpointLoadError, CheckpointSaveError
from scout.domain.models.conversation import Conversation

logger = structlog.get_logger(__name__)


class CheckpointStore:
    """Conversation checkpoints over a LangGraph key-value store.

    Each conversation is one item whose value holds the whole serialized
    Conversation, so a single put replaces the previous checkpoint atomically.
    """

    def __init__(self, store: Optional[BaseStore] = None, namespace: Tuple[str, ...] = ("conversations",)):
        self.store = store if store is not None else InMemoryStore()
        self.namespace = namespace
        # entries disappear once no save holds or awaits the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    async def load(self, conversation_id: str) -> Optional[Conversation]:
        """Return the last committed state, or None for an unknown conversation"""

        try:
            item = await self.store.aget(self.namespace, conversation_id)
        except Exception as e:
            raise CheckpointLoadError(conversation_id, f"store read failed: {e}") from e

        if item is None:
            return None

        try:
            return Conversation.model_validate_json(item.value["state"])
        except (KeyError, TypeError, ValidationError) as e:
            raise CheckpointLoadError(conversation_id, f"undecodable checkpoint: {e}") from e

    async def save(self, conversation: Conversation) -> None:
        """Commit a conversation checkpoint; last committed wins.

        Raises:
            CheckpointSaveError: if the store rejects the write.
        """

        conversation_id = conversation.conversation_id
        value = {
            "state": conversation.model_dump_json(),
            "version": conversation.version,
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }

        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock

        async with lock:
            try:
                await self.store.aput(self.namespace, conversation_id, value)
            except Exception as e:
                raise CheckpointSaveError(conversation_id, f"store write failed: {e}") from e

        logger.debug("Checkpoint saved", conversation_id=conversation_id, version=conversation.version)
