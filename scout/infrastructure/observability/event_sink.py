"""
Event sink: fire-and-forget delivery of LogEvents to a log backend.

emit() only enqueues. A single background task drains the queue in
submission order, so a slow or unreachable backend never stalls the agent
loop. Backend failures are written to the local structlog logger and dropped.
"""

from typing import Callable, Optional, Protocol, runtime_checkable
import asyncio
import structlog

from scout.domain.models.events import LogEvent, Severity

logger = structlog.get_logger(__name__)


@runtime_checkable
class LogBackend(Protocol):
    """Destination for shipped LogEvents"""

    async def ship(self, event: LogEvent) -> None:
        ...

    async def aclose(self) -> None:
        ...


class StructlogBackend:
    """Writes LogEvents as structlog records"""

    def __init__(self, name: str = "scout.events"):
        self.logger = structlog.get_logger(name)

    async def ship(self, event: LogEvent) -> None:
        log = getattr(self.logger, event.severity.value)
        log(
            event.message,
            metadata=event.metadata,
            severity=event.severity.value,
            event_timestamp=event.timestamp.isoformat()
        )

    async def aclose(self) -> None:
        pass


class EventSink:
    """Non-blocking LogEvent dispatcher backed by a bounded queue"""

    def __init__(
        self,
        backend: Optional[LogBackend] = None,
        max_queue: int = 1000,
        min_severity: Severity = Severity.DEBUG,
        event_filter: Optional[Callable[[LogEvent], bool]] = None
    ):
        self.backend = backend or StructlogBackend()
        self.max_queue = max_queue
        self.min_severity = min_severity
        self.event_filter = event_filter
        self.dropped = 0
        self.failed = 0
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def emit(self, event: LogEvent) -> None:
        """Queue an event for delivery. Never raises."""

        try:
            if not self._accepts(event):
                return
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning("event_sink_no_loop", **event.to_record())
                return
            self._ensure_worker(loop)
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("event_sink_queue_full", dropped=self.dropped, message=event.message)
        except Exception as e:
            self.dropped += 1
            logger.error("event_sink_emit_failed", error=str(e))

    def _accepts(self, event: LogEvent) -> bool:
        if event.severity.rank < self.min_severity.rank:
            return False
        if self.event_filter is not None and not self.event_filter(event):
            return False
        return True

    def _ensure_worker(self, loop: asyncio.AbstractEventLoop):
        # Queue and drainer belong to one event loop; rebuild both on a new loop.
        if self._loop is not loop:
            if self._queue is not None and self._queue.qsize():
                self.dropped += self._queue.qsize()
            self._queue = asyncio.Queue(maxsize=self.max_queue)
            self._loop = loop
            self._worker = None
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain())

    async def _drain(self):
        while True:
            event = await self._queue.get()
            try:
                await self.backend.ship(event)
            except Exception as e:
                self.failed += 1
                logger.warning(
                    "event_sink_backend_failed",
                    error=str(e),
                    message=event.message,
                    severity=event.severity.value
                )
            finally:
                self._queue.task_done()

    async def flush(self):
        """Wait until every queued event has been handed to the backend"""

        if self._queue is not None and self._loop is asyncio.get_running_loop():
            await self._queue.join()

    async def aclose(self):
        """Flush pending events, stop the drainer and close the backend"""

        await self.flush()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        try:
            await self.backend.aclose()
        except Exception as e:
            logger.warning("event_sink_backend_close_failed", error=str(e))
