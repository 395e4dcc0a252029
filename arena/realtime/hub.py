"""Live fan-out of attempt updates to competition spectators.

One hub per process, created in the app lifespan and reached through
``app.state.hub``. Producers call :meth:`BroadcastHub.publish` (never blocks);
a single dispatch task drains the queue in order and pushes every event to the
sinks registered for its competition. Delivery is best-effort: a sink that
fails is dropped and the others still get the event. Nothing is replayed to
sinks that register later.
"""
import asyncio
import logging
from typing import Any, Protocol

from arena.schemas.attempt import TryUpdateSchema

logger = logging.getLogger(__name__)


class Sink(Protocol):
    """Anything that can receive a JSON message, e.g. a Starlette WebSocket."""

    async def send_json(self, data: Any) -> None: ...


class BroadcastHub:
    def __init__(self, send_timeout: float = 2.0):
        self.send_timeout = send_timeout
        self._subscribers: dict[str, set[Sink]] = {}
        # Guards _subscribers for register, unregister and fan-out alike
        self._lock = asyncio.Lock()
        self._queue: asyncio.Queue[TryUpdateSchema] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    # ---------- registry ----------

    async def register(self, competition_id: str, sink: Sink) -> None:
        async with self._lock:
            self._subscribers.setdefault(competition_id, set()).add(sink)
        logger.debug("Subscriber registered for competition %s", competition_id)

    async def unregister(self, competition_id: str, sink: Sink) -> None:
        async with self._lock:
            self._discard(competition_id, sink)
        logger.debug("Subscriber unregistered for competition %s", competition_id)

    def _discard(self, competition_id: str, sink: Sink) -> None:
        sinks = self._subscribers.get(competition_id)
        if sinks is None:
            return
        sinks.discard(sink)
        if not sinks:
            del self._subscribers[competition_id]

    def subscriber_count(self, competition_id: str) -> int:
        return len(self._subscribers.get(competition_id, ()))

    # ---------- producers ----------

    def publish(self, event: TryUpdateSchema) -> None:
        """Enqueue an event for dispatch. Never waits for delivery."""
        self._queue.put_nowait(event)

    # ---------- dispatch ----------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="broadcast-hub")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def join(self) -> None:
        """Wait until every event published so far has been dispatched."""
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.dispatch(event)
            except Exception:
                logger.exception("Broadcast dispatch failed for competition %s", event.competition_id)
            finally:
                self._queue.task_done()

    async def dispatch(self, event: TryUpdateSchema) -> None:
        """Send one event to every current subscriber of its competition."""
        message = event.to_message()
        # register/unregister wait for this loop, at most send_timeout per sink
        async with self._lock:
            sinks = list(self._subscribers.get(event.competition_id, ()))
            for sink in sinks:
                try:
                    await asyncio.wait_for(sink.send_json(message), timeout=self.send_timeout)
                except Exception as e:
                    logger.warning(
                        "Dropping subscriber of competition %s after write error: %r",
                        event.competition_id,
                        e,
                    )
                    self._discard(event.competition_id, sink)
                    await _close_quietly(sink)


async def _close_quietly(sink: Sink) -> None:
    close = getattr(sink, "close", None)
    if close is None:
        return
    try:
        await asyncio.wait_for(close(), timeout=1.0)
    except Exception as e:
        logger.debug("Ignoring error while closing dropped subscriber: %r", e)
