"""In-process publish/subscribe bus.

Components receive an ``EventBus`` instance instead of relying on global
events. Delivery is fire-and-forget to every current subscriber; a failing
listener is logged and does not stop delivery to the others. Async listeners
are scheduled as tasks on the running loop.
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger("voice_journal")

JOURNAL_UPDATED = "journal.updated"
MOOD_UPDATED = "mood.updated"
JOURNAL_MODAL_OPEN = "journal_modal.open"

Listener = Callable[..., Any]


class EventBus:
    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, topic: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for ``topic``. Returns a function that unsubscribes it."""
        self._listeners[topic].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[topic]:
                self._listeners[topic].remove(listener)

        return unsubscribe

    def listener_count(self, topic: str) -> int:
        return len(self._listeners[topic])

    def publish(self, topic: str, payload: Any = None) -> None:
        for listener in list(self._listeners[topic]):
            try:
                result = listener(payload)
            except Exception:
                logger.exception("Listener %r failed for %s", listener, topic)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._finish_task)

    def _finish_task(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Async listener failed: %s", task.exception())

    async def drain(self) -> None:
        """Wait for async listeners scheduled so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
