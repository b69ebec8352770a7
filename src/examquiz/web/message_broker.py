"""In-process fan-out of thread messages to SSE subscribers.

Each subscriber of a thread owns an asyncio.Queue. Publishing puts the
message on every queue of the thread; ``None`` tells subscribers that the
thread is gone.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class MessageBroker:
    """Tracks SSE subscribers per thread."""

    def __init__(self):
        self._subscribers: dict[int, list[asyncio.Queue[dict[str, Any] | None]]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, thread_id: int) -> asyncio.Queue[dict[str, Any] | None]:
        """Register a new subscriber and return its queue."""
        queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        async with self._lock:
            self._subscribers.setdefault(thread_id, []).append(queue)

        logger.debug("broker.subscribed", thread_id=thread_id)
        return queue

    async def unsubscribe(self, thread_id: int, queue: asyncio.Queue) -> None:
        async with self._lock:
            queues = self._subscribers.get(thread_id, [])
            if queue in queues:
                queues.remove(queue)
            if not queues:
                self._subscribers.pop(thread_id, None)

        logger.debug("broker.unsubscribed", thread_id=thread_id)

    async def publish(self, thread_id: int, message: dict[str, Any]) -> int:
        """Send a message to every subscriber of a thread.

        Returns:
            Number of subscribers reached
        """
        async with self._lock:
            queues = list(self._subscribers.get(thread_id, []))

        for queue in queues:
            await queue.put(message)

        logger.debug("broker.published", thread_id=thread_id, subscribers=len(queues))
        return len(queues)

    async def close_thread(self, thread_id: int) -> None:
        """Signal the end of the stream to every subscriber of a thread."""
        async with self._lock:
            queues = self._subscribers.pop(thread_id, [])

        for queue in queues:
            await queue.put(None)

    async def subscriber_count(self, thread_id: int) -> int:
        async with self._lock:
            return len(self._subscribers.get(thread_id, []))


# Global broker instance
_broker: MessageBroker | None = None


def get_message_broker() -> MessageBroker:
    """Get the global message broker instance."""
    global _broker
    if _broker is None:
        _broker = MessageBroker()
    return _broker


def reset_message_broker() -> None:
    """Reset the message broker (for testing)."""
    global _broker
    _broker = None
