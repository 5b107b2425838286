"""
Live order broadcast over Server-Sent Events.

Each connected dashboard gets its own bounded queue. broadcast() pushes
a framed event into every queue; a subscriber whose queue is full is
dropped rather than allowed to block the webhook.

When nobody is listening, order ("message") events are held in memory
and delivered to the next subscriber that connects, then cleared. At
most queue_size - 1 orders are held; the oldest is dropped first.

Wire format:
    event: <type>
    data: <json>
    <blank line>
"""

from __future__ import annotations

import json
import threading
from collections import deque
from datetime import datetime, timezone
from queue import Empty, Full, Queue
from typing import Any, Deque, Iterator, Set

from logging_config import get_logger


logger = get_logger(__name__)

MESSAGE_EVENT = "message"
CONNECTED_EVENT = "connected"
KEEPALIVE_FRAME = ": keep-alive\n\n"


def format_sse(event_type: str, data: Any) -> str:
    """Frame one SSE event."""
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"


class BroadcastChannel:
    """
    In-memory subscriber set with a pending-order queue.

    Thread Safety:
        - Subscriber set and pending deque are guarded by one lock
        - Frames are pushed with put_nowait, so broadcast() never blocks
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: Set[Queue] = set()
        # One slot of a subscriber queue is taken by the connected event
        self._pending: Deque[Any] = deque(maxlen=max(queue_size - 1, 0))
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def subscribe(self) -> Queue:
        """
        Register a new listener.

        The queue starts with a "connected" event followed by every
        pending order; the pending list is then cleared. Pending orders
        are capped below queue_size, so they always fit.
        """
        q: Queue = Queue(maxsize=self.queue_size)
        q.put_nowait(format_sse(CONNECTED_EVENT, {
            "type": CONNECTED_EVENT,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }))

        with self._lock:
            pending = list(self._pending)
            self._pending.clear()
            for data in pending:
                q.put_nowait(format_sse(MESSAGE_EVENT, data))
            self._subscribers.add(q)
            total = len(self._subscribers)

        logger.info(f"New SSE client connected. Total clients: {total}")
        if pending:
            logger.info(f"Delivered {len(pending)} queued orders")
        return q

    def unsubscribe(self, q: Queue) -> None:
        """Remove a listener. Safe to call twice."""
        with self._lock:
            self._subscribers.discard(q)
            total = len(self._subscribers)
        logger.info(f"SSE client disconnected. Total clients: {total}")

    def broadcast(self, data: Any, event_type: str = MESSAGE_EVENT) -> int:
        """
        Send an event to every subscriber.

        Args:
            data: JSON-serializable payload
            event_type: SSE event name

        Returns:
            Number of subscribers the event was delivered to
        """
        frame = format_sse(event_type, data)

        with self._lock:
            subscribers = list(self._subscribers)
            if not subscribers and event_type == MESSAGE_EVENT:
                if len(self._pending) == self._pending.maxlen:
                    dropped = self._pending[0] if self._pending else data
                    logger.warning(f"Pending order queue full, dropping order: {_order_id(dropped)}")
                self._pending.append(data)
                logger.info(f"No clients connected, queuing order: {_order_id(data)}")
                return 0

        delivered = 0
        for q in subscribers:
            try:
                q.put_nowait(frame)
                delivered += 1
            except Full:
                logger.error("Error sending to client: queue full, dropping client")
                self.unsubscribe(q)
        return delivered

    def stream(self, keepalive_seconds: float = 30.0) -> Iterator[str]:
        """
        Subscribe and yield frames until the client goes away.

        The subscription starts on first iteration, so a response that is
        never consumed never registers a listener. Sends a comment frame
        after keepalive_seconds of silence.
        """
        q = self.subscribe()
        try:
            while True:
                try:
                    yield q.get(timeout=keepalive_seconds)
                except Empty:
                    yield KEEPALIVE_FRAME
        finally:
            self.unsubscribe(q)


def _order_id(data: Any) -> str:
    if isinstance(data, dict):
        return str(data.get("id", "?"))
    return "?"
