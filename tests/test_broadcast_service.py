"""
Unit tests for the SSE broadcast channel.
"""

import json
import pytest

from services.broadcast_service import (
    BroadcastChannel,
    KEEPALIVE_FRAME,
    format_sse,
)


def parse_frame(frame):
    """Split an SSE frame into (event, data)."""
    lines = frame.strip().split("\n")
    event = lines[0][len("event: "):]
    data = json.loads(lines[1][len("data: "):])
    return event, data


@pytest.fixture
def channel():
    return BroadcastChannel(queue_size=3)


class TestFormatSse:

    def test_frame_layout(self):
        assert format_sse("message", {"id": "ORD-1"}) == 'event: message\ndata: {"id": "ORD-1"}\n\n'


class TestBroadcastChannel:

    def test_subscribe_starts_with_connected(self, channel):
        q = channel.subscribe()

        event, data = parse_frame(q.get_nowait())
        assert event == "connected"
        assert data["type"] == "connected"
        assert "timestamp" in data
        assert channel.subscriber_count == 1

    def test_broadcast_reaches_every_subscriber(self, channel):
        first, second = channel.subscribe(), channel.subscribe()
        first.get_nowait()
        second.get_nowait()

        delivered = channel.broadcast({"id": "ORD-1"})

        assert delivered == 2
        assert parse_frame(first.get_nowait()) == ("message", {"id": "ORD-1"})
        assert parse_frame(second.get_nowait()) == ("message", {"id": "ORD-1"})

    def test_orders_queued_without_subscribers(self, channel):
        assert channel.broadcast({"id": "ORD-1"}) == 0
        assert channel.broadcast({"id": "ORD-2"}) == 0
        assert channel.pending_count == 2

        q = channel.subscribe()

        assert parse_frame(q.get_nowait())[0] == "connected"
        assert parse_frame(q.get_nowait()) == ("message", {"id": "ORD-1"})
        assert parse_frame(q.get_nowait()) == ("message", {"id": "ORD-2"})
        assert channel.pending_count == 0

    def test_pending_orders_capped_below_queue_size(self, channel):
        for n in range(10):
            channel.broadcast({"id": f"O{n}"})

        assert channel.pending_count == 2

    def test_every_held_order_reaches_next_subscriber(self, channel):
        for n in range(10):
            channel.broadcast({"id": f"O{n}"})

        q = channel.subscribe()
        frames = [parse_frame(q.get_nowait()) for _ in range(q.qsize())]

        assert [event for event, _ in frames] == ["connected", "message", "message"]
        assert [data["id"] for _, data in frames[1:]] == ["O8", "O9"]
        assert channel.subscriber_count == 1
        assert channel.pending_count == 0

    def test_pending_delivered_only_once(self, channel):
        channel.broadcast({"id": "ORD-1"})
        channel.subscribe()

        late = channel.subscribe()
        late.get_nowait()

        assert late.empty()

    def test_non_message_events_not_queued(self, channel):
        assert channel.broadcast({"ok": True}, event_type="status") == 0
        assert channel.pending_count == 0

    def test_full_subscriber_is_dropped(self, channel):
        slow = channel.subscribe()  # never drained
        fast = channel.subscribe()

        for n in range(3):
            channel.broadcast({"id": f"ORD-{n}"})
            while not fast.empty():
                fast.get_nowait()

        assert slow not in channel._subscribers
        assert channel.subscriber_count == 1

    def test_unsubscribe_is_idempotent(self, channel):
        q = channel.subscribe()

        channel.unsubscribe(q)
        channel.unsubscribe(q)

        assert channel.subscriber_count == 0


class TestStream:

    def test_first_frame_is_connected(self, channel):
        stream = channel.stream(keepalive_seconds=0.01)

        assert parse_frame(next(stream))[0] == "connected"
        assert channel.subscriber_count == 1
        stream.close()

    def test_subscription_is_lazy(self, channel):
        channel.stream(keepalive_seconds=0.01)

        assert channel.subscriber_count == 0

    def test_keepalive_when_idle(self, channel):
        stream = channel.stream(keepalive_seconds=0.01)
        next(stream)

        assert next(stream) == KEEPALIVE_FRAME
        stream.close()

    def test_close_unsubscribes(self, channel):
        stream = channel.stream(keepalive_seconds=0.01)
        next(stream)

        stream.close()

        assert channel.subscriber_count == 0

    def test_broadcast_arrives_on_stream(self, channel):
        stream = channel.stream(keepalive_seconds=1)
        next(stream)

        channel.broadcast({"id": "ORD-9"})

        assert parse_frame(next(stream)) == ("message", {"id": "ORD-9"})
        stream.close()
