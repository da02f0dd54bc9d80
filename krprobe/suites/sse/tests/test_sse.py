"""Judge tests for the sse suite.

Reads live event streams from the example with krprobe.sse.read_events.
"""

import threading
import time

import pytest

from krprobe.client import build_client
from krprobe.sse import SseError, read_events


def test_ticks_arrive_in_order(client):
    # the stream may open with a single "connected" event
    events = read_events(client, "/sse", count=4, timeout_s=15)
    ticks = [e for e in events if e.event == "tick"]
    assert len(ticks) >= 3
    ids = [int(e.id) for e in ticks]
    assert ids == sorted(ids)


def test_first_event_sets_retry(client):
    events = read_events(client, "/sse", count=1, timeout_s=15)
    assert events[0].event in ("connected", "tick")
    assert events[0].retry is None or events[0].retry > 0


def test_broadcast_reaches_open_stream(client, base_url):
    received = []

    def listen():
        with build_client(base_url) as c:
            received.extend(read_events(c, "/sse/broadcast", count=2, timeout_s=20))

    t = threading.Thread(target=listen)
    t.start()
    # give the listener time to subscribe before broadcasting
    time.sleep(1.0)
    resp = client.post("/sse/broadcast", json={"event": "note", "data": "ping"})
    assert resp.status_code == 202
    t.join(timeout=25)

    assert any(e.event == "note" and e.data == "ping" for e in received)


def test_plain_route_is_not_a_stream(client):
    with pytest.raises(SseError):
        read_events(client, "/", count=1, timeout_s=5)
