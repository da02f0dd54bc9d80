"""Server-Sent Events — per-connection streams and broadcast.

Streams never end on their own, so they are read by the judge tests
(krprobe.sse.read_events) instead of the route set.
"""

NAME = "sse"
DESCRIPTION = "text/event-stream endpoints with named events and broadcast"
SCRIPT = "Tutorial/15.1-Server-Sent-Events.ps1"
TIMEOUT_S = 90

ROUTES = [
    {"path": "/", "content_type": "text/html", "contains": ["EventSource"]},
    {
        "name": "broadcast accepted",
        "path": "/sse/broadcast",
        "method": "POST",
        "json": {"event": "note", "data": "ping"},
        "status": 202,
    },
]
