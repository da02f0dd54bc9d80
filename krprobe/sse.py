"""Server-Sent Events: wire formatting, incremental parsing, stream reading.

Parsing follows the event-stream interpretation rules of the HTML living
standard: fields are ``name: value`` lines, a blank line dispatches the
pending event, lines starting with ':' are comments.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

import httpx

EVENT_STREAM = "text/event-stream"

# Only CRLF, CR and LF end a line. str.splitlines() also splits on FF, VT,
# U+2028 and friends, which may appear inside data values.
_LINE_END = re.compile(r"\r\n|\r|\n")


class SseError(RuntimeError):
    """The endpoint is not an event stream or ended too early."""


@dataclass
class SseEvent:
    """One dispatched event."""

    data: str
    event: str = "message"
    id: Optional[str] = None
    retry: Optional[int] = None


def split_lines(text: str) -> list[str]:
    """Split on event-stream line terminators. A trailing terminator ends the
    last line rather than starting an empty one.
    """
    if not text:
        return []
    lines = _LINE_END.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def format_event(
    data: str,
    event: Optional[str] = None,
    id: Optional[str] = None,
    retry_ms: Optional[int] = None,
) -> str:
    """Render one event in wire format (retry, id, event, data lines)."""
    lines: list[str] = []
    if retry_ms is not None:
        lines.append(f"retry: {retry_ms}")
    if id is not None and id.strip():
        lines.append(f"id: {id}")
    if event is not None and event.strip():
        lines.append(f"event: {event}")
    for line in split_lines(data):
        lines.append(f"data: {line}")
    # empty data yields no data line, so the block dispatches nothing
    return "".join(f"{line}\n" for line in lines) + "\n"


def format_comment(text: str) -> str:
    """Render a comment line (what keep-alives look like)."""
    return f": {text}\n\n"


class SseParser:
    """Incremental event-stream parser. Feed lines, collect events."""

    def __init__(self) -> None:
        self.comments: list[str] = []
        self.last_event_id: Optional[str] = None
        self.retry: Optional[int] = None
        self._event = ""
        self._data: list[str] = []
        self._retry_pending: Optional[int] = None

    def feed_line(self, line: str) -> Optional[SseEvent]:
        """Consume one line (without its terminator). Returns a dispatched event or None."""
        line = line.rstrip("\r\n")
        if line == "":
            return self._dispatch()
        if line.startswith(":"):
            self.comments.append(line[1:].lstrip(" "))
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            # ids containing NUL are ignored
            if "\0" not in value:
                self.last_event_id = value
        elif name == "retry":
            if value.isdigit():
                self.retry = int(value)
                self._retry_pending = self.retry
        # unknown field names are ignored
        return None

    def feed(self, lines: Iterable[str]) -> list[SseEvent]:
        events = []
        for line in lines:
            evt = self.feed_line(line)
            if evt is not None:
                events.append(evt)
        return events

    def _dispatch(self) -> Optional[SseEvent]:
        data, event, retry = self._data, self._event, self._retry_pending
        self._data, self._event, self._retry_pending = [], "", None
        if not data:
            return None
        return SseEvent(
            data="\n".join(data),
            event=event or "message",
            id=self.last_event_id,
            retry=retry,
        )


def parse_events(text: str) -> list[SseEvent]:
    """Parse every complete event in a stream body."""
    parser = SseParser()
    return parser.feed(split_lines(text))


def _iter_stream_lines(chunks: Iterable[str]) -> Iterator[str]:
    buffer = ""
    for chunk in chunks:
        buffer += chunk
        while True:
            m = _LINE_END.search(buffer)
            if m is None:
                break
            # a CR at the end of a chunk may be the first half of CRLF
            if m.group() == "\r" and m.end() == len(buffer):
                break
            yield buffer[:m.start()]
            buffer = buffer[m.end():]
    if buffer.endswith("\r"):
        yield buffer[:-1]


def read_events(
    client: httpx.Client,
    path: str,
    count: int,
    timeout_s: float = 10.0,
    headers: Optional[dict[str, str]] = None,
) -> list[SseEvent]:
    """Open an event stream, read ``count`` events, then disconnect.

    ``timeout_s`` bounds the whole read, so a stream that only sends
    keep-alive comments still fails. Raises SseError when the response is
    not 200 text/event-stream, the server closes the stream early, or the
    deadline passes before ``count`` events arrived.
    """
    req_headers = {"Accept": EVENT_STREAM, "Cache-Control": "no-cache"}
    if headers:
        req_headers.update(headers)

    parser = SseParser()
    events: list[SseEvent] = []
    deadline = time.monotonic() + timeout_s
    with client.stream("GET", path, headers=req_headers, timeout=timeout_s) as response:
        if response.status_code != 200:
            raise SseError(f"GET {path} returned {response.status_code}")
        content_type = response.headers.get("content-type", "")
        if not content_type.lower().startswith(EVENT_STREAM):
            raise SseError(f"GET {path} returned content-type {content_type!r}")
        for line in _iter_stream_lines(response.iter_text()):
            if time.monotonic() > deadline:
                raise SseError(
                    f"stream {path} sent {len(events)} of {count} events within {timeout_s}s"
                )
            evt = parser.feed_line(line)
            if evt is None:
                continue
            events.append(evt)
            if len(events) >= count:
                return events
    raise SseError(f"stream {path} closed after {len(events)} of {count} events")
