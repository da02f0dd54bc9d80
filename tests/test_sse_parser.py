import time

import httpx
import pytest

from krprobe.sse import (
    EVENT_STREAM,
    SseError,
    SseParser,
    format_comment,
    format_event,
    parse_events,
    read_events,
    split_lines,
)


def test_format_event_field_order():
    text = format_event("line1\nline2", event="tick", id="7", retry_ms=500)
    assert text == "retry: 500\nid: 7\nevent: tick\ndata: line1\ndata: line2\n\n"


def test_format_event_omits_blank_id_and_event():
    assert format_event("x", event=" ", id="") == "data: x\n\n"


def test_format_comment():
    assert format_comment("keep-alive") == ": keep-alive\n\n"


def test_formatted_events_parse_back():
    stream = format_event("a", event="one", id="1") + format_comment("ping") + format_event("b\nc")
    events = parse_events(stream)
    assert [(e.event, e.data, e.id) for e in events] == [("one", "a", "1"), ("message", "b\nc", "1")]


def test_parser_field_rules():
    parser = SseParser()
    events = parser.feed([
        ": comment",
        "data:no-space",
        "data:  two-spaces",
        "unknown: ignored",
        "",
        "retry: abc",
        "retry: 2500",
        "data",
        "",
        "event: empty",
        "",
    ])
    assert parser.comments == ["comment"]
    assert events[0].data == "no-space\n two-spaces"
    assert events[1].data == ""
    # "data" with no colon is a field with an empty value, so it dispatches
    assert len(events) == 2
    assert events[1].retry == 2500
    assert parser.retry == 2500


def test_block_without_data_dispatches_nothing():
    parser = SseParser()
    assert parser.feed(["event: x", "id: 9", ""]) == []
    assert parser.last_event_id == "9"
    evt = parser.feed(["data: y", ""])[0]
    assert evt.event == "message"
    assert evt.id == "9"


def test_crlf_lines():
    assert parse_events("data: a\r\n\r\n")[0].data == "a"


def test_empty_data_formats_to_a_bare_terminator():
    assert format_event("") == "\n"
    assert format_event("", event="tick") == "event: tick\n\n"
    assert parse_events(format_event("")) == []


def test_trailing_newline_in_data_adds_no_line():
    assert format_event("a\n") == "data: a\n\n"


def test_only_cr_and_lf_end_lines():
    assert split_lines("a\x0cb\x0bc\u2028d\x85e\r\nf\rg\n") == ["a\x0cb\x0bc\u2028d\x85e", "f", "g"]
    assert parse_events("data: x\x0cy\n\n")[0].data == "x\x0cy"
    assert parse_events(format_event("a\u2028b"))[0].data == "a\u2028b"


def _stream_client(mock_client, chunks):
    def handler(request):
        return httpx.Response(200, headers={"Content-Type": EVENT_STREAM}, content=iter(chunks))

    return mock_client(handler)


def test_read_events_keeps_form_feed_in_data(mock_client):
    client = _stream_client(mock_client, [b"data: a\x0cb\n\n"])
    assert read_events(client, "/sse", count=1)[0].data == "a\x0cb"


def test_read_events_crlf_split_across_chunks(mock_client):
    client = _stream_client(mock_client, [b"data: one\r", b"\n\r", b"\ndata: two\r\n\r\n"])
    events = read_events(client, "/sse", count=2)
    assert [e.data for e in events] == ["one", "two"]


def test_read_events_deadline_with_only_keepalives(mock_client):
    def keepalives():
        while True:
            time.sleep(0.05)
            yield format_comment("ping").encode()

    client = _stream_client(mock_client, keepalives())
    start = time.monotonic()
    with pytest.raises(SseError, match="0 of 1 events within"):
        read_events(client, "/sse", count=1, timeout_s=0.5)
    assert time.monotonic() - start < 5


def test_read_events_live(live_client):
    events = read_events(live_client, "/sse", count=2, timeout_s=10)
    assert [(e.event, e.data, e.id) for e in events] == [("tick", "0", "0"), ("tick", "1", "1")]


def test_read_events_stream_ends_early(live_client):
    with pytest.raises(SseError, match="closed after 3 of 5 events"):
        read_events(live_client, "/sse", count=5, timeout_s=10)


def test_read_events_rejects_non_stream(mock_client):
    client = mock_client(lambda r: httpx.Response(200, text="<html>", headers={"Content-Type": "text/html"}))
    with pytest.raises(SseError, match="content-type"):
        read_events(client, "/", count=1)


def test_read_events_rejects_error_status(mock_client):
    client = mock_client(lambda r: httpx.Response(404))
    with pytest.raises(SseError, match="returned 404"):
        read_events(client, "/sse", count=1)
