"""Judge tests for the logging suite — messages reach the console sink."""

import uuid


def test_message_is_written(client, wait_for_output):
    marker = f"probe-{uuid.uuid4().hex[:12]}"
    resp = client.get("/log", params={"message": marker})
    assert resp.status_code == 200
    output = wait_for_output(marker)
    line = next(l for l in output.splitlines() if marker in l)
    assert "INF" in line or "Information" in line


def test_level_parameter(client, wait_for_output):
    marker = f"warn-{uuid.uuid4().hex[:12]}"
    resp = client.get("/log", params={"message": marker, "level": "Warning"})
    assert resp.status_code == 200
    output = wait_for_output(marker)
    line = next(l for l in output.splitlines() if marker in l)
    assert "WRN" in line or "Warning" in line
