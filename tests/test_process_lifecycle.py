import socket
import subprocess
import sys

import httpx
import pytest

from krprobe.process import (
    ExampleStartError,
    find_free_port,
    running_example,
    start_example,
    stop_example,
    wait_for_port,
)


def test_find_free_port_is_bindable():
    port = find_free_port()
    with socket.socket() as s:
        s.bind(("127.0.0.1", port))


def test_wait_for_port_times_out():
    port = find_free_port()
    with pytest.raises(ExampleStartError, match="nothing listening"):
        wait_for_port("127.0.0.1", port, timeout_s=0.5, interval_s=0.1)


def test_wait_for_port_notices_dead_process():
    proc = subprocess.Popen([sys.executable, "-c", "import sys; sys.exit(4)"])
    proc.wait()
    with pytest.raises(ExampleStartError) as exc:
        wait_for_port("127.0.0.1", find_free_port(), timeout_s=5, proc=proc)
    assert exc.value.exit_code == 4


def test_live_example_lifecycle(example_script, tmp_path):
    with running_example(example_script, shell=[sys.executable], log_dir=tmp_path) as example:
        assert example.is_running()
        assert example.base_url == f"http://127.0.0.1:{example.port}"
        assert example.url("hello") == example.base_url + "/hello"
        resp = httpx.get(example.url("/hello"))
        assert resp.text == "Hello, World!"
    assert not example.is_running()
    assert example.exit_code is not None
    assert "listening on" in (tmp_path / "stdout.txt").read_text()
    # stopping twice is harmless
    assert stop_example(example) == example.exit_code


def test_failed_startup_reports_exit_code_and_stderr(example_script, tmp_path):
    with pytest.raises(ExampleStartError) as exc:
        start_example(example_script, shell=[sys.executable], log_dir=tmp_path,
                      extra_args=["-FailFast"], startup_timeout_s=20)
    assert exc.value.exit_code == 3
    assert "refusing to start" in exc.value.stderr_tail


def test_missing_script(tmp_path):
    with pytest.raises(FileNotFoundError):
        start_example(tmp_path / "nope.ps1", shell=[sys.executable])


def test_example_sees_port_environment(live_example, live_client):
    resp = live_client.get("/log", params={"message": "env-check"})
    assert resp.text == "logged"
    assert live_example.port > 0


def test_relative_script_path(example_script, tmp_path, monkeypatch):
    monkeypatch.chdir(example_script.parent.parent)
    relative = example_script.relative_to(example_script.parent.parent)
    with running_example(relative, shell=[sys.executable], log_dir=tmp_path / "logs") as example:
        assert example.script.is_absolute()
        assert httpx.get(example.url("/hello")).text.strip() == "Hello, World!"
