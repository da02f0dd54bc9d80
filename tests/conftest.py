import sys
from pathlib import Path

import httpx
import pytest

from krprobe.client import build_client
from krprobe.process import start_example, stop_example

EXAMPLE_SERVER = Path(__file__).parent / "example_server.py"


@pytest.fixture
def results_dir(tmp_path, monkeypatch):
    """Point result storage at a temp dir."""
    d = tmp_path / "results"
    monkeypatch.setenv("KRPROBE_RESULTS_DIR", str(d))
    return d


@pytest.fixture
def mock_client():
    """Build an httpx client whose responses come from a handler function."""
    clients = []

    def _make(handler):
        c = build_client("http://example.test", transport=httpx.MockTransport(handler))
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()


@pytest.fixture(scope="session")
def example_script():
    return EXAMPLE_SERVER


@pytest.fixture(scope="session")
def live_example(tmp_path_factory):
    """The stand-in example server, started once for the session."""
    example = start_example(
        EXAMPLE_SERVER,
        shell=[sys.executable],
        log_dir=tmp_path_factory.mktemp("live-example"),
        startup_timeout_s=30,
    )
    yield example
    stop_example(example)


@pytest.fixture
def live_client(live_example):
    with build_client(live_example.base_url) as c:
        yield c
