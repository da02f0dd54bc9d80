"""pytest plugin for suite judge tests.

The runner loads it with ``-p krprobe.testing`` and exports the live
example's address as KRPROBE_BASE_URL (and its log directory as
KRPROBE_LOG_DIR). Without them the judge tests skip.
"""

from __future__ import annotations

import os
import time
from pathlib import Path

import pytest

from krprobe.client import build_client


@pytest.fixture(scope="session")
def base_url() -> str:
    url = os.environ.get("KRPROBE_BASE_URL")
    if not url:
        pytest.skip("KRPROBE_BASE_URL not set; no running example")
    return url.rstrip("/")


@pytest.fixture
def client(base_url):
    with build_client(base_url) as c:
        yield c


@pytest.fixture(scope="session")
def log_dir() -> Path:
    raw = os.environ.get("KRPROBE_LOG_DIR")
    if not raw:
        pytest.skip("KRPROBE_LOG_DIR not set; example output not captured")
    return Path(raw)


@pytest.fixture
def wait_for_output(log_dir):
    """Return a function that polls the example's stdout/stderr for a marker."""

    def _wait(marker: str, timeout_s: float = 10.0) -> str:
        deadline = time.monotonic() + timeout_s
        while True:
            for name in ("stdout.txt", "stderr.txt"):
                path = log_dir / name
                if path.exists():
                    text = path.read_text(encoding="utf-8", errors="replace")
                    if marker in text:
                        return text
            if time.monotonic() >= deadline:
                raise AssertionError(f"{marker!r} not written by the example within {timeout_s}s")
            time.sleep(0.2)

    return _wait
