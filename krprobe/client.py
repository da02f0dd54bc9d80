"""httpx client construction and auth header helpers."""

from __future__ import annotations

import base64
from typing import Optional

import httpx

from krprobe import __version__

USER_AGENT = f"krprobe/{__version__}"


def build_client(
    base_url: str,
    *,
    verify: bool = False,
    timeout_s: float = 30.0,
    headers: Optional[dict[str, str]] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create an ``httpx.Client`` bound to an example's base URL.

    TLS verification is off by default: examples serve self-signed
    development certificates. Redirects are not followed so 3xx routes
    can be asserted.
    """
    all_headers = {"User-Agent": USER_AGENT}
    if headers:
        all_headers.update(headers)
    return httpx.Client(
        base_url=base_url,
        verify=verify,
        timeout=httpx.Timeout(timeout_s),
        headers=all_headers,
        follow_redirects=False,
        transport=transport,
    )


def basic_auth_header(user: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


def bearer_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def api_key_header(key: str, header: str = "X-Api-Key") -> dict[str, str]:
    return {header: key}
