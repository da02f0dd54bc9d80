"""Route assertions — send a RouteCheck, compare the response, report.

``evaluate`` is pure (response in, failure messages out) so it can be
tested without a server; ``check_route``/``run_route_set`` add transport.
"""

from __future__ import annotations

import json
import re
import time
from typing import Any, Optional

import httpx

from krprobe.models import CheckOutcome, RouteCheck

# Body excerpts in failure messages are cut to this many characters.
_EXCERPT = 200


class RouteAssertionError(AssertionError):
    """A route response did not match its expectations."""

    def __init__(self, check: RouteCheck, messages: list[str]):
        self.check = check
        self.messages = messages
        super().__init__(f"{check.name}: " + "; ".join(messages))


def _excerpt(text: str) -> str:
    if len(text) <= _EXCERPT:
        return repr(text)
    return repr(text[:_EXCERPT]) + "..."


def json_subset(expected: Any, actual: Any) -> bool:
    """True when ``expected`` is contained in ``actual``.

    Dicts: every expected key present with a matching value (extra keys in
    actual are fine). Lists: same length, element-wise match. Scalars: ==.
    """
    if isinstance(expected, dict):
        if not isinstance(actual, dict):
            return False
        return all(k in actual and json_subset(v, actual[k]) for k, v in expected.items())
    if isinstance(expected, list):
        if not isinstance(actual, list) or len(expected) != len(actual):
            return False
        return all(json_subset(e, a) for e, a in zip(expected, actual))
    # bool is an int subclass; True must not match 1
    if isinstance(expected, bool) or isinstance(actual, bool):
        return type(expected) is type(actual) and expected == actual
    return expected == actual


def evaluate(check: RouteCheck, response: httpx.Response) -> list[str]:
    """Compare a response with a check. An empty list means it passed."""
    if response.status_code != check.status:
        return [
            f"expected status {check.status}, got {response.status_code} "
            f"(body {_excerpt(response.text)})"
        ]

    messages: list[str] = []
    text = response.text

    if check.equals is not None and text.strip() != check.equals.strip():
        messages.append(f"expected body {_excerpt(check.equals)}, got {_excerpt(text)}")

    for needle in check.contains:
        if needle not in text:
            messages.append(f"body does not contain {needle!r}")

    if check.matches is not None and not re.search(check.matches, text, re.MULTILINE):
        messages.append(f"body does not match /{check.matches}/")

    if check.json_subset is not None:
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            messages.append(f"body is not JSON: {_excerpt(text)}")
        else:
            if not json_subset(check.json_subset, payload):
                messages.append(
                    f"JSON body {_excerpt(json.dumps(payload))} does not contain "
                    f"{json.dumps(check.json_subset)}"
                )

    if check.content_type is not None:
        actual_ct = response.headers.get("content-type", "")
        if not actual_ct.lower().startswith(check.content_type.lower()):
            messages.append(f"expected content-type {check.content_type!r}, got {actual_ct!r}")

    for name, value in check.expect_headers.items():
        actual = response.headers.get(name)
        if actual is None:
            messages.append(f"missing header {name}")
        elif actual != value:
            messages.append(f"header {name}: expected {value!r}, got {actual!r}")

    for name in check.absent_headers:
        if name in response.headers:
            messages.append(f"header {name} should be absent, got {response.headers[name]!r}")

    return messages


def _send(client: httpx.Client, check: RouteCheck) -> httpx.Response:
    kwargs: dict[str, Any] = {
        "headers": check.headers or None,
        "follow_redirects": check.follow_redirects,
    }
    if check.json is not None:
        kwargs["json"] = check.json
    elif check.form is not None:
        kwargs["data"] = check.form
    elif check.body is not None:
        kwargs["content"] = check.body
    if check.auth is not None:
        kwargs["auth"] = httpx.BasicAuth(*check.auth)
    return client.request(check.method, check.path, **kwargs)


def check_route(client: httpx.Client, check: RouteCheck) -> CheckOutcome:
    """Send one check. Transport errors are reported as a failed outcome."""
    start = time.monotonic()
    try:
        response = _send(client, check)
    except httpx.HTTPError as e:
        elapsed = (time.monotonic() - start) * 1000
        return CheckOutcome(
            name=check.name,
            passed=False,
            elapsed_ms=round(elapsed, 1),
            messages=[f"request failed: {type(e).__name__}: {e}"],
        )
    elapsed = (time.monotonic() - start) * 1000
    messages = evaluate(check, response)
    return CheckOutcome(
        name=check.name,
        passed=not messages,
        status_code=response.status_code,
        elapsed_ms=round(elapsed, 1),
        messages=messages,
    )


def assert_route_content(
    client: httpx.Client,
    path: str,
    expected: Optional[str] = None,
    *,
    status: int = 200,
    method: str = "GET",
    contains: Optional[list[str]] = None,
    **kwargs: Any,
) -> httpx.Response:
    """Request ``path`` and raise RouteAssertionError on any mismatch.

    ``expected`` is the exact body (surrounding whitespace ignored). Extra
    keyword arguments are RouteCheck fields. Returns the response so
    callers can make further assertions.
    """
    check = RouteCheck(
        path=path, method=method, status=status, equals=expected,
        contains=list(contains or []), **kwargs,
    )
    response = _send(client, check)
    messages = evaluate(check, response)
    if messages:
        raise RouteAssertionError(check, messages)
    return response


def run_route_set(client: httpx.Client, checks: list[RouteCheck]) -> list[CheckOutcome]:
    """Evaluate every check in order; a failure never stops the set."""
    return [check_route(client, check) for check in checks]
