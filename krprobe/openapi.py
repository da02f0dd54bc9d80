"""OpenAPI documents — fetch from an example, normalize, diff against fixtures."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import httpx

# Members that change between runs (ports, build numbers) and say nothing
# about the generated API surface.
_VOLATILE_TOP_LEVEL = ("servers",)


class OpenApiError(RuntimeError):
    """The document could not be fetched or does not match its fixture."""

    def __init__(self, message: str, diffs: list[str] | None = None):
        super().__init__(message)
        self.diffs = diffs or []


def openapi_path(version: str) -> str:
    """'3.1' → '/openapi/v3.1/openapi.json'"""
    version = str(version).lstrip("vV")
    return f"/openapi/v{version}/openapi.json"


def fetch_document(client: httpx.Client, version: str) -> dict:
    path = openapi_path(version)
    response = client.get(path, headers={"Accept": "application/json"})
    if response.status_code != 200:
        raise OpenApiError(f"GET {path} returned {response.status_code}")
    try:
        doc = response.json()
    except ValueError as e:
        raise OpenApiError(f"GET {path} did not return JSON: {e}") from e
    if not isinstance(doc, dict):
        raise OpenApiError(f"GET {path} returned a JSON {type(doc).__name__}, not an object")
    return doc


def spec_version(doc: dict) -> str:
    """The document's declared OpenAPI (or Swagger 2.0) version."""
    return str(doc.get("openapi") or doc.get("swagger") or "")


def normalize_document(doc: dict, drop_info_version: bool = False) -> dict:
    """Deep copy of ``doc`` without run-specific members."""
    out = copy.deepcopy(doc)
    for key in _VOLATILE_TOP_LEVEL:
        out.pop(key, None)
    if drop_info_version and isinstance(out.get("info"), dict):
        out["info"].pop("version", None)
    return out


def _child(path: str, key: Any) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}"


def diff_documents(expected: Any, actual: Any, path: str = "$") -> list[str]:
    """Every difference between two JSON values, as one line each."""
    if isinstance(expected, dict) and isinstance(actual, dict):
        diffs: list[str] = []
        for key in expected:
            if key not in actual:
                diffs.append(f"{_child(path, key)}: missing")
            else:
                diffs.extend(diff_documents(expected[key], actual[key], _child(path, key)))
        for key in actual:
            if key not in expected:
                diffs.append(f"{_child(path, key)}: unexpected")
        return diffs

    if isinstance(expected, list) and isinstance(actual, list):
        diffs = []
        if len(expected) != len(actual):
            diffs.append(f"{path}: expected {len(expected)} items, got {len(actual)}")
        for i, (e, a) in enumerate(zip(expected, actual)):
            diffs.extend(diff_documents(e, a, _child(path, i)))
        return diffs

    if type(expected) is not type(actual) or expected != actual:
        return [f"{path}: expected {json.dumps(expected)}, got {json.dumps(actual)}"]
    return []


def load_fixture(path: Path) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def compare_with_fixture(client: httpx.Client, version: str, fixture: Path) -> list[str]:
    """Fetch the document for ``version`` and diff it with ``fixture``."""
    expected = normalize_document(load_fixture(fixture))
    actual = normalize_document(fetch_document(client, version))
    return diff_documents(expected, actual)


def assert_matches_fixture(client: httpx.Client, version: str, fixture: Path) -> None:
    diffs = compare_with_fixture(client, version, fixture)
    if diffs:
        shown = "\n  ".join(diffs[:20])
        more = f"\n  ... {len(diffs) - 20} more" if len(diffs) > 20 else ""
        raise OpenApiError(
            f"{openapi_path(version)} differs from {Path(fixture).name}:\n  {shown}{more}",
            diffs=diffs,
        )
