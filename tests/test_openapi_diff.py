import json

import pytest

from krprobe.openapi import (
    OpenApiError,
    assert_matches_fixture,
    compare_with_fixture,
    diff_documents,
    fetch_document,
    normalize_document,
    openapi_path,
    spec_version,
)


@pytest.mark.parametrize("version,path", [
    ("3.1", "/openapi/v3.1/openapi.json"),
    ("v3.0", "/openapi/v3.0/openapi.json"),
    (2, "/openapi/v2/openapi.json"),
])
def test_openapi_path(version, path):
    assert openapi_path(version) == path


def test_normalize_drops_volatile_members():
    doc = {"openapi": "3.1.0", "servers": [{"url": "x"}], "info": {"title": "t", "version": "9"}}
    out = normalize_document(doc, drop_info_version=True)
    assert out == {"openapi": "3.1.0", "info": {"title": "t"}}
    assert "servers" in doc and doc["info"]["version"] == "9"


def test_diff_reports_every_kind():
    expected = {"a": 1, "b": {"c": [1, 2]}, "gone": True}
    actual = {"a": 2, "b": {"c": [1]}, "extra": None}
    assert diff_documents(expected, actual) == [
        "$.a: expected 1, got 2",
        "$.b.c: expected 2 items, got 1",
        "$.gone: missing",
        "$.extra: unexpected",
    ]


def test_diff_distinguishes_types():
    assert diff_documents({"x": 1}, {"x": "1"}) == ['$.x: expected 1, got "1"']
    assert diff_documents([True], [1]) == ["$[0]: expected true, got 1"]
    assert diff_documents({"x": [1]}, {"x": [1]}) == []


def test_spec_version():
    assert spec_version({"openapi": "3.0.4"}) == "3.0.4"
    assert spec_version({"swagger": "2.0"}) == "2.0"
    assert spec_version({}) == ""


def test_live_fixture_match(live_client, tmp_path):
    fixture = tmp_path / "doc.json"
    fixture.write_text(json.dumps({
        "openapi": "3.1.1",
        "info": {"title": "Test API", "version": "1.0.0"},
        "servers": [{"url": "http://elsewhere"}],
        "paths": {"/hello": {"get": {"responses": {"200": {"description": "greeting"}}}}},
    }))
    assert compare_with_fixture(live_client, "3.1", fixture) == []
    assert_matches_fixture(live_client, "3.1", fixture)


def test_live_fixture_drift(live_client, tmp_path):
    fixture = tmp_path / "doc.json"
    fixture.write_text(json.dumps({"openapi": "3.1.1", "info": {"title": "Other"}}))
    with pytest.raises(OpenApiError) as exc:
        assert_matches_fixture(live_client, "3.1", fixture)
    assert "$.info.title: expected \"Other\", got \"Test API\"" in exc.value.diffs
    assert "$.paths: unexpected" in exc.value.diffs


def test_fetch_missing_version(live_client):
    with pytest.raises(OpenApiError, match="returned 404"):
        fetch_document(live_client, "3.0")
