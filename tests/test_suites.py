from krprobe.suites import list_suites, load_suite

BUNDLED = {
    "basic_auth", "exception_handling", "health", "hello_world", "logging",
    "multipart_forms", "openapi", "routing", "sse", "status_pages",
}


def test_bundled_suites_discovered():
    suites = {s.name: s for s in list_suites()}
    assert set(suites) == BUNDLED
    for s in suites.values():
        assert s.script.endswith(".ps1")
        assert s.timeout_s > 0


def test_hello_world_routes():
    suite = load_suite("hello_world")
    names = [r.name for r in suite.routes]
    assert "GET /hello" in names
    assert suite.tests_dir is None
    assert suite.total_checks == len(suite.routes)


def test_openapi_fixtures_exist():
    suite = load_suite("openapi")
    assert set(suite.openapi) == {"3.0", "3.1"}
    for fixture in suite.openapi.values():
        assert fixture.is_file()
    assert suite.total_checks == len(suite.routes) + 2


def test_judge_dirs():
    for name in ("sse", "multipart_forms", "health", "basic_auth", "logging", "openapi"):
        suite = load_suite(name)
        assert suite.tests_dir is not None and any(suite.tests_dir.glob("test_*.py"))


def test_unknown_suite():
    assert load_suite("nope") is None
    assert load_suite("__pycache__") is None
