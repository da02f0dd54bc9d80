"""Health checks — probe aggregation and the JSON report at /healthz."""

NAME = "health"
DESCRIPTION = "Health endpoint with script, HTTP and disk probes"
SCRIPT = "Tutorial/16.1-Health-Checks.ps1"
TIMEOUT_S = 90

ROUTES = [
    {
        "path": "/healthz",
        "content_type": "application/json",
        "json_subset": {"status": "healthy"},
        "expect_headers": {"Cache-Control": "no-store, no-cache"},
    },
    {"name": "tag filter", "path": "/healthz?tag=self", "json_subset": {"appliedTags": ["self"]}},
]
