"""Exception handling — unhandled script errors become problem details."""

NAME = "exception_handling"
DESCRIPTION = "Unhandled route exceptions mapped to RFC 7807 problem responses"
SCRIPT = "Tutorial/12.2-Exception-Handling.ps1"
TIMEOUT_S = 60

ROUTES = [
    {"path": "/ok", "equals": "ok"},
    {
        "path": "/throw",
        "status": 500,
        "content_type": "application/problem+json",
        "json_subset": {"status": 500, "title": "Internal Server Error"},
    },
    {
        "path": "/validation",
        "status": 400,
        "content_type": "application/problem+json",
        "json_subset": {"status": 400},
    },
]
