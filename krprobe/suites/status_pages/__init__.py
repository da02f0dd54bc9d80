"""Status code pages — framework-rendered pages for error statuses."""

NAME = "status_pages"
DESCRIPTION = "Custom pages for 404/500 responses without a body"
SCRIPT = "Tutorial/12.1-Status-Code-Pages.ps1"
TIMEOUT_S = 60

ROUTES = [
    {"path": "/", "contains": ["Status Code Pages"]},
    {"path": "/missing", "status": 404, "content_type": "text/html", "contains": ["404"]},
    {"path": "/fail", "status": 500, "content_type": "text/html", "contains": ["500"]},
    {
        "name": "404 page as plain text",
        "path": "/missing",
        "status": 404,
        "headers": {"Accept": "text/plain"},
        "matches": r"Status Code: 404",
    },
]
