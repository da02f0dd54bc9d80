"""Routing suite — path parameters, query strings and verb matching."""

NAME = "routing"
DESCRIPTION = "Route parameters, query strings, verbs and 405/404 handling"
SCRIPT = "Tutorial/2.1-Route-Parameters.ps1"
TIMEOUT_S = 60

ROUTES = [
    {"path": "/items/42", "json_subset": {"id": "42"}},
    {"path": "/search?q=kestrun&page=2", "json_subset": {"q": "kestrun", "page": "2"}},
    {
        "name": "POST /items echoes body",
        "path": "/items",
        "method": "POST",
        "json": {"name": "widget"},
        "status": 201,
        "json_subset": {"name": "widget"},
        "expect_headers": {"Location": "/items/widget"},
    },
    {"path": "/items/42", "method": "DELETE", "status": 204},
    {"path": "/items/42", "method": "PATCH", "status": 405},
    {"name": "HEAD /items/42 has no body", "path": "/items/42", "method": "HEAD", "equals": ""},
    {"path": "/old-items", "status": 301, "expect_headers": {"Location": "/items"}},
]
