"""Authentication suite — Basic and API key schemes guarding routes."""

NAME = "basic_auth"
DESCRIPTION = "Basic and API key authentication on protected routes"
SCRIPT = "Tutorial/8.1-Basic-Authentication.ps1"
TIMEOUT_S = 90

ROUTES = [
    {"path": "/public", "contains": ["public"]},
    {"name": "Basic without credentials", "path": "/secure/basic/hello", "status": 401},
    {
        "name": "Basic with wrong password",
        "path": "/secure/basic/hello",
        "auth": ["admin", "wrong"],
        "status": 401,
    },
    {
        "name": "Basic with valid credentials",
        "path": "/secure/basic/hello",
        "auth": ["admin", "password"],
        "contains": ["Welcome, admin"],
    },
    {"name": "API key missing", "path": "/secure/key/hello", "status": 401},
    {
        "name": "API key valid",
        "path": "/secure/key/hello",
        "headers": {"X-Api-Key": "my-secret-api-key"},
        "contains": ["Welcome"],
    },
]
