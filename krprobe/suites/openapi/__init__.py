"""OpenAPI generation — one document per OpenAPI version, compared with fixtures."""

NAME = "openapi"
DESCRIPTION = "OpenAPI 3.0/3.1 documents generated from annotated routes"
SCRIPT = "Tutorial/10.1-OpenAPI-Hello.ps1"
TIMEOUT_S = 120

ROUTES = [
    {"path": "/greeting", "json_subset": {"message": "Hello, World!"}},
    {"path": "/openapi/v3.0/openapi.json", "json_subset": {"openapi": "3.0.4"}},
    {"path": "/openapi/v3.1/openapi.json", "json_subset": {"openapi": "3.1.1"}},
    {"path": "/openapi/v9.9/openapi.json", "status": 404},
]

OPENAPI = {
    "3.0": "openapi.v3.0.json",
    "3.1": "openapi.v3.1.json",
}
