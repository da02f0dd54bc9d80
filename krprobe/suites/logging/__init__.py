"""Logging — request messages written by the example's console sink."""

NAME = "logging"
DESCRIPTION = "Route-level logging to the console sink"
SCRIPT = "Tutorial/5.1-Logging.ps1"
TIMEOUT_S = 60

ROUTES = [
    {"path": "/log?message=hello", "equals": "logged"},
    {"path": "/log", "status": 400},
]
