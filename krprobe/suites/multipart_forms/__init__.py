"""Multipart forms — fields, file uploads, compressed parts and limits.

The route set only checks that the form endpoints exist; bodies are built
in the judge tests with krprobe.forms.
"""

NAME = "multipart_forms"
DESCRIPTION = "multipart/form-data and url-encoded parsing with per-part decompression"
SCRIPT = "Tutorial/6.1-Multipart-Forms.ps1"
TIMEOUT_S = 120

ROUTES = [
    {"path": "/form", "method": "GET", "content_type": "text/html", "contains": ["<form"]},
    {
        "name": "POST /form without body is rejected",
        "path": "/form",
        "method": "POST",
        "status": 400,
    },
]
