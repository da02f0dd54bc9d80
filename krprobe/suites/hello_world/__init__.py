"""Hello World suite — the first tutorial example.

One route per response writer: text, JSON, XML and YAML.
"""

NAME = "hello_world"
DESCRIPTION = "Minimal server answering /hello in four formats"
SCRIPT = "Tutorial/1.1-Hello-World.ps1"
TIMEOUT_S = 60

ROUTES = [
    {"path": "/hello", "equals": "Hello, World!", "content_type": "text/plain"},
    {
        "path": "/hello-json",
        "content_type": "application/json",
        "json_subset": {"message": "Hello, World!"},
    },
    {"path": "/hello-xml", "content_type": "application/xml", "contains": ["<message>Hello, World!</message>"]},
    {"path": "/hello-yaml", "content_type": "application/yaml", "matches": r"^message: Hello, World!$"},
    {"path": "/does-not-exist", "status": 404},
]
