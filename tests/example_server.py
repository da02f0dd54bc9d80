"""Stand-in example server for the harness tests.

Started the way a real example is: ``<interpreter> example_server.py -Port <n>``.
"""

import argparse
import json
import os
import sys
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlparse

OPENAPI = {
    "openapi": "3.1.1",
    "info": {"title": "Test API", "version": "1.0.0"},
    "servers": [{"url": "http://127.0.0.1"}],
    "paths": {"/hello": {"get": {"responses": {"200": {"description": "greeting"}}}}},
}

HEALTH = {
    "status": "degraded",
    "generatedAt": "2026-01-01T00:00:00Z",
    "summary": {"total": 2, "healthy": 1, "degraded": 1, "unhealthy": 0},
    "appliedTags": [],
    "probes": [
        {"name": "self", "status": "healthy", "duration": "1ms"},
        {"name": "disk", "status": "degraded", "duration": "3ms",
         "description": "low space", "data": {"freePercent": 9.5}},
    ],
}


class Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _send(self, status, body, content_type="text/plain; charset=utf-8", headers=None):
        data = body.encode("utf-8") if isinstance(body, str) else body
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        for k, v in (headers or {}).items():
            self.send_header(k, v)
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(data)

    def do_HEAD(self):
        self.do_GET()

    def do_GET(self):
        url = urlparse(self.path)
        if url.path == "/hello":
            self._send(200, "Hello, World!")
        elif url.path == "/json":
            self._send(200, json.dumps({"message": "hi", "items": [1, 2]}), "application/json",
                       headers={"X-Example": "yes"})
        elif url.path == "/log":
            message = parse_qs(url.query).get("message", [""])[0]
            print(f"[INF] {message}", flush=True)
            self._send(200, "logged")
        elif url.path == "/healthz":
            self._send(503, json.dumps(HEALTH), "application/json")
        elif url.path == "/openapi/v3.1/openapi.json":
            self._send(200, json.dumps(OPENAPI), "application/json")
        elif url.path == "/sse":
            self.send_response(200)
            self.send_header("Content-Type", "text/event-stream")
            self.send_header("Cache-Control", "no-cache")
            self.send_header("Connection", "close")
            self.end_headers()
            self.wfile.write(b": hello\n\nretry: 1000\n\n")
            for i in range(3):
                self.wfile.write(f"id: {i}\nevent: tick\ndata: {i}\n\n".encode("utf-8"))
                self.wfile.flush()
                time.sleep(0.05)
            self.close_connection = True
        else:
            self._send(404, "not found")

    def do_POST(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length)
        if self.path == "/echo":
            self._send(200, body, self.headers.get("Content-Type") or "application/octet-stream")
        else:
            self._send(404, "not found")

    def log_message(self, fmt, *args):
        sys.stderr.write("%s %s\n" % (self.address_string(), fmt % args))


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("-Port", type=int, required=True)
    parser.add_argument("-FailFast", action="store_true")
    args = parser.parse_args()
    if args.FailFast:
        print("refusing to start", file=sys.stderr, flush=True)
        sys.exit(3)
    host = os.environ.get("KRPROBE_HOST", "127.0.0.1")
    server = ThreadingHTTPServer((host, args.Port), Handler)
    print(f"listening on {host}:{args.Port}", flush=True)
    server.serve_forever()


if __name__ == "__main__":
    main()
