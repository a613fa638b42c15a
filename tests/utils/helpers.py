"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Dict, Optional, Tuple

ADMIN_TOKEN = "test-admin-token"


class MockSocket:
    """Socket stand-in: serves a canned request and records what the handler sends."""

    def __init__(self, request: bytes):
        self._request = request
        self.sent = b""

    def makefile(self, *args, **kwargs):
        return BytesIO(self._request)

    def sendall(self, data):
        self.sent += data

    def close(self):
        pass


def auth_headers(token: str = ADMIN_TOKEN) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def build_request(
    method: str,
    path: str,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> bytes:
    """Raw HTTP/1.1 request bytes; dict/list bodies are sent as JSON."""
    if body is None:
        raw_body = b""
    elif isinstance(body, (dict, list)):
        raw_body = json.dumps(body).encode("utf-8")
    elif isinstance(body, str):
        raw_body = body.encode("utf-8")
    else:
        raw_body = body

    headers = dict(headers or {})
    headers.setdefault("Host", "localhost")
    if raw_body:
        headers.setdefault("Content-Type", "application/json")
        headers["Content-Length"] = str(len(raw_body))

    lines = [f"{method} {path} HTTP/1.1"] + [f"{k}: {v}" for k, v in headers.items()]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + raw_body


def parse_response(data: bytes) -> Tuple[int, Any]:
    """Split a raw HTTP response into status code and decoded JSON body."""
    head, _, payload = data.partition(b"\r\n\r\n")
    status_line = head.split(b"\r\n", 1)[0].decode("latin-1")
    status = int(status_line.split()[1])
    return status, json.loads(payload) if payload else None


def invoke_handler(
    handler_cls,
    method: str,
    path: str,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Any]:
    """Run one request through a serverless handler class and return (status, json)."""
    sock = MockSocket(build_request(method, path, body, headers))
    handler_cls(sock, ("127.0.0.1", 8000), None)
    return parse_response(sock.sent)
