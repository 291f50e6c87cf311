"""
Shared test fixtures for token introspection tests.

Provides a stub introspection endpoint served through
``httpx.MockTransport``, configuration factories bound to it, and a real
local HTTP endpoint that answers slower than a short timeout.
"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Iterator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

import httpx
import pytest

from token_introspection.cache import MemoryCache
from token_introspection.config import IntrospectionConfig, TelemetryConfig

ENDPOINT = "https://auth.example.com/oauth/introspect"


class StubEndpoint:
    """Introspection endpoint double that records every request."""

    def __init__(
        self,
        *,
        status_code: int = 200,
        payload: Any = None,
        content: bytes | None = None,
        exc: type[httpx.HTTPError] | None = None,
    ) -> None:
        self.status_code = status_code
        self.payload = {"active": True} if payload is None else payload
        self.content = content
        self.exc = exc
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc("stubbed failure", request=request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.payload)


def make_config(stub: StubEndpoint, **overrides: Any) -> IntrospectionConfig:
    """Build a configuration whose clients talk to ``stub``."""
    transport = httpx.MockTransport(stub)
    options: dict[str, Any] = {
        "endpoint": ENDPOINT,
        "client": httpx.Client(transport=transport),
        "async_client": httpx.AsyncClient(transport=transport),
        "telemetry": TelemetryConfig(enabled=False),
    }
    options.update(overrides)
    return IntrospectionConfig(**options)


@pytest.fixture
def stub() -> StubEndpoint:
    """Provide an endpoint answering ``{"active": true}``."""
    return StubEndpoint()


@pytest.fixture
def cache() -> MemoryCache:
    """Provide an empty in-memory cache."""
    return MemoryCache()


SLOW_RESPONSE_DELAY = 0.5


class SlowIntrospectionHandler(BaseHTTPRequestHandler):
    """Answers every POST with an active token after a delay."""

    def do_POST(self) -> None:
        length = int(self.headers.get("Content-Length", 0))
        self.rfile.read(length)
        time.sleep(SLOW_RESPONSE_DELAY)
        body = json.dumps({"active": True}).encode()
        try:
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        except (BrokenPipeError, ConnectionResetError):
            # Client already gave up
            pass

    def log_message(self, format: str, *args: Any) -> None:
        return None


@pytest.fixture
def slow_endpoint() -> Iterator[str]:
    """Serve a real introspection endpoint that answers too slowly."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), SlowIntrospectionHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    try:
        yield f"http://{host}:{port}/oauth/introspect"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@pytest.fixture
def sample_introspection() -> dict[str, Any]:
    """Provide a sample RFC 7662 response."""
    now = int(time.time())
    return {
        "active": True,
        "scope": "openid profile email",
        "client_id": "test-client-id",
        "username": "jdoe",
        "token_type": "Bearer",
        "exp": now + 3600,
        "iat": now,
        "sub": "user-123",
        "aud": "https://api.example.com",
        "iss": "https://auth.example.com",
        "tenant": "acme",
    }
