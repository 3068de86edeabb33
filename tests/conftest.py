from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from app import create_app
from core.config import Config
from services.upstream import UpstreamForwarder

UPSTREAM = "http://upstream.test"


class RecordingLogger:
    """RequestLogger double that keeps every event."""

    def __init__(self):
        self.forwards: list[tuple[str, str, str, int]] = []
        self.errors: list[tuple[str, str, int | None, str]] = []

    def log_forward(self, method, path, target, status):
        self.forwards.append((method, path, target, status))

    def log_error(self, method, path, status, message):
        self.errors.append((method, path, status, message))


class MockForwarder:
    """Forwarder double counting calls and remembering the last request."""

    def __init__(self, response: Response | None = None):
        self.call_count = 0
        self.last_request = None
        self._response = response

    async def forward_request(self, request):
        self.call_count += 1
        self.last_request = request
        if self._response is not None:
            return self._response
        return PlainTextResponse("mock response")


class TrackingStream(httpx.AsyncByteStream):
    """Upstream body that yields ``chunks`` then optionally fails."""

    def __init__(self, chunks: list[bytes], error: Exception | None = None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self):
        self.closed = True


def _unread(handler):
    """Serve ``content=`` responses as unread streams, like a real transport."""

    def _handle(request: httpx.Request) -> httpx.Response:
        response = handler(request)
        if not isinstance(response.stream, httpx.ByteStream):
            return response
        return httpx.Response(
            response.status_code,
            headers=response.headers.raw,
            stream=TrackingStream([response.content]),
        )

    return _handle


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def make_forwarder(logger) -> Callable[..., UpstreamForwarder]:
    """Build an UpstreamForwarder whose upstream is ``handler``."""

    def _make(handler, base_url: str = UPSTREAM, **kwargs) -> UpstreamForwarder:
        client = httpx.AsyncClient(transport=httpx.MockTransport(_unread(handler)))
        return UpstreamForwarder(base_url, client, logger, **kwargs)

    return _make


@pytest.fixture
def make_client(logger, make_forwarder) -> Callable[..., TestClient]:
    """TestClient for the full app, forwarding to ``handler``."""

    def _make(handler, **kwargs) -> TestClient:
        app = create_app(Config(), logger, forwarder=make_forwarder(handler, **kwargs))
        return TestClient(app)

    return _make


def make_request(
    method: str = "GET",
    path: str = "/",
    query: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
    body: bytes = b"",
    raw_path: bytes | None = None,
    disconnected: bool = False,
) -> Request:
    """Starlette request built straight from an ASGI scope."""
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode() if raw_path is None else raw_path,
        "query_string": query,
        "root_path": "",
        "headers": headers or [],
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 50000),
    }
    sent = False

    async def receive():
        nonlocal sent
        if sent or disconnected:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)
