"""HTTP forwarding to the fixed upstream with streaming support."""

from collections.abc import AsyncIterator
from http.cookiejar import DefaultCookiePolicy

import httpx
from fastapi import Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect

from core.exceptions import (
    ClientDisconnectedError,
    ConstructionError,
    ForwardingError,
    StreamingError,
    UpstreamCallError,
)
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import PreparedRequest
from core.target import TargetBuilder, raw_path_of


class UpstreamForwarder:
    """Relay every inbound request to a single upstream base URL.

    The upstream base is fixed at construction. The only other state is the
    shared ``httpx.AsyncClient``, which is safe for concurrent use, so one
    instance serves all requests.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        logger: RequestLogger,
        *,
        always_append_query: bool = False,
        header_builder: HeaderBuilder | None = None,
    ) -> None:
        self._targets = TargetBuilder(base_url.rstrip("/"), always_append_query)
        self._client = client
        # Set-Cookie belongs to the caller; the shared client must not keep it
        self._client.cookies.jar.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        self._logger = logger
        self._headers = header_builder or HeaderBuilder()

    @property
    def base_url(self) -> str:
        return self._targets.base_url

    async def forward_request(self, request: Request) -> Response:
        """Forward ``request`` upstream and stream the answer back."""
        path = raw_path_of(request)
        prepared = self.prepare(request)
        try:
            outbound = self._build_request(prepared, request)
            upstream = await self._send(outbound)
        except ForwardingError as e:
            self._logger.log_error(request.method, path, e.status_code, e.message)
            return self._error_response(e)

        self._logger.log_forward(request.method, path, prepared.target_url, upstream.status_code)
        return self._stream_response(upstream, request.method, path)

    def prepare(self, request: Request) -> PreparedRequest:
        """Derive the outbound request data from the inbound one."""
        raw_headers = request.headers.raw
        return PreparedRequest(
            method=request.method,
            target_url=self._targets.build_for(request),
            headers=self._headers.build_upstream_headers(raw_headers),
            has_body=self._headers.has_body(raw_headers),
        )

    def _build_request(self, prepared: PreparedRequest, request: Request) -> httpx.Request:
        """Build the outbound request without the client's default headers."""
        try:
            return httpx.Request(
                prepared.method,
                prepared.target_url,
                headers=prepared.headers,
                content=request.stream() if prepared.has_body else None,
                extensions={"timeout": self._client.timeout.as_dict()},
            )
        except (httpx.InvalidURL, ValueError, TypeError) as e:
            raise ConstructionError(_describe(e)) from e

    async def _send(self, outbound: httpx.Request) -> httpx.Response:
        try:
            return await self._client.send(outbound, stream=True)
        except httpx.RequestError as e:
            raise UpstreamCallError(_describe(e)) from e
        except ClientDisconnect as e:
            raise ClientDisconnectedError("request body upload aborted") from e

    def _stream_response(self, upstream: httpx.Response, method: str, path: str) -> StreamingResponse:
        """Mirror status and headers, then stream the raw upstream body."""
        response = StreamingResponse(
            self._stream_body(upstream, method, path),
            status_code=upstream.status_code,
            # Runs even when the body iterator was never started
            background=BackgroundTask(upstream.aclose),
        )
        response.raw_headers = self._headers.build_client_headers(upstream.headers.raw)
        return response

    async def _stream_body(self, upstream: httpx.Response, method: str, path: str) -> AsyncIterator[bytes]:
        """Yield raw upstream chunks, closing the upstream response on every exit."""
        try:
            async for chunk in upstream.aiter_raw():
                yield chunk
        except (httpx.HTTPError, httpx.StreamError) as e:
            # Status is already committed: abort so the client sees a truncated body
            error = StreamingError(_describe(e))
            self._logger.log_error(method, path, None, error.message)
            raise error from e
        finally:
            await upstream.aclose()

    @staticmethod
    def _error_response(error: ForwardingError) -> Response:
        return PlainTextResponse(
            error.message + "\n",
            status_code=error.status_code or 500,
            headers={"X-Content-Type-Options": "nosniff"},
        )


def _describe(error: Exception) -> str:
    """Readable error text; some httpx errors carry an empty message."""
    return str(error) or type(error).__name__
