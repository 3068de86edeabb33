"""FastAPI route handlers."""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response

from core.protocols import Forwarder

FORWARDED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]


def forwarder_handler(forwarder: Forwarder) -> Callable[[Request], Awaitable[Response]]:
    """Expose ``forwarder`` as a route endpoint that only delegates."""

    async def handle_forward(request: Request) -> Response:
        return await forwarder.forward_request(request)

    return handle_forward
