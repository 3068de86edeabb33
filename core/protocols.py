"""Shared protocol definitions."""

from typing import Protocol

from starlette.requests import Request
from starlette.responses import Response


class Forwarder(Protocol):
    """Protocol for relaying an inbound request to the upstream."""

    async def forward_request(self, request: Request) -> Response: ...


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard, PlainLogger)."""

    def log_forward(self, method: str, path: str, target: str, status: int) -> None: ...
    def log_error(self, method: str, path: str, status: int | None, message: str) -> None: ...
