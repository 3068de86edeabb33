"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from api.handlers import FORWARDED_METHODS, forwarder_handler
from core.config import Config
from core.protocols import Forwarder, RequestLogger
from services.upstream import UpstreamForwarder


def create_app(
    config: Config,
    logger: RequestLogger,
    forwarder: Forwarder | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    client: httpx.AsyncClient | None = None
    if forwarder is None:
        limits = httpx.Limits(
            max_connections=config.limits.max_connections,
            max_keepalive_connections=config.limits.max_keepalive_connections,
        )
        client = httpx.AsyncClient(timeout=config.upstream.timeout, limits=limits)
        forwarder = UpstreamForwarder(
            config.upstream.base_url,
            client,
            logger,
            always_append_query=config.upstream.always_append_query,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            if client is not None:
                await client.aclose()

    # Every path belongs to the upstream, so no docs routes
    app = FastAPI(
        title="Upstream Forwarder",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.forwarder = forwarder

    app.add_api_route(
        "/{path:path}",
        forwarder_handler(forwarder),
        methods=FORWARDED_METHODS,
        include_in_schema=False,
    )

    return app
