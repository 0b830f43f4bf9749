"""Streamable HTTP transport for the MCP server."""

from __future__ import annotations

import re
import secrets
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.datastructures import Headers
from starlette.responses import Response

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP
    from starlette.types import ASGIApp, Receive, Scope, Send

    from serverversions.config import Settings

log = structlog.get_logger()

_LOCALHOST_ORIGIN = re.compile(r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$")


class AccessGuardMiddleware:
    """Pure ASGI middleware guarding the HTTP endpoint.

    Rejects requests without the expected bearer key (when auth is on) and
    browser requests whose Origin is not localhost. Pure ASGI so streamed
    responses pass through unbuffered.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        auth_enabled: bool,
        auth_key: str | None = None,
    ) -> None:
        self.app = app
        self.auth_enabled = auth_enabled
        self.auth_key = auth_key

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = Headers(scope=scope)

            if self.auth_enabled and headers.get("authorization", "") != f"Bearer {self.auth_key}":
                await Response("Unauthorized", status_code=401)(scope, receive, send)
                return

            origin = headers.get("origin", "")
            if origin and not _LOCALHOST_ORIGIN.match(origin):
                await Response("Forbidden", status_code=403)(scope, receive, send)
                return

        await self.app(scope, receive, send)


def run_http_server(mcp: FastMCP, settings: Settings) -> None:
    """Serve the MCP app over streamable HTTP with uvicorn."""
    http_log = log.bind(transport="http")

    auth_key: str | None = settings.server.auth_key or None
    if settings.server.auth_enabled and not auth_key:
        auth_key = secrets.token_urlsafe(32)
        http_log.warning("http_auth_key_auto_generated", auth_key=auth_key)

    app = AccessGuardMiddleware(
        mcp.streamable_http_app(),
        auth_enabled=settings.server.auth_enabled,
        auth_key=auth_key,
    )
    http_log.info("http_listening", host=settings.server.host, port=settings.server.port)

    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # structlog owns logging
    )
