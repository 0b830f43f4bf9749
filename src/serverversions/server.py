"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState and start the watcher via the FastMCP lifespan
- Register tools
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import serverversions.tools.get_server_version as t_get_version
from serverversions import __version__
from serverversions.config import Settings
from serverversions.errors import WatcherError
from serverversions.fetcher import build_http_client
from serverversions.state import AppState
from serverversions.transport import run_http_server
from serverversions.watcher import build_watcher

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

log = structlog.get_logger()

SHUTDOWN_GRACE_SECONDS = 5.0

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer(ensure_ascii=False)]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout carries the MCP JSON-RPC stream in stdio mode
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    _setup_logging(settings)

    log.info(
        "server_starting",
        version=__version__,
        transport=settings.server.transport,
        listing_url=settings.scraper.root_url,
    )

    http_client = build_http_client(settings.scraper)
    watcher = build_watcher(settings, http_client)
    state = AppState(settings=settings, watcher=watcher, http_client=http_client)

    refresh_task = watcher.start(
        state.stop_event,
        settings.scraper.refresh_interval_minutes * 60,
    )

    log.info("server_started", version=__version__)

    try:
        yield state
    finally:
        state.stop_event.set()
        # Let an in-flight page request finish before forcing the task down.
        done, _ = await asyncio.wait({refresh_task}, timeout=SHUTDOWN_GRACE_SECONDS)
        if not done:
            refresh_task.cancel()
            with suppress(asyncio.CancelledError):
                await refresh_task
        await http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("serverversions", lifespan=lifespan)
# FastMCP has no version kwarg; report ours in the initialize handshake.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: WatcherError) -> CallToolResult:
    """Convert a WatcherError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict(), ensure_ascii=False))],
        isError=True,
    )


@mcp.tool()
async def get_server_version(host: str, ctx: Context) -> object:
    """Look up the game version a server advertises on the public server listing.

    Accepts the server address or listing label; a partial label such as a
    bare domain matches the first listed server containing it.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_get_version.handle(host, state)
    except WatcherError as exc:
        log.warning(
            "tool_error",
            tool="get_server_version",
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="get_server_version", exc_info=True)
        raise


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()

    if settings.server.transport == "http":
        _setup_logging(settings)
        run_http_server(mcp, settings)
        return

    mcp.run()


if __name__ == "__main__":
    main()
