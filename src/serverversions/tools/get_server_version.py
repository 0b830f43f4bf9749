"""Tool handler for get_server_version.

Receives AppState, delegates to the watcher, and returns a structured dict.
No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from serverversions.errors import InvalidInputError
from serverversions.models.tools import GetServerVersionInput, GetServerVersionOutput

if TYPE_CHECKING:
    from serverversions.state import AppState


async def handle(host: str, state: AppState) -> dict:
    """Handle a get_server_version tool call."""
    log = structlog.get_logger().bind(tool="get_server_version", host=host)
    log.info("handler_called")

    try:
        validated = GetServerVersionInput(host=host)
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc

    version = await state.watcher.version_by_server(validated.host)
    log.info("lookup_complete", version=str(version))

    output = GetServerVersionOutput(host=validated.host, version=str(version))
    return output.model_dump(mode="json")
