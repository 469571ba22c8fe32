"""Objective Documents MCP Server - Expose document versioning to AI assistants."""
import os
import sys
import asyncio
import logging
import traceback
from typing import Any, Optional

import httpx
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    Tool,
    TextContent,
    ImageContent,
    EmbeddedResource,
)

from . import tools
from . import handlers


# Configure logging to stderr (stdout carries the MCP protocol)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr,
    force=True
)
logger = logging.getLogger("objdoc-mcp")

# API Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000/api/v1")
OBJDOC_USER_ID = os.getenv("OBJDOC_USER_ID")  # Sent as X-User-Id on every request

logger.info(f"MCP Server starting with API_BASE_URL: {API_BASE_URL}")
if not OBJDOC_USER_ID:
    logger.warning("OBJDOC_USER_ID is not set; every API call will be rejected")


# MCP Server instance
app = Server("objdoc-mcp")

# Session scope for this connection (stdio: one process per connection)
_session_scope: Optional[dict] = None
if os.getenv("OBJDOC_SESSION_ID"):
    _session_scope = {"session_id": os.getenv("OBJDOC_SESSION_ID")}


def build_client() -> httpx.AsyncClient:
    """HTTP client for the Objective Documents API."""
    headers = {}
    if OBJDOC_USER_ID:
        headers["X-User-Id"] = OBJDOC_USER_ID
    return httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0, headers=headers)


def error_detail(response: httpx.Response) -> str:
    """Pull the error message out of an API error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("detail"):
        code = body.get("code")
        return f"{code}: {body['detail']}" if code else str(body["detail"])
    return str(body)


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available MCP tools for objective documents."""
    return tools.get_tools()


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent | ImageContent | EmbeddedResource]:
    """Handle MCP tool calls by delegating to shared handlers."""
    global _session_scope

    logger.info(f"Tool call: {name} with arguments: {arguments}")

    handler = handlers.HANDLERS.get(name)
    if not handler:
        logger.warning(f"Unknown tool requested: {name}")
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    async with build_client() as client:
        try:
            content, scope_update = await handler(dict(arguments or {}), client, _session_scope)

            if scope_update is not None and scope_update is not _session_scope:
                _session_scope = scope_update
                logger.info(f"Updated session scope to: {_session_scope}")

            return content

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error during {name} call:")
            logger.error(f"  Status: {e.response.status_code}")
            logger.error(f"  URL: {e.request.url}")
            detail = error_detail(e.response)
            logger.error(f"  Detail: {detail}")
            return [TextContent(type="text", text=f"Error: {detail}")]

        except httpx.RequestError as e:
            logger.error(f"Request error during {name} call:")
            logger.error(f"  Error type: {type(e).__name__}")
            logger.error(f"  Error message: {str(e)}")
            return [TextContent(type="text", text=f"Error: Connection failed - {str(e)}")]

        except Exception as e:
            logger.error(f"Unexpected error during {name} call:")
            logger.error(f"  Error type: {type(e).__name__}")
            logger.error(f"  Arguments: {arguments}")
            logger.error(f"  Traceback:\n{traceback.format_exc()}")
            return [TextContent(type="text", text=f"Error: {type(e).__name__}: {str(e)}")]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
