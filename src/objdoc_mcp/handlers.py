"""MCP tool handlers for objective documents.

All handlers follow a consistent pattern:
- Accept: arguments dict, httpx.AsyncClient, and optional current_scope
- Return: tuple of (list[TextContent], Optional[dict]) where second element is updated scope
- Use formatters from formatters module for consistent output
- Log all operations for debugging

The scope is the session the assistant is working in:
{"session_id", "objective_id", "version_id", "document_id"}. It is owned by
the caller (transport-specific); handlers only read it and return updates.
"""
from typing import Optional
import logging

import httpx
from mcp.types import TextContent

from . import formatters

logger = logging.getLogger("objdoc-mcp.handlers")


def _scoped(arguments: dict, key: str, current_scope: Optional[dict]) -> Optional[str]:
    """Explicit argument first, then the session scope."""
    if arguments.get(key):
        return arguments[key]
    if current_scope and current_scope.get(key):
        logger.info(f"Using session scope for {key}: {current_scope[key]}")
        return current_scope[key]
    return None


def _missing(message: str, current_scope: Optional[dict]) -> tuple[list[TextContent], Optional[dict]]:
    return [TextContent(type="text", text=f"Error: {message}")], current_scope


# ============================================================================
# Read Handlers
# ============================================================================

async def handle_get_objective_document(
    arguments: dict,
    client: httpx.AsyncClient,
    current_scope: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Get an objective's document with its version history.

    Errors: 404 (objective not found, or no document yet)
    """
    objective_id = arguments["objective_id"]
    response = await client.get(f"/objectives/{objective_id}/document")
    response.raise_for_status()
    result = response.json()
    logger.info(f"Retrieved document {result['document']['id']} for objective {objective_id}")

    return [TextContent(type="text", text=formatters.format_document_with_versions(result))], current_scope


async def handle_get_document(
    arguments: dict,
    client: httpx.AsyncClient,
    current_scope: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Get a document by ID with its version history."""
    document_id = arguments["document_id"]
    response = await client.get(f"/documents/{document_id}")
    response.raise_for_status()
    result = response.json()
    logger.info(f"Retrieved document {document_id} ({len(result['versions'])} versions)")

    return [TextContent(type="text", text=formatters.format_document_with_versions(result))], current_scope


async def handle_list_workspace_documents(
    arguments: dict,
    client: httpx.AsyncClient,
    current_scope: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """List a workspace's documents, most recently updated first."""
    workspace_id = arguments["workspace_id"]
    params = {}
    if arguments.get("objective_id"):
        params["objective_id"] = arguments["objective_id"]

    response = await client.get(f"/workspaces/{workspace_id}/documents", params=params)
    response.raise_for_status()
    result = response.json()
    logger.info(f"Listed {len(result)} documents in workspace {workspace_id}")

    if not result:
        return [TextContent(type="text", text="No documents found in this workspace.")], current_scope

    items_text = "\n\n".join(formatters.format_workspace_document(entry) for entry in result)
    summary = f"Found {len(result)} documents\n\n{items_text}"
    return [TextContent(type="text", text=summary)], current_scope


async def handle_get_session_version(
    arguments: dict,
    client: httpx.AsyncClient,
    current_scope: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Get the version the (current) session is bound to."""
    session_id = _scoped(arguments, "session_id", current_scope)
    if not session_id:
        return _missing("No session selected. Call start_session_version first.", current_scope)

    response = await client.get(f"/sessions/{session_id}/version")
    response.raise_for_status()
    result = response.json()
    logger.info(f"Session {session_id} is bound to version {result['version']['id']}")

    text = (f"Session {session_id} (objective {result['objective_id']})\n\n"
            f"{formatters.format_version(result['version'])}")
    return [TextContent(type="text", text=text)], current_scope


# ============================================================================
# Write Handlers
# ============================================================================

async def handle_start_session_version(
    arguments: dict,
    client: httpx.AsyncClient,
    current_scope: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Bind a session to its own version and make it the current session.

    Starts a new session on the objective when none is given or configured.

    Returns:
        Tuple of (response content, new session scope)
    """
    objective_id = arguments["objective_id"]
    workspace_id = arguments["workspace_id"]

    session_id = arguments.get("session_id")
    if not session_id and current_scope and current_scope.get("objective_id") == objective_id:
        session_id = current_scope.get("session_id")

    if not session_id:
        response = await client.post(f"/objectives/{objective_id}/sessions", json={})
        response.raise_for_status()
        session_id = response.json()["id"]
        logger.info(f"Started session {session_id} on objective {objective_id}")

    response = await client.post(
        f"/sessions/{session_id}/bind",
        json={"objective_id": objective_id, "workspace_id": workspace_id},
    )
    response.raise_for_status()
    binding = response.json()
    logger.info(f"Bound session {session_id} to version {binding['version_id']}")

    new_scope = {
        "session_id": session_id,
        "objective_id": binding["objective_id"],
        "version_id": binding["version_id"],
        "document_id": binding["document_id"],
    }

    text = (f"{formatters.format_binding(binding)}\n"
            f"Session: {session_id}\n\n"
            f"update_version_content and update_version_punchlist now default to this version.")
    return [TextContent(type="text", text=text)], new_scope


async def handle_create_document_version(
    arguments: dict,
    client: httpx.AsyncClient,
    current_scope: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Append a version to a document (copy-forward for omitted fields)."""
    document_id = arguments.pop("document_id")
    payload = {k: v for k, v in arguments.items() if v is not None}
    if current_scope and current_scope.get("document_id") == document_id:
        payload.setdefault("session_id", current_scope.get("session_id"))

    response = await client.post(f"/documents/{document_id}/versions", json=payload)
    response.raise_for_status()
    result = response.json()
    logger.info(f"Created version {result['version_number']} of document {document_id}")

    text = f"Created version {result['version_number']}\n\n{formatters.format_version(result, include_content=False)}"
    return [TextContent(type="text", text=text)], current_scope


async def handle_update_version_content(
    arguments: dict,
    client: httpx.AsyncClient,
    current_scope: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Replace a version's content in place."""
    version_id = _scoped(arguments, "version_id", current_scope)
    if not version_id:
        return _missing("No version_id given and no session version selected.", current_scope)

    payload = {"content": arguments["content"]}
    if arguments.get("metadata") is not None:
        payload["metadata"] = arguments["metadata"]

    response = await client.patch(f"/versions/{version_id}/content", json=payload)
    response.raise_for_status()
    result = response.json()
    logger.info(f"Updated content of version {version_id} ({len(result['content'])} chars)")

    text = f"Updated content in place\n\n{formatters.format_version(result, include_content=False)}"
    return [TextContent(type="text", text=text)], current_scope


async def handle_update_version_punchlist(
    arguments: dict,
    client: httpx.AsyncClient,
    current_scope: Optional[dict] = None
) -> tuple[list[TextContent], Optional[dict]]:
    """Replace a version's punchlist in place."""
    version_id = _scoped(arguments, "version_id", current_scope)
    if not version_id:
        return _missing("No version_id given and no session version selected.", current_scope)

    response = await client.patch(
        f"/versions/{version_id}/punchlist", json={"punchlist": arguments["punchlist"]}
    )
    response.raise_for_status()
    result = response.json()
    logger.info(f"Updated punchlist of version {version_id}")

    text = f"Updated punchlist in place\n\n{formatters.format_version(result, include_content=False)}"
    return [TextContent(type="text", text=text)], current_scope


HANDLERS = {
    "get_objective_document": handle_get_objective_document,
    "get_document": handle_get_document,
    "list_workspace_documents": handle_list_workspace_documents,
    "get_session_version": handle_get_session_version,
    "start_session_version": handle_start_session_version,
    "create_document_version": handle_create_document_version,
    "update_version_content": handle_update_version_content,
    "update_version_punchlist": handle_update_version_punchlist,
}
