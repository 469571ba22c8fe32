"""Shared MCP tool definitions for objective documents.

Deleting documents is intentionally not exposed here; use the API directly.
"""

from mcp.types import Tool


def get_tools() -> list[Tool]:
    """Get the list of all MCP tools for objective document work."""
    return [
        # ============================================================================
        # Read Tools
        # ============================================================================
        Tool(
            name="get_objective_document",
            description="Get the document of an objective: its latest version in full plus the version history. "
                       "Errors: 404 (objective not found or it has no document yet).",
            inputSchema={
                "type": "object",
                "properties": {
                    "objective_id": {
                        "type": "string",
                        "description": "UUID of the objective"
                    }
                },
                "required": ["objective_id"]
            }
        ),
        Tool(
            name="get_document",
            description="Get a document by ID with its latest version in full plus the version history.",
            inputSchema={
                "type": "object",
                "properties": {
                    "document_id": {
                        "type": "string",
                        "description": "UUID of the document"
                    }
                },
                "required": ["document_id"]
            }
        ),
        Tool(
            name="list_workspace_documents",
            description="List the documents of a workspace, most recently updated first, "
                       "with each document's objective and a preview of its latest version.",
            inputSchema={
                "type": "object",
                "properties": {
                    "workspace_id": {
                        "type": "string",
                        "description": "UUID of the workspace"
                    },
                    "objective_id": {
                        "type": "string",
                        "description": "Only return the document of this objective"
                    }
                },
                "required": ["workspace_id"]
            }
        ),
        Tool(
            name="get_session_version",
            description="Get the version the current session is bound to. "
                       "Uses the session selected by start_session_version unless session_id is given.",
            inputSchema={
                "type": "object",
                "properties": {
                    "session_id": {
                        "type": "string",
                        "description": "UUID of the session (default: current session)"
                    }
                }
            }
        ),
        # ============================================================================
        # Write Tools
        # ============================================================================
        Tool(
            name="start_session_version",
            description="Bind a session to its own version of the objective's document and make it the current session. "
                       "Creates the document if the objective has none, otherwise copies the latest version. "
                       "Starts a new session when no session_id is given and none is configured. "
                       "Common pattern: start_session_version() → update_version_content() repeatedly.",
            inputSchema={
                "type": "object",
                "properties": {
                    "objective_id": {
                        "type": "string",
                        "description": "UUID of the objective"
                    },
                    "workspace_id": {
                        "type": "string",
                        "description": "UUID of the objective's workspace"
                    },
                    "session_id": {
                        "type": "string",
                        "description": "UUID of an existing session on this objective"
                    }
                },
                "required": ["objective_id", "workspace_id"]
            }
        ),
        Tool(
            name="create_document_version",
            description="Append a new version to a document. Omitted fields are copied from the latest version.",
            inputSchema={
                "type": "object",
                "properties": {
                    "document_id": {
                        "type": "string",
                        "description": "UUID of the document"
                    },
                    "content": {
                        "type": "string",
                        "description": "Markdown content"
                    },
                    "punchlist": {
                        "type": "string",
                        "description": "Outstanding items"
                    },
                    "goal": {
                        "type": "string",
                        "description": "Goal statement"
                    },
                    "metadata": {
                        "type": "object",
                        "description": "Free-form JSON metadata"
                    }
                },
                "required": ["document_id"]
            }
        ),
        Tool(
            name="update_version_content",
            description="Replace the content of a version in place, without creating a new version. "
                       "Defaults to the version bound to the current session.",
            inputSchema={
                "type": "object",
                "properties": {
                    "version_id": {
                        "type": "string",
                        "description": "UUID of the version (default: current session's version)"
                    },
                    "content": {
                        "type": "string",
                        "description": "Full new markdown content"
                    },
                    "metadata": {
                        "type": "object",
                        "description": "Replaces the version metadata when given"
                    }
                },
                "required": ["content"]
            }
        ),
        Tool(
            name="update_version_punchlist",
            description="Replace the punchlist of a version in place, without creating a new version. "
                       "Defaults to the version bound to the current session.",
            inputSchema={
                "type": "object",
                "properties": {
                    "version_id": {
                        "type": "string",
                        "description": "UUID of the version (default: current session's version)"
                    },
                    "punchlist": {
                        "type": "string",
                        "description": "Full new punchlist"
                    }
                },
                "required": ["punchlist"]
            }
        ),
    ]
