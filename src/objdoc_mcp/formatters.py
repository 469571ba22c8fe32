"""Shared formatting functions for MCP responses.

Every formatter takes the JSON body returned by the Objective Documents API
and renders it as markdown text for the assistant.
"""

# Content longer than this is cut in list views
PREVIEW_LENGTH = 200


def _preview(content: str, limit: int = PREVIEW_LENGTH) -> str:
    content = (content or "").strip()
    if len(content) <= limit:
        return content
    return content[:limit].rstrip() + "..."


def format_version(version: dict, include_content: bool = True) -> str:
    """Format a document version for display."""
    goal_info = f"\nGoal: {version['goal']}" if version.get('goal') else ""
    session_info = f"\nSession: {version['session_id']}" if version.get('session_id') else ""
    metadata_info = f"\nMetadata: {version['metadata']}" if version.get('metadata') else ""

    text = f"""**Version {version['version_number']}**
ID: {version['id']}
Document: {version['document_id']}
Author: {version['created_by_user_id']}{session_info}{goal_info}{metadata_info}
Content hash: {version['content_hash'][:12]}
Created: {version['created_at']}"""

    if version.get('punchlist'):
        text += f"\n\n### Punchlist\n{version['punchlist']}"

    if include_content:
        content = version.get('content') or "(empty)"
        text += f"\n\n### Content\n{content}"

    return text


def format_version_summary(version: dict) -> str:
    """Format a version as a compact one-liner for history views."""
    length = len(version.get('content') or "")
    session_suffix = f" (session {version['session_id']})" if version.get('session_id') else ""
    return (f"- v{version['version_number']}: {length} chars by {version['created_by_user_id']} "
            f"at {version['created_at']}{session_suffix}")


def format_document(document: dict) -> str:
    """Format a document envelope for display."""
    return f"""**{document['title']}**
ID: {document['id']}
Workspace: {document['workspace_id']}
Versions: {document['version_counter']}
Created: {document['created_at']}
Updated: {document['updated_at']}"""


def format_document_with_versions(result: dict) -> str:
    """Format a document with its latest version in full and the version history."""
    text = format_document(result['document'])

    latest = result.get('latest_version')
    if latest:
        text += f"\n\n## Latest\n{format_version(latest)}"
    else:
        text += "\n\nNo versions yet."

    versions = result.get('versions') or []
    if len(versions) > 1:
        history = "\n".join(format_version_summary(v) for v in versions)
        text += f"\n\n## History ({len(versions)} versions)\n{history}"

    return text


def format_workspace_document(entry: dict) -> str:
    """Format a workspace list entry (document, latest version, objective)."""
    document = entry['document']
    objective = entry.get('objective')
    latest = entry.get('latest_version')

    objective_info = f"\nObjective: {objective['title']} ({objective['id']})" if objective else ""
    if latest:
        preview = _preview(latest.get('content'))
        latest_info = f"\nLatest: v{latest['version_number']} ({latest['id']})"
        if preview:
            latest_info += f"\n> {preview}"
    else:
        latest_info = "\nLatest: none"

    return f"""**{document['title']}**
ID: {document['id']}
Updated: {document['updated_at']}{objective_info}{latest_info}"""


def format_binding(binding: dict) -> str:
    """Format a session -> version binding."""
    origin = "new document" if binding['is_first_version'] else "copy of the latest version"
    return f"""Session bound to version {binding['version_id']} ({origin})
Document: {binding['document_id']}
Objective: {binding['objective_id']}"""
