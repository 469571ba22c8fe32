"""CRUD operations for workspaces, objectives and chat sessions.

Every ownership-gated lookup joins through the workspace and excludes
soft-deleted workspaces. Lookups that fail the ownership check return None
exactly like a missing row, so callers cannot tell the two apart.
"""
import logging
from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from . import models
from .database import transaction
from .errors import DocumentNotFoundError, DocumentValidationError

logger = logging.getLogger("objdoc-core.crud")

IdLike = Union[UUID, str]


def to_uuid(value: Optional[IdLike], field_name: str) -> UUID:
    """Coerce an identifier to UUID.

    Raises:
        DocumentValidationError: If the value is missing or not a UUID
    """
    if isinstance(value, UUID):
        return value
    if not value or not isinstance(value, str):
        raise DocumentValidationError(f"{field_name} is required", entity=field_name)
    try:
        return UUID(value)
    except ValueError:
        raise DocumentValidationError(f"{field_name} is not a valid UUID: {value!r}", entity=field_name)


def require_user_id(user_id: Optional[str], field_name: str = "user_id") -> str:
    """Validate an external user identifier (opaque, non-empty string)."""
    if user_id is None or not str(user_id).strip():
        raise DocumentValidationError(f"{field_name} is required", entity=field_name)
    return str(user_id)


# ============================================================================
# Workspace CRUD Operations
# ============================================================================

def create_workspace(
    db: Session,
    owner_id: str,
    name: str,
    domain_id: str = "sales",
    description: Optional[str] = None,
) -> models.Workspace:
    """
    Create a new workspace owned by a user.

    Args:
        db: Database session
        owner_id: External user id of the owner
        name: Workspace name
        domain_id: Business domain the workspace belongs to
        description: Optional description

    Returns:
        Created workspace
    """
    owner_id = require_user_id(owner_id, "owner_id")
    if not name or not name.strip():
        raise DocumentValidationError("Workspace name is required", entity="workspace")

    with transaction(db, "create workspace"):
        workspace = models.Workspace(
            owner_id=owner_id,
            name=name.strip(),
            domain_id=domain_id,
            description=description,
        )
        db.add(workspace)

    db.refresh(workspace)
    logger.info(f"Created workspace {workspace.id} for owner {owner_id}")
    return workspace


def owned_workspace_query(db: Session, workspace_id: UUID, owner_id: str):
    """Query for an active workspace owned by owner_id."""
    return db.query(models.Workspace).filter(
        models.Workspace.id == workspace_id,
        models.Workspace.owner_id == owner_id,
        models.Workspace.deleted_at.is_(None),
    )


def get_workspace(db: Session, workspace_id: IdLike, owner_id: str) -> Optional[models.Workspace]:
    """Get an active workspace if owner_id owns it."""
    return owned_workspace_query(db, to_uuid(workspace_id, "workspace_id"), owner_id).first()


def soft_delete_workspace(db: Session, workspace_id: IdLike, owner_id: str) -> bool:
    """
    Soft-delete a workspace.

    Objectives and documents are kept; they simply stop being reachable
    through ownership-gated operations.

    Returns:
        True if deleted, False if not found (or not owned)
    """
    workspace_id = to_uuid(workspace_id, "workspace_id")
    owner_id = require_user_id(owner_id, "owner_id")

    with transaction(db, "delete workspace"):
        workspace = owned_workspace_query(db, workspace_id, owner_id).with_for_update().first()
        if not workspace:
            return False
        workspace.deleted_at = datetime.utcnow()

    logger.info(f"Soft-deleted workspace {workspace_id}")
    return True


# ============================================================================
# Objective CRUD Operations
# ============================================================================

def create_objective(
    db: Session,
    workspace_id: IdLike,
    user_id: str,
    title: str,
    description: Optional[str] = None,
) -> models.Objective:
    """
    Create an objective inside a workspace the user owns.

    Raises:
        DocumentNotFoundError: If the workspace is missing, soft-deleted or not owned
        DocumentValidationError: If identifiers or the title are invalid
    """
    workspace_id = to_uuid(workspace_id, "workspace_id")
    user_id = require_user_id(user_id)
    if not title or not title.strip():
        raise DocumentValidationError("Objective title is required", entity="objective")

    with transaction(db, "create objective"):
        if not owned_workspace_query(db, workspace_id, user_id).first():
            raise DocumentNotFoundError("Workspace not found or access denied", entity="workspace")

        objective = models.Objective(
            workspace_id=workspace_id,
            title=title.strip(),
            description=description,
            status=models.ObjectiveStatus.OPEN,
            created_by_user_id=user_id,
        )
        db.add(objective)

    db.refresh(objective)
    logger.info(f"Created objective {objective.id} in workspace {workspace_id}")
    return objective


def get_objective_by_id(db: Session, objective_id: IdLike, user_id: str) -> Optional[models.Objective]:
    """Get an objective if user_id owns its (active) workspace."""
    return (
        db.query(models.Objective)
        .join(models.Workspace, models.Objective.workspace_id == models.Workspace.id)
        .filter(
            models.Objective.id == to_uuid(objective_id, "objective_id"),
            models.Workspace.owner_id == user_id,
            models.Workspace.deleted_at.is_(None),
        )
        .first()
    )


def list_objectives(
    db: Session,
    workspace_id: IdLike,
    include_published: bool = False,
) -> list[models.Objective]:
    """List objectives of a workspace, oldest first."""
    query = db.query(models.Objective).filter(
        models.Objective.workspace_id == to_uuid(workspace_id, "workspace_id")
    )
    if not include_published:
        query = query.filter(models.Objective.status == models.ObjectiveStatus.OPEN)
    return query.order_by(models.Objective.created_at).all()


# ============================================================================
# Chat Session CRUD Operations
# ============================================================================

def create_session(
    db: Session,
    objective_id: IdLike,
    user_id: str,
    title: str = "New chat",
) -> models.ChatSession:
    """
    Start a conversational session on an objective.

    The session is created unbound; documents.bind_session_to_version
    attaches it to a version.

    Raises:
        DocumentNotFoundError: If the objective is not visible to the user
    """
    objective_id = to_uuid(objective_id, "objective_id")
    user_id = require_user_id(user_id)

    with transaction(db, "create session"):
        if not get_objective_by_id(db, objective_id, user_id):
            raise DocumentNotFoundError("Objective not found or access denied", entity="objective")

        session = models.ChatSession(objective_id=objective_id, user_id=user_id, title=title)
        db.add(session)

    db.refresh(session)
    logger.info(f"Created session {session.id} for objective {objective_id}")
    return session


def get_session(db: Session, session_id: IdLike) -> Optional[models.ChatSession]:
    """Get a chat session by id."""
    return db.query(models.ChatSession).filter(
        models.ChatSession.id == to_uuid(session_id, "session_id")
    ).first()


def delete_session(db: Session, session_id: IdLike, user_id: str) -> bool:
    """
    Delete a chat session.

    Versions the session created or was bound to are untouched.

    Returns:
        True if deleted, False if not found (or not owned)
    """
    session_id = to_uuid(session_id, "session_id")
    user_id = require_user_id(user_id)

    with transaction(db, "delete session"):
        session = db.query(models.ChatSession).filter(
            models.ChatSession.id == session_id,
            models.ChatSession.user_id == user_id,
        ).first()
        if not session:
            return False
        db.delete(session)

    logger.info(f"Deleted session {session_id}")
    return True
