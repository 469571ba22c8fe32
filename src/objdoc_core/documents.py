"""Version lifecycle operations for objective documents.

An objective owns at most one document (envelope); the document owns one or
more immutable-at-rest version snapshots. This module is the only place that
composes the workspace, objective, envelope, version and session stores, and
every mutating operation here runs inside exactly one ``transaction``:

- create_document: envelope + version 1 + objective pointer
- create_version: copy-forward snapshot with the next ordering key
- bind_session_to_version: create-or-append, then point the session at it
- update_version_*_in_place: revise the bound draft without a new row
- delete_document: ownership check, versions, pointers, envelope

Ownership is always re-validated inside the same transaction as the write it
protects. Ownership failures surface as DocumentNotFoundError.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from . import models
from .config import get_settings
from .crud import IdLike, to_uuid, require_user_id, owned_workspace_query
from .database import transaction
from .errors import (
    DocumentNotFoundError,
    DocumentValidationError,
    VersionConflictError,
)
from .versioning import (
    allocate_version_number,
    compute_content_hash,
    get_latest_version as _latest_version,
    get_latest_versions,
    insert_version,
    merge_forward,
    touch_document,
)

logger = logging.getLogger("objdoc-core.documents")


@dataclass
class CreatedDocument:
    """A freshly created envelope and its first version."""

    document: models.ObjectiveDocument
    version: models.ObjectiveDocumentVersion


@dataclass
class DocumentWithVersions:
    """Single-document view: versions are ordered newest (highest number) first."""

    document: models.ObjectiveDocument
    versions: list[models.ObjectiveDocumentVersion] = field(default_factory=list)
    latest_version: Optional[models.ObjectiveDocumentVersion] = None


@dataclass
class WorkspaceDocument:
    """List-view row for a workspace's documents."""

    document: models.ObjectiveDocument
    latest_version: Optional[models.ObjectiveDocumentVersion]
    objective: Optional[models.Objective]


@dataclass
class VersionBinding:
    """Result of binding a session to the version it will revise."""

    version_id: UUID
    document_id: UUID
    objective_id: UUID
    is_first_version: bool


@dataclass
class SessionVersion:
    """The version a session is bound to, with the session's objective."""

    version: models.ObjectiveDocumentVersion
    objective_id: UUID


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise DocumentValidationError(f"{field_name} must be a string", entity=field_name)
    return value


def _optional_text(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    return _require_text(value, field_name)


def _optional_metadata(value: Any) -> Optional[dict[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise DocumentValidationError("metadata must be an object", entity="metadata")
    return value


def _default_title(objective: models.Objective) -> str:
    max_length = get_settings().document_title_max_length
    title = (objective.title or "").strip() or "Untitled document"
    return title[:max_length]


def _owned_document_query(db: Session, document_id: UUID, user_id: str):
    return (
        db.query(models.ObjectiveDocument)
        .join(models.Workspace, models.ObjectiveDocument.workspace_id == models.Workspace.id)
        .filter(
            models.ObjectiveDocument.id == document_id,
            models.Workspace.owner_id == user_id,
            models.Workspace.deleted_at.is_(None),
        )
    )


def _load_owned_objective(
    db: Session, objective_id: UUID, workspace_id: UUID, user_id: str
) -> models.Objective:
    """Resolve an objective that belongs to workspace_id, owned by user_id.

    Raises:
        DocumentNotFoundError: On any mismatch (missing, other workspace, other owner)
    """
    objective = db.query(models.Objective).filter(models.Objective.id == objective_id).first()
    if not objective:
        raise DocumentNotFoundError(f"Objective {objective_id} not found", entity="objective")

    if objective.workspace_id != workspace_id:
        logger.warning(
            f"Objective {objective_id} does not belong to workspace {workspace_id}"
        )
        raise DocumentNotFoundError(f"Objective {objective_id} not found", entity="objective")

    if not owned_workspace_query(db, workspace_id, user_id).first():
        logger.warning(f"User {user_id} denied access to workspace {workspace_id}")
        raise DocumentNotFoundError("Workspace not found or access denied", entity="workspace")

    return objective


def _create_document(
    db: Session,
    objective: models.Objective,
    user_id: str,
    content: str,
    title: Optional[str] = None,
    session_id: Optional[UUID] = None,
) -> CreatedDocument:
    """Insert envelope, version 1 and the objective pointer (no commit)."""
    if objective.document_id is not None:
        raise VersionConflictError(
            f"Objective {objective.id} already has document {objective.document_id}",
            entity="document",
        )

    document = models.ObjectiveDocument(
        workspace_id=objective.workspace_id,
        title=(title or _default_title(objective))[:get_settings().document_title_max_length],
        created_by_user_id=user_id,
        version_counter=1,
    )
    db.add(document)
    db.flush()

    version = insert_version(
        db,
        document_id=document.id,
        version_number=1,
        snapshot=merge_forward(None, content=content),
        user_id=user_id,
        session_id=session_id,
    )

    objective.document_id = document.id
    db.flush()

    logger.info(f"Created document {document.id} for objective {objective.id}")
    return CreatedDocument(document=document, version=version)


def _append_version(
    db: Session,
    document_id: UUID,
    user_id: str,
    content: Optional[str] = None,
    punchlist: Optional[str] = None,
    goal: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
    session_id: Optional[UUID] = None,
) -> models.ObjectiveDocumentVersion:
    """Allocate the next ordering key, merge forward and insert (no commit).

    The counter is advanced before the latest snapshot is read so that, under
    PostgreSQL row locking, the read observes any version committed by a
    concurrent writer that held the lock first.
    """
    version_number = allocate_version_number(db, document_id)
    previous = _latest_version(db, document_id)
    snapshot = merge_forward(
        previous,
        content=content,
        punchlist=punchlist,
        goal=goal,
        metadata=metadata,
    )
    return insert_version(
        db,
        document_id=document_id,
        version_number=version_number,
        snapshot=snapshot,
        user_id=user_id,
        session_id=session_id,
    )


# ============================================================================
# Create / version
# ============================================================================

def create_document(
    db: Session,
    objective_id: IdLike,
    workspace_id: IdLike,
    author_id: str,
    initial_content: str = "",
    title: Optional[str] = None,
) -> CreatedDocument:
    """
    Create the document for an objective together with its first version.

    Inserting the envelope, inserting version 1 and pointing the objective at
    the envelope commit together or not at all.

    Args:
        db: Database session
        objective_id: Objective that will own the document
        workspace_id: Workspace the objective must belong to
        author_id: User creating the document (must own the workspace)
        initial_content: Content of version 1
        title: Document title (defaults to the objective title)

    Returns:
        The new envelope and version

    Raises:
        DocumentValidationError: Malformed identifiers or content
        DocumentNotFoundError: Objective/workspace missing or not owned
        VersionConflictError: The objective already has a document
    """
    objective_id = to_uuid(objective_id, "objective_id")
    workspace_id = to_uuid(workspace_id, "workspace_id")
    author_id = require_user_id(author_id, "author_id")
    initial_content = _require_text(initial_content, "content")

    with transaction(db, "create objective document"):
        objective = _load_owned_objective(db, objective_id, workspace_id, author_id)
        created = _create_document(db, objective, author_id, initial_content, title=title)

    return created


def create_version(
    db: Session,
    document_id: IdLike,
    author_id: str,
    content: Optional[str] = None,
    punchlist: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
    goal: Optional[str] = None,
    session_id: Optional[IdLike] = None,
) -> models.ObjectiveDocumentVersion:
    """
    Append a new version to a document.

    Copy-forward: every field passed as None inherits the value of the current
    latest version, so a call without overrides duplicates the latest
    snapshot under the next ordering key.

    Raises:
        DocumentValidationError: Malformed identifiers or field values
        DocumentNotFoundError: Document missing or not owned by author_id
        VersionConflictError: Ordering key collision with a concurrent writer
    """
    document_id = to_uuid(document_id, "document_id")
    author_id = require_user_id(author_id, "author_id")
    content = _optional_text(content, "content")
    punchlist = _optional_text(punchlist, "punchlist")
    goal = _optional_text(goal, "goal")
    metadata = _optional_metadata(metadata)
    session_uuid = to_uuid(session_id, "session_id") if session_id is not None else None

    with transaction(db, "create document version"):
        if not _owned_document_query(db, document_id, author_id).first():
            logger.warning(f"User {author_id} cannot version document {document_id}")
            raise DocumentNotFoundError("Objective document not found or access denied", entity="document")

        version = _append_version(
            db,
            document_id,
            author_id,
            content=content,
            punchlist=punchlist,
            goal=goal,
            metadata=metadata,
            session_id=session_uuid,
        )

    return version


# ============================================================================
# Session binding
# ============================================================================

def bind_session_to_version(
    db: Session,
    session_id: IdLike,
    objective_id: IdLike,
    author_id: str,
    workspace_id: IdLike,
) -> VersionBinding:
    """
    Give a session its own version of the objective's document.

    One session works on one version: if the objective has no document yet it
    is created with empty content (is_first_version=True); otherwise a pure
    copy-forward version is appended (is_first_version=False). The session's
    pointer is written in the same commit, so it never refers to a version
    that is not there.

    A session already bound to a version of the objective's current document
    keeps that binding and nothing is written.

    Raises:
        DocumentValidationError: Malformed identifiers, or the session works on
            a different objective
        DocumentNotFoundError: Session/objective/workspace missing or not owned
    """
    session_id = to_uuid(session_id, "session_id")
    objective_id = to_uuid(objective_id, "objective_id")
    workspace_id = to_uuid(workspace_id, "workspace_id")
    author_id = require_user_id(author_id, "author_id")

    with transaction(db, "initialize version for session"):
        objective = _load_owned_objective(db, objective_id, workspace_id, author_id)

        session = db.query(models.ChatSession).filter(models.ChatSession.id == session_id).first()
        if not session:
            raise DocumentNotFoundError(f"Session {session_id} not found", entity="session")
        if session.objective_id != objective_id:
            raise DocumentValidationError(
                f"Session {session_id} belongs to a different objective",
                entity="session",
            )

        if session.bound_version_id is not None and objective.document_id is not None:
            bound = db.query(models.ObjectiveDocumentVersion).filter(
                models.ObjectiveDocumentVersion.id == session.bound_version_id,
                models.ObjectiveDocumentVersion.document_id == objective.document_id,
            ).first()
            if bound:
                logger.debug(f"Session {session_id} already bound to version {bound.id}")
                return VersionBinding(
                    version_id=bound.id,
                    document_id=bound.document_id,
                    objective_id=objective_id,
                    is_first_version=False,
                )

        if objective.document_id is None:
            created = _create_document(db, objective, author_id, content="", session_id=session_id)
            version = created.version
            is_first_version = True
        else:
            version = _append_version(db, objective.document_id, author_id, session_id=session_id)
            is_first_version = False

        session.bound_version_id = version.id
        db.flush()

        binding = VersionBinding(
            version_id=version.id,
            document_id=version.document_id,
            objective_id=objective_id,
            is_first_version=is_first_version,
        )

    logger.info(
        f"Bound session {session_id} to version {binding.version_id} "
        f"(document {binding.document_id}, first={binding.is_first_version})"
    )
    return binding


def get_version_by_session(db: Session, session_id: IdLike) -> Optional[SessionVersion]:
    """Get the version a session is bound to, or None if it is unbound."""
    row = (
        db.query(models.ObjectiveDocumentVersion, models.ChatSession.objective_id)
        .join(
            models.ChatSession,
            models.ChatSession.bound_version_id == models.ObjectiveDocumentVersion.id,
        )
        .filter(models.ChatSession.id == to_uuid(session_id, "session_id"))
        .first()
    )
    if not row:
        return None
    version, objective_id = row
    return SessionVersion(version=version, objective_id=objective_id)


# ============================================================================
# In-place revision
# ============================================================================

def _load_owned_version(db: Session, version_id: UUID, user_id: str) -> models.ObjectiveDocumentVersion:
    """Lock a version whose document user_id may write.

    Raises:
        DocumentNotFoundError: Version missing, not owned, or in a deleted workspace
    """
    version = (
        db.query(models.ObjectiveDocumentVersion)
        .filter(models.ObjectiveDocumentVersion.id == version_id)
        .with_for_update()
        .first()
    )
    if not version:
        raise DocumentNotFoundError(f"Version {version_id} not found", entity="version")
    if not _owned_document_query(db, version.document_id, user_id).first():
        logger.warning(f"User {user_id} cannot write version {version_id}")
        raise DocumentNotFoundError(f"Version {version_id} not found", entity="version")
    return version


def update_version_content_in_place(
    db: Session,
    version_id: IdLike,
    author_id: str,
    content: str,
    metadata: Optional[dict[str, Any]] = None,
) -> models.ObjectiveDocumentVersion:
    """
    Overwrite the content (and optionally metadata) of an existing version.

    Used by streaming writers revising the draft their session is bound to.
    No version row is created and the ordering key is untouched; the
    document's updated_at is bumped. Metadata is kept when not given.

    Raises:
        DocumentValidationError: Malformed id or values
        DocumentNotFoundError: Version missing or not owned by author_id
    """
    version_id = to_uuid(version_id, "version_id")
    author_id = require_user_id(author_id, "author_id")
    content = _require_text(content, "content")
    metadata = _optional_metadata(metadata)

    with transaction(db, "update version content"):
        version = _load_owned_version(db, version_id, author_id)
        version.content = content
        version.content_hash = compute_content_hash(content)
        if metadata is not None:
            version.version_metadata = metadata
        touch_document(db, version.document_id)

    logger.info(f"Updated content of version {version_id} in place")
    return version


def update_version_punchlist_in_place(
    db: Session,
    version_id: IdLike,
    author_id: str,
    punchlist: str,
) -> models.ObjectiveDocumentVersion:
    """
    Overwrite the punchlist of an existing version without creating a new one.

    Raises:
        DocumentValidationError: Malformed id or value
        DocumentNotFoundError: Version missing or not owned by author_id
    """
    version_id = to_uuid(version_id, "version_id")
    author_id = require_user_id(author_id, "author_id")
    punchlist = _require_text(punchlist, "punchlist")

    with transaction(db, "update version punchlist"):
        version = _load_owned_version(db, version_id, author_id)
        version.punchlist = punchlist
        touch_document(db, version.document_id)

    logger.info(f"Updated punchlist of version {version_id} in place")
    return version


def update_version_goal(
    db: Session,
    version_id: IdLike,
    author_id: str,
    goal: str,
) -> models.ObjectiveDocumentVersion:
    """
    Edit the goal statement of a specific version (in place).

    Only the owner of the document's workspace may edit it.

    Raises:
        DocumentValidationError: Malformed id, or goal longer than the configured limit
        DocumentNotFoundError: Version missing or not owned by author_id
    """
    version_id = to_uuid(version_id, "version_id")
    author_id = require_user_id(author_id, "author_id")
    goal = _require_text(goal, "goal")

    max_length = get_settings().goal_max_length
    if len(goal) > max_length:
        raise DocumentValidationError(f"Goal exceeds {max_length} characters", entity="goal")

    with transaction(db, "update version goal"):
        version = _load_owned_version(db, version_id, author_id)
        version.goal = goal
        touch_document(db, version.document_id)

    logger.info(f"Updated goal of version {version_id}")
    return version


# ============================================================================
# Reads
# ============================================================================

def get_latest_version(db: Session, document_id: IdLike) -> Optional[models.ObjectiveDocumentVersion]:
    """Get the version with the highest ordering key, or None."""
    return _latest_version(db, to_uuid(document_id, "document_id"))


def _with_versions(db: Session, document: models.ObjectiveDocument) -> DocumentWithVersions:
    versions = (
        db.query(models.ObjectiveDocumentVersion)
        .filter(models.ObjectiveDocumentVersion.document_id == document.id)
        .order_by(models.ObjectiveDocumentVersion.version_number.desc())
        .all()
    )
    return DocumentWithVersions(
        document=document,
        versions=versions,
        latest_version=versions[0] if versions else None,
    )


def get_document_by_objective(db: Session, objective_id: IdLike) -> Optional[DocumentWithVersions]:
    """
    Resolve objective -> document -> versions.

    Returns None (not an error) when the objective does not exist or has no
    document bound.
    """
    objective = db.query(models.Objective).filter(
        models.Objective.id == to_uuid(objective_id, "objective_id")
    ).first()
    if not objective or not objective.document_id:
        return None

    document = db.query(models.ObjectiveDocument).filter(
        models.ObjectiveDocument.id == objective.document_id
    ).first()
    if not document:
        return None

    return _with_versions(db, document)


def get_document_by_id(db: Session, document_id: IdLike) -> Optional[DocumentWithVersions]:
    """Get a single document with all of its versions, or None."""
    document = db.query(models.ObjectiveDocument).filter(
        models.ObjectiveDocument.id == to_uuid(document_id, "document_id")
    ).first()
    if not document:
        return None
    return _with_versions(db, document)


def get_owned_document(db: Session, document_id: IdLike, user_id: str) -> Optional[models.ObjectiveDocument]:
    """Get the envelope if user_id owns its (active) workspace; versions are not loaded."""
    return _owned_document_query(db, to_uuid(document_id, "document_id"), user_id).first()


def _latest_for_owned_objective(
    db: Session, objective_id: IdLike, user_id: str
) -> Optional[models.ObjectiveDocumentVersion]:
    objective = (
        db.query(models.Objective)
        .join(models.Workspace, models.Objective.workspace_id == models.Workspace.id)
        .filter(
            models.Objective.id == to_uuid(objective_id, "objective_id"),
            models.Workspace.owner_id == user_id,
            models.Workspace.deleted_at.is_(None),
        )
        .first()
    )
    if not objective or not objective.document_id:
        return None
    return _latest_version(db, objective.document_id)


def get_current_goal(db: Session, objective_id: IdLike, user_id: str) -> Optional[str]:
    """Goal of the objective document's latest version (ownership-gated)."""
    version = _latest_for_owned_objective(db, objective_id, user_id)
    return version.goal if version else None


def get_current_punchlist(db: Session, objective_id: IdLike, user_id: str) -> Optional[str]:
    """Punchlist of the objective document's latest version (ownership-gated)."""
    version = _latest_for_owned_objective(db, objective_id, user_id)
    return version.punchlist if version else None


def list_workspace_documents(
    db: Session,
    workspace_id: IdLike,
    author_id: str,
    objective_id: Optional[IdLike] = None,
) -> list[WorkspaceDocument]:
    """
    List a workspace's documents with their latest versions and objectives.

    Only documents in an active workspace owned by author_id are returned;
    anything else yields an empty list. Latest versions are fetched for all
    documents in a single batched query. Most recently updated first.

    Args:
        db: Database session
        workspace_id: Workspace to list
        author_id: Requesting user
        objective_id: Restrict to the document bound to this objective
    """
    workspace_id = to_uuid(workspace_id, "workspace_id")
    author_id = require_user_id(author_id, "author_id")

    objective_query = db.query(models.Objective).filter(models.Objective.workspace_id == workspace_id)
    if objective_id is not None:
        objective_query = objective_query.filter(
            models.Objective.id == to_uuid(objective_id, "objective_id")
        )
    objectives_by_document = {
        objective.document_id: objective
        for objective in objective_query.all()
        if objective.document_id is not None
    }

    if objective_id is not None and not objectives_by_document:
        return []

    document_query = (
        db.query(models.ObjectiveDocument)
        .join(models.Workspace, models.ObjectiveDocument.workspace_id == models.Workspace.id)
        .filter(
            models.ObjectiveDocument.workspace_id == workspace_id,
            models.Workspace.owner_id == author_id,
            models.Workspace.deleted_at.is_(None),
        )
    )
    if objective_id is not None:
        document_query = document_query.filter(
            models.ObjectiveDocument.id.in_(list(objectives_by_document))
        )
    documents = document_query.order_by(models.ObjectiveDocument.updated_at.desc()).all()

    latest = get_latest_versions(db, [document.id for document in documents])

    logger.debug(f"Listed {len(documents)} documents in workspace {workspace_id}")
    return [
        WorkspaceDocument(
            document=document,
            latest_version=latest.get(document.id),
            objective=objectives_by_document.get(document.id),
        )
        for document in documents
    ]


# ============================================================================
# Delete
# ============================================================================

def delete_document(db: Session, document_id: IdLike, author_id: str) -> None:
    """
    Delete a document, all of its versions and every pointer to them.

    Ownership (document -> workspace -> owner, workspace not soft-deleted) is
    checked with the document row locked, in the same transaction as the
    deletes.

    Raises:
        DocumentValidationError: Malformed identifiers
        DocumentNotFoundError: Document missing or not owned by author_id
    """
    document_id = to_uuid(document_id, "document_id")
    author_id = require_user_id(author_id, "author_id")

    with transaction(db, "delete objective document"):
        document = (
            _owned_document_query(db, document_id, author_id)
            .with_for_update(of=models.ObjectiveDocument)
            .first()
        )
        if not document:
            logger.warning(f"Delete of document {document_id} by {author_id} rejected")
            raise DocumentNotFoundError(
                "Objective document not found or access denied", entity="document"
            )

        version_ids = [
            row.id for row in db.query(models.ObjectiveDocumentVersion.id).filter(
                models.ObjectiveDocumentVersion.document_id == document_id
            )
        ]

        # 1. Sessions revising any of these versions lose their binding
        if version_ids:
            db.query(models.ChatSession).filter(
                models.ChatSession.bound_version_id.in_(version_ids)
            ).update({models.ChatSession.bound_version_id: None}, synchronize_session="fetch")

        # 2. Versions
        db.query(models.ObjectiveDocumentVersion).filter(
            models.ObjectiveDocumentVersion.document_id == document_id
        ).delete(synchronize_session="fetch")

        # 3. Objective pointer
        db.query(models.Objective).filter(
            models.Objective.document_id == document_id
        ).update({models.Objective.document_id: None}, synchronize_session="fetch")

        # 4. Envelope
        db.query(models.ObjectiveDocument).filter(
            models.ObjectiveDocument.id == document_id
        ).delete(synchronize_session="fetch")

    logger.info(f"Deleted document {document_id}")
