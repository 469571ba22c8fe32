"""Document and version API endpoints."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from objdoc_core import documents, schemas

from ...database import get_db
from ...errors import DocumentNotFoundError
from ..dependencies import get_current_user_id

logger = logging.getLogger("objdoc-core.api.documents")

router = APIRouter(tags=["documents"])


def _require_document(db: Session, document_id: UUID, user_id: str):
    """Resolve a document the caller may see (missing and foreign look the same)."""
    result = documents.get_document_by_id(db, document_id)
    if not result or result.document.workspace.owner_id != user_id or result.document.workspace.deleted_at:
        raise DocumentNotFoundError("Document not found")
    return result


@router.get("/documents/{document_id}", response_model=schemas.DocumentWithVersionsResponse)
def get_document(
    document_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get a document with all of its versions, newest first."""
    result = _require_document(db, document_id, user_id)
    return schemas.DocumentWithVersionsResponse.model_validate(result)


@router.get("/documents/{document_id}/latest", response_model=schemas.VersionResponse)
def get_latest_version(
    document_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get the version with the highest version number."""
    if not documents.get_owned_document(db, document_id, user_id):
        raise DocumentNotFoundError("Document not found")
    version = documents.get_latest_version(db, document_id)
    if not version:
        raise DocumentNotFoundError("Document has no versions")
    return version


@router.post("/documents/{document_id}/versions", response_model=schemas.VersionResponse, status_code=201)
def create_version(
    document_id: UUID,
    version: schemas.VersionCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Append a new version.

    Omitted fields are copied from the latest version.

    - **content**: Markdown body
    - **punchlist**: Outstanding items
    - **goal**: Goal statement
    - **metadata**: Free-form JSON object
    - **session_id**: Session that produced the version
    """
    return documents.create_version(
        db,
        document_id=document_id,
        author_id=user_id,
        content=version.content,
        punchlist=version.punchlist,
        metadata=version.metadata,
        goal=version.goal,
        session_id=version.session_id,
    )


@router.delete("/documents/{document_id}", status_code=204)
def delete_document(
    document_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Delete a document with all of its versions.

    Objectives and sessions pointing at it are unbound.
    """
    documents.delete_document(db, document_id, user_id)


@router.patch("/versions/{version_id}/content", response_model=schemas.VersionResponse)
def update_version_content(
    version_id: UUID,
    update: schemas.VersionContentUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Revise a version's content in place (no new version).

    - **content**: New content
    - **metadata**: Replaces metadata when given
    """
    logger.debug(f"User {user_id} revising content of version {version_id}")
    return documents.update_version_content_in_place(
        db, version_id, author_id=user_id, content=update.content, metadata=update.metadata
    )


@router.patch("/versions/{version_id}/punchlist", response_model=schemas.VersionResponse)
def update_version_punchlist(
    version_id: UUID,
    update: schemas.VersionPunchlistUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Revise a version's punchlist in place (no new version)."""
    logger.debug(f"User {user_id} revising punchlist of version {version_id}")
    return documents.update_version_punchlist_in_place(
        db, version_id, author_id=user_id, punchlist=update.punchlist
    )


@router.patch("/versions/{version_id}/goal", response_model=schemas.VersionResponse)
def update_version_goal(
    version_id: UUID,
    update: schemas.VersionGoalUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Edit a version's goal statement."""
    return documents.update_version_goal(db, version_id, author_id=user_id, goal=update.goal)
