"""Objective API endpoints: the objective's document and its sessions."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from objdoc_core import crud, documents, schemas

from ...database import get_db
from ...errors import DocumentNotFoundError
from ..dependencies import get_current_user_id

logger = logging.getLogger("objdoc-core.api.objectives")

router = APIRouter(tags=["objectives"])


@router.get("/{objective_id}", response_model=schemas.ObjectiveResponse)
def get_objective(
    objective_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get an objective in a workspace the caller owns."""
    objective = crud.get_objective_by_id(db, objective_id, user_id)
    if not objective:
        raise DocumentNotFoundError("Objective not found")
    return objective


@router.get("/{objective_id}/document", response_model=schemas.DocumentWithVersionsResponse)
def get_objective_document(
    objective_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Get the objective's document with all versions, newest first.
    """
    if not crud.get_objective_by_id(db, objective_id, user_id):
        raise DocumentNotFoundError("Objective not found")

    result = documents.get_document_by_objective(db, objective_id)
    if not result:
        raise DocumentNotFoundError("Objective has no document")
    return schemas.DocumentWithVersionsResponse.model_validate(result)


@router.post("/{objective_id}/document", response_model=schemas.CreatedDocumentResponse, status_code=201)
def create_objective_document(
    objective_id: UUID,
    document: schemas.DocumentCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Create the objective's document and its first version.

    - **workspace_id**: Workspace the objective belongs to
    - **content**: Content of version 1 (default: empty)
    - **title**: Document title (default: the objective title)

    Returns 409 if the objective already has a document.
    """
    created = documents.create_document(
        db,
        objective_id=objective_id,
        workspace_id=document.workspace_id,
        author_id=user_id,
        initial_content=document.content,
        title=document.title,
    )
    return schemas.CreatedDocumentResponse.model_validate(created)


@router.get("/{objective_id}/goal")
def get_current_goal(
    objective_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Goal and punchlist of the latest version of the objective's document."""
    return {
        "objective_id": str(objective_id),
        "goal": documents.get_current_goal(db, objective_id, user_id),
        "punchlist": documents.get_current_punchlist(db, objective_id, user_id),
    }


@router.post("/{objective_id}/sessions", response_model=schemas.SessionResponse, status_code=201)
def create_session(
    objective_id: UUID,
    session: schemas.SessionCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Start a chat session on the objective.

    The session is unbound until POST /sessions/{id}/bind.
    """
    return crud.create_session(db, objective_id=objective_id, user_id=user_id, title=session.title)
