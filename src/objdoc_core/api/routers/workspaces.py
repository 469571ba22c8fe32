"""Workspace API endpoints."""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from objdoc_core import crud, documents, schemas

from ...database import get_db
from ...errors import DocumentNotFoundError
from ..dependencies import get_current_user_id

logger = logging.getLogger("objdoc-core.api.workspaces")

router = APIRouter(tags=["workspaces"])


@router.post("/", response_model=schemas.WorkspaceResponse, status_code=201)
def create_workspace(
    workspace: schemas.WorkspaceCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Create a new workspace owned by the caller.

    - **name**: Workspace name
    - **description**: Optional description
    - **domain_id**: Business domain (default: sales)
    """
    return crud.create_workspace(
        db=db,
        owner_id=user_id,
        name=workspace.name,
        domain_id=workspace.domain_id,
        description=workspace.description,
    )


@router.get("/{workspace_id}", response_model=schemas.WorkspaceResponse)
def get_workspace(
    workspace_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get a workspace the caller owns."""
    workspace = crud.get_workspace(db, workspace_id, user_id)
    if not workspace:
        raise DocumentNotFoundError("Workspace not found")
    return workspace


@router.delete("/{workspace_id}", status_code=204)
def delete_workspace(
    workspace_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Soft-delete a workspace.

    Its documents are kept but stop being reachable.
    """
    if not crud.soft_delete_workspace(db, workspace_id, user_id):
        raise DocumentNotFoundError("Workspace not found")


@router.post("/{workspace_id}/objectives", response_model=schemas.ObjectiveResponse, status_code=201)
def create_objective(
    workspace_id: UUID,
    objective: schemas.ObjectiveCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Create an objective in a workspace.

    - **title**: Objective title (also the default title of its document)
    - **description**: Optional description
    """
    return crud.create_objective(
        db=db,
        workspace_id=workspace_id,
        user_id=user_id,
        title=objective.title,
        description=objective.description,
    )


@router.get("/{workspace_id}/objectives", response_model=list[schemas.ObjectiveResponse])
def list_objectives(
    workspace_id: UUID,
    include_published: bool = Query(False, description="Include published objectives"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List the objectives of a workspace, oldest first."""
    if not crud.get_workspace(db, workspace_id, user_id):
        raise DocumentNotFoundError("Workspace not found")
    return crud.list_objectives(db, workspace_id, include_published=include_published)


@router.get("/{workspace_id}/documents", response_model=list[schemas.WorkspaceDocumentResponse])
def list_workspace_documents(
    workspace_id: UUID,
    objective_id: Optional[UUID] = Query(None, description="Only the document of this objective"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    List a workspace's documents, most recently updated first.

    Each entry carries the document's latest version and its objective.
    Workspaces the caller does not own yield an empty list.

    - **objective_id**: Optional objective filter
    """
    entries = documents.list_workspace_documents(
        db, workspace_id=workspace_id, author_id=user_id, objective_id=objective_id
    )
    return [schemas.WorkspaceDocumentResponse.model_validate(entry) for entry in entries]
