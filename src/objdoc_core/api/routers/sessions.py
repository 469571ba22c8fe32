"""Chat session API endpoints."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from objdoc_core import crud, documents, schemas

from ...database import get_db
from ...errors import DocumentNotFoundError
from ..dependencies import get_current_user_id

logger = logging.getLogger("objdoc-core.api.sessions")

router = APIRouter(tags=["sessions"])


def _load_session(db: Session, session_id: UUID, user_id: str):
    session = crud.get_session(db, session_id)
    if not session or session.user_id != user_id:
        raise DocumentNotFoundError("Session not found")
    return session


@router.get("/{session_id}", response_model=schemas.SessionResponse)
def get_session(
    session_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get one of the caller's sessions."""
    return _load_session(db, session_id, user_id)


@router.post("/{session_id}/bind", response_model=schemas.VersionBindingResponse)
def bind_session(
    session_id: UUID,
    request: schemas.SessionBindRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Bind the session to its own version of the objective's document.

    Creates the document when the objective has none (is_first_version=true),
    otherwise appends a copy of the latest version. A session that is already
    bound to a version of the current document keeps it.

    - **objective_id**: Objective the session works on
    - **workspace_id**: Workspace of the objective
    """
    _load_session(db, session_id, user_id)
    binding = documents.bind_session_to_version(
        db,
        session_id=session_id,
        objective_id=request.objective_id,
        author_id=user_id,
        workspace_id=request.workspace_id,
    )
    return schemas.VersionBindingResponse.model_validate(binding)


@router.get("/{session_id}/version", response_model=schemas.SessionVersionResponse)
def get_session_version(
    session_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get the version the session is bound to."""
    _load_session(db, session_id, user_id)
    result = documents.get_version_by_session(db, session_id)
    if not result:
        raise DocumentNotFoundError("Session is not bound to a version")
    return schemas.SessionVersionResponse.model_validate(result)


@router.delete("/{session_id}", status_code=204)
def delete_session(
    session_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete a session. Versions it worked on are kept."""
    if not crud.delete_session(db, session_id, user_id):
        raise DocumentNotFoundError("Session not found")
