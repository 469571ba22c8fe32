"""Pydantic schemas for request/response validation."""
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, ConfigDict

from .models import ObjectiveStatus


# ============================================================================
# Workspace Schemas
# ============================================================================

class WorkspaceCreate(BaseModel):
    """Schema for creating a new workspace."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    domain_id: str = Field("sales", min_length=1, max_length=50)


class WorkspaceResponse(BaseModel):
    """Schema for workspace responses."""

    id: UUID
    owner_id: str
    name: str
    description: Optional[str] = None
    domain_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Objective Schemas
# ============================================================================

class ObjectiveCreate(BaseModel):
    """Schema for creating an objective inside a workspace."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ObjectiveResponse(BaseModel):
    """Schema for objective responses."""

    id: UUID
    workspace_id: UUID
    title: str
    description: Optional[str] = None
    status: ObjectiveStatus
    document_id: Optional[UUID] = None
    created_by_user_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


# ============================================================================
# Session Schemas
# ============================================================================

class SessionCreate(BaseModel):
    """Schema for starting a chat session on an objective."""

    title: str = Field("New chat", min_length=1, max_length=255)


class SessionResponse(BaseModel):
    """Schema for chat session responses."""

    id: UUID
    objective_id: UUID
    user_id: str
    title: str
    bound_version_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionBindRequest(BaseModel):
    """Schema for binding a session to a fresh version of its objective's document."""

    objective_id: UUID
    workspace_id: UUID


class VersionBindingResponse(BaseModel):
    """Result of binding a session to a version."""

    version_id: UUID
    document_id: UUID
    objective_id: UUID
    is_first_version: bool

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Document Schemas
# ============================================================================

class DocumentCreate(BaseModel):
    """Schema for explicitly creating an objective's document.

    Normally documents are created implicitly by the first session binding.
    """

    workspace_id: UUID
    content: str = ""
    title: Optional[str] = Field(None, min_length=1, max_length=255)


class VersionCreate(BaseModel):
    """Schema for appending a version.

    Every omitted (or null) field is copied forward from the latest version.
    """

    content: Optional[str] = None
    punchlist: Optional[str] = None
    goal: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    session_id: Optional[UUID] = None


class VersionContentUpdate(BaseModel):
    """Schema for in-place content revision of a version."""

    content: str
    metadata: Optional[dict[str, Any]] = None


class VersionPunchlistUpdate(BaseModel):
    """Schema for in-place punchlist revision of a version."""

    punchlist: str


class VersionGoalUpdate(BaseModel):
    """Schema for editing a version's goal statement."""

    goal: str


class DocumentResponse(BaseModel):
    """Schema for document envelope responses."""

    id: UUID
    workspace_id: UUID
    title: str
    version_counter: int = Field(description="Highest ordering key handed out for this document")
    created_by_user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VersionResponse(BaseModel):
    """Schema for document version responses."""

    id: UUID
    document_id: UUID
    version_number: int
    content: str
    content_hash: str
    punchlist: Optional[str] = None
    goal: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("version_metadata", "metadata")
    )
    created_by_user_id: str
    session_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CreatedDocumentResponse(BaseModel):
    """A newly created document with its first version."""

    document: DocumentResponse
    version: VersionResponse

    model_config = ConfigDict(from_attributes=True)


class DocumentWithVersionsResponse(BaseModel):
    """Single-document view: versions newest first."""

    document: DocumentResponse
    versions: list[VersionResponse] = Field(default_factory=list)
    latest_version: Optional[VersionResponse] = None

    model_config = ConfigDict(from_attributes=True)


class WorkspaceDocumentResponse(BaseModel):
    """List-view entry for a workspace's documents."""

    document: DocumentResponse
    latest_version: Optional[VersionResponse] = None
    objective: Optional[ObjectiveResponse] = None

    model_config = ConfigDict(from_attributes=True)


class SessionVersionResponse(BaseModel):
    """The version a session is bound to."""

    version: VersionResponse
    objective_id: UUID

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(BaseModel):
    """Error body for every classified failure."""

    code: str
    detail: str
