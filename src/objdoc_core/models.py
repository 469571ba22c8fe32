"""SQLAlchemy database models."""
from datetime import datetime
from uuid import uuid4
import enum

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    DateTime,
    ForeignKey,
    Enum,
    JSON,
    Index,
    UniqueConstraint,
    CheckConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

# Base class for all models
Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class ObjectiveStatus(str, enum.Enum):
    """Objective lifecycle status enum."""

    OPEN = "open"
    PUBLISHED = "published"


class Workspace(Base):
    """
    Tenant container owned by a single user.

    All ownership checks route through the workspace. Soft-deleted
    workspaces (deleted_at set) are invisible to ownership-gated reads and
    writes, but their documents are kept.
    """

    __tablename__ = "workspaces"

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(String(255), nullable=False)  # External user id (auth provider subject)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    domain_id = Column(String(50), nullable=False, default="sales")

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)  # Soft delete

    objectives = relationship("Objective", back_populates="workspace", passive_deletes=True)
    documents = relationship("ObjectiveDocument", back_populates="workspace", passive_deletes=True)

    __table_args__ = (
        Index("ix_workspaces_owner_id_id", "owner_id", "id"),
        Index("ix_workspaces_domain_id", "domain_id"),
    )

    def __repr__(self) -> str:
        return f"<Workspace {self.id}: {self.name}>"


class Objective(Base):
    """
    A tracked unit of work inside a workspace.

    Holds an optional pointer to its document envelope (1:0..1). The pointer is
    nulled when the document is deleted.
    """

    __tablename__ = "objectives"

    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(
        Uuid,
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        Enum(ObjectiveStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ObjectiveStatus.OPEN,
        index=True
    )
    document_id = Column(
        Uuid,
        ForeignKey("objective_documents.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    created_by_user_id = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    workspace = relationship("Workspace", back_populates="objectives")
    document = relationship("ObjectiveDocument", foreign_keys=[document_id])
    sessions = relationship("ChatSession", back_populates="objective", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Objective {self.id}: {self.title}>"


class ObjectiveDocument(Base):
    """
    Stable identity record (envelope) for an objective's document.

    Content lives on ObjectiveDocumentVersion rows. The envelope survives across
    versions and is never created without its first version.

    version_counter is the per-document ordering key allocator: it is advanced
    with a single UPDATE in the same transaction that inserts the version, so
    concurrent writers serialize on the envelope row instead of racing on
    MAX(version_number).
    """

    __tablename__ = "objective_documents"

    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(
        Uuid,
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title = Column(String(255), nullable=False)
    version_counter = Column(Integer, nullable=False, default=0)

    created_by_user_id = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    workspace = relationship("Workspace", back_populates="documents")
    versions = relationship(
        "ObjectiveDocumentVersion",
        back_populates="document",
        order_by="ObjectiveDocumentVersion.version_number.desc()",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("version_counter >= 0", name="ck_document_version_counter_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<ObjectiveDocument {self.id}: {self.title}>"


class ObjectiveDocumentVersion(Base):
    """
    Snapshot of a document's content at one point in its history.

    Every version is self-contained: copy-forward happens when the row is
    written, never at read time. version_number is the authoritative ordering
    key ("latest" = highest number for the document).

    Rows are only mutated in place by the streaming writers revising the
    draft a session is bound to; that path never touches version_number.
    """

    __tablename__ = "objective_document_versions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(
        Uuid,
        ForeignKey("objective_documents.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Ordering key
    version_number = Column(Integer, nullable=False)

    content = Column(Text, nullable=False, default="")
    content_hash = Column(String(64), nullable=False)  # SHA-256 hex
    punchlist = Column(Text, nullable=True)
    goal = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    version_metadata = Column("metadata", JSONType, nullable=True)

    created_by_user_id = Column(String(255), nullable=False)
    # Provenance only (no foreign key)
    session_id = Column(Uuid, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    document = relationship("ObjectiveDocument", back_populates="versions")

    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name="uq_document_version_number"),
        Index("ix_document_versions_document_number", "document_id", "version_number"),
        CheckConstraint("version_number >= 1", name="ck_document_version_number_positive"),
    )

    def __repr__(self) -> str:
        return f"<ObjectiveDocumentVersion {self.document_id} v{self.version_number}>"


class ChatSession(Base):
    """
    A conversational session working on an objective.

    bound_version_id points at the version this session is currently revising.
    It is only ever written after the version exists (same transaction).
    """

    __tablename__ = "chat_sessions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    objective_id = Column(
        Uuid,
        ForeignKey("objectives.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False, default="New chat")
    bound_version_id = Column(
        Uuid,
        ForeignKey("objective_document_versions.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    objective = relationship("Objective", back_populates="sessions")
    bound_version = relationship("ObjectiveDocumentVersion")

    def __repr__(self) -> str:
        return f"<ChatSession {self.id} -> {self.bound_version_id}>"
