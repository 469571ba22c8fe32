"""Document versioning utilities.

Every document (envelope) owns an append-mostly list of version snapshots.

Key concepts:
- version_number is the ordering key: "latest" is the highest number for a
  document, never the newest created_at (timestamps tie under coarse clocks)
- Numbers are allocated from ObjectiveDocument.version_counter with one UPDATE
  inside the inserting transaction; on PostgreSQL that UPDATE holds the
  envelope row lock until commit, so concurrent writers are serialized and the
  second one copies forward from the first one's committed snapshot
- Copy-forward happens once, when the new row is written: fields the caller
  does not override inherit the previous latest version's values
"""
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models
from .errors import DocumentNotFoundError


logger = logging.getLogger("objdoc-core.versioning")


@dataclass
class VersionSnapshot:
    """Field values a new version row is written with."""

    content: str = ""
    punchlist: Optional[str] = None
    goal: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


def compute_content_hash(content: str) -> str:
    """Compute SHA-256 hash of content.

    Stored on every version so readers can tell whether two snapshots differ
    without comparing full bodies.
    """
    return hashlib.sha256((content or "").encode('utf-8')).hexdigest()


def allocate_version_number(db: Session, document_id: UUID) -> int:
    """Advance the document's ordering-key counter and return the new value.

    Also bumps the envelope's updated_at. Must run inside the transaction that
    inserts the version.

    Raises:
        DocumentNotFoundError: If the document does not exist
    """
    updated = (
        db.query(models.ObjectiveDocument)
        .filter(models.ObjectiveDocument.id == document_id)
        .update(
            {
                models.ObjectiveDocument.version_counter: models.ObjectiveDocument.version_counter + 1,
                models.ObjectiveDocument.updated_at: datetime.utcnow(),
            },
            synchronize_session="fetch",
        )
    )
    if not updated:
        raise DocumentNotFoundError(f"Document {document_id} not found", entity="document")

    return db.query(models.ObjectiveDocument.version_counter).filter(
        models.ObjectiveDocument.id == document_id
    ).scalar()


def get_latest_version(db: Session, document_id: UUID) -> Optional[models.ObjectiveDocumentVersion]:
    """Get the most recent version of a document.

    Returns None if no versions exist.
    """
    return db.query(models.ObjectiveDocumentVersion).filter(
        models.ObjectiveDocumentVersion.document_id == document_id
    ).order_by(
        models.ObjectiveDocumentVersion.version_number.desc()
    ).first()


def get_latest_versions(
    db: Session, document_ids: list[UUID]
) -> dict[UUID, models.ObjectiveDocumentVersion]:
    """Get the latest version of each document in one round trip.

    Returns a mapping of document_id -> latest version. Documents without
    versions are absent from the mapping.
    """
    if not document_ids:
        return {}

    latest = (
        db.query(
            models.ObjectiveDocumentVersion.document_id.label("document_id"),
            func.max(models.ObjectiveDocumentVersion.version_number).label("version_number"),
        )
        .filter(models.ObjectiveDocumentVersion.document_id.in_(document_ids))
        .group_by(models.ObjectiveDocumentVersion.document_id)
        .subquery()
    )

    versions = (
        db.query(models.ObjectiveDocumentVersion)
        .join(
            latest,
            (models.ObjectiveDocumentVersion.document_id == latest.c.document_id)
            & (models.ObjectiveDocumentVersion.version_number == latest.c.version_number),
        )
        .all()
    )
    return {version.document_id: version for version in versions}


def merge_forward(
    previous: Optional[models.ObjectiveDocumentVersion],
    content: Optional[str] = None,
    punchlist: Optional[str] = None,
    goal: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> VersionSnapshot:
    """Apply overrides on top of the previous latest version.

    None means "not given": the field inherits the previous value. A document
    without any previous version starts from an empty content string.
    """
    if previous is None:
        return VersionSnapshot(
            content=content if content is not None else "",
            punchlist=punchlist,
            goal=goal,
            metadata=metadata,
        )

    return VersionSnapshot(
        content=content if content is not None else previous.content,
        punchlist=punchlist if punchlist is not None else previous.punchlist,
        goal=goal if goal is not None else previous.goal,
        metadata=metadata if metadata is not None else previous.version_metadata,
    )


def insert_version(
    db: Session,
    document_id: UUID,
    version_number: int,
    snapshot: VersionSnapshot,
    user_id: str,
    session_id: Optional[UUID] = None,
) -> models.ObjectiveDocumentVersion:
    """Insert a version row and flush it so its id is available.

    The caller owns the transaction and the ordering key allocation.
    """
    version = models.ObjectiveDocumentVersion(
        document_id=document_id,
        version_number=version_number,
        content=snapshot.content,
        content_hash=compute_content_hash(snapshot.content),
        punchlist=snapshot.punchlist,
        goal=snapshot.goal,
        version_metadata=snapshot.metadata,
        created_by_user_id=user_id,
        session_id=session_id,
    )
    db.add(version)
    db.flush()  # Get the version ID

    logger.info(
        f"Created version {version_number} for document {document_id}"
        f"{f' from session {session_id}' if session_id else ''}"
    )
    return version


def touch_document(db: Session, document_id: UUID) -> None:
    """Bump the envelope's updated_at without allocating a version number."""
    db.query(models.ObjectiveDocument).filter(
        models.ObjectiveDocument.id == document_id
    ).update(
        {models.ObjectiveDocument.updated_at: datetime.utcnow()},
        synchronize_session="fetch",
    )
