"""Error taxonomy for the document lifecycle engine.

Every failure leaving this package is one of four classifications:

- validation: malformed or missing identifiers / field values
- not_found: objective, document or version absent, or owned by someone else
  (ownership mismatches are reported as not_found so cross-tenant existence
  never leaks)
- conflict: ordering-key collision or a document already bound to an objective
- database: any other transactional failure; safe for callers to retry

Raw SQLAlchemy errors are wrapped by ``database.transaction`` before they reach
a caller.
"""
from typing import Optional


class DocumentStoreError(Exception):
    """Base class for classified document lifecycle failures."""

    code = "database"
    retryable = False

    def __init__(self, message: str, *, entity: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.entity = entity

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class DocumentValidationError(DocumentStoreError, ValueError):
    """Raised when an identifier or field value is malformed."""

    code = "validation"


class DocumentNotFoundError(DocumentStoreError):
    """Raised when a record is absent or not visible to the caller."""

    code = "not_found"


class VersionConflictError(DocumentStoreError):
    """Raised when concurrent writers collide on the same ordering key."""

    code = "conflict"
    retryable = True


class DocumentDatabaseError(DocumentStoreError):
    """Raised for any other storage failure. The transaction was rolled back."""

    code = "database"
    retryable = True
