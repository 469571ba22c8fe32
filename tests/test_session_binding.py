"""Tests for binding chat sessions to document versions.

One session revises one version: the first binding on an objective creates the
document, every later session gets a copy-forward version of its own.
"""
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from objdoc_core import crud, documents, models
from objdoc_core.errors import DocumentDatabaseError, DocumentNotFoundError, DocumentValidationError

from conftest import OWNER_ID, OTHER_USER_ID


class TestBindSessionToVersion:
    """Create-or-append, then point the session at the version."""

    def test_first_and_second_session(self, db, workspace, objective, chat_session, second_chat_session):
        """First binding creates an empty document, second copies it forward."""
        first = documents.bind_session_to_version(
            db, chat_session.id, objective.id, OWNER_ID, workspace.id
        )
        assert first.is_first_version is True

        result = documents.get_document_by_objective(db, objective.id)
        assert len(result.versions) == 1
        assert result.latest_version.content == ""

        second = documents.bind_session_to_version(
            db, second_chat_session.id, objective.id, OWNER_ID, workspace.id
        )
        assert second.is_first_version is False
        assert second.document_id == first.document_id
        assert second.version_id != first.version_id

        result = documents.get_document_by_objective(db, objective.id)
        assert len(result.versions) == 2
        assert result.versions[0].content == result.versions[1].content == ""

    def test_sequential_bindings_strictly_ordered(self, db, workspace, objective):
        sessions = [crud.create_session(db, objective.id, OWNER_ID) for _ in range(3)]

        bindings = [
            documents.bind_session_to_version(db, s.id, objective.id, OWNER_ID, workspace.id)
            for s in sessions
        ]

        numbers = [
            db.get(models.ObjectiveDocumentVersion, b.version_id).version_number for b in bindings
        ]
        assert numbers == [1, 2, 3]

    def test_copy_forward_carries_edits(self, db, workspace, objective, chat_session, second_chat_session):
        first = documents.bind_session_to_version(
            db, chat_session.id, objective.id, OWNER_ID, workspace.id
        )
        documents.update_version_content_in_place(db, first.version_id, OWNER_ID, "draft from session 1")
        documents.update_version_punchlist_in_place(db, first.version_id, OWNER_ID, "- confirm budget")

        second = documents.bind_session_to_version(
            db, second_chat_session.id, objective.id, OWNER_ID, workspace.id
        )

        version = db.get(models.ObjectiveDocumentVersion, second.version_id)
        assert version.content == "draft from session 1"
        assert version.punchlist == "- confirm budget"

    def test_session_pointer_written(self, db, workspace, objective, chat_session):
        binding = documents.bind_session_to_version(
            db, chat_session.id, objective.id, OWNER_ID, workspace.id
        )

        db.refresh(chat_session)
        assert chat_session.bound_version_id == binding.version_id

        version = db.get(models.ObjectiveDocumentVersion, binding.version_id)
        assert version.session_id == chat_session.id

    def test_rebinding_same_session_keeps_version(self, db, workspace, objective, chat_session):
        first = documents.bind_session_to_version(
            db, chat_session.id, objective.id, OWNER_ID, workspace.id
        )
        again = documents.bind_session_to_version(
            db, chat_session.id, objective.id, OWNER_ID, workspace.id
        )

        assert again.version_id == first.version_id
        assert again.is_first_version is False
        assert db.query(models.ObjectiveDocumentVersion).count() == 1

    def test_rebinding_after_document_deleted(self, db, workspace, objective, chat_session):
        first = documents.bind_session_to_version(
            db, chat_session.id, objective.id, OWNER_ID, workspace.id
        )
        documents.delete_document(db, first.document_id, OWNER_ID)

        again = documents.bind_session_to_version(
            db, chat_session.id, objective.id, OWNER_ID, workspace.id
        )

        assert again.is_first_version is True
        assert again.document_id != first.document_id

    def test_not_owned_writes_nothing(self, db, workspace, objective, chat_session):
        with pytest.raises(DocumentNotFoundError):
            documents.bind_session_to_version(
                db, chat_session.id, objective.id, OTHER_USER_ID, workspace.id
            )

        assert db.query(models.ObjectiveDocument).count() == 0
        db.refresh(chat_session)
        assert chat_session.bound_version_id is None

    def test_objective_outside_workspace(self, db, objective, chat_session, other_workspace):
        with pytest.raises(DocumentNotFoundError):
            documents.bind_session_to_version(
                db, chat_session.id, objective.id, OWNER_ID, other_workspace.id
            )

    def test_missing_session(self, db, workspace, objective):
        with pytest.raises(DocumentNotFoundError):
            documents.bind_session_to_version(db, uuid4(), objective.id, OWNER_ID, workspace.id)
        assert db.query(models.ObjectiveDocument).count() == 0

    def test_session_of_other_objective(self, db, workspace, objective):
        other = crud.create_objective(db, workspace.id, OWNER_ID, "Upsell")
        session = crud.create_session(db, other.id, OWNER_ID)

        with pytest.raises(DocumentValidationError):
            documents.bind_session_to_version(db, session.id, objective.id, OWNER_ID, workspace.id)

    def test_malformed_ids(self, db, workspace, objective):
        with pytest.raises(DocumentValidationError):
            documents.bind_session_to_version(db, "nope", objective.id, OWNER_ID, workspace.id)


class TestSessionVersionLookup:
    """Reading the version a session is bound to."""

    def test_bound(self, db, workspace, objective, chat_session):
        binding = documents.bind_session_to_version(
            db, chat_session.id, objective.id, OWNER_ID, workspace.id
        )

        result = documents.get_version_by_session(db, chat_session.id)

        assert result.version.id == binding.version_id
        assert result.objective_id == objective.id

    def test_unbound(self, db, chat_session):
        assert documents.get_version_by_session(db, chat_session.id) is None

    def test_deleting_session_keeps_history(self, db, workspace, objective, chat_session):
        binding = documents.bind_session_to_version(
            db, chat_session.id, objective.id, OWNER_ID, workspace.id
        )

        assert crud.delete_session(db, chat_session.id, OWNER_ID) is True

        db.expire_all()
        version = db.get(models.ObjectiveDocumentVersion, binding.version_id)
        assert version is not None
        assert version.session_id == chat_session.id
        assert documents.get_document_by_objective(db, objective.id) is not None


class TestBindAtomicity:
    """The new version and the session pointer commit together or not at all."""

    @pytest.fixture
    def pointer_write_fails(self, db, monkeypatch):
        """Once armed, every flush after a version is written raises."""
        original_flush = db.flush
        state = {"armed": False, "version_written": False}

        def flaky_flush(*args, **kwargs):
            if state["version_written"]:
                raise OperationalError("UPDATE chat_sessions", {}, Exception("disk I/O error"))
            return original_flush(*args, **kwargs)

        def mark_after(func):
            def wrapper(*args, **kwargs):
                result = func(*args, **kwargs)
                state["version_written"] = state["armed"]
                return result
            return wrapper

        monkeypatch.setattr(documents, "_create_document", mark_after(documents._create_document))
        monkeypatch.setattr(documents, "_append_version", mark_after(documents._append_version))
        monkeypatch.setattr(db, "flush", flaky_flush)
        return state

    def test_first_binding_rolls_back_document(
        self, db, workspace, objective, chat_session, pointer_write_fails
    ):
        pointer_write_fails["armed"] = True

        with pytest.raises(DocumentDatabaseError):
            documents.bind_session_to_version(db, chat_session.id, objective.id, OWNER_ID, workspace.id)

        db.expire_all()
        assert db.query(models.ObjectiveDocument).count() == 0
        assert db.query(models.ObjectiveDocumentVersion).count() == 0
        assert db.get(models.Objective, objective.id).document_id is None
        assert db.get(models.ChatSession, chat_session.id).bound_version_id is None

    def test_later_binding_rolls_back_version(
        self, db, workspace, objective, chat_session, second_chat_session, pointer_write_fails
    ):
        first = documents.bind_session_to_version(db, chat_session.id, objective.id, OWNER_ID, workspace.id)
        pointer_write_fails["armed"] = True

        with pytest.raises(DocumentDatabaseError):
            documents.bind_session_to_version(
                db, second_chat_session.id, objective.id, OWNER_ID, workspace.id
            )

        db.expire_all()
        assert [v.id for v in db.query(models.ObjectiveDocumentVersion).all()] == [first.version_id]
        assert db.get(models.ObjectiveDocument, first.document_id).version_counter == 1
        assert db.get(models.ChatSession, second_chat_session.id).bound_version_id is None
        assert db.get(models.ChatSession, chat_session.id).bound_version_id == first.version_id
