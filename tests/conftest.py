"""Shared test fixtures: in-memory SQLite database, seeded rows and API client."""
import os

# Never touch a developer's local database
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from objdoc_core import crud
from objdoc_core.database import build_engine, get_db
from objdoc_core.models import Base

OWNER_ID = "user-owner"
OTHER_USER_ID = "user-attacker"


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def workspace(db):
    """Workspace W owned by OWNER_ID."""
    return crud.create_workspace(db, owner_id=OWNER_ID, name="Acme renewal")


@pytest.fixture
def other_workspace(db):
    """Workspace owned by OTHER_USER_ID."""
    return crud.create_workspace(db, owner_id=OTHER_USER_ID, name="Someone else's deals")


@pytest.fixture
def objective(db, workspace):
    """Objective O in W, without a document."""
    return crud.create_objective(db, workspace.id, OWNER_ID, "Close the Acme renewal")


@pytest.fixture
def chat_session(db, objective):
    return crud.create_session(db, objective.id, OWNER_ID)


@pytest.fixture
def second_chat_session(db, objective):
    return crud.create_session(db, objective.id, OWNER_ID, title="Second chat")


@pytest.fixture
def client(session_factory):
    """HTTP test client with overridden DB dependency."""
    from objdoc_core.api.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
