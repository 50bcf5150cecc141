import os

# Keep the app's module-level engine off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.database import get_session
from app.main import app
from app.meets.service import MeetService
from app.models.storage_models import StoredDocument  # noqa: F401
from app.storage.sql_store import SqlDocumentStore


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(session):
    return SqlDocumentStore(session)


@pytest.fixture
def service(store):
    return MeetService(store)


@pytest.fixture
def client(engine):
    def _session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def meet_data():
    """A complete, valid meet as a director would submit it."""
    return {
        "name": "Tampa Bay Open",
        "date": "2025-08-15",
        "location": {
            "venue": "Convention Center",
            "address": "1 Main St",
            "city": "Tampa",
            "state": "FL",
        },
        "federation": "USAPL",
        "weight_classes": ["Men 83kg"],
        "divisions": ["Open"],
        "equipment": ["Raw"],
        "registration_deadline": "2025-08-01",
        "registration_fee": 75,
        "max_participants": 60,
    }
