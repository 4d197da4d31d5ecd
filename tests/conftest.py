import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from preppal import models  # noqa: F401
from preppal.core.session_runtime import SessionRuntimeRegistry, session_runtime
from preppal.db.base import Base
from preppal.repositories.session_repository import SessionRepository
from preppal.repositories.user_repository import UserRepository
from preppal.schemas.session import Preferences
from preppal.services.coaching_service import CoachingService
from preppal.services.interview_session_service import InterviewSessionService
from tests.fakes import FakeBackend


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def users(db):
    return UserRepository(db)


@pytest.fixture
def sessions(db):
    return SessionRepository(db)


@pytest.fixture
def runtime():
    return SessionRuntimeRegistry()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def interviews(sessions, backend, runtime):
    return InterviewSessionService(sessions, CoachingService(backend), runtime)


@pytest.fixture
def nurse_prefs():
    return Preferences(job_role="Nurse", experience_level="Junior (1-2 years)")


@pytest.fixture
def client(engine, backend):
    from main import app
    from preppal.api.deps import get_coaching_service
    from preppal.db.session import get_db

    testing_session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def override_get_db():
        db = testing_session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_coaching_service] = lambda: CoachingService(backend)
    session_runtime.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()
    session_runtime.clear()
