"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models.audio_file import AudioFile  # noqa: F401
from app.models.mood_entry import DailyMoodEntry  # noqa: F401
from app.models.transcript import Transcript  # noqa: F401
from app.models.user import User  # noqa: F401
from app.services import storage as storage_module
from app.services.identity import AccountService, get_token_service
from app.services.speech import SpeechResult
from app.services.storage import ObjectStorage, StorageError


class FakeSpeech:
    """Stands in for the speech-to-text service."""

    def __init__(self, text: str = "um so today I went for a walk", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls = 0

    async def transcribe(self, audio: bytes, filename: str, content_type: str | None) -> SpeechResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return SpeechResult(text=self.text, language="en")


class FakeRewriter:
    """Stands in for the rewrite service."""

    def __init__(self, text: str = "Today I went for a walk.", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls = 0

    async def rewrite(self, text: str) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.text


class FailingStorage(ObjectStorage):
    """Object storage whose uploads always fail."""

    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        raise StorageError("bucket unavailable")


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="storage")
def storage_fixture(tmp_path):
    """Point object storage at a temporary bucket."""
    previous = storage_module._storage
    storage_module._storage = ObjectStorage(tmp_path / "bucket")
    yield storage_module._storage
    storage_module._storage = previous


@pytest.fixture(name="speech")
def speech_fixture(monkeypatch):
    fake = FakeSpeech()
    monkeypatch.setattr("app.services.pipeline.get_speech_service", lambda: fake)
    return fake


@pytest.fixture(name="rewriter")
def rewriter_fixture(monkeypatch):
    fake = FakeRewriter()
    monkeypatch.setattr("app.services.pipeline.get_rewrite_service", lambda: fake)
    return fake


@pytest.fixture(name="client")
def client_fixture(db_session: Session, storage: ObjectStorage):
    """Create a test client with overridden DB dependency and disabled rate limiting."""
    from app.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


def _make_user(db_session: Session, email: str, display_name: str) -> dict:
    result = AccountService().register(db_session, email, "password123", display_name)
    token = get_token_service().create_token_for(result)
    return {
        "user_id": result.user_id,
        "email": result.email,
        "display_name": result.display_name,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session):
    """Create a test user and return its data, token and auth headers."""
    return _make_user(db_session, "test@example.com", "Test User")


@pytest.fixture(name="other_user")
def other_user_fixture(db_session: Session):
    return _make_user(db_session, "other@example.com", "Other User")
