"""Shared pytest fixtures for Podcast Media Backend tests.

Every test gets an isolated SQLite database and audio directory, so nothing
is written under the repository's media/ directory.
"""

import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.db import init_db
from services.podcast_api.main import app, get_db_session, override_session_factory


@pytest.fixture
def temp_db():
    """Create a temporary database for testing.

    Yields:
        tuple: (db_path, engine, SessionFactory)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        engine, SessionFactory = init_db(db_path)
        yield db_path, engine, SessionFactory
        engine.dispose()


@pytest.fixture
def audio_dir(monkeypatch):
    """Point storage at a temporary audio directory.

    Yields:
        Path: The audio directory (exists, initially empty).
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "audio"
        path.mkdir()
        monkeypatch.setattr("app.utils.paths.AUDIO_DIR", path)
        yield path


@pytest.fixture
def client(temp_db, audio_dir):
    """Create a FastAPI test client with temp database and audio directory.

    Yields:
        tuple: (test_client, SessionFactory)
    """
    db_path, engine, SessionFactory = temp_db
    override_session_factory(SessionFactory)

    def get_test_session():
        session = SessionFactory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = get_test_session

    with TestClient(app) as test_client:
        yield test_client, SessionFactory

    app.dependency_overrides.clear()
    override_session_factory(None)


@pytest.fixture
def upload(client):
    """Return a helper that uploads a podcast and returns the response."""
    test_client, _ = client

    def _upload(
        title: str = "Episode 1",
        payload: bytes = b"ID3 fake mpeg payload",
        content_type: str = "audio/mpeg",
        filename: str = "episode.mp3",
    ):
        return test_client.post(
            "/podcasts",
            data={"title": title},
            files={"file": (filename, payload, content_type)},
        )

    return _upload
