"""Shared test configuration.

Settings are read at import time, so the environment is prepared here
before any application module is imported.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///./engigrow-test.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from engigrow.core.database import Base, build_engine, get_db
from engigrow.main import app
from engigrow.services.post_service import PostService
from engigrow.services.user_service import user_service

STRONG_PASSWORD = "Abcdef1!"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'engigrow.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def posts():
    """A fresh post store so lock state never leaks between tests."""
    return PostService()


@pytest.fixture
def make_user(db):
    def _make_user(email="ada@example.edu", name="Ada", password=STRONG_PASSWORD):
        return user_service.register(
            db,
            name=name,
            institution="Tech University",
            interests=["robotics", "ml"],
            email=email,
            raw_password=password,
        )

    return _make_user
