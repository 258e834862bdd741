import os

# The app module builds its engine at import time; point it at an in-memory database.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from labsync.api.deps import get_db
from labsync.core.security import create_access_token
from labsync.db.base import Base
from labsync.main import app
from labsync.models.user import User, UserRole


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def users(session_factory) -> dict[str, str]:
    """Seed one user per role and return their ids keyed by role name."""
    db = session_factory()
    try:
        seeded = {
            role.value: User(name=f"{role.value.title()} User", email=f"{role.value}@example.com", role=role)
            for role in UserRole
        }
        db.add_all(seeded.values())
        db.commit()
        return {role: user.id for role, user in seeded.items()}
    finally:
        db.close()


@pytest.fixture()
def auth_headers(users):
    def build(role: str = "admin") -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(users[role])}"}

    return build


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
