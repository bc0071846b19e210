"""
Shared fixtures.

Run with: pytest -v
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-long-enough-for-hs256!"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from maintdesk.core.database import get_db
from maintdesk.main import app
from maintdesk.models import Base, User, UserRole
from maintdesk.models.ticket import TicketPriority
from maintdesk.schemas.ticket import CreateTicketRequest
from maintdesk.services import auth_service
from maintdesk.services.auth_service import AuthService
from maintdesk.services.rbac_service import Principal
from maintdesk.services.ticket_service import TicketService

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    monkeypatch.setattr(auth_service, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def engine():
    """In-memory SQLite shared by the test session and every request"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
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
def make_user(db):
    """Factory: make_user("tech1", UserRole.TECHNICIAN, "North", "Alpha")"""

    def _make_user(username, role, command="North", unit="Alpha", password=DEFAULT_PASSWORD, is_active=True):
        user = User(
            username=username,
            password_hash=AuthService.hash_password(password),
            role=role,
            command=command,
            unit=unit,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user("admin", UserRole.ADMIN, "HQ", "HQ")


@pytest.fixture
def technician(make_user):
    return make_user("tech.north", UserRole.TECHNICIAN, "North", "Alpha")


@pytest.fixture
def viewer(make_user):
    return make_user("viewer.alpha", UserRole.VIEWER, "North", "Alpha")


def principal_of(user: User) -> Principal:
    return Principal.from_user(user)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {AuthService.create_access_token(user)}"}


def create_ticket(db, principal: Principal, **overrides):
    """Create a ticket through the service with sensible defaults."""
    payload = {
        "priority": TicketPriority.NORMAL,
        "description": "Generator fails to start",
    }
    payload.update(overrides)
    return TicketService.create_ticket(db, principal, CreateTicketRequest(**payload))
