"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite schema per test
- Fake mail client and local storage wired into the app
- Signed-in admin users with chosen permission sets
- HTTPX AsyncClient against the ASGI app
"""
import os
import uuid
from dataclasses import dataclass, field
from typing import AsyncGenerator, Generator

# Must be set before the app (and its settings) are imported
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_EMAIL_DOMAIN"] = "taskclearers.com"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from app.main import app
from app.core.deps import COOKIE_NAME, get_db, get_mail_client, get_storage
from app.core.permissions import ALL_PERMISSIONS
from app.core.rate_limit import reset_rate_limits
from app.db import models  # noqa: F401 - registers tables
from app.db.base import Base
from app.db.models import AdminUser, Application, Job
from app.db.session import SessionLocal, engine
from app.services import auth_service
from app.services.graph_mail import GraphMailError, SendResult
from app.services.storage_service import LocalStorage


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """A session over a freshly created schema, dropped afterwards."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


# =============================================================================
# Collaborator Fakes
# =============================================================================

@dataclass
class FakeMailClient:
    """Records sends instead of calling Graph. Set `fail` to make sends raise."""
    configured: bool = True
    fail: str | None = None
    sent: list[dict] = field(default_factory=list)
    inbox: list[dict] = field(default_factory=list)

    async def send_mail(self, *, to, subject, body, from_address=None, from_name=None):
        if self.fail:
            raise GraphMailError(self.fail)
        self.sent.append(
            {"to": to, "subject": subject, "body": body, "from": from_address}
        )
        return SendResult(
            message_id=f"fake-{len(self.sent)}", sent=True, from_address=from_address
        )

    async def fetch_inbox(self, *, since=None, top=50):
        return list(self.inbox)

    async def aclose(self):
        return None


@pytest.fixture
def mail_client() -> FakeMailClient:
    return FakeMailClient()


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(root=tmp_path)


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def make_user(db: Session):
    """Create an admin user with exactly the given permissions."""
    def _make(permissions=None, email: str | None = None, name: str = "Test Admin") -> AdminUser:
        user = AdminUser(
            email=email or f"admin-{uuid.uuid4().hex[:8]}@taskclearers.com",
            name=name,
            permissions=list(ALL_PERMISSIONS if permissions is None else permissions),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def job(db: Session) -> Job:
    job = Job(
        title="Virtual Assistant",
        department="Operations",
        location="Remote",
        description="Help our clients clear their task lists.",
        requirements=["Reliable internet"],
        responsibilities=["Inbox management"],
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


@pytest.fixture
def application(db: Session, job: Job) -> Application:
    application = Application(
        job_id=job.id,
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="555-0100",
    )
    db.add(application)
    db.commit()
    db.refresh(application)
    return application


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(
    db: Session,
    mail_client: FakeMailClient,
    storage: LocalStorage,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_client] = lambda: mail_client
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def login(db: Session, client: AsyncClient, make_user):
    """
    Sign `client` in as a new user holding `permissions` (all by default).

    Returns the AdminUser.
    """
    def _login(permissions=None, email: str | None = None) -> AdminUser:
        user = make_user(permissions, email=email)
        token = auth_service.create_session(db, user.email)
        client.cookies.set(COOKIE_NAME, token)
        return user
    return _login


@pytest.fixture
def admin(login) -> AdminUser:
    """`client` signed in with every permission."""
    return login()
