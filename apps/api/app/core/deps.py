"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.permissions import Permission, has_permission
from app.db.session import SessionLocal
from app.schemas.auth import UserSession


COOKIE_NAME = "session"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_optional_session(
    request: Request,
    db: Session = Depends(get_db),
) -> UserSession | None:
    """Resolve the session cookie, or None when absent/invalid/revoked."""
    from app.services.auth_service import get_session

    return get_session(db, request.cookies.get(COOKIE_NAME))


def get_current_session(
    session: UserSession | None = Depends(get_optional_session),
) -> UserSession:
    """
    Require a live session.

    Raises:
        HTTPException 401: Not authenticated
    """
    if session is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return session


def require_permission(permission: Permission):
    """
    Dependency factory for permission-gated endpoints.

    The gate admits or rejects the whole request: 401 without a session,
    403 when the user's live permission set lacks `permission`.

    Usage:
        session: UserSession = Depends(require_permission(Permission.MANAGE_JOBS))
    """
    def dependency(
        session: UserSession | None = Depends(get_optional_session),
    ) -> UserSession:
        if session is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        if not has_permission(session.permissions, permission):
            raise HTTPException(status_code=403, detail="Forbidden")
        return session
    return dependency


def get_mail_client(request: Request):
    """The app-wide GraphMailClient built in the lifespan handler."""
    from app.services.graph_mail import GraphMailClient

    client = getattr(request.app.state, "mail_client", None)
    if client is None:
        client = GraphMailClient.from_settings()
        request.app.state.mail_client = client
    return client


def get_storage(request: Request):
    """The app-wide file storage backend."""
    from app.services.storage_service import build_storage

    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = build_storage()
        request.app.state.storage = storage
    return storage
