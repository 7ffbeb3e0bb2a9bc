"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from app.schemas.common import CamelModel


class UserSession(BaseModel):
    """
    Session context for authenticated requests.

    Returned by the get_current_session dependency. `permissions` is read
    fresh from the user row on every request.
    """
    session_id: UUID
    user_id: UUID
    email: str
    name: str | None = None
    permissions: list[str] = []


class LoginRequest(CamelModel):
    email: str | None = None


class VerifyRequest(CamelModel):
    email: str | None = None
    token: str | None = None


class MeResponse(CamelModel):
    """Response schema for GET /api/auth/me."""
    id: UUID
    email: str
    name: str | None
    permissions: list[str]
