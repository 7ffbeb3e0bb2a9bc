"""Magic-code sign-in and server-side sessions.

Flow per login attempt: request code -> verify code -> session.
Every verification failure collapses to a plain False / None so callers
cannot tell a wrong code from an expired or already used one.
"""

import logging
import uuid
from datetime import timedelta

import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.permissions import ALL_PERMISSIONS, parse_permissions
from app.core.security import (
    create_session_token,
    decode_session_token,
    generate_magic_code,
)
from app.db.models import AdminUser, AuthSession, BootstrapMarker, MagicLinkToken
from app.db.types import utcnow
from app.schemas.auth import UserSession

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 5
BOOTSTRAP_MARKER_ID = "super_admin"


class TokenGenerationError(Exception):
    pass


def is_valid_admin_email(email: str) -> bool:
    return email.lower().endswith("@" + settings.ADMIN_EMAIL_DOMAIN.lower())


# =============================================================================
# Magic codes
# =============================================================================

def create_magic_code(db: Session, email: str) -> str:
    """
    Issue a new code for `email`, valid for MAGIC_CODE_MINUTES.

    Earlier unexpired codes for the same email stay valid.

    Raises:
        TokenGenerationError: no unused code value found after 5 tries
    """
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_magic_code()
        exists = db.query(MagicLinkToken.id).filter(MagicLinkToken.token == code).first()
        if exists:
            continue
        db.add(
            MagicLinkToken(
                email=email.lower(),
                token=code,
                expires_at=utcnow() + timedelta(minutes=settings.MAGIC_CODE_MINUTES),
            )
        )
        db.commit()
        return code
    raise TokenGenerationError("Failed to generate unique token")


def verify_magic_code(db: Session, email: str, code: str) -> bool:
    """Consume a matching unexpired, unused code. Single use."""
    record = (
        db.query(MagicLinkToken)
        .filter(
            MagicLinkToken.token == code,
            MagicLinkToken.email == email.lower(),
            MagicLinkToken.expires_at > utcnow(),
        )
        .first()
    )
    if record is None or record.used_at is not None:
        return False
    record.used_at = utcnow()
    db.commit()
    return True


# =============================================================================
# Users & sessions
# =============================================================================

def get_or_create_user(db: Session, email: str) -> AdminUser:
    """
    Return the admin user for `email`, creating it on first sign-in.

    A new user claims the bootstrap marker inside a savepoint. Only one
    insert of that fixed key can ever succeed, so exactly one user is
    granted every permission even when first sign-ins race.
    """
    email = email.lower()
    user = db.query(AdminUser).filter(AdminUser.email == email).first()
    if user:
        return user

    user = AdminUser(email=email, name=email.split("@")[0], permissions=[])
    db.add(user)
    db.flush()

    try:
        with db.begin_nested():
            db.add(BootstrapMarker(id=BOOTSTRAP_MARKER_ID, user_id=user.id))
    except IntegrityError:
        # Already bootstrapped; new users start with no permissions.
        logger.debug("Bootstrap marker already claimed")
    else:
        user.permissions = list(ALL_PERMISSIONS)
        logger.info("Bootstrap admin created", extra={"user_id": str(user.id)})
    return user


def create_session(db: Session, email: str) -> str:
    """Create a server-side session for `email` and return its signed token."""
    user = get_or_create_user(db, email)
    now = utcnow()
    user.last_login_at = now

    session = AuthSession(
        id=uuid.uuid4(),
        user_id=user.id,
        expires_at=now + timedelta(days=settings.SESSION_DAYS),
    )
    db.add(session)
    db.commit()

    return create_session_token(
        session_id=session.id,
        user_id=user.id,
        permissions=parse_permissions(user.permissions),
        expires_at=session.expires_at,
    )


def get_session(db: Session, token: str | None) -> UserSession | None:
    """
    Resolve a token to a live session, or None.

    The session row must still exist and be unexpired; permissions are read
    from the user row, never from the token payload.
    """
    if not token:
        return None
    try:
        payload = decode_session_token(token)
        session_id = uuid.UUID(payload["sessionId"])
    except (jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        return None

    session = (
        db.query(AuthSession)
        .filter(AuthSession.id == session_id, AuthSession.expires_at > utcnow())
        .first()
    )
    if session is None:
        return None

    user = db.query(AdminUser).filter(AdminUser.id == session.user_id).first()
    if user is None:
        return None

    return UserSession(
        session_id=session.id,
        user_id=user.id,
        email=user.email,
        name=user.name,
        permissions=parse_permissions(user.permissions),
    )


def delete_session(db: Session, session_id: uuid.UUID) -> None:
    db.query(AuthSession).filter(AuthSession.id == session_id).delete()
    db.commit()


def revoke_user_sessions(db: Session, user_id: uuid.UUID) -> int:
    """Delete every session for a user (caller commits)."""
    return db.query(AuthSession).filter(AuthSession.user_id == user_id).delete()
