"""Security utilities for JWT session tokens and one-time sign-in codes."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from app.core.config import settings


# =============================================================================
# Session Token (JWT in cookie)
# =============================================================================

def create_session_token(
    session_id: UUID,
    user_id: UUID,
    permissions: list[str],
    expires_at: datetime | None = None,
) -> str:
    """
    Create signed session JWT.

    The permission list is a snapshot for the client only; the server
    always re-reads permissions from the user row.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sessionId": str(session_id),
        "userId": str(user_id),
        "permissions": permissions,
        "iat": now,
        "exp": expires_at or now + timedelta(days=settings.SESSION_DAYS),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Raises:
        jwt.InvalidTokenError: If the signature or expiry check fails
    """
    return jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])


# =============================================================================
# Magic Codes
# =============================================================================

# No 0/O or 1/I so codes survive being read aloud or retyped.
MAGIC_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MAGIC_CODE_LENGTH = 8


def generate_magic_code() -> str:
    """Generate a random code from the unambiguous alphabet."""
    return "".join(
        MAGIC_CODE_ALPHABET[b % len(MAGIC_CODE_ALPHABET)]
        for b in secrets.token_bytes(MAGIC_CODE_LENGTH)
    )


def normalize_magic_code(code: str) -> str:
    return code.strip().upper()


# =============================================================================
# Hashing
# =============================================================================

def hash_ip(ip: str) -> str:
    """Privacy-preserving IP fingerprint for analytics (16 hex chars)."""
    return hashlib.sha256((ip + settings.jwt_secret).encode()).hexdigest()[:16]
