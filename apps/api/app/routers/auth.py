"""Auth router - magic-code login, session cookie, logout and /me."""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import (
    COOKIE_NAME,
    get_current_session,
    get_db,
    get_mail_client,
    get_optional_session,
)
from app.core.rate_limit import enforce_rate_limit, get_client_ip
from app.core.security import normalize_magic_code
from app.core.structured_logging import mask_email
from app.schemas.auth import LoginRequest, MeResponse, UserSession, VerifyRequest
from app.schemas.common import SuccessResponse
from app.services import auth_service, email_service
from app.services.graph_mail import GraphMailClient, GraphMailError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

TOO_MANY_REQUESTS = "Too many requests. Please try again later."


@router.post("/login", response_model=SuccessResponse)
async def login(
    data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    mail_client: GraphMailClient = Depends(get_mail_client),
):
    """Request a magic code for an admin email."""
    enforce_rate_limit("global_ip", f"ip:{get_client_ip(request)}", TOO_MANY_REQUESTS)

    email = (data.email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")
    if not auth_service.is_valid_admin_email(email):
        raise HTTPException(
            status_code=400,
            detail=f"Only @{settings.ADMIN_EMAIL_DOMAIN} emails are allowed",
        )

    enforce_rate_limit(
        "login", f"login:{email}", "Too many login attempts. Please try again later."
    )

    try:
        code = auth_service.create_magic_code(db, email)
    except auth_service.TokenGenerationError:
        logger.exception("Magic code generation failed")
        raise HTTPException(status_code=500, detail="Failed to send magic link")

    # The code is stored either way; a failed email is logged, not surfaced.
    try:
        await email_service.send_magic_code_email(mail_client, email, code)
    except (GraphMailError, httpx.HTTPError) as e:
        logger.error("Magic code email to %s failed: %s", mask_email(email), e)

    return SuccessResponse(message="Magic code sent to your email")


@router.post("/verify", response_model=SuccessResponse)
def verify(
    data: VerifyRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Exchange a magic code for a session cookie."""
    enforce_rate_limit("global_ip", f"ip:{get_client_ip(request)}", TOO_MANY_REQUESTS)

    email = (data.email or "").strip().lower()
    token = normalize_magic_code(data.token or "")
    if not email or not token:
        raise HTTPException(status_code=400, detail="Email and token are required")

    enforce_rate_limit(
        "verify",
        f"verify:{email}",
        "Too many verification attempts. Please request a new code.",
    )

    if not auth_service.verify_magic_code(db, email, token):
        raise HTTPException(status_code=400, detail="Invalid or expired code")

    session_token = auth_service.create_session(db, email)
    response.set_cookie(
        key=COOKIE_NAME,
        value=session_token,
        max_age=settings.SESSION_DAYS * 24 * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    return SuccessResponse()


@router.post("/logout", response_model=SuccessResponse)
def logout(
    response: Response,
    session: UserSession | None = Depends(get_optional_session),
    db: Session = Depends(get_db),
):
    """Delete the server-side session (if any) and clear the cookie."""
    if session is not None:
        auth_service.delete_session(db, session.session_id)
    response.delete_cookie(COOKIE_NAME, path="/")
    return SuccessResponse()


@router.get("/me", response_model=MeResponse)
def me(session: UserSession = Depends(get_current_session)):
    """Current user with live permissions."""
    return MeResponse(
        id=session.user_id,
        email=session.email,
        name=session.name,
        permissions=session.permissions,
    )
