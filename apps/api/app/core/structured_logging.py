"""Structured logging helpers (PII-safe)."""

import logging
from contextvars import ContextVar
from typing import Any

from app.core.config import settings


_REQUEST_ID: ContextVar[str | None] = ContextVar("request_id", default=None)


def configure_logging() -> None:
    """Configure the root logger once at startup."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def set_request_id(request_id: str | None) -> None:
    _REQUEST_ID.set(request_id)


def get_request_id() -> str | None:
    return _REQUEST_ID.get()


def build_log_context(
    *,
    user_id: str | None = None,
    entity_id: str | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict for `extra=`."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if entity_id:
        context["entity_id"] = str(entity_id)
    request_id = request_id or get_request_id()
    if request_id:
        context["request_id"] = request_id
    return context


def mask_email(email: str) -> str:
    """Keep the domain and first character only: j***@example.com."""
    local, _, domain = email.partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain}"
