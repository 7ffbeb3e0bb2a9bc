"""Sender identities (shared mailboxes) configured through the environment."""

from dataclasses import dataclass
from typing import Literal

from app.core.config import settings


IdentityContext = Literal["admin", "notification", "sales", "hiring"]


@dataclass(frozen=True)
class EmailIdentity:
    id: str
    email: str
    name: str
    label: str


def get_email_identities() -> list[EmailIdentity]:
    """Return configured identities; the legacy shared mailbox is a fallback."""
    identities: list[EmailIdentity] = []
    if settings.EMAIL_ADMIN:
        identities.append(
            EmailIdentity("admin", settings.EMAIL_ADMIN, settings.EMAIL_ADMIN_NAME, "Admin")
        )
    if settings.EMAIL_SALES:
        identities.append(
            EmailIdentity("sales", settings.EMAIL_SALES, settings.EMAIL_SALES_NAME, "Sales")
        )
    if settings.EMAIL_HIRING:
        identities.append(
            EmailIdentity("hiring", settings.EMAIL_HIRING, settings.EMAIL_HIRING_NAME, "Hiring/HR")
        )
    if not identities and settings.O365_SHARED_MAILBOX:
        identities.append(
            EmailIdentity("hiring", settings.O365_SHARED_MAILBOX, settings.COMPANY_NAME, "Default")
        )
    return identities


def get_default_identity(context: IdentityContext) -> EmailIdentity | None:
    """Pick the identity for a context, falling back to the first configured."""
    identities = get_email_identities()
    wanted = "admin" if context == "notification" else context
    for identity in identities:
        if identity.id == wanted:
            return identity
    return identities[0] if identities else None


def get_identity_by_email(email: str) -> EmailIdentity | None:
    for identity in get_email_identities():
        if identity.email.lower() == email.lower():
            return identity
    return None


def get_inbox_mailbox() -> str | None:
    """Mailbox that inbound replies are synced from."""
    if settings.O365_SHARED_MAILBOX:
        return settings.O365_SHARED_MAILBOX
    identity = get_default_identity("hiring")
    return identity.email if identity else None
