"""Microsoft Graph mail client (client-credentials flow).

One `GraphMailClient` is built at startup and handed to request handlers
through a dependency. It owns its `TokenCache`, so tokens are reused across
sends without any module-level state.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from app.core.config import settings
from app.services.email_identity_service import (
    get_default_identity,
    get_email_identities,
    get_identity_by_email,
    get_inbox_mailbox,
)

logger = logging.getLogger(__name__)

GRAPH_API_BASE = "https://graph.microsoft.com/v1.0"
TOKEN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
INBOX_FIELDS = "id,conversationId,subject,bodyPreview,body,from,receivedDateTime,isRead"


class GraphMailError(Exception):
    """Raised when Graph rejects a token request, a send or an inbox read."""


@dataclass
class TokenCache:
    """Access token plus expiry; treated as stale `refresh_margin` seconds early."""

    access_token: str | None = None
    expires_at: float = 0.0
    refresh_margin: float = 300.0

    def get(self, now: float | None = None) -> str | None:
        now = time.time() if now is None else now
        if self.access_token and self.expires_at > now + self.refresh_margin:
            return self.access_token
        return None

    def store(self, access_token: str, expires_in: int, now: float | None = None) -> None:
        now = time.time() if now is None else now
        self.access_token = access_token
        self.expires_at = now + expires_in

    def clear(self) -> None:
        self.access_token = None
        self.expires_at = 0.0


@dataclass
class SendResult:
    message_id: str
    sent: bool
    from_address: str | None = None


@dataclass
class GraphMailClient:
    tenant_id: str
    client_id: str
    client_secret: str
    token_cache: TokenCache = field(default_factory=TokenCache)
    http_client: httpx.AsyncClient = field(
        default_factory=lambda: httpx.AsyncClient(timeout=30.0)
    )

    @classmethod
    def from_settings(cls) -> "GraphMailClient":
        return cls(
            tenant_id=settings.AZURE_TENANT_ID,
            client_id=settings.AZURE_CLIENT_ID,
            client_secret=settings.AZURE_CLIENT_SECRET,
        )

    @property
    def configured(self) -> bool:
        """Credentials present and at least one mailbox to send from."""
        has_credentials = bool(self.tenant_id and self.client_id and self.client_secret)
        return has_credentials and bool(get_email_identities())

    async def aclose(self) -> None:
        await self.http_client.aclose()

    # ------------------------------------------------------------------
    # Token
    # ------------------------------------------------------------------

    async def get_access_token(self) -> str:
        cached = self.token_cache.get()
        if cached:
            return cached
        if not (self.tenant_id and self.client_id and self.client_secret):
            raise GraphMailError("Microsoft Graph credentials not configured")

        response = await self.http_client.post(
            TOKEN_URL.format(tenant=self.tenant_id),
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "scope": GRAPH_SCOPE,
            },
        )
        if response.status_code != 200:
            raise GraphMailError(
                f"Failed to acquire access token: {response.status_code} - {response.text}"
            )
        payload = response.json()
        self.token_cache.store(payload["access_token"], int(payload.get("expires_in", 3600)))
        return payload["access_token"]

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send_mail(
        self,
        *,
        to: str,
        subject: str,
        body: str,
        from_address: str | None = None,
        from_name: str | None = None,
    ) -> SendResult:
        """
        Send an HTML email.

        Without Graph credentials the message is logged instead and the
        result carries a `dev-` id with `sent=False`.
        """
        if not self.configured:
            logger.info(
                "Graph not configured, email not sent. From: %s To: %s Subject: %s\n%s",
                from_address or "(default)", to, subject, body,
            )
            return SendResult(message_id=f"dev-{int(time.time() * 1000)}", sent=False)

        if not from_address:
            identity = get_default_identity("hiring")
            if identity is None:
                raise GraphMailError("No email identity configured")
            from_address = identity.email
            from_name = from_name or identity.name
        if not from_name:
            identity = get_identity_by_email(from_address)
            from_name = identity.name if identity else settings.COMPANY_NAME

        token = await self.get_access_token()
        response = await self.http_client.post(
            f"{GRAPH_API_BASE}/users/{from_address}/sendMail",
            headers={"Authorization": f"Bearer {token}"},
            json={
                "message": {
                    "subject": subject,
                    "body": {"contentType": "HTML", "content": body},
                    "toRecipients": [{"emailAddress": {"address": to}}],
                    "from": {"emailAddress": {"address": from_address, "name": from_name}},
                },
                "saveToSentItems": True,
            },
        )
        if response.status_code >= 400:
            raise GraphMailError(
                f"Failed to send email: {response.status_code} - {response.text}"
            )

        # sendMail answers 202 with no id; issue our own tracking id.
        return SendResult(
            message_id=f"graph-{int(time.time() * 1000)}-{secrets.token_hex(5)}",
            sent=True,
            from_address=from_address,
        )

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    async def fetch_inbox(
        self,
        *,
        since: datetime | None = None,
        top: int = 50,
    ) -> list[dict]:
        """Return raw Graph message dicts from the shared inbox, newest first."""
        mailbox = get_inbox_mailbox()
        if not mailbox:
            raise GraphMailError("No inbox mailbox configured")

        params = {
            "$top": str(top),
            "$orderby": "receivedDateTime desc",
            "$select": INBOX_FIELDS,
        }
        if since is not None:
            since_utc = since.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
            params["$filter"] = f"receivedDateTime ge {since_utc}"

        token = await self.get_access_token()
        response = await self.http_client.get(
            f"{GRAPH_API_BASE}/users/{mailbox}/mailFolders/inbox/messages",
            headers={"Authorization": f"Bearer {token}"},
            params=params,
        )
        if response.status_code >= 400:
            raise GraphMailError(
                f"Failed to fetch emails: {response.status_code} - {response.text}"
            )
        return response.json().get("value", [])
