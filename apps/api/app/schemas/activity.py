"""Activity log entries as shown on employee and sales lead timelines."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from app.schemas.common import CamelModel


class ActivityRead(CamelModel):
    id: UUID
    action: str
    field: str | None = None
    previous_value: Any = None
    new_value: Any = None
    # Stored in the `metadata` column; the ORM attribute is `details`
    details: dict[str, Any] | None = Field(default=None, alias="metadata")
    admin_user_id: UUID
    admin_name: str | None = None
    admin_email: str | None = None
    created_at: datetime
