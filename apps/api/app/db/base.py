from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Date
from sqlalchemy.orm import DeclarativeBase

from app.db.types import UTCDateTime


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    Nested records (salary, address, permission lists) map to the native
    JSON column type of the backing store.
    """
    type_annotation_map = {
        datetime: UTCDateTime(),
        date: Date,
        dict[str, Any]: JSON,
        list[str]: JSON,
    }
