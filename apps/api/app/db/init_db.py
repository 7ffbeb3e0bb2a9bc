"""Schema bootstrap for the relational store."""

import logging
from pathlib import Path

from sqlalchemy.engine import Engine

from app.db import models  # noqa: F401 - registers tables on Base.metadata
from app.db.base import Base

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """Create missing tables (and the SQLite directory) for `engine`."""
    database = engine.url.database
    if engine.url.get_backend_name() == "sqlite" and database not in (None, "", ":memory:"):
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready (%s)", engine.url.get_backend_name())
