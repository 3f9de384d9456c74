"""Create the SQL backend's tables: ``python -m prekclip.db.create_tables``."""
from __future__ import annotations

import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from . import models  # noqa: F401  # registers the tables on Base.metadata
from .session import Base, get_engine

logger = logging.getLogger(__name__)


def create_all(engine: Engine | None = None) -> None:
    """Create any missing tables; existing tables and rows are left alone."""
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("SQL tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        create_all()
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
