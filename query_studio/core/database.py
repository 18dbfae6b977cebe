# query_studio/core/database.py
"""Database configuration with separate config and data warehouse engines."""

import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from query_studio.core.config import DATABASE_URL, DATA_WAREHOUSE_URL

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


# ===== CONFIG DATABASE =====
# Stores saved queries, execution logs and request logs
engine = create_engine(DATABASE_URL, connect_args=_connect_args(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# ===== DATA WAREHOUSE DATABASE =====
# Read-only target for builder queries; schema is discovered, not declared
dw_engine = create_engine(DATA_WAREHOUSE_URL, connect_args=_connect_args(DATA_WAREHOUSE_URL))


# ===== SESSION GENERATORS =====


def get_db():
    """Get config database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ===== TABLE CREATION =====


def create_all_tables():
    """Create config database tables."""
    # Import models to ensure they're registered with Base
    from query_studio.queries.models import SavedQuery, QueryExecutionLog  # noqa: F401
    from query_studio.logging.models import Log  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Config database tables created")


def drop_all_tables():
    """Drop config database tables (use with caution!)."""
    from query_studio.queries.models import SavedQuery, QueryExecutionLog  # noqa: F401
    from query_studio.logging.models import Log  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    logger.info("Config database tables dropped")


def init_db():
    """Initialize the config database."""
    create_all_tables()
