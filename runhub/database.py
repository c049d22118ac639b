"""Database engine, session factory and declarative base."""

import logging

from sqlalchemy import JSON, create_engine, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, sessionmaker
from tenacity import before_sleep_log, retry, stop_after_attempt, wait_fixed

from runhub.config import settings

logger = logging.getLogger(__name__)

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONVariant = JSON().with_variant(JSONB(), "postgresql")


def get_db():
    """Yield a session for one request and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def wait_for_database(bind=None) -> None:
    """Block until the database accepts connections, then create missing tables."""

    @retry(
        stop=stop_after_attempt(settings.DB_READY_ATTEMPTS),
        wait=wait_fixed(settings.DB_READY_WAIT),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _probe(target):
        with target.connect() as conn:
            conn.execute(text("SELECT 1"))

    target = bind or engine
    _probe(target)
    logger.info("Database is ready")

    # Import models so every table is registered on the metadata
    import runhub.models  # noqa: F401

    Base.metadata.create_all(target)
