"""Database engine, session factory and FastAPI session dependency.

WHAT:
    Creates the process-wide SQLAlchemy engine from DATABASE_URL and exposes
    `get_db()`, the request-scoped session dependency.

WHY:
    - One engine per process, created once and disposed on shutdown
      (see app/main.py shutdown handler).
    - One session per request; services receive it through their constructor.

USAGE:
    from app.database import get_db

    @router.get("/campaigns")
    def list_campaigns(db: Session = Depends(get_db)):
        return CampaignEngine(db).list_for_user(user_id)
"""

import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .utils.env import require_env

logger = logging.getLogger(__name__)


# =============================================================================
# ENGINE
# =============================================================================

def _normalize_database_url(url: str) -> str:
    """Accept Heroku/Neon style `postgres://` URLs."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


DATABASE_URL = _normalize_database_url(require_env("DATABASE_URL"))

# SQLite engines (tests/dev) do not support pool_size/max_overflow.
if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,      # Recycle connections every hour
        pool_pre_ping=True,     # Validate connections before use
    )

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


# Base is defined in app.models to keep a single registry across the app
from .models import Base  # noqa: E402


def create_tables() -> None:
    """Create all tables directly (dev/SQLite only; production uses Alembic)."""
    Base.metadata.create_all(bind=engine)
    logger.info("[DB] Tables created from ORM metadata")


def dispose_engine() -> None:
    """Close pooled connections. Called on application shutdown."""
    engine.dispose()
    logger.info("[DB] Engine disposed")


# =============================================================================
# SESSION PROVIDERS
# =============================================================================

def get_db() -> Generator[Session, None, None]:
    """Yield a database session for FastAPI dependency injection.

    Yields:
        SQLAlchemy Session instance, closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
