"""SQLAlchemy database configuration and session management."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.config import get_settings

settings = get_settings()

# Holdings are read from worker threads (API, refresh loop); SQLite needs this
connect_args = (
    {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
)

engine = create_engine(settings.database_url, connect_args=connect_args, echo=False)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Holdings are read after the session closes
)


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Commits on success, rolls back everything on error, so a failed
    import never leaves a half-replaced portfolio behind.

    Usage:
        with get_db() as db:
            db.query(Holding).all()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create the holdings and preferences tables if missing."""
    from .models import Base

    Base.metadata.create_all(bind=engine)
