"""
Database session management.

Provides SQLModel engine and session creation.
"""

from typing import Generator

from sqlmodel import Session, create_engine

from app.core.config import settings


def build_engine(url: str, echo: bool = False):
    """Create an engine for *url*.  SQLite gets no connection pool sizing."""
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={ "check_same_thread": False })
    return create_engine(
        url,
        echo=echo,  # Log SQL queries in debug mode
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,  # Connection pool size
        max_overflow=10  # Max connections beyond pool_size
    )


# Create database engine
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI endpoints to get database session.

    Yields:
        SQLModel Session instance

    Example:
        @app.get("/state")
        def get_state(db: Session = Depends(get_db)):
            return KeyValueRepository(db).load("user:1:weights")
    """
    with Session(engine) as session:
        yield session
