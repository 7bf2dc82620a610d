"""
Database initialization.

Creates all tables.  Production deployments use the Alembic migrations
instead; this is for local SQLite / throwaway databases.
"""

from sqlmodel import SQLModel

from app.core.logging_config import get_logger
from app.db.session import engine

logger = get_logger(__name__)


def init_db(bind=None) -> None:
    """Create every SQLModel table on *bind* (defaults to the app engine)."""
    # Import all models so SQLModel.metadata has them
    import app.db.base  # noqa: F401

    target = bind or engine
    logger.info("Creating database tables", extra={ "ctx_url": target.url.render_as_string(hide_password=True) })
    SQLModel.metadata.create_all(target)
    logger.info("Database initialization complete")


if __name__ == "__main__":
    init_db()
