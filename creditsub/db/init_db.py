import logging

from creditsub.db.base import Base
from creditsub.db.session import engine

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create any missing tables. Used when Alembic migrations are not run."""
    # Registers every model on Base.metadata
    import creditsub.db.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")
