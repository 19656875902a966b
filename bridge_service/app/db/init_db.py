import logging
import time

from sqlalchemy.exc import OperationalError

from bridge_service.app.core.config import settings
from bridge_service.app.db.base import Base
from bridge_service.app.db.session import engine

# register models on Base.metadata
from bridge_service.app.models.transaction import Transaction  # noqa

logger = logging.getLogger(__name__)


def init_db(retries: int | None = None):
    retries = retries or settings.DB_CONNECT_RETRIES
    logger.info("Creating database tables...")

    for attempt in range(1, retries + 1):
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database ready.")
            return
        except OperationalError as e:
            logger.error("Database not ready (attempt %s/%s): %s", attempt, retries, e)
            if attempt < retries:
                time.sleep(min(2 * attempt, 10))

    raise RuntimeError(f"Database not reachable after {retries} attempts. Startup aborted.")
