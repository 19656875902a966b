from bridge_service.app.core.logging_config import setup_logging
from bridge_service.app.db.init_db import init_db

setup_logging()
init_db()
