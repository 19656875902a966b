import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bridge_service import __version__
from bridge_service.app.api.routes import transactions, validators
from bridge_service.app.core.config import settings
from bridge_service.app.core.exceptions import AppException
from bridge_service.app.core.handlers import app_exception_handler
from bridge_service.app.core.logging_config import setup_logging
from bridge_service.app.db.init_db import init_db
from bridge_service.app.services.eth_service import EthClient
from bridge_service.app.services.glitch_service import GlitchClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_db()

    app.state.glitch = GlitchClient(settings.WS_NODE, timeout=settings.RPC_TIMEOUT_SECONDS)
    app.state.eth = EthClient(str(settings.ETH_NODE), timeout=settings.RPC_TIMEOUT_SECONDS)
    logger.info("Connected to Glitch node %s and Ethereum node %s", settings.WS_NODE, settings.ETH_NODE)

    yield

    app.state.glitch.close()


app = FastAPI(title="Glitch Bridge API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.add_exception_handler(AppException, app_exception_handler)

app.include_router(transactions.router)
app.include_router(validators.router)


@app.get("/")
def health_check():
    return {"status": "healthy", "version": __version__}


def run():
    logger.info("Server is running on port %s.", settings.PORT)
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
