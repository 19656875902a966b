"""
Pytest fixtures for the bridge API tests.
"""
import os

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("WS_NODE", "ws://glitch.test:9944")
os.environ.setdefault("ETH_NODE", "http://eth.test:8545")

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from bridge_service.app.api.deps import get_eth_client, get_glitch_client
from bridge_service.app.db.base import Base
from bridge_service.app.db.session import SessionLocal, engine, get_db
from bridge_service.app.main import app
from bridge_service.app.models.transaction import Transaction
from bridge_service.app.services.eth_service import EthClient
from bridge_service.app.services.glitch_service import GlitchClient
from tests.helpers import ETH_ADDRESS, GLITCH_ADDRESS, GLITCH_BLOCK, make_block


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_tx(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        values = {
            "tx_eth_hash": "0x" + f"{counter['n']:064x}",
            "from_eth_address": ETH_ADDRESS,
            "to_glitch_address": GLITCH_ADDRESS,
            "amount": "1000",
            "tx_glitch_hash": GLITCH_BLOCK,
            "state": "PROCESSED",
        }
        values.update(overrides)
        tx = Transaction(**values)
        db.add(tx)
        db.commit()
        db.refresh(tx)
        return tx

    return _make


@pytest.fixture
def glitch():
    client = MagicMock(spec=GlitchClient)
    client.get_block = AsyncMock(return_value=make_block())
    client.get_extrinsic_fee = AsyncMock(return_value=None)
    client.get_block_timestamp = AsyncMock(return_value=1_700_000_000_000)
    client.get_validators_overview = AsyncMock()
    return client


@pytest.fixture
def eth():
    client = MagicMock(spec=EthClient)
    client.get_transaction_timestamp = AsyncMock(return_value=1_700_000_000)
    return client


@pytest.fixture
def client(db, glitch, eth):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_glitch_client] = lambda: glitch
    app.dependency_overrides[get_eth_client] = lambda: eth
    try:
        # no context manager: the lifespan would dial the real nodes
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
