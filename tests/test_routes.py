"""
Tests for the HTTP surface.
"""
from unittest.mock import MagicMock

from substrateinterface.exceptions import BlockNotFound

from bridge_service.app.api.deps import get_glitch_client
from bridge_service.app.core.exceptions import UpstreamFetchError
from bridge_service.app.main import app
from bridge_service.app.services.glitch_service import GlitchClient, ValidatorsOverview
from tests.helpers import ETH_ADDRESS, GLITCH_ADDRESS, GLITCH_BLOCK, make_block, make_operation


def _payout_block():
    return make_block(
        make_operation("timestamp", "set", "1700000000000", hash="0x01"),
        make_operation("balances", "transfer", GLITCH_ADDRESS, "990", hash="0x02"),
    )


def test_health_check(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_history_for_unknown_wallet_is_empty(client):
    response = client.get("/api/transactionHistory/0xnobody")

    assert response.status_code == 200
    assert response.json() == []


def test_history_enriches_records(client, make_tx, glitch):
    tx = make_tx()
    glitch.get_block.return_value = _payout_block()
    glitch.get_extrinsic_fee.return_value = "1250"

    response = client.get(f"/api/transactionHistory/{ETH_ADDRESS}")

    assert response.status_code == 200
    [item] = response.json()
    assert item["id"] == tx.id
    assert item["tx_eth_hash"] == tx.tx_eth_hash
    assert item["net_amount"] == "990"
    assert item["extrinsic_hash"] == "0x02"
    assert item["glitch_fee"] == "1250"
    assert item["glitch_timestamp"] == 1_700_000_000_000
    assert item["eth_timestamp"] == 1_700_000_000


def test_history_omits_fields_it_could_not_get(client, make_tx, glitch, eth):
    make_tx()
    glitch.get_block.side_effect = UpstreamFetchError("glitch", "timeout")
    glitch.get_block_timestamp.side_effect = UpstreamFetchError("glitch", "timeout")
    eth.get_transaction_timestamp.side_effect = UpstreamFetchError("ethereum", "timeout")

    response = client.get(f"/api/transactionHistory/{GLITCH_ADDRESS}")

    assert response.status_code == 200
    [item] = response.json()
    for key in ("net_amount", "extrinsic_hash", "glitch_fee", "glitch_timestamp", "eth_timestamp"):
        assert key not in item
    assert item["to_glitch_address"] == GLITCH_ADDRESS


def test_history_survives_a_pruned_block(client, make_tx):
    make_tx()
    substrate = MagicMock()
    substrate.get_block.return_value = None
    substrate.query.side_effect = BlockNotFound()
    app.dependency_overrides[get_glitch_client] = lambda: GlitchClient("ws://glitch.test:9944", substrate=substrate)

    response = client.get(f"/api/transactionHistory/{ETH_ADDRESS}")

    assert response.status_code == 200
    [item] = response.json()
    assert item["eth_timestamp"] == 1_700_000_000
    assert "glitch_timestamp" not in item
    assert "net_amount" not in item


def test_history_pagination(client, make_tx):
    ids = [make_tx(net_amount="1", extrinsic_hash="0x1").id for _ in range(3)]

    response = client.get(f"/api/transactionHistory/{ETH_ADDRESS}", params={"page": 1, "limit": 2})

    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == ids[2:]


def test_history_rejects_bad_pagination(client):
    assert client.get("/api/transactionHistory/0xwallet", params={"limit": 0}).status_code == 422
    assert client.get("/api/transactionHistory/0xwallet", params={"page": -1}).status_code == 422
    assert client.get("/api/transactionHistory/0xwallet", params={"limit": 101}).status_code == 422


def test_history_accepts_largest_page(client, make_tx):
    make_tx(net_amount="1", extrinsic_hash="0x1")

    response = client.get(f"/api/transactionHistory/{ETH_ADDRESS}", params={"limit": 100})

    assert response.status_code == 200
    assert len(response.json()) == 1


def test_transaction_info_unknown_hash(client):
    response = client.get("/api/transactionInfo/0xmissing")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "TRANSACTION_NOT_FOUND"
    assert body["error"]["message"] == "No transaction found with id 0xmissing"


def test_transaction_info_settles_from_last_operation(client, make_tx, glitch, db):
    tx = make_tx(tx_eth_hash="0xeth")
    glitch.get_block.return_value = _payout_block()

    response = client.get("/api/transactionInfo/0xeth")

    assert response.status_code == 200
    assert response.json() == {
        "netAmount": "990",
        "extrinsicHash": "0x02",
        "ethTimestamp": 1_700_000_000,
    }
    glitch.get_block.assert_awaited_once_with(GLITCH_BLOCK)
    db.refresh(tx)
    assert (tx.net_amount, tx.extrinsic_hash) == ("990", "0x02")


def test_transaction_info_returns_stored_values(client, make_tx, glitch, eth):
    make_tx(tx_eth_hash="0xeth", net_amount="5", extrinsic_hash="0xstored")
    eth.get_transaction_timestamp.side_effect = UpstreamFetchError("ethereum", "timeout")

    response = client.get("/api/transactionInfo/0xeth")

    assert response.status_code == 200
    assert response.json() == {"netAmount": "5", "extrinsicHash": "0xstored"}
    glitch.get_block.assert_not_awaited()


def test_transaction_info_block_fetch_failure(client, make_tx, glitch):
    make_tx(tx_eth_hash="0xeth")
    glitch.get_block.side_effect = UpstreamFetchError("glitch", "block not found")

    response = client.get("/api/transactionInfo/0xeth")

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "BLOCK_FETCH_FAILED"
    assert error["message"].startswith("Error getting information from the block:")
    assert error["details"] == {"block_hash": GLITCH_BLOCK}


def test_transaction_info_undecodable_block(client, make_tx):
    make_tx(tx_eth_hash="0xeth")
    substrate = MagicMock()
    substrate.get_block.side_effect = ValueError("Unsupported Extrinsic version '5'")
    app.dependency_overrides[get_glitch_client] = lambda: GlitchClient("ws://glitch.test:9944", substrate=substrate)

    response = client.get("/api/transactionInfo/0xeth")

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "BLOCK_FETCH_FAILED"
    assert "Unsupported Extrinsic version" in error["message"]
    assert error["details"] == {"block_hash": GLITCH_BLOCK}


def test_transaction_info_not_yet_paid_out(client, make_tx, glitch):
    make_tx(tx_eth_hash="0xeth", tx_glitch_hash=None, state="TO_PROCESS")

    response = client.get("/api/transactionInfo/0xeth")

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "BLOCK_FETCH_FAILED"
    assert "has no Glitch block yet" in error["message"]
    assert error["details"] == {}
    glitch.get_block.assert_not_awaited()


def test_transaction_info_empty_block(client, make_tx, glitch):
    make_tx(tx_eth_hash="0xeth")
    glitch.get_block.return_value = make_block()

    response = client.get("/api/transactionInfo/0xeth")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "SETTLEMENT_NOT_FOUND"


def test_validators(client, glitch):
    glitch.get_validators_overview.return_value = ValidatorsOverview(
        current_era="12",
        stakers_count=3,
        total_stake="3000000000000",
    )

    response = client.get("/api/validators")

    assert response.status_code == 200
    assert response.json() == {"currentEra": "12", "stakersCount": 3, "totalStake": "3000000000000"}


def test_validators_node_failure(client, glitch):
    glitch.get_validators_overview.side_effect = UpstreamFetchError("glitch", "connection refused")

    response = client.get("/api/validators")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "UPSTREAM_FETCH_FAILED"
