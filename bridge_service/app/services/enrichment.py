import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bridge_service.app.core.exceptions import UpstreamFetchError
from bridge_service.app.models.transaction import Transaction
from bridge_service.app.services.eth_service import EthClient
from bridge_service.app.services.glitch_service import GlitchClient
from bridge_service.app.services.matcher import (
    FetchError,
    Matched,
    MatchResult,
    NoMatch,
    extract_last,
    match_transfer,
)
from bridge_service.app.services.transaction_store import save_settlement

logger = logging.getLogger(__name__)


@dataclass
class EnrichedTransaction:
    """A stored record plus whatever could be learned about it from the chains.

    Each optional field is filled by its own stage; a failed stage leaves it None.
    """

    record: Transaction
    settlement: Optional[MatchResult] = None
    glitch_fee: Optional[str] = None
    glitch_timestamp: Optional[int] = None
    eth_timestamp: Optional[int] = None


def stored_settlement(tx: Transaction) -> Matched:
    return Matched(net_amount=tx.net_amount, extrinsic_hash=tx.extrinsic_hash, index=-1)


async def fetch_eth_timestamp(eth: EthClient, tx_hash: str) -> Optional[int]:
    try:
        return await eth.get_transaction_timestamp(tx_hash)
    except UpstreamFetchError as e:
        logger.error("Could not get the timestamp of eth transaction %s: %s", tx_hash, e)
        return None


async def _settle_by_transfer(tx: Transaction, glitch: GlitchClient, enriched: EnrichedTransaction):
    if tx.is_settled:
        logger.info("Net amount and extrinsic hash of transaction %s already exists in the database.", tx.id)
        enriched.settlement = stored_settlement(tx)
        return

    if not tx.tx_glitch_hash:
        logger.info("Transaction %s has not been paid out on Glitch yet.", tx.id)
        return

    try:
        block = await glitch.get_block(tx.tx_glitch_hash)
    except UpstreamFetchError as e:
        logger.error("Could not get block %s for transaction %s: %s", tx.tx_glitch_hash, tx.id, e)
        enriched.settlement = FetchError(block_hash=tx.tx_glitch_hash, reason=str(e))
        return

    result = match_transfer(block, tx.to_glitch_address)
    enriched.settlement = result
    if not isinstance(result, Matched):
        return

    try:
        enriched.glitch_fee = await glitch.get_extrinsic_fee(block.hash, result.index)
    except UpstreamFetchError as e:
        logger.error("Could not get the fee of extrinsic %s: %s", result.extrinsic_hash, e)


async def _glitch_timestamp(glitch: GlitchClient, tx: Transaction, enriched: EnrichedTransaction):
    if not tx.tx_glitch_hash:
        return
    try:
        enriched.glitch_timestamp = await glitch.get_block_timestamp(tx.tx_glitch_hash)
    except UpstreamFetchError as e:
        logger.error("Could not get the timestamp of block %s: %s", tx.tx_glitch_hash, e)


async def _collect(tx: Transaction, glitch: GlitchClient, eth: EthClient) -> EnrichedTransaction:
    enriched = EnrichedTransaction(record=tx)

    await _settle_by_transfer(tx, glitch, enriched)
    await _glitch_timestamp(glitch, tx, enriched)
    enriched.eth_timestamp = await fetch_eth_timestamp(eth, tx.tx_eth_hash)

    return enriched


async def _collect_isolated(tx: Transaction, glitch: GlitchClient, eth: EthClient) -> EnrichedTransaction:
    # one record going wrong must not take the rest of the page down with it
    try:
        return await _collect(tx, glitch, eth)
    except Exception:
        logger.exception("Enrichment of transaction %s failed", tx.id)
        return EnrichedTransaction(record=tx)


def _persist(db: Session, enriched: list[EnrichedTransaction]) -> None:
    """Store new settlements. Runs in a worker thread, one record at a time."""
    for item in enriched:
        result = item.settlement
        if not isinstance(result, Matched) or item.record.is_settled:
            continue
        try:
            save_settlement(db, item.record, result.net_amount, result.extrinsic_hash)
        except SQLAlchemyError:
            logger.exception("Could not store the settlement of transaction %s", item.record.id)


async def enrich_transaction(db: Session, tx: Transaction, glitch: GlitchClient, eth: EthClient) -> EnrichedTransaction:
    enriched = await _collect(tx, glitch, eth)
    await asyncio.to_thread(_persist, db, [enriched])
    return enriched


async def enrich_history(
    db: Session,
    txs: list[Transaction],
    glitch: GlitchClient,
    eth: EthClient,
) -> list[EnrichedTransaction]:
    # chain lookups run concurrently; the session is only touched afterwards, from one thread
    enriched = list(await asyncio.gather(*(_collect_isolated(tx, glitch, eth) for tx in txs)))
    await asyncio.to_thread(_persist, db, enriched)
    return enriched


def _save_and_reload(db: Session, tx: Transaction, result: Matched) -> Matched:
    save_settlement(db, tx, result.net_amount, result.extrinsic_hash)
    # another request may have won the race; report what is stored
    return stored_settlement(tx)


async def settle_from_last_operation(db: Session, tx: Transaction, glitch: GlitchClient) -> MatchResult:
    """Settle *tx* from the last operation of its Glitch block.

    Already settled records are returned as stored, without touching the node.
    """
    if tx.is_settled:
        logger.info("The information of transaction %s is already in the database.", tx.id)
        return stored_settlement(tx)

    if not tx.tx_glitch_hash:
        return FetchError(block_hash="", reason=f"transaction {tx.id} has no Glitch block yet")

    try:
        block = await glitch.get_block(tx.tx_glitch_hash)
    except UpstreamFetchError as e:
        logger.error("Could not get block %s for transaction %s: %s", tx.tx_glitch_hash, tx.id, e)
        return FetchError(block_hash=tx.tx_glitch_hash, reason=str(e))

    result = extract_last(block)
    if isinstance(result, NoMatch):
        return result

    return await asyncio.to_thread(_save_and_reload, db, tx, result)
