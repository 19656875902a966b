import asyncio
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bridge_service.app.api.deps import get_eth_client, get_glitch_client
from bridge_service.app.core.errors import block_fetch_failed, settlement_not_found, transaction_not_found
from bridge_service.app.db.session import get_db
from bridge_service.app.schemas.transaction import TransactionHistoryItem, TransactionInfoResponse
from bridge_service.app.services.enrichment import (
    EnrichedTransaction,
    enrich_history,
    fetch_eth_timestamp,
    settle_from_last_operation,
)
from bridge_service.app.services.eth_service import EthClient
from bridge_service.app.services.glitch_service import GlitchClient
from bridge_service.app.services.matcher import FetchError, NoMatch
from bridge_service.app.services.transaction_store import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    find_by_eth_hash,
    find_wallet_transactions,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Transactions"])


def _history_item(enriched: EnrichedTransaction) -> TransactionHistoryItem:
    item = TransactionHistoryItem.model_validate(enriched.record)
    item.glitch_fee = enriched.glitch_fee
    item.glitch_timestamp = enriched.glitch_timestamp
    item.eth_timestamp = enriched.eth_timestamp
    return item


@router.get(
    "/transactionHistory/{wallet}",
    response_model=list[TransactionHistoryItem],
    response_model_exclude_none=True,
)
async def transaction_history(
    wallet: str,
    page: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: Session = Depends(get_db),
    glitch: GlitchClient = Depends(get_glitch_client),
    eth: EthClient = Depends(get_eth_client),
):
    logger.info("Obtaining the transaction history of address %s", wallet)

    txs = await asyncio.to_thread(find_wallet_transactions, db, wallet, page=page, limit=limit)
    logger.info("%s transactions were found!", len(txs))

    enriched = await enrich_history(db, txs, glitch, eth)
    # settled records were expired by the commit and reload on access
    return await asyncio.to_thread(lambda: [_history_item(e) for e in enriched])


@router.get(
    "/transactionInfo/{eth_tx}",
    response_model=TransactionInfoResponse,
    response_model_exclude_none=True,
)
async def transaction_info(
    eth_tx: str,
    db: Session = Depends(get_db),
    glitch: GlitchClient = Depends(get_glitch_client),
    eth: EthClient = Depends(get_eth_client),
):
    logger.info("Getting information from eth transaction with id %s", eth_tx)

    tx = await asyncio.to_thread(find_by_eth_hash, db, eth_tx)
    if not tx:
        raise transaction_not_found(eth_tx)

    result = await settle_from_last_operation(db, tx, glitch)
    if isinstance(result, FetchError):
        raise block_fetch_failed(result.reason, result.block_hash)
    if isinstance(result, NoMatch):
        raise settlement_not_found(result.block_hash)

    return TransactionInfoResponse(
        netAmount=result.net_amount,
        extrinsicHash=result.extrinsic_hash,
        ethTimestamp=await fetch_eth_timestamp(eth, eth_tx),
    )
