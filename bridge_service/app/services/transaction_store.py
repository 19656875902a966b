import logging

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bridge_service.app.models.transaction import Transaction

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def find_wallet_transactions(db: Session, wallet: str, page: int = 0, limit: int = DEFAULT_LIMIT) -> list[Transaction]:
    return (
        db.query(Transaction)
        .filter(
            or_(
                Transaction.from_eth_address == wallet,
                Transaction.to_glitch_address == wallet,
            )
        )
        .order_by(Transaction.id.asc())
        .offset(page * limit)
        .limit(limit)
        .all()
    )


def find_by_eth_hash(db: Session, eth_tx: str) -> Transaction | None:
    return db.query(Transaction).filter_by(tx_eth_hash=eth_tx).first()


def save_settlement(db: Session, tx: Transaction, net_amount: str, extrinsic_hash: str) -> bool:
    """Write both settlement fields, unless another request already did.

    Returns True when this call stored them.
    """
    updated = (
        db.query(Transaction)
        .filter(
            Transaction.id == tx.id,
            or_(Transaction.net_amount.is_(None), Transaction.extrinsic_hash.is_(None)),
        )
        .update(
            {
                Transaction.net_amount: net_amount,
                Transaction.extrinsic_hash: extrinsic_hash,
            },
            synchronize_session=False,
        )
    )
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(tx)

    if updated:
        logger.info("Stored net amount %s and extrinsic hash %s for transaction %s", net_amount, extrinsic_hash, tx.id)
    else:
        logger.info("Transaction %s was already settled, keeping stored values", tx.id)
    return bool(updated)
