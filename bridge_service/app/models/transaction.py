from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func

from bridge_service.app.db.base import Base


class TransactionState:
    TO_PROCESS = "TO_PROCESS"
    PROCESSING = "PROCESSING"
    PROCESSED = "PROCESSED"


class Transaction(Base):
    """A bridge deposit: ERC-20 transfer on Ethereum paid out on Glitch.

    Rows are inserted and advanced by the bridge scanner. This service only
    ever fills in the settlement fields (``net_amount``, ``extrinsic_hash``).
    """

    __tablename__ = "tx"

    id = Column(Integer, primary_key=True, index=True)

    tx_eth_hash = Column(String(66), index=True, nullable=False)
    from_eth_address = Column(String(42), index=True, nullable=False)
    to_glitch_address = Column(String(64), index=True, nullable=False)
    amount = Column(String(78), nullable=True)

    tx_glitch_hash = Column(String(66), nullable=True)
    state = Column(String(16), default=TransactionState.TO_PROCESS)
    business_fee_amount = Column(String(78), nullable=True)
    business_fee_percentage = Column(String(16), nullable=True)
    error = Column(Text, nullable=True)

    # settlement: written together, once
    net_amount = Column(String(78), nullable=True)
    extrinsic_hash = Column(String(66), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_settled(self) -> bool:
        return bool(self.net_amount and self.extrinsic_hash)
