from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TransactionHistoryItem(BaseModel):
    id: int
    tx_eth_hash: str
    from_eth_address: str
    to_glitch_address: str
    amount: Optional[str] = None
    tx_glitch_hash: Optional[str] = None
    state: Optional[str] = None
    business_fee_amount: Optional[str] = None
    business_fee_percentage: Optional[str] = None
    error: Optional[str] = None
    net_amount: Optional[str] = None
    extrinsic_hash: Optional[str] = None
    created_at: Optional[datetime] = None

    # best effort, never stored
    glitch_fee: Optional[str] = None
    glitch_timestamp: Optional[int] = None
    eth_timestamp: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionInfoResponse(BaseModel):
    netAmount: str
    extrinsicHash: str
    ethTimestamp: Optional[int] = None
