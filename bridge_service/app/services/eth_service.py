import asyncio
import logging
from typing import Optional

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from bridge_service.app.core.exceptions import UpstreamFetchError

logger = logging.getLogger(__name__)

SOURCE = "ethereum"


class EthClient:
    def __init__(self, rpc_url: str, timeout: Optional[float] = None, w3: Optional[Web3] = None):
        self.rpc_url = rpc_url
        request_kwargs = {"timeout": timeout} if timeout else None
        self.w3 = w3 or Web3(Web3.HTTPProvider(rpc_url, request_kwargs=request_kwargs))

    async def get_transaction_timestamp(self, tx_hash: str) -> int:
        """Unix timestamp (seconds) of the block that included *tx_hash*."""
        return await asyncio.to_thread(self._transaction_timestamp, tx_hash)

    def _transaction_timestamp(self, tx_hash: str) -> int:
        logger.info("Asking the Ethereum node for transaction %s", tx_hash)
        try:
            tx = self.w3.eth.get_transaction(tx_hash)
            block_number = tx["blockNumber"]
            if block_number is None:
                raise UpstreamFetchError(SOURCE, f"transaction {tx_hash} is still pending")
            block = self.w3.eth.get_block(block_number)
        except (Web3Exception, requests.RequestException, ValueError) as e:
            raise UpstreamFetchError(SOURCE, str(e) or type(e).__name__) from e

        return int(block["timestamp"])
