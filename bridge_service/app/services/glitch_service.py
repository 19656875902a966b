import asyncio
import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from scalecodec.exceptions import RemainingScaleBytesNotEmptyException
from substrateinterface import SubstrateInterface
from substrateinterface.exceptions import BlockNotFound, SubstrateRequestException
from websocket import WebSocketException

from bridge_service.app.core.exceptions import UpstreamFetchError
from bridge_service.app.services.matcher import Block, Operation

logger = logging.getLogger(__name__)

SOURCE = "glitch"

# node and transport failures worth turning into UpstreamFetchError
NODE_ERRORS = (SubstrateRequestException, BlockNotFound, WebSocketException, OSError)

# raised while decoding a block the runtime metadata does not describe
DECODE_ERRORS = (ValueError, RemainingScaleBytesNotEmptyException)


@dataclass(frozen=True)
class ValidatorsOverview:
    current_era: str
    stakers_count: int
    total_stake: str


def _lower_camel(name: str) -> str:
    """``Balances`` -> ``balances``, ``transfer_keep_alive`` -> ``transferKeepAlive``."""
    if not name:
        return name
    if "_" in name:
        head, *rest = name.split("_")
        return head[:1].lower() + head[1:] + "".join(part[:1].upper() + part[1:] for part in rest)
    return name[:1].lower() + name[1:]


def _render_arg(value: Any) -> str:
    """Render a decoded call argument the way the node's JSON API would print it."""
    if isinstance(value, dict) and len(value) == 1 and "Id" in value:
        # MultiAddress::Id(account) renders as the bare account
        return _render_arg(value["Id"])
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    if value is None:
        return ""
    return str(value)


def _render_hash(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value or "")
    return text if text.startswith("0x") or not text else "0x" + text


def extrinsic_to_operation(extrinsic: Any) -> Operation:
    """Convert a decoded substrate-interface extrinsic into an :class:`Operation`."""
    value = extrinsic.value if hasattr(extrinsic, "value") else extrinsic
    call = value.get("call") or {}

    signer = value.get("address")
    if isinstance(signer, dict):
        signer = _render_arg(signer)

    extrinsic_hash = value.get("extrinsic_hash")
    if extrinsic_hash is None and getattr(extrinsic, "extrinsic_hash", None) is not None:
        extrinsic_hash = extrinsic.extrinsic_hash

    return Operation(
        section=_lower_camel(str(call.get("call_module", ""))),
        method=_lower_camel(str(call.get("call_function", ""))),
        args=tuple(_render_arg(arg.get("value")) for arg in call.get("call_args") or []),
        hash=_render_hash(extrinsic_hash),
        is_signed=signer is not None,
        signer=signer,
        nonce=value.get("nonce") if signer is not None else None,
    )


class GlitchClient:
    """Read-only access to a Glitch node.

    One instance is shared by the whole process. substrate-interface is
    synchronous and owns a single websocket, so every call goes through a
    worker thread and a lock.
    """

    def __init__(self, url: str, timeout: Optional[float] = None, substrate: Optional[SubstrateInterface] = None):
        self.url = url
        self.substrate = substrate or SubstrateInterface(
            url=url,
            ws_options={"timeout": timeout} if timeout else None,
        )
        self._lock = threading.Lock()

    def _call(self, fn, *args, **kwargs):
        with self._lock:
            try:
                return fn(*args, **kwargs)
            except NODE_ERRORS + DECODE_ERRORS as e:
                raise UpstreamFetchError(SOURCE, str(e) or type(e).__name__) from e

    async def _run(self, fn, *args, **kwargs):
        return await asyncio.to_thread(self._call, fn, *args, **kwargs)

    async def get_block(self, block_hash: str) -> Block:
        logger.info("Asking the node for block information: %s", block_hash)
        data = await self._run(self.substrate.get_block, block_hash=block_hash)
        if not data:
            raise UpstreamFetchError(SOURCE, f"block {block_hash} not found")

        header = data.get("header") or {}
        try:
            operations = tuple(extrinsic_to_operation(ex) for ex in data.get("extrinsics") or [])
        except DECODE_ERRORS as e:
            raise UpstreamFetchError(SOURCE, f"block {block_hash} could not be decoded: {e}") from e

        return Block(hash=block_hash, number=header.get("number"), operations=operations)

    async def get_extrinsic_fee(self, block_hash: str, extrinsic_index: int) -> Optional[str]:
        """``actual_fee`` paid by the extrinsic at *extrinsic_index*, if the runtime reported one."""
        events = await self._run(self.substrate.get_events, block_hash=block_hash)

        for event in events or []:
            record = event.value if hasattr(event, "value") else event
            if record.get("extrinsic_idx") != extrinsic_index:
                continue
            if (record.get("module_id"), record.get("event_id")) != ("TransactionPayment", "TransactionFeePaid"):
                continue

            attributes = record.get("attributes")
            if isinstance(attributes, dict):
                fee = attributes.get("actual_fee")
            elif isinstance(attributes, (list, tuple)) and len(attributes) > 1:
                fee = attributes[1]
            else:
                fee = None
            return None if fee is None else str(fee)

        return None

    async def get_block_timestamp(self, block_hash: str) -> int:
        """Block time in milliseconds, from ``Timestamp.Now``."""
        result = await self._run(self.substrate.query, "Timestamp", "Now", block_hash=block_hash)
        if result is None or result.value is None:
            raise UpstreamFetchError(SOURCE, f"no timestamp at block {block_hash}")
        return int(result.value)

    async def get_validators_overview(self) -> ValidatorsOverview:
        return await asyncio.to_thread(self._validators_overview)

    def _validators_overview(self) -> ValidatorsOverview:
        era = self._call(self.substrate.query, "Staking", "CurrentEra")
        if era is None or era.value is None:
            raise UpstreamFetchError(SOURCE, "staking has no current era")

        validators = self._call(self.substrate.query, "Session", "Validators")
        total_stake = self._call(self.substrate.query, "Staking", "ErasTotalStake", [era.value])

        return ValidatorsOverview(
            current_era=str(era.value),
            stakers_count=len(validators.value or []),
            total_stake=str(total_stake.value or 0),
        )

    def close(self):
        self.substrate.close()
