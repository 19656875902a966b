"""
Block-scan extrinsic matcher.

Given a Glitch block, locate the operation that paid out a bridge transfer and
pull out its settlement fields (net amount and extrinsic hash).

Two lookups exist and are kept apart on purpose:

* ``match_transfer`` - first ``balances.transfer`` whose destination is the
  expected recipient.
* ``extract_last`` - the last operation in the block, whatever it is. Used when
  only the Ethereum transaction is known.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

logger = logging.getLogger(__name__)

TRANSFER_SECTION = "balances"
TRANSFER_METHOD = "transfer"


@dataclass(frozen=True)
class Operation:
    section: str
    method: str
    args: tuple[str, ...]
    hash: str
    is_signed: bool = False
    signer: Optional[str] = None
    nonce: Optional[int] = None

    @property
    def identity(self) -> str:
        return f"{self.section}.{self.method}"

    def describe(self) -> str:
        return f"{self.identity}({', '.join(self.args)})"

    def is_transfer_to(self, address: str) -> bool:
        return (
            self.section == TRANSFER_SECTION
            and self.method == TRANSFER_METHOD
            and len(self.args) > 0
            and self.args[0] == address
        )


@dataclass(frozen=True)
class Block:
    hash: str
    operations: tuple[Operation, ...] = field(default_factory=tuple)
    number: Optional[int] = None


@dataclass(frozen=True)
class Matched:
    net_amount: str
    extrinsic_hash: str
    index: int


@dataclass(frozen=True)
class NoMatch:
    block_hash: str


@dataclass(frozen=True)
class FetchError:
    block_hash: str
    reason: str


MatchResult = Union[Matched, NoMatch, FetchError]


def log_operation(operation: Operation) -> None:
    logger.info(operation.describe())
    if operation.is_signed:
        logger.info("signer=%s, nonce=%s", operation.signer, operation.nonce)


def match_transfer(block: Block, to_address: str) -> Union[Matched, NoMatch]:
    """Return the first transfer to *to_address* in *block*.

    Every operation is logged, including the ones after the match.
    """
    found: Optional[Matched] = None

    for index, operation in enumerate(block.operations):
        log_operation(operation)

        if found is None and operation.is_transfer_to(to_address) and len(operation.args) > 1:
            found = Matched(
                net_amount=operation.args[1],
                extrinsic_hash=operation.hash,
                index=index,
            )

    if found is None:
        logger.warning("No transfer to %s found in block %s", to_address, block.hash)
        return NoMatch(block_hash=block.hash)
    return found


def extract_last(block: Block) -> Union[Matched, NoMatch]:
    """Take amount and hash from the last operation of *block*, unfiltered."""
    operations: Sequence[Operation] = block.operations

    for operation in operations:
        log_operation(operation)

    if not operations:
        logger.warning("Block %s has no operations", block.hash)
        return NoMatch(block_hash=block.hash)

    last = operations[-1]
    if len(last.args) < 2:
        logger.warning("Last operation %s of block %s has no amount argument", last.identity, block.hash)
        return NoMatch(block_hash=block.hash)

    return Matched(
        net_amount=last.args[1],
        extrinsic_hash=last.hash,
        index=len(operations) - 1,
    )
