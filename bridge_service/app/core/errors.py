from fastapi import status
from bridge_service.app.core.exceptions import AppException


class ErrorCode:
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    SETTLEMENT_NOT_FOUND = "SETTLEMENT_NOT_FOUND"

    BLOCK_FETCH_FAILED = "BLOCK_FETCH_FAILED"
    UPSTREAM_FETCH_FAILED = "UPSTREAM_FETCH_FAILED"


class ErrorMessage:
    TRANSACTION_NOT_FOUND = "No transaction found with id {eth_tx}"
    SETTLEMENT_NOT_FOUND = "No transfer could be extracted from block {block_hash}"

    BLOCK_FETCH_FAILED = "Error getting information from the block: {error}"
    UPSTREAM_FETCH_FAILED = "Error getting information from the node: {error}"


def bad_request(code: str, message: str, details: dict | None = None):
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=code,
        message=message,
        details=details
    )


def transaction_not_found(eth_tx: str):
    return bad_request(
        ErrorCode.TRANSACTION_NOT_FOUND,
        ErrorMessage.TRANSACTION_NOT_FOUND.format(eth_tx=eth_tx),
        details={"eth_tx": eth_tx},
    )


def block_fetch_failed(error: Exception | str, block_hash: str | None = None):
    return bad_request(
        ErrorCode.BLOCK_FETCH_FAILED,
        ErrorMessage.BLOCK_FETCH_FAILED.format(error=error),
        details={"block_hash": block_hash} if block_hash else None,
    )


def settlement_not_found(block_hash: str):
    return bad_request(
        ErrorCode.SETTLEMENT_NOT_FOUND,
        ErrorMessage.SETTLEMENT_NOT_FOUND.format(block_hash=block_hash),
        details={"block_hash": block_hash},
    )


def upstream_fetch_failed(error: Exception | str):
    return bad_request(
        ErrorCode.UPSTREAM_FETCH_FAILED,
        ErrorMessage.UPSTREAM_FETCH_FAILED.format(error=error),
    )
