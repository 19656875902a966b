from bridge_service.app.models.transaction import Transaction, TransactionState

__all__ = ["Transaction", "TransactionState"]
