"""
Juice Bar POS — Error taxonomy

Every error raised by the engine derives from POSError so the API layer
can map the whole family in one place.
"""


class POSError(Exception):
    """Base error for point-of-sale operations."""
    pass


class ValidationError(POSError):
    """Input has the wrong shape: empty cart, bad quantity, dangling reference."""
    pass


class InsufficientStockError(ValidationError):
    """Demand exceeds stock while overselling is switched off."""

    def __init__(self, shortages: dict[str, tuple[float, float]]):
        self.shortages = shortages
        detail = ", ".join(
            f"{item_id} (needed={needed:g}, available={available:g})"
            for item_id, (needed, available) in shortages.items()
        )
        super().__init__(f"Insufficient stock for: {detail}")


class NotFoundError(POSError):
    """Lookup of an unknown product, inventory item, recipe or sale."""

    def __init__(self, kind: str, key):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} '{key}' not found.")


class StorageTransactionError(POSError):
    """The record store failed to commit. Nothing from the transaction is visible."""
    pass


class StaleDataError(POSError):
    """A product's version_id moved between the price read and the price write."""
    pass


class ExternalChannelError(POSError):
    """The notification channel rejected or failed to accept a message."""
    pass
