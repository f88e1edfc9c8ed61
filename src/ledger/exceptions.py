"""Ledger error taxonomy.

Caller errors derive from Protean's ``ValidationError`` so they surface as
400 responses through the standard exception handlers. Unknown products and
fabrics surface as Protean's ``ObjectNotFoundError``.
"""

from protean.exceptions import ValidationError


class InvalidStockOperation(ValidationError):
    """The requested stock operation is unknown or not allowed in this context."""

    def __init__(self, operation, detail=None):
        self.operation = operation
        super().__init__({"operation": [detail or f"Invalid operation: {operation}"]})


class InsufficientStock(ValidationError):
    """A reservation asked for more units than are available."""

    def __init__(self, product_id, requested, available):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            {"quantity": [f"Cannot reserve {requested} units of {product_id}: only {available} available"]}
        )


class InsufficientSizeStock(ValidationError):
    """A size bucket holds less than the quantity being removed from it."""

    def __init__(self, size, requested, available):
        self.size = size
        self.requested = requested
        self.available = available
        super().__init__(
            {"size_stock": [f"Not enough stock for size {size}. Available: {available}, requested: {requested}"]}
        )


class FabricShortageError(ValidationError):
    """One or more bill-of-materials lines cannot be covered by fabric stock.

    Carries every shortage, not just the first, so the caller can restock all
    of them at once. Each shortage is a dict with ``fabric_id``,
    ``fabric_name``, ``required``, ``available`` and ``missing``.
    """

    def __init__(self, product_id, quantity, shortages):
        self.product_id = product_id
        self.quantity = quantity
        self.shortages = list(shortages)
        super().__init__({"fabric_used": [describe_shortage(s) for s in self.shortages]})


class EmbeddingUnavailable(Exception):
    """The image-embedding collaborator failed or returned no vector."""


def describe_shortage(shortage):
    if shortage["available"] is None:
        return f"Fabric {shortage['fabric_id']} not found"
    return (
        f"{shortage['fabric_name']} ({shortage['fabric_id']}) requires {shortage['required']}m "
        f"but has only {shortage['available']}m"
    )
