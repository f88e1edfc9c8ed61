"""Stock updates: command, handler and the locking entry point.

A production run (``reason="production"``) draws fabric first and only then
adds finished units. Everything the handler stages commits in one Unit of
Work, so a shortage or a failed commit leaves no partial state behind.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.exceptions import InvalidStockOperation
from ledger.fabric.consumption import consume_fabric_for_production
from ledger.locks import PRODUCT, entity_locks, fabric_lock_keys
from ledger.product.product import Product, StockOperation
from ledger.transactions.recorder import record_inventory_transaction
from ledger.transactions.transactions import InventoryTransactionType, StockReason

logger = structlog.get_logger(__name__)

_TRANSACTION_TYPES = {
    StockOperation.ADD.value: InventoryTransactionType.IN.value,
    StockOperation.SUBTRACT.value: InventoryTransactionType.OUT.value,
    StockOperation.SET.value: InventoryTransactionType.ADJUSTMENT.value,
}


@ledger.command(part_of="Product")
class UpdateStock:
    """Add, subtract, set, reserve or release units of a product."""

    product_id = Identifier(required=True)
    operation = String(required=True, max_length=20)
    quantity = Integer(required=True, min_value=0)
    reason = String(max_length=50)  # Defaults to manual_adjustment
    size = String(max_length=20)
    notes = Text()
    reference = String(max_length=255)
    cost_per_unit = Float()
    performed_by = String(max_length=100, default="owner")


def load_active_product(product_id):
    product = current_domain.repository_for(Product).get(product_id)
    if not product.is_active:
        raise ObjectNotFoundError(f"Product {product_id} not found")
    return product


@ledger.command_handler(part_of=Product)
class StockUpdateHandler:
    @handle(UpdateStock)
    def update_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = load_active_product(command.product_id)
        reason = command.reason or StockReason.MANUAL_ADJUSTMENT.value
        performed_by = command.performed_by or "owner"

        try:
            StockReason(reason)
        except ValueError:
            raise InvalidStockOperation(command.operation, f"Invalid reason: {reason}") from None

        fabric_consumed = []
        if reason == StockReason.PRODUCTION.value:
            if command.operation != StockOperation.ADD.value:
                raise InvalidStockOperation(
                    command.operation, "Production can only add stock"
                )
            fabric_consumed = consume_fabric_for_production(
                product, command.quantity, performed_by=performed_by
            )

        change = product.apply_stock_operation(command.operation, command.quantity, size=command.size)

        transaction_type = _TRANSACTION_TYPES.get(change["operation"])
        if transaction_type is not None:
            cost_per_unit = command.cost_per_unit
            if cost_per_unit is None:
                cost_per_unit = product.cost_price
            record_inventory_transaction(
                product_id=product.product_id,
                size=command.size,
                transaction_type=transaction_type,
                quantity=abs(change["new_stock"] - change["previous_stock"]),
                previous_stock=change["previous_stock"],
                new_stock=change["new_stock"],
                reason=reason,
                reference=command.reference,
                notes=command.notes,
                cost_per_unit=cost_per_unit,
                performed_by=performed_by,
            )

        repo.add(product)

        logger.info(
            "Stock updated",
            product_id=product.product_id,
            operation=change["operation"],
            quantity=command.quantity,
            previous_stock=change["previous_stock"],
            new_stock=change["new_stock"],
            reason=reason,
            fabric_lines=len(fabric_consumed),
        )

        return {
            "product_id": product.product_id,
            "operation": change["operation"],
            "previous_stock": change["previous_stock"],
            "new_stock": change["new_stock"],
            "reserved_stock": product.reserved_stock or 0,
            "available_stock": product.available_stock,
            "status": product.status,
            "size": command.size,
            "fabric_consumed": fabric_consumed,
        }


def update_stock(
    product_id,
    operation,
    quantity,
    reason=None,
    size=None,
    notes=None,
    reference=None,
    cost_per_unit=None,
    performed_by="owner",
):
    """Run ``UpdateStock`` while holding the product lock and, for production, its fabric locks.

    The bill of materials is read under the product lock, so the fabric locks
    match the recipe the handler consumes. All locks stay held until the
    command's Unit of Work has committed.
    """
    with entity_locks.hold((PRODUCT, product_id)):
        fabric_ids = []
        if reason == StockReason.PRODUCTION.value:
            fabric_ids = [line.fabric_id for line in load_active_product(product_id).fabric_used]

        with entity_locks.hold(*fabric_lock_keys(fabric_ids)):
            return current_domain.process(
                UpdateStock(
                    product_id=product_id,
                    operation=operation,
                    quantity=quantity,
                    reason=reason,
                    size=size,
                    notes=notes,
                    reference=reference,
                    cost_per_unit=cost_per_unit,
                    performed_by=performed_by,
                ),
                asynchronous=False,
            )
