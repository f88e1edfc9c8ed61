"""Transaction recorder: stages audit records in the caller's Unit of Work.

A record that cannot be built or staged is logged and dropped. The stock
mutation it describes has already been applied and is not rolled back.
"""

from datetime import datetime

import structlog
from protean.utils.globals import current_domain

from ledger.transactions.transactions import FabricTransaction, InventoryTransaction

logger = structlog.get_logger(__name__)


def record_inventory_transaction(
    product_id,
    transaction_type,
    quantity,
    previous_stock,
    new_stock,
    reason,
    size=None,
    reference=None,
    notes=None,
    cost_per_unit=0.0,
    performed_by="owner",
):
    try:
        cost_per_unit = cost_per_unit or 0.0
        transaction = InventoryTransaction(
            product_id=product_id,
            size=size,
            transaction_type=transaction_type,
            quantity=quantity,
            previous_stock=previous_stock,
            new_stock=new_stock,
            reason=reason,
            reference=reference,
            notes=notes,
            cost_per_unit=cost_per_unit,
            total_value=round(cost_per_unit * quantity, 2),
            performed_by=performed_by,
            transaction_date=datetime.now(),
        )
        current_domain.repository_for(InventoryTransaction).add(transaction)
    except Exception as exc:
        logger.error(
            "Failed to record inventory transaction",
            product_id=product_id,
            transaction_type=transaction_type,
            quantity=quantity,
            error=str(exc),
        )
        return None

    return transaction


def record_fabric_transaction(
    fabric_id,
    transaction_type,
    quantity,
    previous_stock,
    new_stock,
    cost_per_meter=0.0,
    product_id=None,
    reference=None,
    notes=None,
    performed_by="owner",
):
    try:
        cost_per_meter = cost_per_meter or 0.0
        transaction = FabricTransaction(
            fabric_id=fabric_id,
            product_id=product_id,
            transaction_type=transaction_type,
            quantity=quantity,
            previous_stock=previous_stock,
            new_stock=new_stock,
            reference=reference,
            notes=notes,
            cost_per_meter=cost_per_meter,
            total_value=round(cost_per_meter * quantity, 2),
            performed_by=performed_by,
            transaction_date=datetime.now(),
        )
        current_domain.repository_for(FabricTransaction).add(transaction)
    except Exception as exc:
        logger.error(
            "Failed to record fabric transaction",
            fabric_id=fabric_id,
            transaction_type=transaction_type,
            quantity=quantity,
            error=str(exc),
        )
        return None

    return transaction
