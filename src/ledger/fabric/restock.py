"""RestockFabric: record a fabric purchase."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.fabric.fabric import Fabric
from ledger.locks import FABRIC, entity_locks
from ledger.transactions.recorder import record_fabric_transaction
from ledger.transactions.transactions import FabricTransactionType

logger = structlog.get_logger(__name__)


@ledger.command(part_of="Fabric")
class RestockFabric:
    fabric_id = Identifier(required=True)
    meters = Float(required=True)
    cost_per_meter = Float()  # Replaces the current price when given
    reference = String(max_length=255)  # Supplier invoice number
    notes = Text()
    performed_by = String(max_length=100, default="owner")


@ledger.command_handler(part_of=Fabric)
class RestockFabricHandler:
    @handle(RestockFabric)
    def restock_fabric(self, command):
        repo = current_domain.repository_for(Fabric)
        fabric = repo.get(command.fabric_id)
        previous_stock, new_stock = fabric.restock(command.meters, cost_per_meter=command.cost_per_meter)

        record_fabric_transaction(
            fabric_id=fabric.fabric_id,
            transaction_type=FabricTransactionType.PURCHASE.value,
            quantity=command.meters,
            previous_stock=previous_stock,
            new_stock=new_stock,
            cost_per_meter=fabric.cost_per_meter,
            reference=command.reference,
            notes=command.notes,
            performed_by=command.performed_by or "owner",
        )

        repo.add(fabric)
        logger.info("Fabric restocked", fabric_id=fabric.fabric_id, meters=command.meters, new_stock=new_stock)
        return {"fabric_id": fabric.fabric_id, "previous_stock": previous_stock, "new_stock": new_stock}


def restock_fabric(fabric_id, meters, cost_per_meter=None, reference=None, notes=None, performed_by="owner"):
    with entity_locks.hold((FABRIC, fabric_id)):
        return current_domain.process(
            RestockFabric(
                fabric_id=fabric_id,
                meters=meters,
                cost_per_meter=cost_per_meter,
                reference=reference,
                notes=notes,
                performed_by=performed_by,
            ),
            asynchronous=False,
        )
