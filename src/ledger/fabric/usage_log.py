"""RebuildFabricUsage: recompute ``used_in_products`` from the usage log."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.fabric.fabric import Fabric
from ledger.locks import FABRIC, entity_locks
from ledger.product.product import Product
from ledger.transactions.history import fabric_transactions
from ledger.transactions.transactions import FabricTransactionType


@ledger.command(part_of="Fabric")
class RebuildFabricUsage:
    fabric_id = Identifier(required=True)


@ledger.command_handler(part_of=Fabric)
class RebuildFabricUsageHandler:
    @handle(RebuildFabricUsage)
    def rebuild_fabric_usage(self, command):
        repo = current_domain.repository_for(Fabric)
        fabric = repo.get(command.fabric_id)

        usage = fabric_transactions(fabric.fabric_id, transaction_type=FabricTransactionType.USAGE.value)
        products = {}
        records = []
        for transaction in reversed(usage):
            if not transaction.product_id:
                continue
            if transaction.product_id not in products:
                try:
                    products[transaction.product_id] = current_domain.repository_for(Product).get(
                        transaction.product_id
                    )
                except ObjectNotFoundError:
                    products[transaction.product_id] = None
            product = products[transaction.product_id]
            records.append(
                {
                    "product_id": transaction.product_id,
                    "product_name": product.name if product else None,
                    "product_category": product.category if product else None,
                    "meters_used": transaction.quantity,
                    "used_at": transaction.transaction_date,
                }
            )

        fabric.rebuild_usage(records)
        repo.add(fabric)
        return len(records)


def rebuild_fabric_usage(fabric_id):
    with entity_locks.hold((FABRIC, fabric_id)):
        return current_domain.process(RebuildFabricUsage(fabric_id=fabric_id), asynchronous=False)
