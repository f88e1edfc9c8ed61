"""RegisterFabric: add a fabric roll to the raw-material store."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.fabric.fabric import Fabric
from ledger.transactions.recorder import record_fabric_transaction
from ledger.transactions.transactions import FabricTransactionType


@ledger.command(part_of="Fabric")
class RegisterFabric:
    fabric_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    fabric_type = String(max_length=50)
    color = String(max_length=50)
    current_stock = Float(default=0.0)
    cost_per_meter = Float(default=0.0)
    low_stock_alert = Float(default=10.0)
    reorder_point = Float(default=20.0)
    performed_by = String(max_length=100, default="owner")


@ledger.command_handler(part_of=Fabric)
class RegisterFabricHandler:
    @handle(RegisterFabric)
    def register_fabric(self, command):
        repo = current_domain.repository_for(Fabric)

        existing = repo._dao.query.filter(fabric_id=str(command.fabric_id)).all()
        if existing.items:
            raise ValidationError({"fabric_id": [f"Fabric {command.fabric_id} already exists"]})

        current_stock = command.current_stock or 0.0
        fabric = Fabric.register(
            fabric_id=command.fabric_id,
            name=command.name,
            fabric_type=command.fabric_type,
            color=command.color,
            current_stock=current_stock,
            cost_per_meter=command.cost_per_meter or 0.0,
            low_stock_alert=command.low_stock_alert if command.low_stock_alert is not None else 10.0,
            reorder_point=command.reorder_point if command.reorder_point is not None else 20.0,
        )

        if current_stock > 0:
            record_fabric_transaction(
                fabric_id=fabric.fabric_id,
                transaction_type=FabricTransactionType.PURCHASE.value,
                quantity=current_stock,
                previous_stock=0.0,
                new_stock=current_stock,
                cost_per_meter=fabric.cost_per_meter,
                notes="Opening stock",
                performed_by=command.performed_by or "owner",
            )

        repo.add(fabric)
        return fabric.fabric_id
