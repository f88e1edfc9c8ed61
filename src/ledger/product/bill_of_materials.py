"""SetBillOfMaterials: replace the per-unit fabric recipe of a product."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.fabric.fabric import Fabric
from ledger.product.product import Product
from ledger.product.stock import load_active_product


def resolve_fabric_lines(lines):
    """Validate recipe lines against the fabric store.

    Every fabric must exist. ``fabric_name`` and ``cost_per_meter`` default
    to the fabric's current values when a line leaves them out.
    """
    repo = current_domain.repository_for(Fabric)
    resolved, errors = [], []

    for line in lines:
        fabric_id = line.get("fabric_id")
        meters_used = line.get("meters_used")
        if not fabric_id:
            errors.append("Each fabric line needs a fabric_id")
            continue
        if meters_used is None or meters_used <= 0:
            errors.append(f"Fabric {fabric_id} needs a positive meters_used")
            continue
        try:
            fabric = repo.get(fabric_id)
        except ObjectNotFoundError:
            errors.append(f"Fabric {fabric_id} not found")
            continue

        cost_per_meter = line.get("cost_per_meter")
        resolved.append(
            {
                "fabric_id": fabric.fabric_id,
                "fabric_name": line.get("fabric_name") or fabric.name,
                "meters_used": meters_used,
                "cost_per_meter": fabric.cost_per_meter if cost_per_meter is None else cost_per_meter,
            }
        )

    if errors:
        raise ValidationError({"fabric_used": errors})
    return resolved


@ledger.command(part_of="Product")
class SetBillOfMaterials:
    product_id = Identifier(required=True)
    fabric_used = Text(required=True)  # JSON array of {fabric_id, meters_used, ...}


@ledger.command_handler(part_of=Product)
class BillOfMaterialsHandler:
    @handle(SetBillOfMaterials)
    def set_bill_of_materials(self, command):
        product = load_active_product(command.product_id)
        product.set_bill_of_materials(resolve_fabric_lines(json.loads(command.fabric_used)))
        current_domain.repository_for(Product).add(product)
