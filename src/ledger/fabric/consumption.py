"""Fabric consumption for production runs.

Producing ``quantity`` units of a product draws ``meters_used * quantity``
from every fabric in its bill of materials. All lines are validated before
any fabric is touched; one short line aborts the whole run and the error
lists every shortfall.
"""

from collections import OrderedDict

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ledger.exceptions import FabricShortageError
from ledger.fabric.fabric import METER_PRECISION, Fabric
from ledger.transactions.recorder import record_fabric_transaction
from ledger.transactions.transactions import FabricTransactionType

logger = structlog.get_logger(__name__)


def requirements_for(product, quantity):
    """Meters needed per fabric, with repeated fabric lines combined."""
    required = OrderedDict()
    for line in product.fabric_used:
        entry = required.setdefault(
            line.fabric_id,
            {"fabric_id": line.fabric_id, "fabric_name": line.fabric_name, "meters": 0.0},
        )
        entry["meters"] = round(entry["meters"] + line.meters_used * quantity, METER_PRECISION)
    return list(required.values())


def find_shortages(requirements, fabrics):
    shortages = []
    for requirement in requirements:
        fabric = fabrics.get(requirement["fabric_id"])
        if fabric is None:
            shortages.append(
                {
                    "fabric_id": requirement["fabric_id"],
                    "fabric_name": requirement["fabric_name"],
                    "required": requirement["meters"],
                    "available": None,
                    "missing": requirement["meters"],
                }
            )
        elif not fabric.has_enough(requirement["meters"]):
            available = fabric.current_stock or 0.0
            shortages.append(
                {
                    "fabric_id": fabric.fabric_id,
                    "fabric_name": fabric.name,
                    "required": requirement["meters"],
                    "available": available,
                    "missing": round(requirement["meters"] - available, METER_PRECISION),
                }
            )
    return shortages


def consume_fabric_for_production(product, quantity, performed_by="owner"):
    """Deduct fabric for ``quantity`` units of ``product``.

    Returns one entry per fabric consumed. Raises ``FabricShortageError``
    without changing anything when any fabric is missing or short. A product
    without a bill of materials consumes nothing.
    """
    if quantity is None or quantity <= 0:
        raise ValidationError({"quantity": ["Production quantity must be positive"]})

    requirements = requirements_for(product, quantity)
    if not requirements:
        return []

    repo = current_domain.repository_for(Fabric)
    fabrics = {}
    for requirement in requirements:
        try:
            fabrics[requirement["fabric_id"]] = repo.get(requirement["fabric_id"])
        except ObjectNotFoundError:
            continue

    shortages = find_shortages(requirements, fabrics)
    if shortages:
        logger.warning(
            "Fabric shortage detected",
            product_id=product.product_id,
            quantity=quantity,
            shortages=[s["fabric_id"] for s in shortages],
        )
        raise FabricShortageError(product.product_id, quantity, shortages)

    consumed = []
    for requirement in requirements:
        fabric = fabrics[requirement["fabric_id"]]
        meters = requirement["meters"]
        previous_stock, new_stock = fabric.consume(
            meters,
            product_id=product.product_id,
            product_name=product.name,
            product_category=product.category,
        )
        repo.add(fabric)

        record_fabric_transaction(
            fabric_id=fabric.fabric_id,
            product_id=product.product_id,
            transaction_type=FabricTransactionType.USAGE.value,
            quantity=meters,
            previous_stock=previous_stock,
            new_stock=new_stock,
            cost_per_meter=fabric.cost_per_meter,
            notes=f"Used for product: {product.name} (production x{quantity})",
            performed_by=performed_by,
        )

        logger.info(
            "Fabric consumed",
            fabric_id=fabric.fabric_id,
            product_id=product.product_id,
            meters=meters,
            previous_stock=previous_stock,
            new_stock=new_stock,
        )
        consumed.append(
            {
                "fabric_id": fabric.fabric_id,
                "fabric_name": fabric.name,
                "meters_used": meters,
                "previous_stock": previous_stock,
                "new_stock": new_stock,
            }
        )

    return consumed
