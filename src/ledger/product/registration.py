"""RegisterProduct: add a product with its opening stock and fabric recipe.

Product ids are business identifiers chosen by the owner, so uniqueness is
checked against the repository before the aggregate is created.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.product.bill_of_materials import resolve_fabric_lines
from ledger.product.product import Product
from ledger.transactions.recorder import record_inventory_transaction
from ledger.transactions.transactions import InventoryTransactionType, StockReason

logger = structlog.get_logger(__name__)


@ledger.command(part_of="Product")
class RegisterProduct:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    category = String(max_length=100)
    description = Text()
    cost_price = Float(default=0.0)
    selling_price = Float(default=0.0)
    sizes = Text()  # JSON array of size labels
    images = Text()  # JSON array of image paths
    initial_stock = Integer()
    size_stock = Text()  # JSON object {size: units}
    low_stock_alert = Integer(default=5)
    reorder_point = Integer(default=10)
    fabric_used = Text()  # JSON array of {fabric_id, meters_used, ...}
    performed_by = String(max_length=100, default="owner")


@ledger.command_handler(part_of=Product)
class RegisterProductHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        repo = current_domain.repository_for(Product)

        existing = repo._dao.query.filter(product_id=str(command.product_id)).all()
        if existing.items:
            raise ValidationError({"product_id": [f"Product {command.product_id} already exists"]})

        size_stock = json.loads(command.size_stock) if command.size_stock else {}
        if any(units < 0 for units in size_stock.values()):
            raise ValidationError({"size_stock": ["Size stock cannot be negative"]})

        fabric_lines = json.loads(command.fabric_used) if command.fabric_used else []

        product = Product.register(
            product_id=command.product_id,
            name=command.name,
            category=command.category,
            description=command.description,
            cost_price=command.cost_price,
            selling_price=command.selling_price,
            sizes=json.loads(command.sizes) if command.sizes else None,
            images=json.loads(command.images) if command.images else None,
            initial_stock=command.initial_stock,
            size_stock=size_stock,
            low_stock_alert=command.low_stock_alert if command.low_stock_alert is not None else 5,
            reorder_point=command.reorder_point if command.reorder_point is not None else 10,
            fabric_used=resolve_fabric_lines(fabric_lines),
        )

        if product.stock > 0:
            record_inventory_transaction(
                product_id=product.product_id,
                transaction_type=InventoryTransactionType.IN.value,
                quantity=product.stock,
                previous_stock=0,
                new_stock=product.stock,
                reason=StockReason.INITIAL_STOCK.value,
                notes="Initial stock on product creation",
                cost_per_unit=product.cost_price,
                performed_by=command.performed_by or "owner",
            )

        repo.add(product)
        logger.info(
            "Product registered",
            product_id=product.product_id,
            stock=product.stock,
            fabric_lines=len(product.fabric_used),
        )
        return product.product_id
