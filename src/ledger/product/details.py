"""UpdateProduct: change catalog details, prices and stock thresholds."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.product.product import Product
from ledger.product.stock import load_active_product


@ledger.command(part_of="Product")
class UpdateProduct:
    product_id = Identifier(required=True)
    name = String(max_length=200)
    category = String(max_length=100)
    description = Text()
    cost_price = Float()
    selling_price = Float()
    sizes = Text()  # JSON array of size labels
    low_stock_alert = Integer()
    reorder_point = Integer()


@ledger.command_handler(part_of=Product)
class UpdateProductHandler:
    @handle(UpdateProduct)
    def update_product(self, command):
        product = load_active_product(command.product_id)
        product.update_details(
            name=command.name,
            category=command.category,
            description=command.description,
            cost_price=command.cost_price,
            selling_price=command.selling_price,
            sizes=json.loads(command.sizes) if command.sizes else None,
            low_stock_alert=command.low_stock_alert,
            reorder_point=command.reorder_point,
        )
        current_domain.repository_for(Product).add(product)
        return product.status
