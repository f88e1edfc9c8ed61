"""Append-only audit logs for fabric and finished-good stock movements.

Records are written once by the recorder and never mutated afterwards.
"""

from datetime import datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ledger.domain import ledger

METER_TOLERANCE = 1e-6


class FabricTransactionType(Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    ADJUSTMENT = "adjustment"
    WASTAGE = "wastage"
    RETURN = "return"


class InventoryTransactionType(Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"
    RETURN = "return"
    DAMAGE = "damage"


class StockReason(Enum):
    PURCHASE = "purchase"
    SALE = "sale"
    RETURN = "return"
    DAMAGED = "damaged"
    LOST = "lost"
    ADJUSTMENT = "adjustment"
    INITIAL_STOCK = "initial_stock"
    MANUAL_ADJUSTMENT = "manual_adjustment"
    PRODUCTION = "production"


@ledger.aggregate(limit=None)
class FabricTransaction:
    fabric_id = Identifier(required=True)
    product_id = Identifier()  # Set for usage records
    transaction_type = String(required=True, choices=FabricTransactionType)
    quantity = Float(required=True, min_value=0.0)
    previous_stock = Float(required=True)
    new_stock = Float(required=True)
    reference = String(max_length=255)
    notes = Text()
    cost_per_meter = Float(default=0.0)
    total_value = Float(default=0.0)
    performed_by = String(max_length=100, default="owner")
    transaction_date = DateTime(default=datetime.now)

    @invariant.post
    def delta_matches_quantity(self):
        if abs(abs(self.new_stock - self.previous_stock) - self.quantity) > METER_TOLERANCE:
            raise ValidationError(
                {"quantity": ["Quantity must equal the difference between previous and new stock"]}
            )


@ledger.aggregate(limit=None)
class InventoryTransaction:
    product_id = Identifier(required=True)
    size = String(max_length=20)
    transaction_type = String(required=True, choices=InventoryTransactionType)
    quantity = Integer(required=True, min_value=0)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    reason = String(required=True, choices=StockReason)
    reference = String(max_length=255)
    notes = Text()
    cost_per_unit = Float(default=0.0)
    total_value = Float(default=0.0)
    performed_by = String(max_length=100, default="owner")
    transaction_date = DateTime(default=datetime.now)

    @invariant.post
    def delta_matches_quantity(self):
        if abs(self.new_stock - self.previous_stock) != self.quantity:
            raise ValidationError(
                {"quantity": ["Quantity must equal the difference between previous and new stock"]}
            )
