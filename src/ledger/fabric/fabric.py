"""Fabric aggregate root: raw-material stock measured in meters.

``used_in_products`` is a denormalized back-reference to consuming products.
The FabricTransaction log is the source of truth; the embedded list can be
rebuilt from it with ``rebuild_usage``.
"""

from datetime import datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, String

from ledger.domain import ledger
from ledger.fabric.events import (
    FabricConsumed,
    FabricRegistered,
    FabricRestocked,
    FabricUsageRebuilt,
)
from ledger.shared.status import StockStatus, derive_status

METER_PRECISION = 4


class FabricType(Enum):
    SILK = "silk"
    COTTON = "cotton"
    LINEN = "linen"
    WOOL = "wool"
    SYNTHETIC = "synthetic"
    VELVET = "velvet"
    GEORGETTE = "georgette"
    CHIFFON = "chiffon"
    ORGANZA = "organza"
    NET = "net"
    BROCADE = "brocade"
    BANARASI = "banarasi"
    KANJIVARAM = "kanjivaram"
    TUSSAR = "tussar"
    MULMUL = "mulmul"


@ledger.entity(part_of="Fabric", limit=None)
class FabricUsageRecord:
    """One consumption of this fabric by a production run."""

    product_id = Identifier(required=True)
    product_name = String(max_length=200)
    product_category = String(max_length=100)
    meters_used = Float(required=True, min_value=0.0)
    used_at = DateTime(default=datetime.now)


@ledger.aggregate(limit=None)
class Fabric:
    fabric_id = Identifier(identifier=True, required=True)
    name = String(required=True, max_length=200)
    fabric_type = String(choices=FabricType)
    color = String(max_length=50)
    current_stock = Float(default=0.0)
    cost_per_meter = Float(default=0.0, min_value=0.0)
    low_stock_alert = Float(default=10.0, min_value=0.0)
    reorder_point = Float(default=20.0, min_value=0.0)
    status = String(choices=StockStatus, default=StockStatus.OUT_OF_STOCK.value)
    used_in_products = HasMany(FabricUsageRecord)
    is_active = Boolean(default=True)
    created_at = DateTime(default=datetime.now)
    updated_at = DateTime(default=datetime.now)

    @invariant.post
    def stock_cannot_be_negative(self):
        if (self.current_stock or 0.0) < 0:
            raise ValidationError({"current_stock": ["Fabric stock cannot be negative"]})

    @property
    def total_value(self):
        return round((self.current_stock or 0.0) * (self.cost_per_meter or 0.0), 2)

    @classmethod
    def register(
        cls,
        fabric_id,
        name,
        fabric_type=None,
        color=None,
        current_stock=0.0,
        cost_per_meter=0.0,
        low_stock_alert=10.0,
        reorder_point=20.0,
    ):
        now = datetime.now()
        fabric = cls(
            fabric_id=fabric_id,
            name=name,
            fabric_type=fabric_type,
            color=color,
            current_stock=current_stock,
            cost_per_meter=cost_per_meter,
            low_stock_alert=low_stock_alert,
            reorder_point=reorder_point,
            status=derive_status(current_stock, low_stock_alert),
            created_at=now,
            updated_at=now,
        )

        fabric.raise_(
            FabricRegistered(
                fabric_id=fabric.fabric_id,
                name=name,
                fabric_type=fabric_type,
                current_stock=current_stock,
                low_stock_alert=low_stock_alert,
                cost_per_meter=fabric.cost_per_meter,
                registered_at=now,
            )
        )
        return fabric

    def has_enough(self, meters):
        return (self.current_stock or 0.0) >= meters

    def consume(self, meters, product_id, product_name=None, product_category=None):
        """Draw ``meters`` for a production run and return (previous, new) stock."""
        if meters <= 0:
            raise ValidationError({"meters": ["Meters consumed must be positive"]})
        if not self.has_enough(meters):
            raise ValidationError(
                {"current_stock": [f"{self.name} has only {self.current_stock}m, {meters}m required"]}
            )

        previous_stock = self.current_stock or 0.0
        new_stock = round(previous_stock - meters, METER_PRECISION)
        now = datetime.now()

        with atomic_change(self):
            self.current_stock = new_stock
            self.add_used_in_products(
                FabricUsageRecord(
                    product_id=product_id,
                    product_name=product_name,
                    product_category=product_category,
                    meters_used=meters,
                    used_at=now,
                )
            )
            self.status = derive_status(new_stock, self.low_stock_alert)
            self.updated_at = now

        self.raise_(
            FabricConsumed(
                fabric_id=self.fabric_id,
                product_id=product_id,
                meters=meters,
                previous_stock=previous_stock,
                new_stock=new_stock,
                consumed_at=now,
            )
        )
        return previous_stock, new_stock

    def restock(self, meters, cost_per_meter=None):
        if meters <= 0:
            raise ValidationError({"meters": ["Restock quantity must be positive"]})

        previous_stock = self.current_stock or 0.0
        new_stock = round(previous_stock + meters, METER_PRECISION)
        now = datetime.now()

        with atomic_change(self):
            self.current_stock = new_stock
            if cost_per_meter is not None:
                self.cost_per_meter = cost_per_meter
            self.status = derive_status(new_stock, self.low_stock_alert)
            self.updated_at = now

        self.raise_(
            FabricRestocked(
                fabric_id=self.fabric_id,
                meters=meters,
                previous_stock=previous_stock,
                new_stock=new_stock,
                cost_per_meter=self.cost_per_meter,
                restocked_at=now,
            )
        )
        return previous_stock, new_stock

    def rebuild_usage(self, records):
        """Replace ``used_in_products`` with ``records`` (FabricUsageRecord kwargs)."""
        with atomic_change(self):
            for existing in list(self.used_in_products):
                self.remove_used_in_products(existing)
            for record in records:
                self.add_used_in_products(FabricUsageRecord(**record))

        now = datetime.now()
        self.updated_at = now

        self.raise_(
            FabricUsageRebuilt(
                fabric_id=self.fabric_id,
                product_count=len({r["product_id"] for r in records}),
                rebuilt_at=now,
            )
        )
