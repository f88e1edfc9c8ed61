"""Domain events for the Fabric aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ledger.domain import ledger


@ledger.event(part_of="Fabric")
class FabricRegistered:
    __version__ = 1

    fabric_id = Identifier(required=True)
    name = String(required=True)
    fabric_type = String()
    current_stock = Float(required=True)
    low_stock_alert = Float(required=True)
    cost_per_meter = Float(required=True)
    registered_at = DateTime(required=True)


@ledger.event(part_of="Fabric")
class FabricConsumed:
    """Meters were drawn from a fabric roll to produce finished goods."""

    __version__ = 1

    fabric_id = Identifier(required=True)
    product_id = Identifier(required=True)
    meters = Float(required=True)
    previous_stock = Float(required=True)
    new_stock = Float(required=True)
    consumed_at = DateTime(required=True)


@ledger.event(part_of="Fabric")
class FabricRestocked:
    __version__ = 1

    fabric_id = Identifier(required=True)
    meters = Float(required=True)
    previous_stock = Float(required=True)
    new_stock = Float(required=True)
    cost_per_meter = Float(required=True)
    restocked_at = DateTime(required=True)


@ledger.event(part_of="Fabric")
class FabricUsageRebuilt:
    """The list of products using this fabric was recomputed from recipes."""

    __version__ = 1

    fabric_id = Identifier(required=True)
    product_count = Integer(required=True)
    rebuilt_at = DateTime(required=True)
