"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ledger.domain import ledger


@ledger.event(part_of="Product")
class ProductRegistered:
    """A new product was added to the catalog with its opening stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    category = String()
    stock = Integer(required=True)
    reserved_stock = Integer(required=True)
    low_stock_alert = Integer(required=True)
    cost_price = Float(required=True)
    status = String(required=True)
    registered_at = DateTime(required=True)


@ledger.event(part_of="Product")
class StockAdjusted:
    """Aggregate stock (and optionally one size bucket) was added, subtracted or set."""

    __version__ = 1

    product_id = Identifier(required=True)
    operation = String(required=True)
    quantity = Integer(required=True)
    size = String()
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    reserved_stock = Integer(required=True)
    status = String(required=True)
    adjusted_at = DateTime(required=True)


@ledger.event(part_of="Product")
class StockReservationChanged:
    """Units were reserved for, or released from, pending orders."""

    __version__ = 1

    product_id = Identifier(required=True)
    operation = String(required=True)
    quantity = Integer(required=True)
    previous_reserved = Integer(required=True)
    new_reserved = Integer(required=True)
    stock = Integer(required=True)
    changed_at = DateTime(required=True)


@ledger.event(part_of="Product")
class BillOfMaterialsSet:
    """The per-unit fabric recipe of a product was replaced."""

    __version__ = 1

    product_id = Identifier(required=True)
    fabric_ids = Text()  # JSON array of fabric ids, in recipe order
    line_count = Integer(required=True)
    updated_at = DateTime(required=True)


@ledger.event(part_of="Product")
class ProductDiscontinued:
    __version__ = 1

    product_id = Identifier(required=True)
    status = String(required=True)
    discontinued_at = DateTime(required=True)


@ledger.event(part_of="Product")
class ProductReinstated:
    __version__ = 1

    product_id = Identifier(required=True)
    status = String(required=True)
    reinstated_at = DateTime(required=True)


@ledger.event(part_of="Product")
class ProductDeactivated:
    """The product was soft-deleted and no longer shows up in stock reports."""

    __version__ = 1

    product_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@ledger.event(part_of="Product")
class ImageEmbeddingAttached:
    __version__ = 1

    product_id = Identifier(required=True)
    image_path = String(required=True)
    model = String(required=True)
    dimensions = Integer(required=True)
    attached_at = DateTime(required=True)


@ledger.event(part_of="Product")
class ProductDetailsUpdated:
    """Catalog details or stock thresholds changed; status was re-derived."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    category = String()
    cost_price = Float(required=True)
    low_stock_alert = Integer(required=True)
    reorder_point = Integer(required=True)
    status = String(required=True)
    updated_at = DateTime(required=True)


@ledger.event(part_of="Product")
class ProductDeleted:
    """The product was removed for good. Its stored assets go once this commits."""

    __version__ = 1

    product_id = Identifier(required=True)
    image_paths = Text()  # JSON array of image paths
    deleted_at = DateTime(required=True)
