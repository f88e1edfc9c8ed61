"""Read-side queries: stock overview, alerts and detail views."""

from protean.utils.globals import current_domain

from ledger.fabric.fabric import Fabric
from ledger.product.product import Product
from ledger.product.stock import load_active_product
from ledger.projections.stock_level import StockLevel
from ledger.shared.status import StockStatus


def _active_levels():
    return current_domain.repository_for(StockLevel)._dao.query.filter(is_active=True).all().items


def stock_overview():
    levels = _active_levels()
    counts = {status.value: 0 for status in StockStatus}
    for level in levels:
        counts[level.status] = counts.get(level.status, 0) + 1

    return {
        "total_products": len(levels),
        "total_items": sum(level.stock or 0 for level in levels),
        "total_stock_value": round(sum(level.stock_value or 0.0 for level in levels), 2),
        "in_stock": counts[StockStatus.IN_STOCK.value],
        "low_stock": counts[StockStatus.LOW_STOCK.value],
        "out_of_stock": counts[StockStatus.OUT_OF_STOCK.value],
        "discontinued": counts[StockStatus.DISCONTINUED.value],
        "stock_status": [
            {
                "product_id": level.product_id,
                "name": level.name,
                "stock": level.stock or 0,
                "available_stock": level.available_stock or 0,
                "status": level.status,
            }
            for level in sorted(levels, key=lambda lv: lv.name)
        ],
    }


def level_view(level):
    return {
        "product_id": level.product_id,
        "name": level.name,
        "category": level.category,
        "stock": level.stock or 0,
        "reserved_stock": level.reserved_stock or 0,
        "available_stock": level.available_stock or 0,
        "low_stock_alert": level.low_stock_alert,
        "status": level.status,
        "cost_price": level.cost_price or 0.0,
        "stock_value": level.stock_value or 0.0,
    }


def low_stock_alerts():
    """Out-of-stock products are critical; products at or below their alert level are warnings."""
    levels = [lv for lv in _active_levels() if lv.status != StockStatus.DISCONTINUED.value]
    critical = [level_view(lv) for lv in levels if (lv.stock or 0) <= 0]
    warnings = [level_view(lv) for lv in levels if 0 < (lv.stock or 0) <= (lv.low_stock_alert or 0)]
    return {"critical": critical, "warnings": warnings, "total_alerts": len(critical) + len(warnings)}


def inventory_products(status=None, category=None):
    levels = _active_levels()
    if status:
        levels = [lv for lv in levels if lv.status == status]
    if category:
        levels = [lv for lv in levels if lv.category == category]
    return [level_view(lv) for lv in sorted(levels, key=lambda lv: lv.name)]


def product_view(product):
    return {
        "product_id": product.product_id,
        "name": product.name,
        "category": product.category,
        "description": product.description,
        "cost_price": product.cost_price,
        "selling_price": product.selling_price,
        "sizes": product.size_labels,
        "images": product.image_paths,
        "stock": product.stock or 0,
        "reserved_stock": product.reserved_stock or 0,
        "available_stock": product.available_stock,
        "low_stock_alert": product.low_stock_alert,
        "reorder_point": product.reorder_point,
        "status": product.status,
        "is_discontinued": product.is_discontinued,
        "last_restocked": product.last_restocked.isoformat() if product.last_restocked else None,
        "restock_quantity": product.restock_quantity,
        "size_stock": [{"size": b.size, "stock": b.stock or 0} for b in product.size_stock],
        "fabric_used": [
            {
                "fabric_id": line.fabric_id,
                "fabric_name": line.fabric_name,
                "meters_used": line.meters_used,
                "cost_per_meter": line.cost_per_meter,
                "total_cost": round(line.total_cost, 2),
            }
            for line in product.fabric_used
        ],
        "embedding_count": len(product.image_embeddings),
    }


def list_products(include_inactive=False, category=None):
    """Catalog listing by name. Inactive products are only included on request."""
    query = current_domain.repository_for(Product)._dao.query
    if not include_inactive:
        query = query.filter(is_active=True)
    if category:
        query = query.filter(category=category)
    return [product_view(product) for product in query.order_by("name").all().items]


def product_detail(product_id):
    return product_view(load_active_product(product_id))


def fabric_detail(fabric_id):
    fabric = current_domain.repository_for(Fabric).get(fabric_id)
    return {
        "fabric_id": fabric.fabric_id,
        "name": fabric.name,
        "fabric_type": fabric.fabric_type,
        "color": fabric.color,
        "current_stock": fabric.current_stock or 0.0,
        "cost_per_meter": fabric.cost_per_meter or 0.0,
        "total_value": fabric.total_value,
        "low_stock_alert": fabric.low_stock_alert,
        "reorder_point": fabric.reorder_point,
        "status": fabric.status,
        "used_in_products": [
            {
                "product_id": record.product_id,
                "product_name": record.product_name,
                "product_category": record.product_category,
                "meters_used": record.meters_used,
                "used_at": record.used_at.isoformat() if record.used_at else None,
            }
            for record in fabric.used_in_products
        ],
    }


def transaction_view(transaction):
    view = {
        "id": str(transaction.id),
        "transaction_type": transaction.transaction_type,
        "quantity": transaction.quantity,
        "previous_stock": transaction.previous_stock,
        "new_stock": transaction.new_stock,
        "reference": transaction.reference,
        "notes": transaction.notes,
        "total_value": transaction.total_value,
        "performed_by": transaction.performed_by,
        "transaction_date": transaction.transaction_date.isoformat(),
    }
    if hasattr(transaction, "reason"):
        view.update(
            product_id=transaction.product_id,
            size=transaction.size,
            reason=transaction.reason,
            cost_per_unit=transaction.cost_per_unit,
        )
    else:
        view.update(
            fabric_id=transaction.fabric_id,
            product_id=transaction.product_id,
            cost_per_meter=transaction.cost_per_meter,
        )
    return view


def product_exists(product_id):
    return bool(current_domain.repository_for(Product)._dao.query.filter(product_id=str(product_id)).all().items)
