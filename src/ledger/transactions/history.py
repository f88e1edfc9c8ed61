"""Transaction history queries, newest first."""

from protean.utils.globals import current_domain

from ledger.transactions.transactions import FabricTransaction, InventoryTransaction


def _newest_first(aggregate_cls, limit=None, **filters):
    query = current_domain.repository_for(aggregate_cls)._dao.query.filter(**filters).order_by("-transaction_date")
    if limit:
        query = query.limit(limit)
    return query.all().items


def product_transactions(product_id, limit=None):
    return _newest_first(InventoryTransaction, limit=limit, product_id=str(product_id))


def fabric_transactions(fabric_id, transaction_type=None, limit=None):
    filters = {"fabric_id": str(fabric_id)}
    if transaction_type:
        filters["transaction_type"] = transaction_type
    return _newest_first(FabricTransaction, limit=limit, **filters)
