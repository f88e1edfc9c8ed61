"""Stock level: per-product read model behind the overview and alert reports."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.product.events import (
    ProductDeactivated,
    ProductDeleted,
    ProductDetailsUpdated,
    ProductDiscontinued,
    ProductRegistered,
    ProductReinstated,
    StockAdjusted,
    StockReservationChanged,
)
from ledger.product.product import Product


@ledger.projection(limit=None)
class StockLevel:
    product_id = Identifier(identifier=True, required=True)
    name = String(required=True, max_length=200)
    category = String(max_length=100)
    stock = Integer(default=0)
    reserved_stock = Integer(default=0)
    available_stock = Integer(default=0)
    low_stock_alert = Integer(default=5)
    status = String(max_length=20)
    cost_price = Float(default=0.0)
    stock_value = Float(default=0.0)
    is_active = Boolean(default=True)
    updated_at = DateTime()


def _refresh_derived(level):
    level.available_stock = max(0, (level.stock or 0) - (level.reserved_stock or 0))
    level.stock_value = round((level.stock or 0) * (level.cost_price or 0.0), 2)


@ledger.projector(projector_for=StockLevel, aggregates=[Product])
class StockLevelProjector:
    @on(ProductRegistered)
    def on_product_registered(self, event):
        level = StockLevel(
            product_id=event.product_id,
            name=event.name,
            category=event.category,
            stock=event.stock,
            reserved_stock=event.reserved_stock,
            low_stock_alert=event.low_stock_alert,
            status=event.status,
            cost_price=event.cost_price,
            updated_at=event.registered_at,
        )
        _refresh_derived(level)
        current_domain.repository_for(StockLevel).add(level)

    @on(StockAdjusted)
    def on_stock_adjusted(self, event):
        repo = current_domain.repository_for(StockLevel)
        try:
            level = repo.get(event.product_id)
        except ObjectNotFoundError:
            return

        level.stock = event.new_stock
        level.reserved_stock = event.reserved_stock
        level.status = event.status
        level.updated_at = event.adjusted_at
        _refresh_derived(level)
        repo.add(level)

    @on(StockReservationChanged)
    def on_reservation_changed(self, event):
        repo = current_domain.repository_for(StockLevel)
        try:
            level = repo.get(event.product_id)
        except ObjectNotFoundError:
            return

        level.reserved_stock = event.new_reserved
        level.updated_at = event.changed_at
        _refresh_derived(level)
        repo.add(level)

    @on(ProductDiscontinued)
    def on_product_discontinued(self, event):
        self._set_status(event.product_id, event.status, event.discontinued_at)

    @on(ProductReinstated)
    def on_product_reinstated(self, event):
        self._set_status(event.product_id, event.status, event.reinstated_at)

    @on(ProductDeactivated)
    def on_product_deactivated(self, event):
        repo = current_domain.repository_for(StockLevel)
        try:
            level = repo.get(event.product_id)
        except ObjectNotFoundError:
            return

        level.is_active = False
        level.updated_at = event.deactivated_at
        repo.add(level)

    @on(ProductDetailsUpdated)
    def on_product_details_updated(self, event):
        repo = current_domain.repository_for(StockLevel)
        try:
            level = repo.get(event.product_id)
        except ObjectNotFoundError:
            return

        level.name = event.name
        level.category = event.category
        level.cost_price = event.cost_price
        level.low_stock_alert = event.low_stock_alert
        level.status = event.status
        level.updated_at = event.updated_at
        _refresh_derived(level)
        repo.add(level)

    @on(ProductDeleted)
    def on_product_deleted(self, event):
        repo = current_domain.repository_for(StockLevel)
        try:
            repo._dao.delete(repo.get(event.product_id))
        except ObjectNotFoundError:
            pass

    def _set_status(self, product_id, status, changed_at):
        repo = current_domain.repository_for(StockLevel)
        try:
            level = repo.get(product_id)
        except ObjectNotFoundError:
            return

        level.status = status
        level.updated_at = changed_at
        repo.add(level)
