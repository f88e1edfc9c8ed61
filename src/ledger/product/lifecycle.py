"""Product lifecycle: deactivate, discontinue, reinstate and hard delete."""

import json

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.media import get_asset_store
from ledger.product.events import ProductDeleted
from ledger.product.product import Product
from ledger.product.stock import load_active_product

logger = structlog.get_logger(__name__)


@ledger.command(part_of="Product")
class DeactivateProduct:
    """Soft delete: the product stays stored but leaves every stock report."""

    product_id = Identifier(required=True)


@ledger.command(part_of="Product")
class DiscontinueProduct:
    product_id = Identifier(required=True)


@ledger.command(part_of="Product")
class ReinstateProduct:
    product_id = Identifier(required=True)


@ledger.command(part_of="Product")
class DeleteProduct:
    """Remove the product for good, along with its QR codes and image files."""

    product_id = Identifier(required=True)


@ledger.command_handler(part_of=Product)
class ProductLifecycleHandler:
    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        product = load_active_product(command.product_id)
        product.deactivate()
        current_domain.repository_for(Product).add(product)

    @handle(DiscontinueProduct)
    def discontinue_product(self, command):
        product = load_active_product(command.product_id)
        product.discontinue()
        current_domain.repository_for(Product).add(product)

    @handle(ReinstateProduct)
    def reinstate_product(self, command):
        product = load_active_product(command.product_id)
        product.reinstate()
        current_domain.repository_for(Product).add(product)

    @handle(DeleteProduct)
    def delete_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.mark_deleted()

        # add() stages the child removals and the ProductDeleted event in this Unit of Work
        repo.add(product)
        repo._dao.delete(product)
        logger.info("Product deleted", product_id=product.product_id)


@ledger.event_handler(part_of=Product)
class ProductAssetCleanup:
    """Removes QR codes and image files only after the delete has committed."""

    @handle(ProductDeleted)
    def remove_assets(self, event):
        image_paths = json.loads(event.image_paths) if event.image_paths else []
        _remove_assets(event.product_id, image_paths)


def _remove_assets(product_id, image_paths):
    store = get_asset_store()
    try:
        removed = store.delete_qr_codes(product_id)
        logger.info("QR codes removed", product_id=product_id, count=removed)
    except Exception as exc:
        logger.warning("Failed to remove QR codes", product_id=product_id, error=str(exc))

    for path in image_paths:
        try:
            store.delete_image(path)
        except Exception as exc:
            logger.warning("Failed to remove product image", product_id=product_id, path=path, error=str(exc))
