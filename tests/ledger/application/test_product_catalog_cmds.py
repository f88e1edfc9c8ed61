"""Application tests for product registration, recipe and lifecycle commands."""

import json

import pytest
from ledger.fabric.registration import RegisterFabric
from ledger.media import get_asset_store
from ledger.product import lifecycle
from ledger.product.bill_of_materials import SetBillOfMaterials
from ledger.product.details import UpdateProduct
from ledger.product.lifecycle import DeactivateProduct, DeleteProduct, DiscontinueProduct, ReinstateProduct
from ledger.product.product import Product
from ledger.product.registration import RegisterProduct
from ledger.product.stock import update_stock
from ledger.projections.stock_level import StockLevel
from ledger.transactions.history import product_transactions
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _register_fabric(fabric_id="FAB-1", **overrides):
    defaults = {"fabric_id": fabric_id, "name": "Tussar Silk", "current_stock": 40.0, "cost_per_meter": 300.0}
    defaults.update(overrides)
    return current_domain.process(RegisterFabric(**defaults), asynchronous=False)


def _register_product(product_id="DUP-001", **overrides):
    defaults = {"product_id": product_id, "name": "Silk Dupatta", "category": "dupattas", "cost_price": 800.0}
    defaults.update(overrides)
    return current_domain.process(RegisterProduct(**defaults), asynchronous=False)


def _product(product_id="DUP-001"):
    return current_domain.repository_for(Product).get(product_id)


class TestRegisterProduct:
    def test_returns_business_id(self):
        assert _register_product() == "DUP-001"
        product = _product()
        assert product.stock == 0
        assert product.status == "out_of_stock"

    def test_duplicate_id_rejected(self):
        _register_product()
        with pytest.raises(ValidationError) as exc:
            _register_product(name="Another")
        assert "product_id" in exc.value.messages

    def test_opening_stock_records_initial_transaction(self):
        _register_product(initial_stock=15)
        history = product_transactions("DUP-001")
        assert len(history) == 1
        assert history[0].reason == "initial_stock"
        assert (history[0].previous_stock, history[0].new_stock, history[0].quantity) == (0, 15, 15)

    def test_no_transaction_without_opening_stock(self):
        _register_product()
        assert product_transactions("DUP-001") == []

    def test_size_stock_and_sizes(self):
        _register_product(sizes='["S", "M", "L"]', size_stock='{"M": 4}')
        product = _product()
        assert product.stock == 4
        assert product.size_labels == ["S", "M", "L"]
        assert product.size_bucket("M").stock == 4

    def test_recipe_defaults_come_from_fabric(self):
        _register_fabric()
        _register_product(fabric_used=json.dumps([{"fabric_id": "FAB-1", "meters_used": 2.0}]))
        line = _product().fabric_used[0]
        assert line.fabric_name == "Tussar Silk"
        assert line.cost_per_meter == 300.0

    def test_recipe_with_unknown_fabric_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _register_product(fabric_used=json.dumps([{"fabric_id": "FAB-X", "meters_used": 1.0}]))
        assert exc.value.messages["fabric_used"] == ["Fabric FAB-X not found"]

    def test_initial_stock_below_size_total_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _register_product(initial_stock=3, size_stock='{"S": 2, "M": 4}')
        assert "initial_stock" in exc.value.messages
        with pytest.raises(ObjectNotFoundError):
            _product()

    def test_initial_stock_may_include_unsized_units(self):
        _register_product(initial_stock=10, size_stock='{"S": 2, "M": 4}')
        assert _product().stock == 10


class TestSetBillOfMaterials:
    def test_replaces_recipe(self):
        _register_fabric("FAB-1")
        _register_fabric("FAB-2", name="Organza", cost_per_meter=150.0)
        _register_product(fabric_used=json.dumps([{"fabric_id": "FAB-1", "meters_used": 2.0}]))

        current_domain.process(
            SetBillOfMaterials(
                product_id="DUP-001",
                fabric_used=json.dumps([{"fabric_id": "FAB-2", "meters_used": 0.75, "cost_per_meter": 140.0}]),
            ),
            asynchronous=False,
        )

        lines = _product().fabric_used
        assert len(lines) == 1
        assert lines[0].fabric_id == "FAB-2"
        assert lines[0].fabric_name == "Organza"
        assert lines[0].cost_per_meter == 140.0

    def test_non_positive_meters_rejected(self):
        _register_fabric()
        _register_product()
        with pytest.raises(ValidationError):
            current_domain.process(
                SetBillOfMaterials(
                    product_id="DUP-001",
                    fabric_used=json.dumps([{"fabric_id": "FAB-1", "meters_used": 0}]),
                ),
                asynchronous=False,
            )


class TestLifecycle:
    def test_deactivate_hides_product(self):
        _register_product(initial_stock=3)
        current_domain.process(DeactivateProduct(product_id="DUP-001"), asynchronous=False)
        assert _product().is_active is False
        assert current_domain.repository_for(StockLevel).get("DUP-001").is_active is False

    def test_discontinue_and_reinstate(self):
        _register_product(initial_stock=30)
        current_domain.process(DiscontinueProduct(product_id="DUP-001"), asynchronous=False)
        assert _product().status == "discontinued"

        update_stock("DUP-001", "subtract", 28)
        assert _product().status == "discontinued"

        current_domain.process(ReinstateProduct(product_id="DUP-001"), asynchronous=False)
        assert _product().status == "low_stock"
        assert current_domain.repository_for(StockLevel).get("DUP-001").status == "low_stock"


class TestHardDelete:
    def test_delete_removes_product_and_assets(self):
        _register_product(initial_stock=2, images='["/uploads/products/dup.jpg"]')
        store = get_asset_store()
        store.save_image("/uploads/products/dup.jpg")
        store.save_qr_code("DUP-001", "qr-payload")

        current_domain.process(DeleteProduct(product_id="DUP-001"), asynchronous=False)

        with pytest.raises(ObjectNotFoundError):
            _product()
        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(StockLevel).get("DUP-001")
        assert "DUP-001" not in store.qr_codes
        assert "/uploads/products/dup.jpg" not in store.images

    def test_asset_failures_do_not_block_delete(self):
        _register_product(images='["/uploads/products/dup.jpg"]')
        get_asset_store().configure(should_succeed=False)

        current_domain.process(DeleteProduct(product_id="DUP-001"), asynchronous=False)

        with pytest.raises(ObjectNotFoundError):
            _product()

    def test_delete_unknown_product(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(DeleteProduct(product_id="NOPE"), asynchronous=False)

    def test_failed_delete_keeps_assets(self, monkeypatch):
        _register_product(images='["/uploads/products/dup.jpg"]')
        store = get_asset_store()
        store.save_image("/uploads/products/dup.jpg")
        store.save_qr_code("DUP-001", "qr-payload")

        class _FailingLogger:
            def info(self, *args, **kwargs):
                raise RuntimeError("commit aborted")

        monkeypatch.setattr(lifecycle, "logger", _FailingLogger())
        with pytest.raises(RuntimeError):
            current_domain.process(DeleteProduct(product_id="DUP-001"), asynchronous=False)

        assert _product().product_id == "DUP-001"
        assert store.qr_codes["DUP-001"] == ["qr-payload"]
        assert "/uploads/products/dup.jpg" in store.images

    def test_delete_drops_size_buckets_and_recipe(self):
        _register_fabric()
        _register_product(
            size_stock='{"M": 2}',
            fabric_used=json.dumps([{"fabric_id": "FAB-1", "meters_used": 1.5}]),
        )
        current_domain.process(DeleteProduct(product_id="DUP-001"), asynchronous=False)

        _register_product(product_id="DUP-001")
        product = _product()
        assert product.size_stock == []
        assert product.fabric_used == []


class TestUpdateProduct:
    def _update(self, **changes):
        return current_domain.process(UpdateProduct(product_id="DUP-001", **changes), asynchronous=False)

    def test_raising_alert_level_rederives_status(self):
        _register_product(initial_stock=8, low_stock_alert=5)
        assert _product().status == "in_stock"

        assert self._update(low_stock_alert=10) == "low_stock"

        level = current_domain.repository_for(StockLevel).get("DUP-001")
        assert (level.status, level.low_stock_alert) == ("low_stock", 10)

    def test_prices_and_description(self):
        _register_product(initial_stock=4)
        self._update(cost_price=900.0, selling_price=1500.0, description="Hand-woven", reorder_point=3)

        product = _product()
        assert (product.cost_price, product.selling_price) == (900.0, 1500.0)
        assert product.description == "Hand-woven"
        assert product.reorder_point == 3
        assert current_domain.repository_for(StockLevel).get("DUP-001").stock_value == 3600.0

    def test_discontinued_survives_threshold_change(self):
        _register_product(initial_stock=8)
        current_domain.process(DiscontinueProduct(product_id="DUP-001"), asynchronous=False)
        assert self._update(low_stock_alert=20) == "discontinued"

    def test_sizes_keep_stocked_buckets(self):
        _register_product(size_stock='{"M": 4}')
        self._update(sizes='["S", "L"]')
        assert _product().size_labels == ["S", "L", "M"]

    def test_empty_update_rejected(self):
        _register_product()
        with pytest.raises(ValidationError):
            self._update()

    def test_negative_threshold_rejected(self):
        _register_product()
        with pytest.raises(ValidationError):
            self._update(low_stock_alert=-1)

    def test_inactive_product_not_found(self):
        _register_product()
        current_domain.process(DeactivateProduct(product_id="DUP-001"), asynchronous=False)
        with pytest.raises(ObjectNotFoundError):
            self._update(name="Renamed")
