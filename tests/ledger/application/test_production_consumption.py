"""Application tests for production runs: fabric consumption is all-or-nothing."""

import json

import pytest
from ledger.exceptions import FabricShortageError, InvalidStockOperation
from ledger.fabric.fabric import Fabric
from ledger.fabric.registration import RegisterFabric
from ledger.product.product import Product
from ledger.product.registration import RegisterProduct
from ledger.product.stock import update_stock
from ledger.transactions.history import fabric_transactions, product_transactions
from protean import current_domain
from protean.exceptions import ValidationError


def _register_fabric(fabric_id, current_stock, **overrides):
    defaults = {
        "fabric_id": fabric_id,
        "name": f"Fabric {fabric_id}",
        "current_stock": current_stock,
        "cost_per_meter": 100.0,
    }
    defaults.update(overrides)
    return current_domain.process(RegisterFabric(**defaults), asynchronous=False)


def _register_product(product_id="P1", fabric_used=None, **overrides):
    defaults = {
        "product_id": product_id,
        "name": "Chanderi Kurta",
        "category": "kurtas",
        "cost_price": 500.0,
        "initial_stock": 0,
        "fabric_used": json.dumps(fabric_used) if fabric_used else None,
    }
    defaults.update(overrides)
    return current_domain.process(RegisterProduct(**defaults), asynchronous=False)


def _fabric(fabric_id):
    return current_domain.repository_for(Fabric).get(fabric_id)


def _product(product_id):
    return current_domain.repository_for(Product).get(product_id)


class TestShortage:
    def test_single_short_fabric_aborts(self):
        _register_fabric("F1", 5.0)
        _register_product(fabric_used=[{"fabric_id": "F1", "meters_used": 2.0}])

        with pytest.raises(FabricShortageError) as exc:
            update_stock("P1", "add", 3, reason="production")

        shortages = exc.value.shortages
        assert len(shortages) == 1
        assert shortages[0]["fabric_id"] == "F1"
        assert shortages[0]["required"] == 6.0
        assert shortages[0]["available"] == 5.0
        assert shortages[0]["missing"] == 1.0

        assert _fabric("F1").current_stock == 5.0
        assert _product("P1").stock == 0
        assert fabric_transactions("F1", transaction_type="usage") == []
        assert product_transactions("P1") == []

    def test_one_short_line_leaves_every_fabric_untouched(self):
        _register_fabric("F1", 100.0)
        _register_fabric("F2", 1.0)
        _register_fabric("F3", 0.5)
        _register_product(
            fabric_used=[
                {"fabric_id": "F1", "meters_used": 2.0},
                {"fabric_id": "F2", "meters_used": 1.0},
                {"fabric_id": "F3", "meters_used": 1.0},
            ]
        )

        with pytest.raises(FabricShortageError) as exc:
            update_stock("P1", "add", 2, reason="production")

        assert [s["fabric_id"] for s in exc.value.shortages] == ["F2", "F3"]
        assert _fabric("F1").current_stock == 100.0
        assert _fabric("F1").used_in_products == []
        assert fabric_transactions("F1", transaction_type="usage") == []

    def test_fabric_removed_after_recipe_was_set(self):
        _register_fabric("F1", 10.0)
        _register_product(fabric_used=[{"fabric_id": "F1", "meters_used": 1.0}])
        repo = current_domain.repository_for(Fabric)
        repo._dao.delete(repo.get("F1"))

        with pytest.raises(FabricShortageError) as exc:
            update_stock("P1", "add", 1, reason="production")

        shortage = exc.value.shortages[0]
        assert shortage["available"] is None
        assert "not found" in exc.value.messages["fabric_used"][0]

    def test_repeated_fabric_lines_are_checked_together(self):
        _register_fabric("F1", 5.0)
        _register_product(
            fabric_used=[
                {"fabric_id": "F1", "meters_used": 1.5},
                {"fabric_id": "F1", "meters_used": 1.5},
            ]
        )

        with pytest.raises(FabricShortageError) as exc:
            update_stock("P1", "add", 2, reason="production")

        assert exc.value.shortages[0]["required"] == 6.0
        assert _fabric("F1").current_stock == 5.0


class TestSuccessfulProduction:
    def test_deducts_fabric_and_adds_stock(self):
        _register_fabric("F1", 10.0, cost_per_meter=80.0)
        _register_product(fabric_used=[{"fabric_id": "F1", "meters_used": 2.0}])

        result = update_stock("P1", "add", 3, reason="production", performed_by="owner")

        assert result["new_stock"] == 3
        assert result["fabric_consumed"][0]["meters_used"] == 6.0

        fabric = _fabric("F1")
        assert fabric.current_stock == 4.0
        assert fabric.used_in_products[0].product_id == "P1"
        assert fabric.used_in_products[0].meters_used == 6.0

        usage = fabric_transactions("F1", transaction_type="usage")
        assert len(usage) == 1
        assert usage[0].quantity == 6.0
        assert usage[0].previous_stock == 10.0
        assert usage[0].new_stock == 4.0
        assert usage[0].total_value == 480.0
        assert usage[0].notes == "Used for product: Chanderi Kurta (production x3)"

        product = _product("P1")
        assert product.stock == 3
        history = product_transactions("P1")
        assert len(history) == 1
        assert history[0].reason == "production"
        assert history[0].transaction_type == "in"
        assert history[0].quantity == 3

    def test_every_fabric_line_is_consumed(self):
        _register_fabric("F1", 10.0)
        _register_fabric("F2", 10.0)
        _register_product(
            fabric_used=[
                {"fabric_id": "F1", "meters_used": 1.25},
                {"fabric_id": "F2", "meters_used": 0.5},
            ]
        )

        update_stock("P1", "add", 4, reason="production")

        assert _fabric("F1").current_stock == 5.0
        assert _fabric("F2").current_stock == 8.0
        assert len(fabric_transactions("F1", transaction_type="usage")) == 1
        assert len(fabric_transactions("F2", transaction_type="usage")) == 1

    def test_product_without_recipe_only_adds_stock(self):
        _register_product()
        result = update_stock("P1", "add", 5, reason="production")
        assert result["fabric_consumed"] == []
        assert _product("P1").stock == 5

    def test_fabric_drops_to_low_stock(self):
        _register_fabric("F1", 12.0)
        _register_product(fabric_used=[{"fabric_id": "F1", "meters_used": 1.0}])
        update_stock("P1", "add", 4, reason="production")
        assert _fabric("F1").status == "low_stock"


class TestProductionGuards:
    def test_production_must_add(self):
        _register_fabric("F1", 10.0)
        _register_product(fabric_used=[{"fabric_id": "F1", "meters_used": 1.0}], initial_stock=5)

        with pytest.raises(InvalidStockOperation):
            update_stock("P1", "subtract", 1, reason="production")

        assert _fabric("F1").current_stock == 10.0
        assert _product("P1").stock == 5

    def test_production_quantity_must_be_positive(self):
        _register_product()
        with pytest.raises(ValidationError) as exc:
            update_stock("P1", "add", 0, reason="production")
        assert "quantity" in exc.value.messages
