"""Application tests for production runs racing for the same fabric roll."""

import json
import threading

from ledger.exceptions import FabricShortageError
from ledger.fabric.fabric import Fabric
from ledger.fabric.registration import RegisterFabric
from ledger.locks import PRODUCT, entity_locks
from ledger.product import stock
from ledger.product.bill_of_materials import SetBillOfMaterials
from ledger.product.registration import RegisterProduct
from ledger.product.stock import update_stock
from ledger.transactions.history import fabric_transactions
from protean import current_domain


def _register_fabric(fabric_id, current_stock):
    current_domain.process(
        RegisterFabric(fabric_id=fabric_id, name=f"Fabric {fabric_id}", current_stock=current_stock),
        asynchronous=False,
    )


def _register_product(product_id, fabric_id, meters_used):
    current_domain.process(
        RegisterProduct(
            product_id=product_id,
            name=f"Kurta {product_id}",
            category="kurtas",
            fabric_used=json.dumps([{"fabric_id": fabric_id, "meters_used": meters_used}]),
        ),
        asynchronous=False,
    )


def _produce_concurrently(ledger_bed, product_ids, quantity):
    """Start one production run per product id at the same moment; collect results or shortages."""
    barrier = threading.Barrier(len(product_ids))
    outcomes = []

    def worker(product_id):
        # The domain's own context: the fixture context would reset the shared stores on exit
        with ledger_bed.domain.domain_context():
            barrier.wait()
            try:
                outcomes.append(update_stock(product_id, "add", quantity, reason="production"))
            except FabricShortageError as exc:
                outcomes.append(exc)

    threads = [threading.Thread(target=worker, args=(product_id,)) for product_id in product_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


class TestConcurrentProduction:
    def test_two_products_share_one_roll(self, ledger_bed):
        _register_fabric("F1", 10.0)
        _register_product("P1", "F1", 2.0)
        _register_product("P2", "F1", 2.0)

        outcomes = _produce_concurrently(ledger_bed, ["P1", "P2"], 3)

        successes = [o for o in outcomes if isinstance(o, dict)]
        shortages = [o for o in outcomes if isinstance(o, FabricShortageError)]
        assert len(successes) == 1
        assert len(shortages) == 1
        assert shortages[0].shortages[0]["available"] == 4.0

        assert current_domain.repository_for(Fabric).get("F1").current_stock == 4.0
        assert len(fabric_transactions("F1", transaction_type="usage")) == 1

    def test_same_product_twice(self, ledger_bed):
        _register_fabric("F1", 10.0)
        _register_product("P1", "F1", 2.0)

        outcomes = _produce_concurrently(ledger_bed, ["P1", "P1"], 3)

        assert sum(isinstance(o, dict) for o in outcomes) == 1
        assert current_domain.repository_for(Fabric).get("F1").current_stock == 4.0


class TestRecipeReadUnderLock:
    def test_bill_of_materials_is_read_while_product_is_locked(self, monkeypatch):
        _register_fabric("F1", 10.0)
        _register_product("P1", "F1", 1.0)

        lock_states = []
        load = stock.load_active_product

        def recording_load(product_id):
            lock_states.append(entity_locks.lock_for(PRODUCT, product_id).locked())
            return load(product_id)

        monkeypatch.setattr(stock, "load_active_product", recording_load)
        update_stock("P1", "add", 1, reason="production")

        assert lock_states
        assert all(lock_states)

    def test_recipe_swapped_before_run_consumes_new_fabric_only(self):
        _register_fabric("F1", 10.0)
        _register_fabric("F2", 10.0)
        _register_product("P1", "F1", 1.0)

        with entity_locks.hold((PRODUCT, "P1")):
            current_domain.process(
                SetBillOfMaterials(
                    product_id="P1",
                    fabric_used=json.dumps([{"fabric_id": "F2", "meters_used": 2.0}]),
                ),
                asynchronous=False,
            )

        result = update_stock("P1", "add", 2, reason="production")

        assert [line["fabric_id"] for line in result["fabric_consumed"]] == ["F2"]
        assert current_domain.repository_for(Fabric).get("F1").current_stock == 10.0
        assert current_domain.repository_for(Fabric).get("F2").current_stock == 6.0
