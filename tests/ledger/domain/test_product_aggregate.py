"""Tests for Product registration, recipe and lifecycle behavior."""

import json

import pytest
from ledger.product.events import (
    BillOfMaterialsSet,
    ImageEmbeddingAttached,
    ProductDeactivated,
    ProductRegistered,
)
from ledger.product.product import Product
from protean.exceptions import ValidationError


def _make_product(**overrides):
    defaults = {
        "product_id": "KUR-010",
        "name": "Cotton Kurta",
        "category": "kurtas",
        "initial_stock": 12,
    }
    defaults.update(overrides)
    return Product.register(**defaults)


class TestRegistration:
    def test_defaults(self):
        product = _make_product()
        assert product.low_stock_alert == 5
        assert product.reorder_point == 10
        assert product.reserved_stock == 0
        assert product.is_active is True
        assert product.status == "in_stock"

    def test_opening_stock_from_size_buckets(self):
        product = _make_product(initial_stock=None, size_stock={"S": 1, "M": 2})
        assert product.stock == 3
        assert product.status == "low_stock"
        assert product.size_labels == ["S", "M"]

    def test_zero_stock_is_out_of_stock(self):
        product = _make_product(initial_stock=0)
        assert product.status == "out_of_stock"

    def test_registered_event(self):
        product = _make_product()
        events = [e for e in product._events if isinstance(e, ProductRegistered)]
        assert len(events) == 1
        assert events[0].stock == 12

    def test_negative_opening_stock_rejected(self):
        with pytest.raises(ValidationError):
            _make_product(initial_stock=-1)


class TestBillOfMaterials:
    def test_replaces_lines(self):
        product = _make_product(
            fabric_used=[{"fabric_id": "FAB-1", "fabric_name": "Mulmul", "meters_used": 2.5, "cost_per_meter": 80.0}]
        )
        product.set_bill_of_materials(
            [
                {"fabric_id": "FAB-2", "fabric_name": "Silk", "meters_used": 1.0, "cost_per_meter": 400.0},
                {"fabric_id": "FAB-3", "fabric_name": "Net", "meters_used": 0.5, "cost_per_meter": 60.0},
            ]
        )
        assert [line.fabric_id for line in product.fabric_used] == ["FAB-2", "FAB-3"]
        assert product.fabric_used[0].total_cost == 400.0

        events = [e for e in product._events if isinstance(e, BillOfMaterialsSet)]
        assert json.loads(events[0].fabric_ids) == ["FAB-2", "FAB-3"]


class TestLifecycle:
    def test_discontinue_twice_fails(self):
        product = _make_product()
        product.discontinue()
        with pytest.raises(ValidationError):
            product.discontinue()

    def test_reinstate_requires_discontinued(self):
        product = _make_product()
        with pytest.raises(ValidationError):
            product.reinstate()

    def test_deactivate(self):
        product = _make_product()
        product.deactivate()
        assert product.is_active is False
        assert [e for e in product._events if isinstance(e, ProductDeactivated)]


class TestImageEmbeddings:
    def test_attach_records_vector_and_image(self):
        product = _make_product()
        product.attach_image_embedding("/uploads/products/a.jpg", [0.1, 0.2, 0.3], "clip-vit-b32")
        assert product.image_paths == ["/uploads/products/a.jpg"]
        assert product.image_embeddings[0].values == [0.1, 0.2, 0.3]

        events = [e for e in product._events if isinstance(e, ImageEmbeddingAttached)]
        assert events[0].dimensions == 3

    def test_reattaching_same_image_replaces_vector(self):
        product = _make_product()
        product.attach_image_embedding("/uploads/products/a.jpg", [1.0, 0.0], "clip-vit-b32")
        product.attach_image_embedding("/uploads/products/a.jpg", [0.0, 1.0], "clip-vit-b32")
        assert len(product.image_embeddings) == 1
        assert product.image_embeddings[0].values == [0.0, 1.0]
        assert product.image_paths == ["/uploads/products/a.jpg"]

    def test_empty_vector_rejected(self):
        product = _make_product()
        with pytest.raises(ValidationError):
            product.attach_image_embedding("/uploads/products/a.jpg", [], "clip-vit-b32")
