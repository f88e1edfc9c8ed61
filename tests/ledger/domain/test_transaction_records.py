"""Tests for the audit record aggregates."""

import pytest
from ledger.transactions.transactions import FabricTransaction, InventoryTransaction
from protean.exceptions import ValidationError


class TestInventoryTransaction:
    def test_valid_record(self):
        transaction = InventoryTransaction(
            product_id="SAR-001",
            transaction_type="out",
            quantity=3,
            previous_stock=8,
            new_stock=5,
            reason="sale",
        )
        assert transaction.performed_by == "owner"
        assert transaction.transaction_date is not None

    def test_quantity_must_match_delta(self):
        with pytest.raises(ValidationError):
            InventoryTransaction(
                product_id="SAR-001",
                transaction_type="in",
                quantity=4,
                previous_stock=8,
                new_stock=10,
                reason="purchase",
            )

    def test_unknown_reason_rejected(self):
        with pytest.raises(ValidationError):
            InventoryTransaction(
                product_id="SAR-001",
                transaction_type="in",
                quantity=2,
                previous_stock=8,
                new_stock=10,
                reason="gift",
            )


class TestFabricTransaction:
    def test_fractional_delta(self):
        transaction = FabricTransaction(
            fabric_id="FAB-1",
            transaction_type="usage",
            quantity=0.3,
            previous_stock=1.0,
            new_stock=0.7,
        )
        assert transaction.quantity == 0.3

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            FabricTransaction(
                fabric_id="FAB-1",
                transaction_type="theft",
                quantity=1.0,
                previous_stock=2.0,
                new_stock=1.0,
            )
