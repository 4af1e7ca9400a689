"""Tests for effective stock resolution and the manual stock validator."""

import pytest

from models.stock import StockBatch
from services.stock import (
    apply_manual_update,
    get_effective_stock,
    reconcile,
    sync_all,
    validate_stock_update,
)
from utils.errors import NotFoundError, ValidationFailed


def valid_values(**overrides):
    values = {
        "stock_on_arrival": 100,
        "damaged_qty": 5,
        "expired_qty": 3,
        "refurbished_qty": 2,
        "final_stock": 90,
        "online_stock": 40,
        "offline_stock": 50,
    }
    values.update(overrides)
    return values


def add_batch(db, product, number, status="AVAILABLE", good=0, refurbished=0, damaged=0, online=0, offline=0):
    batch = StockBatch(
        batch_number=number,
        product_id=product.id,
        status=status,
        original_quantity=good + refurbished + damaged,
        good_quantity=good,
        refurbished_quantity=refurbished,
        damaged_quantity=damaged,
        online_stock=online,
        offline_stock=offline,
    )
    db.add(batch)
    db.commit()
    return batch


class TestValidateStockUpdate:
    def test_balanced_payload_has_no_errors(self):
        assert validate_stock_update(valid_values()) == []

    def test_accounting_identity_violation(self):
        errors = validate_stock_update(valid_values(stock_on_arrival=101))
        assert len(errors) == 1
        assert "Stock on arrival (101)" in errors[0]
        assert "= 100" in errors[0]

    def test_channels_exceeding_final_stock(self):
        errors = validate_stock_update(valid_values(online_stock=60, offline_stock=40))
        assert errors == ["Online stock (60) + Offline stock (40) = 100 exceeds Final stock (90)"]

    def test_channels_may_leave_units_unallocated(self):
        assert validate_stock_update(valid_values(online_stock=10, offline_stock=10)) == []

    def test_negative_quantities_are_each_reported(self):
        errors = validate_stock_update(valid_values(damaged_qty=-1, online_stock=-2, stock_on_arrival=94))
        assert "Damaged qty cannot be negative" in errors
        assert "Online stock cannot be negative" in errors

    def test_all_violations_are_collected(self):
        errors = validate_stock_update(valid_values(stock_on_arrival=1, online_stock=95))
        assert len(errors) == 2


class TestEffectiveStock:
    def test_legacy_stock_when_no_batches(self, db_session, make_product):
        product = make_product(stock=7)
        eff = get_effective_stock(db_session, product)
        assert eff.source == "PRODUCT_DEFAULT"
        assert eff.final_stock == 7
        assert eff.stock_on_arrival == 7
        assert eff.online_stock == 0

    def test_active_batches_take_precedence_over_legacy(self, db_session, make_product):
        product = make_product(stock=7)
        add_batch(db_session, product, "B-1", good=8, refurbished=2, damaged=1, online=5, offline=3)
        add_batch(db_session, product, "B-2", status="RECEIVED", good=4)

        eff = get_effective_stock(db_session, product)
        assert eff.source == "STOCK_BATCHES"
        assert eff.final_stock == 14
        assert eff.refurbished_qty == 2
        assert eff.damaged_qty == 1
        assert eff.online_stock == 5
        assert eff.offline_stock == 3

    def test_returned_and_depleted_batches_are_ignored(self, db_session, make_product):
        product = make_product(stock=7)
        add_batch(db_session, product, "B-OK", good=6)
        add_batch(db_session, product, "B-RET", status="RETURNED", good=50)
        add_batch(db_session, product, "B-DEP", status="DEPLETED", good=50)

        eff = get_effective_stock(db_session, product)
        assert eff.final_stock == 6

    def test_only_inactive_batches_falls_back_to_legacy(self, db_session, make_product):
        product = make_product(stock=3)
        add_batch(db_session, product, "B-DMG", status="DAMAGED", damaged=10)
        assert get_effective_stock(db_session, product).source == "PRODUCT_DEFAULT"

    def test_manual_override_wins_over_batches(self, db_session, override_product):
        product = override_product(final=10, online=4, offline=6)
        add_batch(db_session, product, "B-1", good=99)

        eff = get_effective_stock(db_session, product)
        assert eff.source == "WAREHOUSE_MANUAL"
        assert eff.final_stock == 10
        assert eff.online_stock == 4
        assert eff.offline_stock == 6


class TestManualUpdate:
    def test_update_enables_override_and_mirrors_stock(self, db_session, make_product):
        product = make_product(stock=3)
        product, before, after = apply_manual_update(db_session, product.id, valid_values(), user_id=None, notes="Count")
        db_session.commit()

        assert before.source == "PRODUCT_DEFAULT"
        assert after.source == "WAREHOUSE_MANUAL"
        assert product.warehouse_enabled is True
        assert product.stock == 90
        assert product.warehouse_notes == "Count"

    def test_invalid_update_changes_nothing(self, db_session, make_product):
        product = make_product(stock=3)
        with pytest.raises(ValidationFailed) as exc:
            apply_manual_update(db_session, product.id, valid_values(final_stock=80), user_id=None)
        db_session.rollback()

        assert exc.value.errors
        db_session.refresh(product)
        assert product.warehouse_enabled is False
        assert product.stock == 3

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            apply_manual_update(db_session, 9999, valid_values(), user_id=None)


class TestReconcile:
    def test_offline_allocation_gives_way_first(self, db_session, override_product):
        product = override_product(final=10, online=4, offline=6)
        product, before, after = reconcile(db_session, product.id, 7, user_id=None)
        db_session.commit()

        assert before.final_stock == 10
        assert after.final_stock == 7
        assert after.offline_stock == 3
        assert after.online_stock == 4
        assert validate_stock_update(after.quantities()) == []
        assert product.stock == 7

    def test_count_below_online_clears_offline_then_online(self, db_session, override_product):
        product = override_product(final=10, online=4, offline=6)
        _, _, after = reconcile(db_session, product.id, 2, user_id=None)
        assert after.offline_stock == 0
        assert after.online_stock == 2

    def test_reconcile_seeds_override_from_batches(self, db_session, make_product):
        product = make_product(stock=0)
        add_batch(db_session, product, "B-1", good=10, damaged=2, online=6, offline=4)

        product, _, after = reconcile(db_session, product.id, 12, user_id=None)
        assert product.warehouse_enabled is True
        assert after.damaged_qty == 2
        assert after.stock_on_arrival == 14
        assert after.online_stock == 6

    def test_negative_count_rejected(self, db_session, override_product):
        product = override_product()
        with pytest.raises(ValidationFailed):
            reconcile(db_session, product.id, -1, user_id=None)


class TestSyncAll:
    def test_counts_by_outcome(self, db_session, make_product, override_product):
        batched = make_product(stock=0)
        add_batch(db_session, batched, "B-1", good=12)
        make_product(stock=4)
        override_product()

        counts = sync_all(db_session)
        db_session.commit()

        assert counts == {"synced": 1, "skipped_override": 1, "without_batches": 1}
        db_session.refresh(batched)
        assert batched.stock == 12
        assert batched.stock_source == "STOCK_BATCHES"
