"""Tests for the warehouse stock management endpoints."""

from models.activity import WarehouseActivity
from models.product import Product


def stock_payload(product_id, **overrides):
    payload = {
        "product_id": product_id,
        "stock_on_arrival": 20,
        "damaged_qty": 2,
        "expired_qty": 1,
        "refurbished_qty": 1,
        "final_stock": 16,
        "online_stock": 6,
        "offline_stock": 8,
        "notes": "Monthly count",
    }
    payload.update(overrides)
    return payload


class TestStockUpdate:
    def test_update_applies_override(self, client, db_session, make_user, make_product, auth):
        keeper = make_user("WAREHOUSE")
        product = make_product(stock=5)

        response = client.post("/warehouse/stock/update", json=stock_payload(product.id), headers=auth(keeper))
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["effective_stock"]["source"] == "WAREHOUSE_MANUAL"
        assert body["data"]["effective_stock"]["final_stock"] == 16

        db_session.expire_all()
        stored = db_session.get(Product, product.id)
        assert stored.warehouse_enabled is True
        assert stored.stock == 16
        assert stored.warehouse_updated_by == keeper.id

        activity = db_session.query(WarehouseActivity).filter_by(action="STOCK_UPDATE").one()
        assert activity.target_id == product.id
        assert activity.changes["final_stock"] == {"from": 5, "to": 16}

    def test_identity_violation_is_rejected_without_mutation(self, client, db_session, make_user, make_product, auth):
        keeper = make_user("WAREHOUSE")
        product = make_product(stock=5)

        response = client.post(
            "/warehouse/stock/update",
            json=stock_payload(product.id, stock_on_arrival=25, online_stock=10, offline_stock=10),
            headers=auth(keeper),
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] is True
        assert body["success"] is False
        assert len(body["errors"]) == 2

        db_session.expire_all()
        stored = db_session.get(Product, product.id)
        assert stored.warehouse_enabled is False
        assert stored.stock == 5
        assert db_session.query(WarehouseActivity).count() == 0

    def test_sales_cannot_update_stock(self, client, make_user, make_product, auth):
        agent = make_user("SALES")
        product = make_product()
        response = client.post("/warehouse/stock/update", json=stock_payload(product.id), headers=auth(agent))
        assert response.status_code == 403
        assert "WAREHOUSE" in response.json()["message"]

    def test_unknown_product(self, client, make_user, auth):
        keeper = make_user("WAREHOUSE")
        response = client.post("/warehouse/stock/update", json=stock_payload(424242), headers=auth(keeper))
        assert response.status_code == 404
        assert response.json()["message"] == "Product with ID 424242 not found"

    def test_requires_authentication(self, client, make_product):
        product = make_product()
        response = client.post("/warehouse/stock/update", json=stock_payload(product.id))
        assert response.status_code in (401, 403)


class TestBulkUpdate:
    def test_items_are_applied_independently(self, client, db_session, make_user, make_product, auth):
        keeper = make_user("WAREHOUSE")
        good = make_product(stock=1)
        bad = make_product(stock=2)

        response = client.put(
            "/warehouse/stock/bulk-update",
            json={"updates": [stock_payload(good.id), stock_payload(bad.id, final_stock=3)]},
            headers=auth(keeper),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "1 of 2 products updated"
        assert body["data"][0]["success"] is True
        assert body["data"][0]["errors"] is None
        assert body["data"][1]["success"] is False
        assert body["data"][1]["errors"]

        db_session.expire_all()
        assert db_session.get(Product, good.id).stock == 16
        assert db_session.get(Product, bad.id).stock == 2


class TestReconcileAndOverride:
    def test_reconcile_reports_difference(self, client, db_session, make_user, override_product, auth):
        director = make_user("DIRECTOR")
        product = override_product(final=10, online=4, offline=6)

        response = client.post(
            "/warehouse/stock/reconcile",
            json={"product_id": product.id, "actual_count": 7},
            headers=auth(director),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data == {"product_id": product.id, "previous_stock": 10, "new_stock": 7, "difference": -3}

        db_session.expire_all()
        stored = db_session.get(Product, product.id)
        assert stored.warehouse_offline_stock == 3
        assert stored.warehouse_online_stock == 4
        assert stored.stock == 7

    def test_disable_override_reverts_source(self, client, db_session, make_user, override_product, auth):
        keeper = make_user("WAREHOUSE")
        product = override_product()

        response = client.patch(f"/warehouse/products/{product.id}/disable-override", headers=auth(keeper))
        assert response.status_code == 200
        assert response.json()["data"]["effective_stock"]["source"] == "PRODUCT_DEFAULT"

        db_session.expire_all()
        stored = db_session.get(Product, product.id)
        assert stored.warehouse_enabled is False
        assert stored.stock_source == "PRODUCT_DEFAULT"

    def test_sync_all_requires_elevated_role(self, client, make_user, auth):
        keeper = make_user("WAREHOUSE")
        assert client.post("/warehouse/stock/sync-all", headers=auth(keeper)).status_code == 403

        it = make_user("IT")
        response = client.post("/warehouse/stock/sync-all", headers=auth(it))
        assert response.status_code == 200
        assert set(response.json()["data"]) == {"synced", "skipped_override", "without_batches"}


class TestReports:
    def test_product_stock_view(self, client, make_user, override_product, auth):
        agent = make_user("SALES")
        product = override_product()
        response = client.get(f"/warehouse/products/{product.id}/stock", headers=auth(agent))
        assert response.status_code == 200
        assert response.json()["effective_stock"]["online_stock"] == 4

    def test_alerts_use_thresholds(self, client, make_user, make_product, auth):
        keeper = make_user("WAREHOUSE")
        make_product(name="Empty", stock=0)
        make_product(name="Critical", stock=3)
        make_product(name="Low", stock=8)
        make_product(name="Plenty", stock=50)

        response = client.get("/warehouse/stock/alerts", headers=auth(keeper))
        assert response.status_code == 200
        alerts = response.json()
        assert [a["name"] for a in alerts["out_of_stock"]] == ["Empty"]
        assert [a["name"] for a in alerts["critical_stock"]] == ["Critical"]
        assert [a["name"] for a in alerts["low_stock"]] == ["Low"]
        assert alerts["thresholds"] == {"low": 10, "critical": 5}

    def test_summary_totals(self, client, make_user, make_product, override_product, auth):
        keeper = make_user("WAREHOUSE")
        make_product(stock=5)
        override_product(final=10, online=4, offline=6)

        summary = client.get("/warehouse/stock/summary", headers=auth(keeper)).json()
        assert summary["total_products"] == 2
        assert summary["total_stock"] == 15
        assert summary["manual_override_count"] == 1


class TestSettings:
    def test_threshold_validation(self, client, make_user, auth):
        it = make_user("IT")
        response = client.put(
            "/warehouse/settings",
            json={"low_stock_threshold": 5, "critical_stock_threshold": 8},
            headers=auth(it),
        )
        assert response.status_code == 400
        assert response.json()["errors"] == [
            "Critical stock threshold must be between 1 and the low stock threshold"
        ]

    def test_update_persists(self, client, make_user, auth):
        it = make_user("IT")
        response = client.put(
            "/warehouse/settings",
            json={"low_stock_threshold": 20, "critical_stock_threshold": 4, "auto_sync_enabled": False},
            headers=auth(it),
        )
        assert response.status_code == 200

        settings = client.get("/warehouse/settings", headers=auth(it)).json()
        assert settings["low_stock_threshold"] == 20
        assert settings["critical_stock_threshold"] == 4
        assert settings["auto_sync_enabled"] is False

    def test_warehouse_role_cannot_change_settings(self, client, make_user, auth):
        keeper = make_user("WAREHOUSE")
        response = client.put("/warehouse/settings", json={"low_stock_threshold": 20}, headers=auth(keeper))
        assert response.status_code == 403

    def test_disabled_system_blocks_stock_writes(self, client, make_user, make_product, auth):
        director = make_user("DIRECTOR")
        keeper = make_user("WAREHOUSE")
        product = make_product()

        assert client.post("/warehouse/system/disable", headers=auth(director)).status_code == 200
        response = client.post("/warehouse/stock/update", json=stock_payload(product.id), headers=auth(keeper))
        assert response.status_code == 403
        assert response.json()["message"] == "Warehouse system is disabled"

        assert client.post("/warehouse/system/enable", headers=auth(director)).status_code == 200
        response = client.post("/warehouse/stock/update", json=stock_payload(product.id), headers=auth(keeper))
        assert response.status_code == 200


class TestActivity:
    def test_activity_filtered_by_action(self, client, make_user, make_product, auth):
        keeper = make_user("WAREHOUSE")
        product = make_product()
        client.post("/warehouse/stock/update", json=stock_payload(product.id), headers=auth(keeper))
        client.post(
            "/warehouse/stock/reconcile",
            json={"product_id": product.id, "actual_count": 12},
            headers=auth(keeper),
        )

        response = client.get("/warehouse/activity", params={"action": "STOCK_RECONCILIATION"}, headers=auth(keeper))
        assert response.status_code == 200
        page = response.json()
        assert page["total"] == 1
        item = page["items"][0]
        assert item["user_email"] == keeper.email
        assert item["notes"] == "Stock reconciliation: -4 units"
