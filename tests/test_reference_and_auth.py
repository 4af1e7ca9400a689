"""Tests for reference data, authentication and the error envelope."""

import pytest
from fastapi.testclient import TestClient

from database import get_db
from main import app
from models.customer import Customer
from models.reference import ExchangeRate
from services.reference import convert, get_rate


class TestExchangeRates:
    def test_direct_inverse_and_missing(self, db_session):
        db_session.add(ExchangeRate(base_currency="USD", target_currency="NGN", rate=1500.0))
        db_session.commit()

        assert get_rate(db_session, "USD", "NGN") == 1500.0
        assert get_rate(db_session, "ngn", "usd") == pytest.approx(1 / 1500)
        assert get_rate(db_session, "NGN", "NGN") == 1.0
        assert get_rate(db_session, "NGN", "GBP") is None

    def test_inactive_rates_are_ignored(self, db_session):
        db_session.add(ExchangeRate(base_currency="USD", target_currency="NGN", rate=1500.0, is_active=False))
        db_session.commit()
        assert get_rate(db_session, "USD", "NGN") is None

    def test_convert(self, db_session):
        db_session.add(ExchangeRate(base_currency="USD", target_currency="NGN", rate=1500.0))
        db_session.commit()
        assert convert(db_session, 3000, "NGN", "USD") == pytest.approx(2.0)
        assert convert(db_session, 10, "NGN", "EUR") == 10

    def test_upsert_endpoint(self, client, make_user, auth):
        it = make_user("IT")
        payload = {"base_currency": "usd", "target_currency": "ngn", "rate": 1500}
        assert client.put("/exchange-rates", json=payload, headers=auth(it)).status_code == 200

        payload["rate"] = 1550
        response = client.put("/exchange-rates", json=payload, headers=auth(it))
        assert response.json()["rate"] == 1550

        rates = client.get("/exchange-rates").json()
        assert len(rates) == 1
        assert rates[0]["base_currency"] == "USD"

    def test_same_currency_pair_rejected(self, client, make_user, auth):
        it = make_user("IT")
        payload = {"base_currency": "NGN", "target_currency": "NGN", "rate": 1}
        assert client.put("/exchange-rates", json=payload, headers=auth(it)).status_code == 400

    def test_sales_cannot_change_rates(self, client, make_user, auth):
        agent = make_user("SALES")
        payload = {"base_currency": "USD", "target_currency": "NGN", "rate": 1500}
        assert client.put("/exchange-rates", json=payload, headers=auth(agent)).status_code == 403


class TestShipping:
    def test_zone_and_method(self, client, make_user, auth):
        manager = make_user("MANAGER")
        zone = client.post("/shipping/zones", json={"name": "Lagos", "states": ["Lagos"]}, headers=auth(manager)).json()
        response = client.post(
            "/shipping/methods",
            json={"name": "Express", "code": "EXP-LAG", "zone_id": zone["id"], "cost": 2500, "estimated_days": 1},
            headers=auth(manager),
        )
        assert response.status_code == 200

        methods = client.get("/shipping/methods", params={"zone_id": zone["id"]}).json()
        assert [m["code"] for m in methods] == ["EXP-LAG"]

    def test_method_for_unknown_zone(self, client, make_user, auth):
        manager = make_user("MANAGER")
        response = client.post(
            "/shipping/methods", json={"name": "Express", "code": "EXP", "zone_id": 77, "cost": 10}, headers=auth(manager)
        )
        assert response.status_code == 404


class TestAuth:
    def test_register_login_me(self, client, db_session):
        response = client.post(
            "/register",
            json={"email": "Ada@Icoffee.ng", "password": "secret12", "name": "Ada Obi"},
        )
        assert response.status_code == 200
        assert response.json()["role"] == "USER"

        login = client.post("/login", json={"email": "ada@icoffee.ng", "password": "secret12"})
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "ada@icoffee.ng"

        customer = db_session.query(Customer).filter_by(email="ada@icoffee.ng").one()
        assert customer.is_website_customer is True
        assert customer.customer_mode == "ONLINE"

    def test_register_leaves_agent_customer_untouched(self, client, db_session, make_user, make_customer,
                                                      make_product, auth):
        owner = make_user("SALES")
        rival = make_user("SALES")
        existing = make_customer(created_by=owner, email="bola@icoffee.ng")
        product = make_product(stock=5)
        order = {
            "customer_id": existing.id,
            "items": [{"product_id": product.id, "quantity": 1}],
            "order_mode": "OFFLINE",
            "payment_method": "CASH",
        }

        response = client.post("/register", json={"email": "bola@icoffee.ng", "password": "secret12", "name": "Bola"})
        assert response.status_code == 200

        db_session.expire_all()
        db_session.refresh(existing)
        assert existing.user_id is None
        assert existing.is_website_customer is False
        assert db_session.query(Customer).filter_by(email="bola@icoffee.ng").count() == 1

        assert client.post("/admin-orders/create", json=order, headers=auth(rival)).status_code == 403
        assert client.post("/admin-orders/create", json=order, headers=auth(owner)).status_code == 200

    def test_wrong_password(self, client):
        client.post("/register", json={"email": "tunde@icoffee.ng", "password": "secret12", "name": "Tunde"})
        response = client.post("/login", json={"email": "tunde@icoffee.ng", "password": "wrong-pass"})
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid credentials", "error": True, "success": False}

    def test_invalid_token(self, client):
        response = client.get("/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestErrorEnvelope:
    def test_unhandled_errors_become_500_envelope(self):
        def broken_db():
            raise RuntimeError("database exploded")
            yield

        app.dependency_overrides[get_db] = broken_db
        try:
            response = TestClient(app, raise_server_exceptions=False).get("/products")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error", "error": True, "success": False}

    def test_root(self, client):
        assert client.get("/").json() == {"message": "Coffee Commerce API is running"}
