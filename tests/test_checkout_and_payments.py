"""Tests for the cart, website checkout and payment webhooks."""

import hashlib
import hmac
import json
import time

import pytest

from config import settings
from models.cart import CartItem
from models.checkout import CheckoutSession
from models.customer import Customer
from models.order import Order
from models.product import Product

STRIPE_SECRET = "whsec_test_secret"
PAYSTACK_SECRET = "sk_test_paystack"


def stripe_headers(body: bytes, secret: str = STRIPE_SECRET, timestamp: int = None):
    timestamp = int(time.time()) if timestamp is None else timestamp
    signature = hmac.new(secret.encode(), f"{timestamp}.".encode() + body, hashlib.sha256).hexdigest()
    return {"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}


def paystack_headers(body: bytes, secret: str = PAYSTACK_SECRET):
    signature = hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()
    return {"x-paystack-signature": signature, "Content-Type": "application/json"}


def stripe_event(reference, payment_status="paid"):
    return json.dumps({
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_test_1",
            "client_reference_id": reference,
            "payment_intent": "pi_test_1",
            "payment_status": payment_status,
        }},
    }).encode()


@pytest.fixture
def webhook_secrets(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", STRIPE_SECRET)
    monkeypatch.setattr(settings, "PAYSTACK_SECRET_KEY", PAYSTACK_SECRET)


@pytest.fixture
def pending_checkout(db_session, make_user, override_product):
    """A Stripe checkout for 3 units of a product with 4 units allocated online."""
    shopper = make_user(role="USER")
    customer = Customer(
        name="Ada Eze", email=shopper.email, customer_type="BTC", customer_mode="ONLINE",
        user_id=shopper.id, is_website_customer=True,
    )
    product = override_product(final=10, online=4, offline=6)
    db_session.add(customer)
    db_session.add(CartItem(user_id=shopper.id, product_id=product.id, quantity=3, unit_price_snapshot=5000))
    checkout = CheckoutSession(
        reference="CHK-TEST0001",
        user_id=shopper.id,
        provider="STRIPE",
        status="PENDING",
        items=[{"product_id": product.id, "name": product.name, "price_option": "regular",
                "quantity": 3, "unit_price": 5000.0}],
        sub_total=15000.0,
        shipping_cost=1500.0,
        total=16500.0,
        currency="NGN",
        exchange_rate=1.0,
        delivery_address="5 Admiralty Way, Lekki",
    )
    db_session.add(checkout)
    db_session.commit()
    return shopper, product, checkout


class TestCart:
    def test_same_product_and_option_increments(self, client, db_session, make_user, make_product, auth):
        shopper = make_user(role="USER")
        product = make_product(stock=10, price=5000, discount=10)

        client.post("/cart/add", json={"product_id": product.id, "quantity": 1}, headers=auth(shopper))
        response = client.post("/cart/add", json={"product_id": product.id, "quantity": 2}, headers=auth(shopper))
        cart = response.json()
        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 3
        assert cart["items"][0]["unit_price"] == 4500
        assert cart["total"] == 13500

        response = client.post(
            "/cart/add", json={"product_id": product.id, "quantity": 1, "price_option": "3weeks"}, headers=auth(shopper)
        )
        assert len(response.json()["items"]) == 2

    def test_validate_reports_short_lines(self, client, make_user, override_product, auth):
        shopper = make_user(role="USER")
        product = override_product(final=10, online=2, offline=8)
        client.post("/cart/add", json={"product_id": product.id, "quantity": 3}, headers=auth(shopper))

        result = client.post("/cart/validate", headers=auth(shopper)).json()
        assert result["valid"] is False
        assert result["items"][0]["available"] == 2
        assert result["items"][0]["message"] == "Only 2 left in stock"

    def test_cannot_touch_another_users_item(self, client, make_user, make_product, auth):
        owner = make_user(role="USER")
        other = make_user(role="USER")
        product = make_product(stock=10)
        item_id = client.post("/cart/add", json={"product_id": product.id}, headers=auth(owner)).json()["items"][0]["id"]

        response = client.delete(f"/cart/items/{item_id}", headers=auth(other))
        assert response.status_code == 404


class TestCheckout:
    def test_bank_transfer_creates_pending_orders(self, client, db_session, make_user, make_product, auth):
        shopper = make_user(role="USER")
        product = make_product(stock=5, price=2000)
        client.post("/cart/add", json={"product_id": product.id, "quantity": 2}, headers=auth(shopper))

        response = client.post(
            "/orders/checkout",
            json={"payment_method": "BANK_TRANSFER", "delivery_address": "12 Allen Avenue, Ikeja"},
            headers=auth(shopper),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["order_group_id"].startswith("GRP-")
        assert body["total"] == 4000

        orders = client.get("/orders", headers=auth(shopper)).json()
        assert orders["total"] == 1
        order = orders["items"][0]
        assert order["order_status"] == "PENDING"
        assert order["payment_status"] == "PENDING"
        assert order["is_website_order"] is True

        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 3
        assert db_session.query(CartItem).filter_by(user_id=shopper.id).count() == 0

    def test_checkout_rejects_more_than_online_allocation(self, client, make_user, override_product, auth):
        shopper = make_user(role="USER")
        product = override_product(final=10, online=2, offline=8)
        client.post("/cart/add", json={"product_id": product.id, "quantity": 3}, headers=auth(shopper))

        response = client.post(
            "/orders/checkout",
            json={"payment_method": "BANK_TRANSFER", "delivery_address": "12 Allen Avenue, Ikeja"},
            headers=auth(shopper),
        )
        assert response.status_code == 400
        assert "Available: 2, Required: 3" in response.json()["message"]

    def test_empty_cart(self, client, make_user, auth):
        shopper = make_user(role="USER")
        response = client.post(
            "/orders/checkout",
            json={"payment_method": "BANK_TRANSFER", "delivery_address": "12 Allen Avenue"},
            headers=auth(shopper),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"

    def test_unsupported_currency(self, client, make_user, make_product, auth):
        shopper = make_user(role="USER")
        product = make_product(stock=5)
        client.post("/cart/add", json={"product_id": product.id}, headers=auth(shopper))
        response = client.post(
            "/orders/checkout",
            json={"payment_method": "STRIPE", "currency": "JPY", "delivery_address": "12 Allen Avenue"},
            headers=auth(shopper),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Unsupported currency: JPY"

    def test_shopper_cannot_see_someone_elses_order(self, client, make_user, make_product, auth):
        shopper = make_user(role="USER")
        stranger = make_user(role="USER")
        product = make_product(stock=5)
        client.post("/cart/add", json={"product_id": product.id}, headers=auth(shopper))
        client.post(
            "/orders/checkout",
            json={"payment_method": "BANK_TRANSFER", "delivery_address": "12 Allen Avenue"},
            headers=auth(shopper),
        )
        order_id = client.get("/orders", headers=auth(shopper)).json()["items"][0]["order_id"]

        assert client.get(f"/orders/{order_id}", headers=auth(shopper)).status_code == 200
        assert client.get(f"/orders/{order_id}", headers=auth(stranger)).status_code == 404


class TestStripeWebhook:
    def test_paid_event_materialises_orders_once(self, client, db_session, webhook_secrets, pending_checkout):
        shopper, product, checkout = pending_checkout
        body = stripe_event(checkout.reference)

        response = client.post("/payment/stripe/webhook", content=body, headers=stripe_headers(body))
        assert response.status_code == 200
        assert response.json() == {"received": True}

        db_session.expire_all()
        orders = db_session.query(Order).filter_by(user_id=shopper.id).all()
        assert len(orders) == 1
        assert orders[0].payment_status == "PAID"
        assert orders[0].order_status == "CONFIRMED"
        assert orders[0].payment_id == "pi_test_1"
        assert orders[0].shipping_cost == 1500
        assert orders[0].total_amt == 16500

        stored = db_session.get(Product, product.id)
        assert stored.warehouse_online_stock == 1
        assert stored.warehouse_offline_stock == 6
        assert stored.warehouse_final_stock == 7
        assert db_session.get(CheckoutSession, checkout.id).status == "COMPLETED"
        assert db_session.query(CartItem).filter_by(user_id=shopper.id).count() == 0
        assert db_session.query(Customer).filter_by(user_id=shopper.id).one().total_orders == 1

        # Provider retries must not create a second group or deduct again
        again = client.post("/payment/stripe/webhook", content=body, headers=stripe_headers(body))
        assert again.status_code == 200
        db_session.expire_all()
        assert db_session.query(Order).filter_by(user_id=shopper.id).count() == 1
        assert db_session.get(Product, product.id).warehouse_final_stock == 7

    def test_bad_signature_is_rejected(self, client, db_session, webhook_secrets, pending_checkout):
        _, _, checkout = pending_checkout
        body = stripe_event(checkout.reference)

        response = client.post("/payment/stripe/webhook", content=body, headers=stripe_headers(body, secret="wrong"))
        assert response.status_code == 401
        assert db_session.query(Order).count() == 0

    def test_stale_timestamp_is_rejected(self, client, webhook_secrets, pending_checkout):
        _, _, checkout = pending_checkout
        body = stripe_event(checkout.reference)
        headers = stripe_headers(body, timestamp=int(time.time()) - 3600)
        assert client.post("/payment/stripe/webhook", content=body, headers=headers).status_code == 401

    def test_unknown_reference(self, client, webhook_secrets):
        body = stripe_event("CHK-NOPE")
        response = client.post("/payment/stripe/webhook", content=body, headers=stripe_headers(body))
        assert response.status_code == 404

    def test_unpaid_session_is_acknowledged_without_orders(self, client, db_session, webhook_secrets, pending_checkout):
        _, _, checkout = pending_checkout
        body = stripe_event(checkout.reference, payment_status="unpaid")
        response = client.post("/payment/stripe/webhook", content=body, headers=stripe_headers(body))
        assert response.status_code == 200
        assert db_session.query(Order).count() == 0


class TestPaystackWebhook:
    def test_charge_success(self, client, db_session, webhook_secrets, pending_checkout):
        shopper, _, checkout = pending_checkout
        body = json.dumps({"event": "charge.success", "data": {"id": 555, "reference": checkout.reference}}).encode()

        response = client.post("/payment/paystack/webhook", content=body, headers=paystack_headers(body))
        assert response.status_code == 200

        db_session.expire_all()
        order = db_session.query(Order).filter_by(user_id=shopper.id).one()
        assert order.payment_id == "555"
        assert order.payment_status == "PAID"

    def test_bad_signature(self, client, webhook_secrets, pending_checkout):
        _, _, checkout = pending_checkout
        body = json.dumps({"event": "charge.success", "data": {"reference": checkout.reference}}).encode()
        response = client.post("/payment/paystack/webhook", content=body, headers=paystack_headers(body, secret="nope"))
        assert response.status_code == 401
