"""Tests for the order status state machine and the status endpoint."""

from types import SimpleNamespace

import pytest

from services.order_status import TRANSITIONS, OrderStatus, apply_transition, can_transition
from utils.errors import InvalidTransitionError, ValidationFailed


@pytest.mark.parametrize("current,new", [
    ("PENDING", "CONFIRMED"),
    ("PENDING", "CANCELLED"),
    ("CONFIRMED", "PROCESSING"),
    ("PROCESSING", "SHIPPED"),
    ("PROCESSING", "CANCELLED"),
    ("SHIPPED", "DELIVERED"),
    ("SHIPPED", "RETURNED"),
    ("DELIVERED", "RETURNED"),
])
def test_allowed_transitions(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize("current,new", [
    ("PENDING", "SHIPPED"),
    ("CONFIRMED", "DELIVERED"),
    ("SHIPPED", "CANCELLED"),
    ("DELIVERED", "CANCELLED"),
    ("CANCELLED", "CONFIRMED"),
    ("RETURNED", "DELIVERED"),
    ("PENDING", "UNKNOWN"),
])
def test_rejected_transitions(current, new):
    assert not can_transition(current, new)


def test_terminal_states():
    assert TRANSITIONS[OrderStatus.CANCELLED] == set()
    assert TRANSITIONS[OrderStatus.RETURNED] == set()


class TestApplyTransition:
    def test_delivered_stamps_actual_delivery(self):
        order = SimpleNamespace(order_status="SHIPPED", actual_delivery=None, cancelled_at=None)
        apply_transition(order, "DELIVERED")
        assert order.order_status == "DELIVERED"
        assert order.actual_delivery is not None
        assert order.cancelled_at is None

    def test_cancelled_stamps_cancelled_at(self):
        order = SimpleNamespace(order_status="CONFIRMED", actual_delivery=None, cancelled_at=None)
        apply_transition(order, "CANCELLED")
        assert order.cancelled_at is not None

    def test_illegal_move_leaves_order_untouched(self):
        order = SimpleNamespace(order_status="CONFIRMED", actual_delivery=None, cancelled_at=None)
        with pytest.raises(InvalidTransitionError) as exc:
            apply_transition(order, "DELIVERED")
        assert str(exc.value) == "Cannot change order status from CONFIRMED to DELIVERED"
        assert order.order_status == "CONFIRMED"

    def test_unknown_status(self):
        order = SimpleNamespace(order_status="PENDING")
        with pytest.raises(ValidationFailed, match="Unknown order status"):
            apply_transition(order, "LOST")


class TestStatusEndpoint:
    @pytest.fixture
    def placed_order(self, client, make_user, make_customer, make_product, auth):
        agent = make_user("SALES")
        customer = make_customer(created_by=agent)
        product = make_product(stock=5)
        response = client.post(
            "/admin-orders/create",
            json={"customer_id": customer.id, "items": [{"product_id": product.id, "quantity": 1}]},
            headers=auth(agent),
        )
        assert response.status_code == 200
        return agent, response.json()["data"]["orders"][0]["order_id"]

    def test_walk_to_delivered(self, client, auth, placed_order):
        agent, order_id = placed_order
        for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
            response = client.put(f"/admin-orders/{order_id}/status", json={"order_status": status}, headers=auth(agent))
            assert response.status_code == 200
        body = response.json()
        assert body["order_status"] == "DELIVERED"
        assert body["actual_delivery"] is not None

    def test_illegal_jump_is_rejected(self, client, auth, placed_order):
        agent, order_id = placed_order
        response = client.put(f"/admin-orders/{order_id}/status", json={"order_status": "DELIVERED"}, headers=auth(agent))
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot change order status from CONFIRMED to DELIVERED"

    def test_other_agent_cannot_update(self, client, make_user, auth, placed_order):
        _, order_id = placed_order
        other = make_user("SALES")
        response = client.put(f"/admin-orders/{order_id}/status", json={"order_status": "PROCESSING"}, headers=auth(other))
        assert response.status_code == 403

    def test_director_can_update_any_order(self, client, make_user, auth, placed_order):
        _, order_id = placed_order
        director = make_user("DIRECTOR")
        response = client.put(
            f"/admin-orders/{order_id}/status",
            json={"order_status": "CANCELLED", "notes": "Customer called"},
            headers=auth(director),
        )
        assert response.status_code == 200
        assert response.json()["cancelled_at"] is not None
        assert response.json()["admin_notes"] == "Customer called"

    def test_unknown_order(self, client, make_user, auth):
        director = make_user("DIRECTOR")
        response = client.put("/admin-orders/ORD-missing/status", json={"order_status": "SHIPPED"}, headers=auth(director))
        assert response.status_code == 404

    def test_listing_is_scoped_to_agent(self, client, make_user, auth, placed_order):
        agent, _ = placed_order
        other = make_user("SALES")
        assert client.get("/admin-orders/list", headers=auth(agent)).json()["total"] == 1
        assert client.get("/admin-orders/list", headers=auth(other)).json()["total"] == 0
        director = make_user("DIRECTOR")
        assert client.get("/admin-orders/list", headers=auth(director)).json()["total"] == 1

    def test_analytics_by_agent_for_elevated_only(self, client, make_user, auth, placed_order):
        agent, _ = placed_order
        own = client.get("/admin-orders/analytics", headers=auth(agent)).json()["data"]
        assert own["total_orders"] == 1
        assert "by_agent" not in own

        director = make_user("DIRECTOR")
        data = client.get("/admin-orders/analytics", headers=auth(director)).json()["data"]
        assert data["by_agent"][0]["user_id"] == agent.id
        assert data["by_source"]["manual"]["orders"] == 1
