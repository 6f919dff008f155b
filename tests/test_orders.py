"""
Order flow over HTTP: checkout from cart, the status engine and its
customer notifications, payment status and access rules.
"""
import uuid

import pytest
from sqlmodel import select

from app.models.cart import CartItem
from app.models.notification import Notification
from app.models.order import Order, OrderItem

API = "/api/v1"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def checked_out(client, auth, customer, make_product):
    """A pending order for 2 x 25.00 + 1 x 40.00."""
    torta = make_product("Torta de Chocolate", price=25.0)
    pie = make_product("Pie de Limón", price=40.0)
    h = auth(customer)

    client.post(f"{API}/cart", json={"product_id": str(torta.id), "quantity": 2}, headers=h)
    client.post(f"{API}/cart", json={"product_id": str(pie.id), "quantity": 1}, headers=h)

    r = client.post(
        f"{API}/orders/checkout",
        json={"payment_method": "yape", "address": "Av. Arequipa 123, Lince"},
        headers=h,
    )
    assert r.status_code == 201, r.text
    return r.json()


def _set_status(client, auth, admin, order_id, new_status):
    return client.patch(
        f"{API}/orders/{order_id}/status",
        json={"status": new_status},
        headers=auth(admin),
    )


def _notifications_for(session, user):
    session.expire_all()
    return session.exec(select(Notification).where(Notification.user_id == user.id)).all()


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


def test_checkout_totals_and_snapshots_prices(checked_out):
    assert checked_out["total_amount"] == pytest.approx(90.0)
    assert checked_out["status"] == "pending"
    assert checked_out["payment_status"] == "pending"
    assert checked_out["estimated_delivery"] is not None

    subtotals = sorted(i["subtotal"] for i in checked_out["items"])
    assert subtotals == [pytest.approx(40.0), pytest.approx(50.0)]
    assert {i["product_name"] for i in checked_out["items"]} == {
        "Torta de Chocolate",
        "Pie de Limón",
    }
    assert checked_out["customer"]["first_name"] == "Ana"


def test_checkout_clears_cart_in_same_commit(checked_out, session, customer):
    session.expire_all()
    assert session.exec(select(CartItem).where(CartItem.user_id == customer.id)).all() == []
    items = session.exec(select(OrderItem)).all()
    assert len(items) == 2


def test_checkout_with_empty_cart_is_rejected(client, auth, customer):
    r = client.post(
        f"{API}/orders/checkout",
        json={"payment_method": "yape", "address": "Av. Arequipa 123"},
        headers=auth(customer),
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "El carrito está vacío"


def test_checkout_uses_saved_address(client, auth, customer, make_product):
    h = auth(customer)
    product = make_product(price=30.0)
    address = client.post(
        f"{API}/addresses",
        json={
            "address": "Jr. Junín 456",
            "department": "Lima",
            "province": "Lima",
            "district": "Miraflores",
            "reference": "Frente al parque",
        },
        headers=h,
    ).json()
    client.post(f"{API}/cart", json={"product_id": str(product.id)}, headers=h)

    r = client.post(
        f"{API}/orders/checkout",
        json={"payment_method": "efectivo", "address_id": address["id"]},
        headers=h,
    )
    assert r.status_code == 201, r.text
    assert r.json()["address"] == "Jr. Junín 456, Miraflores, Lima, Lima (Ref: Frente al parque)"


def test_checkout_requires_customer_role(client, auth, admin):
    r = client.post(
        f"{API}/orders/checkout",
        json={"payment_method": "yape", "address": "x"},
        headers=auth(admin),
    )
    assert r.status_code == 403


# ---------------------------------------------------------------------------
# Status engine
# ---------------------------------------------------------------------------


def test_confirming_notifies_customer_with_total(
    client, auth, admin, customer, session, checked_out
):
    r = _set_status(client, auth, admin, checked_out["id"], "confirmed")
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "confirmed"

    notes = _notifications_for(session, customer)
    assert len(notes) == 1
    note = notes[0]
    assert note.type == "order_confirmed"
    assert note.title == "Pedido Confirmado"
    assert "Total: S/ 90.00" in note.message
    assert str(note.related_id) == checked_out["id"]
    assert note.is_read is False


def test_each_fulfilment_step_notifies_once(client, auth, admin, customer, session, checked_out):
    for new_status in ("confirmed", "preparing", "on_the_way", "completed"):
        r = _set_status(client, auth, admin, checked_out["id"], new_status)
        assert r.status_code == 200, f"{new_status}: {r.text}"

    types = sorted(n.type for n in _notifications_for(session, customer))
    assert types == sorted(
        ["order_confirmed", "order_preparing", "order_on_the_way", "order_completed"]
    )


def test_resetting_same_status_notifies_again(
    client, auth, admin, customer, session, checked_out
):
    _set_status(client, auth, admin, checked_out["id"], "confirmed")
    r = _set_status(client, auth, admin, checked_out["id"], "confirmed")

    assert r.status_code == 200
    assert r.json()["status"] == "confirmed"
    types = [n.type for n in _notifications_for(session, customer)]
    assert types == ["order_confirmed", "order_confirmed"]


def test_illegal_transition_is_rejected_without_side_effects(
    client, auth, admin, customer, session, checked_out
):
    _set_status(client, auth, admin, checked_out["id"], "cancelled")
    r = _set_status(client, auth, admin, checked_out["id"], "confirmed")

    assert r.status_code == 400
    assert r.json()["detail"] == "Transición de estado inválida: cancelled -> confirmed"

    session.expire_all()
    order = session.get(Order, uuid.UUID(checked_out["id"]))
    assert order.status == "cancelled"
    assert [n.type for n in _notifications_for(session, customer)] == ["order_cancelled"]


def test_payment_status_never_notifies(client, auth, admin, customer, session, checked_out):
    r = client.patch(
        f"{API}/orders/{checked_out['id']}/payment-status",
        json={"payment_status": "paid"},
        headers=auth(admin),
    )
    assert r.status_code == 200
    assert r.json()["payment_status"] == "paid"
    assert r.json()["status"] == "pending"
    assert _notifications_for(session, customer) == []


def test_status_update_requires_admin(client, auth, customer, checked_out):
    r = client.patch(
        f"{API}/orders/{checked_out['id']}/status",
        json={"status": "confirmed"},
        headers=auth(customer),
    )
    assert r.status_code == 403


# ---------------------------------------------------------------------------
# Customer views and cancellation
# ---------------------------------------------------------------------------


def test_customer_sees_only_own_orders(client, auth, customer, other_customer, checked_out):
    mine = client.get(f"{API}/orders/me", headers=auth(customer)).json()
    assert [o["id"] for o in mine] == [checked_out["id"]]

    assert client.get(f"{API}/orders/me", headers=auth(other_customer)).json() == []
    r = client.get(f"{API}/orders/{checked_out['id']}", headers=auth(other_customer))
    assert r.status_code == 404


def test_customer_can_cancel_pending_order_only(client, auth, customer, checked_out):
    h = auth(customer)
    r = client.post(f"{API}/orders/me/{checked_out['id']}/cancel", headers=h)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"

    r = client.post(f"{API}/orders/me/{checked_out['id']}/cancel", headers=h)
    assert r.status_code == 400


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


def test_admin_creates_order_with_explicit_prices(client, auth, admin, customer, make_product):
    product = make_product(price=99.0)
    r = client.post(
        f"{API}/orders",
        json={
            "customer_id": str(customer.id),
            "payment_method": "transferencia",
            "address": "Calle Las Begonias 200",
            "items": [
                {"product_id": str(product.id), "quantity": 3, "unit_price": 12.5},
            ],
        },
        headers=auth(admin),
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["total_amount"] == pytest.approx(37.5)
    assert body["items"][0]["unit_price"] == pytest.approx(12.5)


def test_admin_list_filters_by_status(client, auth, admin, checked_out):
    h = auth(admin)
    pending = client.get(f"{API}/orders", params={"status_filter": "pending"}, headers=h)
    assert [o["id"] for o in pending.json()] == [checked_out["id"]]

    done = client.get(f"{API}/orders", params={"status_filter": "completed"}, headers=h)
    assert done.json() == []

    stats = client.get(f"{API}/orders/stats", headers=h).json()
    assert stats["total_orders"] == 1
    assert stats["pending_orders"] == 1
