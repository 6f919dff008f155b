"""
Reservations over HTTP: slot grid, basket creation, and the group status
engine (one UPDATE per basket, one notification per change).
"""
import uuid
from datetime import timedelta

import pytest
from sqlmodel import select

from app.core.timeutils import local_today
from app.models.notification import Notification
from app.models.reservation import Reservation

API = "/api/v1"


@pytest.fixture
def day():
    return (local_today() + timedelta(days=3)).isoformat()


@pytest.fixture
def products(make_product):
    return [
        make_product("Torta Tres Leches", price=45.0),
        make_product("Pie de Manzana", price=30.0),
        make_product("Alfajores", price=12.5),
    ]


@pytest.fixture
def basket(client, auth, customer, products, day, make_size, offer_size):
    size = make_size("Grande", additional_price=15.0)
    offer_size(products[0], size)
    r = client.post(
        f"{API}/reservations/basket",
        json={
            "reservation_date": day,
            "reservation_time": "10:00",
            "special_requests": "Sin nueces",
            "customer_phone": "987654321",
            "items": [
                {"product_id": str(products[0].id), "quantity": 1, "size_id": str(size.id)},
                {"product_id": str(products[1].id), "quantity": 2},
                {"product_id": str(products[2].id), "quantity": 4},
            ],
        },
        headers=auth(customer),
    )
    assert r.status_code == 201, r.text
    return r.json()


def _rows(session):
    session.expire_all()
    return session.exec(select(Reservation)).all()


def _notes(session, user):
    session.expire_all()
    return session.exec(select(Notification).where(Notification.user_id == user.id)).all()


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def test_basket_is_stored_as_rows_and_returned_as_one_group(basket, session, customer):
    assert len(basket["items"]) == 3
    assert basket["status"] == "pending"
    assert basket["total_amount_combined"] == pytest.approx(60.0 + 60.0 + 50.0)
    assert basket["customer"]["phone"] == "987654321"

    rows = _rows(session)
    assert len(rows) == 3
    assert {(r.customer_id, r.reservation_time) for r in rows} == {(customer.id, "10:00")}

    sized = next(i for i in basket["items"] if i["size_id"] is not None)
    assert sized["special_requests"] == "Sin nueces [Tamaño: Grande]"


def test_customer_sees_basket_as_single_reservation(client, auth, customer, basket):
    mine = client.get(f"{API}/reservations/me", headers=auth(customer)).json()
    assert len(mine) == 1
    assert mine[0]["id"] == basket["id"]
    assert len(mine[0]["items"]) == 3


def test_basket_cannot_list_a_product_twice(client, auth, customer, products, day, session):
    item = {"product_id": str(products[0].id), "quantity": 1}
    r = client.post(
        f"{API}/reservations/basket",
        json={"reservation_date": day, "reservation_time": "11:00", "items": [item, item]},
        headers=auth(customer),
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Torta Tres Leches aparece más de una vez en la reservación"
    assert _rows(session) == []


def test_reserving_a_size_the_product_does_not_offer_fails(
    client, auth, customer, products, day, make_size
):
    size = make_size("Mini", additional_price=0.0)
    r = client.post(
        f"{API}/reservations",
        json={
            "product_id": str(products[1].id),
            "size_id": str(size.id),
            "reservation_date": day,
            "reservation_time": "12:00",
            "quantity": 1,
        },
        headers=auth(customer),
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "El tamaño Mini no está disponible para Pie de Manzana"


def test_past_dates_are_rejected(client, auth, customer, products):
    r = client.post(
        f"{API}/reservations",
        json={
            "product_id": str(products[0].id),
            "reservation_date": (local_today() - timedelta(days=1)).isoformat(),
            "reservation_time": "10:00",
            "quantity": 1,
        },
        headers=auth(customer),
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "No se pueden hacer reservaciones en fechas pasadas"


def test_off_grid_time_is_rejected(client, auth, customer, products, day):
    r = client.post(
        f"{API}/reservations",
        json={
            "product_id": str(products[0].id),
            "reservation_date": day,
            "reservation_time": "10:15",
            "quantity": 1,
        },
        headers=auth(customer),
    )
    assert r.status_code == 400


# ---------------------------------------------------------------------------
# Slots
# ---------------------------------------------------------------------------


def test_slot_grid_and_booked_slot(client, auth, customer, other_customer, products, day):
    product_id = str(products[0].id)
    params = {"product_id": product_id, "date": day}

    slots = client.get(f"{API}/reservations/slots", params=params).json()
    assert len(slots) == 24
    assert slots[0] == "09:00" and slots[-1] == "20:30"

    r = client.post(
        f"{API}/reservations",
        json={
            "product_id": product_id,
            "reservation_date": day,
            "reservation_time": "11:30",
            "quantity": 1,
        },
        headers=auth(customer),
    )
    assert r.status_code == 201, r.text

    slots = client.get(f"{API}/reservations/slots", params=params).json()
    assert "11:30" not in slots
    assert len(slots) == 23

    available = client.get(
        f"{API}/reservations/availability",
        params={**params, "time": "11:30"},
    ).json()
    assert available == {"disponible": False}

    r = client.post(
        f"{API}/reservations",
        json={
            "product_id": product_id,
            "reservation_date": day,
            "reservation_time": "11:30",
            "quantity": 1,
        },
        headers=auth(other_customer),
    )
    assert r.status_code == 409


def test_cancelled_booking_frees_the_slot(client, auth, customer, basket, products, day):
    r = client.post(f"{API}/reservations/me/{basket['id']}/cancel", headers=auth(customer))
    assert r.status_code == 200, r.text

    slots = client.get(
        f"{API}/reservations/slots",
        params={"product_id": str(products[0].id), "date": day},
    ).json()
    assert "10:00" in slots


# ---------------------------------------------------------------------------
# Group status engine
# ---------------------------------------------------------------------------


def test_status_change_moves_whole_group_and_notifies_once(
    client, auth, admin, customer, session, basket
):
    member_id = basket["items"][1]["id"]
    r = client.patch(
        f"{API}/reservations/{member_id}/status",
        json={"status": "confirmed"},
        headers=auth(admin),
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "confirmed"

    assert {row.status for row in _rows(session)} == {"confirmed"}

    notes = _notes(session, customer)
    assert len(notes) == 1
    assert notes[0].type == "reservation_confirmed"
    assert str(notes[0].related_id) == basket["id"]
    for name in ("Torta Tres Leches", "Pie de Manzana", "Alfajores"):
        assert name in notes[0].message


def test_other_baskets_are_untouched(
    client, auth, admin, other_customer, session, basket, products, day
):
    r = client.post(
        f"{API}/reservations",
        json={
            "product_id": str(products[0].id),
            "reservation_date": day,
            "reservation_time": "15:00",
            "quantity": 1,
        },
        headers=auth(other_customer),
    )
    other_id = r.json()["id"]

    client.patch(
        f"{API}/reservations/{basket['id']}/status",
        json={"status": "preparing"},
        headers=auth(admin),
    )

    session.expire_all()
    assert session.get(Reservation, uuid.UUID(other_id)).status == "pending"


def test_resetting_group_status_notifies_again(client, auth, admin, customer, session, basket):
    h = auth(admin)
    for _ in range(2):
        r = client.patch(
            f"{API}/reservations/{basket['id']}/status", json={"status": "confirmed"}, headers=h
        )
        assert r.status_code == 200, r.text

    assert [n.type for n in _notes(session, customer)] == [
        "reservation_confirmed",
        "reservation_confirmed",
    ]


def test_no_show_is_terminal_and_silent(client, auth, admin, customer, session, basket):
    h = auth(admin)
    r = client.patch(
        f"{API}/reservations/{basket['id']}/status", json={"status": "no_show"}, headers=h
    )
    assert r.status_code == 200
    assert _notes(session, customer) == []

    r = client.patch(
        f"{API}/reservations/{basket['id']}/status", json={"status": "confirmed"}, headers=h
    )
    assert r.status_code == 400


def test_delete_removes_every_row_of_the_group(client, auth, admin, session, basket):
    r = client.delete(f"{API}/reservations/{basket['items'][2]['id']}", headers=auth(admin))
    assert r.status_code == 200
    assert r.json() == {"deleted": 3}
    assert _rows(session) == []


def test_admin_list_and_stats(client, auth, admin, basket, day):
    h = auth(admin)
    groups = client.get(f"{API}/reservations", params={"date": day}, headers=h).json()
    assert [g["id"] for g in groups] == [basket["id"]]

    stats = client.get(f"{API}/reservations/stats", headers=h).json()
    assert stats["total_reservations"] == 3
    assert stats["pending_reservations"] == 3

    r = client.get(
        f"{API}/reservations/range",
        params={"date_from": day, "date_to": local_today().isoformat()},
        headers=h,
    )
    assert r.status_code == 400


def test_detail_is_owner_scoped(client, auth, customer, other_customer, basket):
    r = client.get(f"{API}/reservations/{basket['id']}", headers=auth(customer))
    assert r.status_code == 200
    assert r.json()["product"]["name"]

    r = client.get(f"{API}/reservations/{basket['id']}", headers=auth(other_customer))
    assert r.status_code == 404
