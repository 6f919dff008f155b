"""
Notification inbox (owner scoping, read flags) and the email outbox.
"""
from datetime import timedelta

import pytest
from sqlmodel import select

from app.core import email_client
from app.core.timeutils import utcnow
from app.models.notification import Notification
from app.repositories.notification_repo import NotificationRepository
from app.services.notification_service import (
    EMAIL_CLAIM_TIMEOUT,
    EMAIL_MAX_ATTEMPTS,
    NotificationService,
)

API = "/api/v1"


@pytest.fixture
def notify(client, auth, admin):
    def _notify(user, title="Aviso", message="Tu pedido está listo", type_="general"):
        r = client.post(
            f"{API}/notifications",
            json={"user_id": str(user.id), "title": title, "message": message, "type": type_},
            headers=auth(admin),
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _notify


def test_inbox_lists_newest_first(client, auth, customer, notify):
    notify(customer, title="Primero")
    notify(customer, title="Segundo")

    inbox = client.get(f"{API}/notifications", headers=auth(customer)).json()
    assert [n["title"] for n in inbox] == ["Segundo", "Primero"]
    assert all(n["is_read"] is False for n in inbox)


def test_mark_all_read_only_touches_callers_rows(
    client, auth, customer, other_customer, notify
):
    notify(customer)
    notify(customer)
    notify(other_customer)

    r = client.patch(f"{API}/notifications/read-all", headers=auth(customer))
    assert r.status_code == 200
    assert r.json() == {"count": 0}

    other = client.get(f"{API}/notifications/unread-count", headers=auth(other_customer))
    assert other.json() == {"count": 1}


def test_foreign_notification_is_not_found(client, auth, customer, other_customer, notify):
    note = notify(customer)
    h = auth(other_customer)

    r = client.patch(f"{API}/notifications/{note['id']}/read", headers=h)
    assert r.status_code == 404
    assert r.json()["detail"] == "Notificación no encontrada"

    r = client.delete(f"{API}/notifications/{note['id']}", headers=h)
    assert r.status_code == 404


def test_mark_one_read_and_delete(client, auth, customer, notify):
    note = notify(customer)
    h = auth(customer)

    r = client.patch(f"{API}/notifications/{note['id']}/read", headers=h)
    assert r.status_code == 200
    assert r.json()["is_read"] is True
    assert client.get(f"{API}/notifications/unread-count", headers=h).json() == {"count": 0}

    r = client.delete(f"{API}/notifications/{note['id']}", headers=h)
    assert r.status_code == 204
    assert client.get(f"{API}/notifications", headers=h).json() == []


def test_filter_by_type(client, auth, customer, notify):
    notify(customer, type_="general")
    notify(customer, type_="order_confirmed")

    r = client.get(f"{API}/notifications/type/order_confirmed", headers=auth(customer))
    assert [n["type"] for n in r.json()] == ["order_confirmed"]


def test_only_admin_creates_notifications(client, auth, customer):
    r = client.post(
        f"{API}/notifications",
        json={"user_id": str(customer.id), "title": "x", "message": "y"},
        headers=auth(customer),
    )
    assert r.status_code == 403


# ---------------------------------------------------------------------------
# Email outbox
# ---------------------------------------------------------------------------


def test_recent_window_excludes_old_rows(client, auth, session, customer, notify):
    notify(customer, title="Hoy")
    _pending(session, customer, "Antigua", created_at=utcnow() - timedelta(days=10))

    recent = client.get(f"{API}/notifications/recent", headers=auth(customer)).json()
    assert [n["title"] for n in recent] == ["Hoy"]


def test_outbox_is_noop_without_smtp(client, auth, admin, customer, notify):
    notify(customer)
    r = client.post(f"{API}/notifications/deliver-emails", headers=auth(admin))
    assert r.json() == {"sent": 0, "failed": 0}


def test_outbox_mails_each_notification_once(
    client, auth, admin, customer, notify, session, monkeypatch
):
    sent: list[tuple[str, str]] = []
    monkeypatch.setattr(email_client, "is_configured", lambda: True)
    monkeypatch.setattr(
        email_client,
        "send_email",
        lambda to_email, subject, text_body, html_body=None: sent.append((to_email, subject)),
    )
    notify(customer, title="Pedido Confirmado")
    notify(customer, title="Pedido en Camino")

    h = auth(admin)
    assert client.post(f"{API}/notifications/deliver-emails", headers=h).json() == {
        "sent": 2,
        "failed": 0,
    }
    assert client.post(f"{API}/notifications/deliver-emails", headers=h).json() == {
        "sent": 0,
        "failed": 0,
    }
    assert sorted(s for _, s in sent) == ["Pedido Confirmado", "Pedido en Camino"]

    session.expire_all()
    assert all(n.emailed_at is not None for n in session.exec(select(Notification)).all())


def test_failed_email_stays_pending(client, auth, admin, customer, notify, session, monkeypatch):
    def _boom(**kwargs):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(email_client, "is_configured", lambda: True)
    monkeypatch.setattr(email_client, "send_email", _boom)
    notify(customer)

    r = client.post(f"{API}/notifications/deliver-emails", headers=auth(admin))
    assert r.json() == {"sent": 0, "failed": 1}

    session.expire_all()
    (note,) = session.exec(select(Notification)).all()
    assert note.emailed_at is None
    assert note.email_attempts == 1
    assert note.email_claimed_at is None


@pytest.fixture
def outbox(monkeypatch):
    """Drain service with SMTP faked; mail to unreachable users raises."""
    sent: list[str] = []
    unreachable: set[str] = set()

    def _send(to_email, subject, text_body, html_body=None):
        if to_email in unreachable:
            raise RuntimeError("550 mailbox unavailable")
        sent.append(subject)

    monkeypatch.setattr(email_client, "is_configured", lambda: True)
    monkeypatch.setattr(email_client, "send_email", _send)
    return NotificationService(NotificationRepository()), sent, unreachable


def _pending(session, user, title, **fields):
    note = Notification(user_id=user.id, title=title, message="Hola", type="general", **fields)
    session.add(note)
    session.commit()
    return note


def test_undeliverable_rows_do_not_block_newer_ones(
    session, customer, other_customer, outbox
):
    service, sent, unreachable = outbox
    unreachable.add(other_customer.email)
    old = utcnow() - timedelta(hours=1)
    _pending(session, other_customer, "Rebota 1", created_at=old)
    _pending(session, other_customer, "Rebota 2", created_at=old)
    _pending(session, customer, "Pedido Confirmado")

    assert service.deliver_pending_emails(session, limit=2).model_dump() == {
        "sent": 0,
        "failed": 2,
    }
    assert service.deliver_pending_emails(session, limit=2).sent == 1
    assert sent == ["Pedido Confirmado"]


def test_rows_out_of_attempts_are_not_retried(session, customer, outbox):
    service, sent, _ = outbox
    _pending(session, customer, "Agotado", email_attempts=EMAIL_MAX_ATTEMPTS)

    assert service.deliver_pending_emails(session).model_dump() == {"sent": 0, "failed": 0}
    assert sent == []


def test_claimed_rows_are_not_sent_twice(session, customer, outbox):
    service, sent, _ = outbox
    _pending(session, customer, "En curso", email_claimed_at=utcnow())
    _pending(
        session,
        customer,
        "Abandonado",
        email_claimed_at=utcnow() - EMAIL_CLAIM_TIMEOUT - timedelta(minutes=1),
    )

    assert service.deliver_pending_emails(session).sent == 1
    assert sent == ["Abandonado"]

    session.expire_all()
    stamped = {n.title: n.emailed_at for n in session.exec(select(Notification)).all()}
    assert stamped["En curso"] is None
    assert stamped["Abandonado"] is not None
