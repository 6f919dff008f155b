import uuid

from app.models.user import User

API = "/api/v1"


def test_first_request_provisions_customer_profile(client, auth):
    newcomer = User(id=uuid.uuid4(), email="rosa.flores@correo.pe", first_name="")

    r = client.get(f"{API}/users/me", headers=auth(newcomer))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["id"] == str(newcomer.id)
    assert body["role"] == "user"
    assert body["first_name"] == "rosa.flores"


def test_bad_token_is_rejected(client):
    r = client.get(f"{API}/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Token inválido o expirado"


def test_profile_update(client, auth, customer):
    r = client.patch(
        f"{API}/users/me",
        json={"last_name": "Huamán", "phone": " 999888777 "},
        headers=auth(customer),
    )
    assert r.status_code == 200
    assert r.json()["last_name"] == "Huamán"
    assert r.json()["phone"] == "999888777"


def test_admin_promotes_staff_but_cannot_demote_self(client, auth, admin, customer):
    h = auth(admin)

    r = client.patch(f"{API}/users/{customer.id}/role", json={"role": "staff"}, headers=h)
    assert r.json()["role"] == "staff"

    staff = client.get(f"{API}/users", params={"role": "staff"}, headers=h).json()
    assert [u["id"] for u in staff] == [str(customer.id)]

    r = client.patch(f"{API}/users/{admin.id}/role", json={"role": "user"}, headers=h)
    assert r.status_code == 400


def test_user_admin_requires_admin(client, auth, customer):
    assert client.get(f"{API}/users", headers=auth(customer)).status_code == 403
