API = "/api/v1"

LIMA = {"department": "Lima", "province": "Lima"}


def _add(client, headers, **fields):
    payload = {"address": "Av. Pardo 300", "district": "Miraflores", **LIMA}
    payload.update(fields)
    return client.post(f"{API}/addresses", json=payload, headers=headers)


def _defaults(client, headers):
    return [a["id"] for a in client.get(f"{API}/addresses", headers=headers).json() if a["is_default"]]


def test_first_address_becomes_default(client, auth, customer):
    h = auth(customer)
    r = _add(client, h)
    assert r.status_code == 201, r.text
    assert r.json()["is_default"] is True

    second = _add(client, h, address="Calle Berlín 120").json()
    assert second["is_default"] is False


def test_single_default_per_user(client, auth, customer):
    h = auth(customer)
    first = _add(client, h).json()
    second = _add(client, h, address="Jr. Ucayali 50", district="Cercado", is_default=True).json()
    assert _defaults(client, h) == [second["id"]]

    r = client.patch(f"{API}/addresses/{first['id']}/default", headers=h)
    assert r.json()["is_default"] is True
    assert _defaults(client, h) == [first["id"]]


def test_update_and_delete_are_owner_scoped(client, auth, customer, other_customer):
    address = _add(client, auth(customer)).json()
    intruder = auth(other_customer)

    r = client.patch(f"{API}/addresses/{address['id']}", json={"reference": "x"}, headers=intruder)
    assert r.status_code == 404
    assert client.delete(f"{API}/addresses/{address['id']}", headers=intruder).status_code == 404

    h = auth(customer)
    r = client.patch(f"{API}/addresses/{address['id']}", json={"reference": "Casa azul"}, headers=h)
    assert r.json()["reference"] == "Casa azul"
    assert client.delete(f"{API}/addresses/{address['id']}", headers=h).status_code == 204
    assert client.get(f"{API}/addresses", headers=h).json() == []


def test_blank_required_fields_are_rejected(client, auth, customer):
    r = _add(client, auth(customer), district="  ")
    assert r.status_code == 422
