"""
Catalog categories: public listing, admin CRUD and the delete guard.
"""
API = "/api/v1"


def _create(client, auth, admin, name="Tortas", **fields):
    return client.post(
        f"{API}/categories", json={"name": name, **fields}, headers=auth(admin)
    )


def test_public_listing_hides_inactive_categories(client, auth, admin):
    tortas = _create(client, auth, admin, "Tortas", description="Para celebrar").json()
    postres = _create(client, auth, admin, "Postres").json()

    r = client.patch(
        f"{API}/categories/{postres['id']}", json={"is_active": False}, headers=auth(admin)
    )
    assert r.json()["is_active"] is False

    listed = client.get(f"{API}/categories").json()
    assert [c["id"] for c in listed] == [tortas["id"]]
    assert listed[0]["description"] == "Para celebrar"


def test_names_are_unique_ignoring_case(client, auth, admin):
    assert _create(client, auth, admin, "Bocaditos").status_code == 201
    r = _create(client, auth, admin, "bocaditos")
    assert r.status_code == 409


def test_counts_only_active_products(client, auth, admin, make_category, make_product):
    tortas = make_category("Tortas")
    make_category("Galletas")
    make_product("Torta Helada", category_id=tortas.id)
    make_product("Torta Antigua", category_id=tortas.id, is_active=False)

    counts = client.get(f"{API}/categories/with-counts", headers=auth(admin)).json()
    assert [(c["name"], c["product_count"]) for c in counts] == [
        ("Galletas", 0),
        ("Tortas", 1),
    ]


def test_delete_guard_and_detach(client, auth, admin, session, make_category, make_product):
    tortas = make_category("Tortas")
    category_id = tortas.id
    active = make_product("Torta Helada", category_id=category_id)
    retired = make_product("Torta Antigua", category_id=category_id, is_active=False)
    h = auth(admin)

    r = client.delete(f"{API}/categories/{category_id}", headers=h)
    assert r.status_code == 409
    assert "1 producto(s) activo(s)" in r.json()["detail"]

    client.post(f"{API}/products/{active.id}/deactivate", headers=h)
    assert client.delete(f"{API}/categories/{category_id}", headers=h).status_code == 204
    assert client.get(f"{API}/categories/{category_id}").status_code == 404

    session.expire_all()
    assert retired.category_id is None


def test_products_need_an_active_category(client, auth, admin, make_category):
    hidden = make_category("Temporada", is_active=False)
    r = client.post(
        f"{API}/products",
        json={"name": "Panetón", "price": 40.0, "category_id": str(hidden.id)},
        headers=auth(admin),
    )
    assert r.status_code == 400


def test_category_admin_requires_admin(client, auth, customer):
    assert _create(client, auth, customer).status_code == 403
    assert client.get(f"{API}/categories/with-counts", headers=auth(customer)).status_code == 403
