import uuid

import pytest

API = "/api/v1"


def test_repeated_add_merges_into_one_line(client, auth, customer, make_product):
    product = make_product(price=20.0)
    h = auth(customer)

    client.post(f"{API}/cart", json={"product_id": str(product.id), "quantity": 1}, headers=h)
    r = client.post(f"{API}/cart", json={"product_id": str(product.id), "quantity": 2}, headers=h)

    cart = r.json()
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["total_price"] == pytest.approx(60.0)
    assert client.get(f"{API}/cart/count", headers=h).json() == {"count": 3}


def test_same_product_in_two_sizes_gives_two_lines(
    client, auth, customer, make_product, make_size, offer_size
):
    product = make_product(price=20.0)
    small, large = make_size("Chica", 0.0), make_size("Grande", 15.0)
    offer_size(product, small, is_default=True)
    offer_size(product, large)
    h = auth(customer)

    for size in (small, large):
        client.post(
            f"{API}/cart",
            json={"product_id": str(product.id), "size_id": str(size.id)},
            headers=h,
        )

    cart = client.get(f"{API}/cart", headers=h).json()
    assert sorted(i["unit_price"] for i in cart["items"]) == [
        pytest.approx(20.0),
        pytest.approx(35.0),
    ]


def test_size_must_be_offered_for_the_product(
    client, auth, customer, make_product, make_size, offer_size
):
    torta, pie = make_product("Torta Helada"), make_product("Pie de Limón")
    familiar = make_size("Familiar", 30.0)
    offer_size(torta, familiar)

    r = client.post(
        f"{API}/cart",
        json={"product_id": str(pie.id), "size_id": str(familiar.id)},
        headers=auth(customer),
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "El tamaño Familiar no está disponible para Pie de Limón"


def test_cart_prices_follow_live_offer_price(
    client, auth, customer, make_product, make_size, offer_size, session
):
    product = make_product(price=30.0)
    size = make_size("Mediana", 10.0)
    offer_size(product, size)
    h = auth(customer)
    client.post(
        f"{API}/cart",
        json={"product_id": str(product.id), "size_id": str(size.id), "quantity": 2},
        headers=h,
    )

    product.is_offer = True
    product.offer_price = 25.0
    session.add(product)
    session.commit()

    line = client.get(f"{API}/cart", headers=h).json()["items"][0]
    assert line["unit_price"] == pytest.approx(35.0)
    assert line["line_total"] == pytest.approx(70.0)
    assert line["size"]["name"] == "Mediana"


def test_zero_quantity_removes_line(client, auth, customer, make_product):
    product = make_product()
    h = auth(customer)
    item_id = client.post(
        f"{API}/cart", json={"product_id": str(product.id)}, headers=h
    ).json()["items"][0]["id"]

    r = client.patch(f"{API}/cart/{item_id}", json={"quantity": 0}, headers=h)
    assert r.status_code == 200
    assert r.json()["items"] == []


def test_other_customers_line_is_not_found(client, auth, customer, other_customer, make_product):
    product = make_product()
    item_id = client.post(
        f"{API}/cart", json={"product_id": str(product.id)}, headers=auth(customer)
    ).json()["items"][0]["id"]

    r = client.delete(f"{API}/cart/{item_id}", headers=auth(other_customer))
    assert r.status_code == 404
    assert r.json()["detail"] == "Producto no encontrado en el carrito"


def test_inactive_and_unknown_products_are_rejected(client, auth, customer, make_product):
    hidden = make_product(is_active=False)
    h = auth(customer)

    r = client.post(f"{API}/cart", json={"product_id": str(hidden.id)}, headers=h)
    assert r.status_code == 400

    r = client.post(f"{API}/cart", json={"product_id": str(uuid.uuid4())}, headers=h)
    assert r.status_code == 404


def test_cart_is_for_customers_only(client, auth, staff):
    assert client.get(f"{API}/cart", headers=auth(staff)).status_code == 403
    assert client.get(f"{API}/cart").status_code == 401


def test_clear_cart(client, auth, customer, make_product):
    h = auth(customer)
    client.post(f"{API}/cart", json={"product_id": str(make_product().id)}, headers=h)

    r = client.delete(f"{API}/cart", headers=h)
    assert r.json()["total_quantity"] == 0
    assert client.get(f"{API}/cart/count", headers=h).json() == {"count": 0}
