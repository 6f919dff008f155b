"""
Dashboard aggregates. Orders are inserted directly so each test controls
statuses and totals.
"""
import pytest

from app.core.timeutils import local_today
from app.models.order import Order, OrderItem

API = "/api/v1"


@pytest.fixture
def orders(session, customer, make_product):
    torta = make_product("Torta Helada", price=50.0)
    pie = make_product("Pie de Limón", price=25.0)
    customer_id = customer.id

    rows = [
        ("completed", 100.0, torta, 2),
        ("completed", 50.0, pie, 2),
        ("pending", 25.0, pie, 1),
        ("cancelled", 500.0, torta, 10),
    ]
    for status, total, product, qty in rows:
        order = Order(
            customer_id=customer_id,
            total_amount=total,
            status=status,
            payment_method="yape",
            address="Av. Brasil 900",
        )
        session.add(order)
        session.flush()
        session.add(
            OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=qty,
                unit_price=total / qty,
                subtotal=total,
            )
        )
    session.commit()


def test_metrics_count_completed_sales_only(client, auth, admin, orders):
    metrics = client.get(f"{API}/admin/stats/metrics", headers=auth(admin)).json()

    assert metrics["total_sales"] == pytest.approx(150.0)
    assert metrics["sales_today"] == pytest.approx(150.0)
    assert metrics["pending_orders"] == 1
    assert metrics["total_products"] == 2
    assert metrics["total_users"] == 2
    assert metrics["conversion_rate"] == pytest.approx(50.0)


def test_popular_products_ignore_cancelled_orders(client, auth, admin, orders):
    popular = client.get(f"{API}/admin/stats/popular-products", headers=auth(admin)).json()

    assert [(p["name"], p["total_quantity"]) for p in popular] == [
        ("Pie de Limón", 3),
        ("Torta Helada", 2),
    ]


def test_monthly_sales_cover_six_months(client, auth, admin, orders):
    months = client.get(f"{API}/admin/stats/monthly-sales", headers=auth(admin)).json()

    assert len(months) == 6
    assert months[-1] == {"month": local_today().strftime("%Y-%m"), "total_sales": 150.0}
    assert all(m["total_sales"] == 0.0 for m in months[:-1])


def test_dashboard_bundle_and_recent_orders(client, auth, admin, orders):
    body = client.get(f"{API}/admin/stats", headers=auth(admin)).json()

    assert set(body) == {
        "metrics",
        "recent_orders",
        "popular_products",
        "monthly_sales",
        "products_by_category",
    }
    assert len(body["recent_orders"]) == 4
    assert body["recent_orders"][0]["customer_name"] == "Ana Quispe"


def test_products_by_category(client, auth, admin, make_category, make_product):
    tortas = make_category("Tortas")
    make_product("Torta Helada", category_id=tortas.id)
    make_product("Torta de Lúcuma", category_id=tortas.id)
    make_product("Alfajor")
    make_product("Torta Vieja", category_id=tortas.id, is_active=False)

    shares = client.get(
        f"{API}/admin/stats/products-by-category", headers=auth(admin)
    ).json()
    assert [(s["category"], s["product_count"]) for s in shares] == [
        ("Tortas", 2),
        ("Sin categoría", 1),
    ]
    assert shares[0]["color"] != shares[1]["color"]


def test_dashboard_is_admin_only(client, auth, staff):
    assert client.get(f"{API}/admin/stats", headers=auth(staff)).status_code == 403


def test_empty_store_has_zero_conversion(client, auth, admin):
    metrics = client.get(f"{API}/admin/stats/metrics", headers=auth(admin)).json()
    assert metrics["conversion_rate"] == 0.0
    assert metrics["total_sales"] == 0.0
