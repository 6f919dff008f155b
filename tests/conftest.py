"""
Shared fixtures.

The app runs against an in-memory SQLite database through the same
engine the routers use; tables are recreated for every test. Tokens are
minted with the same HS256 secret Supabase would use.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
for _smtp_var in ("SMTP_HOST", "SMTP_USERNAME", "SMTP_PASSWORD"):
    os.environ.pop(_smtp_var, None)

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import Session, SQLModel

from app.database import engine
from app.main import app
from app.models.category import Category
from app.models.product import Product, ProductSize, ProductSizeOption
from app.models.user import User


@pytest.fixture(autouse=True)
def _tables():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def client():
    # No context manager: the lifespan would try to create tables again.
    return TestClient(app)


def make_token(user: User) -> str:
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(claims, os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")


@pytest.fixture
def auth():
    """Build the Authorization header for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user)}"}

    return _headers


@pytest.fixture
def make_user(session):
    def _make(role: str = "user", first_name: str = "Ana", last_name: str = "Quispe") -> User:
        user = User(
            id=uuid.uuid4(),
            email=f"{uuid.uuid4().hex[:10]}@correo.pe",
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def customer(make_user) -> User:
    return make_user("user")


@pytest.fixture
def other_customer(make_user) -> User:
    return make_user("user", first_name="Luis", last_name="Torres")


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin", first_name="Admin", last_name="")


@pytest.fixture
def staff(make_user) -> User:
    return make_user("staff", first_name="Rosa", last_name="Mamani")


@pytest.fixture
def make_product(session):
    def _make(
        name: str = "Torta de Chocolate",
        price: float = 25.0,
        **extra,
    ) -> Product:
        product = Product(
            name=name,
            slug=f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}",
            price=price,
            stock=10,
            **extra,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_size(session):
    def _make(name: str = "Mediana", additional_price: float = 10.0, **extra) -> ProductSize:
        size = ProductSize(
            name=name,
            person_capacity=12,
            additional_price=additional_price,
            **extra,
        )
        session.add(size)
        session.commit()
        session.refresh(size)
        return size

    return _make


@pytest.fixture
def offer_size(session):
    """Make `size` orderable for `product`."""

    def _offer(product: Product, size: ProductSize, is_default: bool = False) -> None:
        session.add(
            ProductSizeOption(product_id=product.id, size_id=size.id, is_default=is_default)
        )
        session.commit()

    return _offer


@pytest.fixture
def make_category(session):
    def _make(name: str = "Tortas", **extra) -> Category:
        category = Category(name=name, **extra)
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    return _make
