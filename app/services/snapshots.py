# app/services/snapshots.py
from app.models.product import Product, ProductSize
from app.models.user import User
from app.schemas.product import SizeSnapshot
from app.schemas.reservation import ProductSnapshot
from app.schemas.user import CustomerSnapshot


def customer_snapshot(user: User) -> CustomerSnapshot:
    return CustomerSnapshot(
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone=user.phone,
    )


def product_snapshot(product: Product) -> ProductSnapshot:
    return ProductSnapshot(
        id=product.id,
        name=product.name,
        price=product.price,
        preparation_time=product.preparation_time,
        image_url=product.hero_image_url,
    )


def size_snapshot(size: ProductSize | None) -> SizeSnapshot | None:
    if size is None:
        return None
    return SizeSnapshot(id=size.id, name=size.name, person_capacity=size.person_capacity)
