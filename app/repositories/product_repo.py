# app/repositories/product_repo.py
import uuid

from sqlalchemy import delete, func, update
from sqlmodel import Session, col, select

from app.models.cart import CartItem
from app.models.order import Order, OrderItem
from app.models.product import Product, ProductImage, ProductSize, ProductSizeOption
from app.models.reservation import Reservation


class ProductRepository:
    """
    Data access layer for Product, ProductImage, ProductSize and the
    sizes each product offers.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_by_slug(self, session: Session, slug: str) -> Product | None:
        stmt = select(Product).where(Product.slug == slug)
        return session.exec(stmt).first()

    def get_many(
        self,
        session: Session,
        product_ids: set[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        if not product_ids:
            return {}
        stmt = select(Product).where(col(Product.id).in_(product_ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
        category_id: uuid.UUID | None = None,
        only_offers: bool = False,
        search: str | None = None,
    ) -> list[Product]:
        stmt = select(Product)
        if only_active:
            stmt = stmt.where(Product.is_active == True)
        if category_id:
            stmt = stmt.where(Product.category_id == category_id)
        if only_offers:
            stmt = stmt.where(Product.is_offer == True)
        if search:
            stmt = stmt.where(col(Product.name).ilike(f"%{search}%"))
        stmt = stmt.order_by(Product.name).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def list_related(
        self,
        session: Session,
        product: Product,
        limit: int = 4,
    ) -> list[Product]:
        stmt = (
            select(Product)
            .where(
                Product.category_id == product.category_id,
                Product.id != product.id,
                Product.is_active == True,
            )
            .order_by(Product.name)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def best_sellers(self, session: Session, limit: int = 5) -> list[tuple]:
        """
        Products ranked by quantity sold across non-cancelled orders.
        """
        qty_sum = func.coalesce(func.sum(OrderItem.quantity), 0)
        stmt = (
            select(OrderItem.product_id, Product.name, qty_sum.label("total_quantity"))
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(Order.status != "cancelled", Product.is_active == True)
            .group_by(OrderItem.product_id, Product.name)
            .order_by(qty_sum.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete_cascade(self, session: Session, product: Product) -> None:
        """
        Hard delete: gallery rows, size options, cart rows referencing the
        product, then the product itself, in one commit.
        """
        session.execute(
            delete(ProductSizeOption).where(ProductSizeOption.product_id == product.id)
        )
        session.execute(delete(ProductImage).where(ProductImage.product_id == product.id))
        session.execute(delete(CartItem).where(CartItem.product_id == product.id))
        session.delete(product)
        session.commit()

    # ----- Product images -----

    def list_images_for_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductImage]:
        stmt = (
            select(ProductImage)
            .where(ProductImage.product_id == product_id)
            .order_by(ProductImage.sort_order)
        )
        return session.exec(stmt).all()

    def get_image_by_id(
        self,
        session: Session,
        image_id: uuid.UUID,
    ) -> ProductImage | None:
        return session.get(ProductImage, image_id)

    def create_image(self, session: Session, image: ProductImage) -> ProductImage:
        session.add(image)
        session.commit()
        session.refresh(image)
        return image

    def delete_image(self, session: Session, image: ProductImage) -> None:
        session.delete(image)
        session.commit()

    # ----- Sizes -----

    def get_size(self, session: Session, size_id: uuid.UUID) -> ProductSize | None:
        return session.get(ProductSize, size_id)

    def get_sizes(
        self,
        session: Session,
        size_ids: set[uuid.UUID],
    ) -> dict[uuid.UUID, ProductSize]:
        if not size_ids:
            return {}
        stmt = select(ProductSize).where(col(ProductSize.id).in_(size_ids))
        return {s.id: s for s in session.exec(stmt).all()}

    def list_sizes(self, session: Session, only_active: bool = True) -> list[ProductSize]:
        stmt = select(ProductSize)
        if only_active:
            stmt = stmt.where(ProductSize.is_active == True)
        stmt = stmt.order_by(ProductSize.display_order)
        return session.exec(stmt).all()

    def save_size(self, session: Session, size: ProductSize) -> ProductSize:
        session.add(size)
        session.commit()
        session.refresh(size)
        return size

    def delete_size(self, session: Session, size: ProductSize) -> None:
        session.execute(delete(ProductSizeOption).where(ProductSizeOption.size_id == size.id))
        session.delete(size)
        session.commit()

    # ----- Sizes offered per product -----

    def list_size_options(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[tuple[ProductSizeOption, ProductSize]]:
        stmt = (
            select(ProductSizeOption, ProductSize)
            .join(ProductSize, ProductSize.id == ProductSizeOption.size_id)
            .where(ProductSizeOption.product_id == product_id)
            .order_by(
                col(ProductSizeOption.is_default).desc(),
                ProductSize.display_order,
            )
        )
        return list(session.exec(stmt).all())

    def get_size_option(
        self,
        session: Session,
        product_id: uuid.UUID,
        size_id: uuid.UUID,
    ) -> ProductSizeOption | None:
        stmt = select(ProductSizeOption).where(
            ProductSizeOption.product_id == product_id,
            ProductSizeOption.size_id == size_id,
        )
        return session.exec(stmt).first()

    def unset_default_size(self, session: Session, product_id: uuid.UUID) -> None:
        """Clear the default flag on every option of the product (no commit)."""
        session.execute(
            update(ProductSizeOption)
            .where(ProductSizeOption.product_id == product_id)
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )

    def save_size_option(
        self,
        session: Session,
        option: ProductSizeOption,
    ) -> ProductSizeOption:
        session.add(option)
        session.commit()
        session.refresh(option)
        return option

    def delete_size_option(self, session: Session, option: ProductSizeOption) -> None:
        session.delete(option)
        session.commit()

    def replace_size_options(
        self,
        session: Session,
        product_id: uuid.UUID,
        options: list[ProductSizeOption],
    ) -> None:
        """Swap the product's whole option list in one commit."""
        session.execute(
            delete(ProductSizeOption).where(ProductSizeOption.product_id == product_id)
        )
        session.add_all(options)
        session.commit()

    def size_in_use(self, session: Session, size_id: uuid.UUID) -> bool:
        """True if any order line, cart row or reservation references the size."""
        in_orders = session.exec(
            select(OrderItem.id).where(OrderItem.size_id == size_id).limit(1)
        ).first()
        in_carts = session.exec(
            select(CartItem.id).where(CartItem.size_id == size_id).limit(1)
        ).first()
        in_reservations = session.exec(
            select(Reservation.id).where(Reservation.size_id == size_id).limit(1)
        ).first()
        return any(
            row is not None for row in (in_orders, in_carts, in_reservations)
        )

    def product_has_history(self, session: Session, product_id: uuid.UUID) -> bool:
        """True if any order line or reservation references the product."""
        in_orders = session.exec(
            select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1)
        ).first()
        in_reservations = session.exec(
            select(Reservation.id).where(Reservation.product_id == product_id).limit(1)
        ).first()
        return in_orders is not None or in_reservations is not None
