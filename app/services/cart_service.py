# app/services/cart_service.py
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from app.models.cart import CartItem
from app.models.product import Product, ProductSize
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import (
    CartCount,
    CartItemCreate,
    CartItemRead,
    CartItemUpdate,
    CartSummary,
)
from app.services.product_service import ensure_size_offered, live_unit_price
from app.services.snapshots import size_snapshot


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - ensure only 'user' accounts use cart (via router dependency)
      - validate product/size existence and active flags, and that the
        size is offered for the product
      - merge repeated adds of the same product+size
      - price every line with the live unit price on each read
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_valid_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado",
            )
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El producto no está disponible",
            )
        return product

    def _get_valid_size(self, session: Session, size_id: uuid.UUID) -> ProductSize:
        size = self.product_repo.get_size(session, size_id)
        if not size or not size.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Tamaño no encontrado",
            )
        return size

    def _get_owned_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> CartItem:
        item = self.cart_repo.get_by_id(session, item_id)
        if not item or item.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado en el carrito",
            )
        return item

    # ---- public operations ----

    def get_cart_summary(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> CartSummary:
        """
        Return full cart summary:
          - list of CartItemRead (live unit_price, line_total)
          - total_quantity
          - total_price
        """
        items = self.cart_repo.list_for_user(session, user_id)
        products = self.product_repo.get_many(session, {it.product_id for it in items})
        sizes = self.product_repo.get_sizes(
            session, {it.size_id for it in items if it.size_id}
        )

        item_reads: list[CartItemRead] = []
        total_qty = 0
        total_price = 0.0

        for it in items:
            product = products.get(it.product_id)
            if product is None:
                continue
            size = sizes.get(it.size_id) if it.size_id else None

            unit_price = live_unit_price(product, size)
            line_total = it.quantity * unit_price
            total_qty += it.quantity
            total_price += line_total

            item_reads.append(
                CartItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    product_name=product.name,
                    product_image_url=product.hero_image_url,
                    size=size_snapshot(size),
                    quantity=it.quantity,
                    unit_price=unit_price,
                    line_total=line_total,
                    created_at=it.created_at,
                )
            )

        return CartSummary(
            items=item_reads,
            total_quantity=total_qty,
            total_price=total_price,
        )

    def cart_count(self, session: Session, user_id: uuid.UUID) -> CartCount:
        items = self.cart_repo.list_for_user(session, user_id)
        return CartCount(count=sum(it.quantity for it in items))

    def add_to_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartSummary:
        """
        Add a product (optionally in a size) to the user's cart.

        An existing row for the same product+size gets its quantity
        increased instead of a second row.
        """
        product = self._get_valid_product(session, payload.product_id)
        if payload.size_id is not None:
            size = self._get_valid_size(session, payload.size_id)
            ensure_size_offered(session, self.product_repo, product, size)

        existing = self.cart_repo.get_item(
            session, user_id, payload.product_id, payload.size_id
        )

        if existing:
            existing.quantity += payload.quantity
            self.cart_repo.update(session, existing)
        else:
            item = CartItem(
                user_id=user_id,
                product_id=payload.product_id,
                size_id=payload.size_id,
                quantity=payload.quantity,
            )
            self.cart_repo.create(session, item)

        return self.get_cart_summary(session, user_id)

    def update_quantity(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartSummary:
        """
        Set the quantity of a cart line; 0 or less removes it.
        """
        item = self._get_owned_item(session, user_id, item_id)

        if payload.quantity <= 0:
            self.cart_repo.delete(session, item)
        else:
            item.quantity = payload.quantity
            self.cart_repo.update(session, item)

        return self.get_cart_summary(session, user_id)

    def remove_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> CartSummary:
        item = self._get_owned_item(session, user_id, item_id)
        self.cart_repo.delete(session, item)
        return self.get_cart_summary(session, user_id)

    def clear_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> CartSummary:
        """
        Clear all items from the cart and return an empty summary.
        """
        self.cart_repo.clear_user_cart(session, user_id)
        return CartSummary(items=[], total_quantity=0, total_price=0.0)
