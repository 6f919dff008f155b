# app/repositories/cart_repo.py
import uuid

from sqlalchemy import delete
from sqlmodel import Session, select

from app.models.cart import CartItem


class CartRepository:
    """
    Data access layer for cart_items.

    `clear_user_cart(..., commit=False)` lets checkout fold the cart
    clearing into its own transaction.
    """

    def list_for_user(self, session: Session, user_id: uuid.UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.desc())
        )
        return session.exec(stmt).all()

    def get_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        size_id: uuid.UUID | None,
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.user_id == user_id,
            CartItem.product_id == product_id,
            CartItem.size_id == size_id,
        )
        return session.exec(stmt).first()

    def get_by_id(self, session: Session, item_id: uuid.UUID) -> CartItem | None:
        return session.get(CartItem, item_id)

    # CRUD
    def create(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def update(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.commit()

    def clear_user_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        commit: bool = True,
    ) -> None:
        session.execute(delete(CartItem).where(CartItem.user_id == user_id))
        if commit:
            session.commit()
