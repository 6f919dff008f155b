# app/repositories/address_repo.py
import uuid

from sqlalchemy import update
from sqlmodel import Session, col, select

from app.models.address import ShippingAddress


class AddressRepository:
    """
    Data access layer for shipping_addresses.
    """

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> list[ShippingAddress]:
        # default address first, then newest
        stmt = (
            select(ShippingAddress)
            .where(ShippingAddress.user_id == user_id)
            .order_by(
                col(ShippingAddress.is_default).desc(),
                col(ShippingAddress.created_at).desc(),
            )
        )
        return session.exec(stmt).all()

    def get_owned(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
    ) -> ShippingAddress | None:
        stmt = select(ShippingAddress).where(
            ShippingAddress.id == address_id,
            ShippingAddress.user_id == user_id,
        )
        return session.exec(stmt).first()

    def unset_defaults(self, session: Session, user_id: uuid.UUID) -> None:
        """Clear the default flag on every address of the user (no commit)."""
        session.execute(
            update(ShippingAddress)
            .where(ShippingAddress.user_id == user_id)
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )

    def save(self, session: Session, address: ShippingAddress) -> ShippingAddress:
        session.add(address)
        session.commit()
        session.refresh(address)
        return address

    def delete(self, session: Session, address: ShippingAddress) -> None:
        session.delete(address)
        session.commit()
