# app/services/address_service.py
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.timeutils import utcnow
from app.models.address import ShippingAddress
from app.repositories.address_repo import AddressRepository
from app.schemas.address import AddressCreate, AddressUpdate


class AddressService:
    """
    Saved delivery addresses of the current user.

    The first address a user saves becomes the default; making another
    address default unsets the previous one in the same commit.
    """

    def __init__(self, repo: AddressRepository):
        self.repo = repo

    def _get_owned_or_404(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
    ) -> ShippingAddress:
        address = self.repo.get_owned(session, user_id, address_id)
        if not address:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Dirección no encontrada",
            )
        return address

    def list_addresses(self, session: Session, user_id: uuid.UUID) -> list[ShippingAddress]:
        return self.repo.list_for_user(session, user_id)

    def add_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: AddressCreate,
    ) -> ShippingAddress:
        is_default = payload.is_default or not self.repo.list_for_user(session, user_id)
        if is_default:
            self.repo.unset_defaults(session, user_id)

        address = ShippingAddress(
            user_id=user_id,
            **payload.model_dump(exclude={"is_default"}),
            is_default=is_default,
        )
        return self.repo.save(session, address)

    def update_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
        payload: AddressUpdate,
    ) -> ShippingAddress:
        address = self._get_owned_or_404(session, user_id, address_id)
        data = payload.model_dump(exclude_unset=True)

        if data.pop("is_default", None):
            self.repo.unset_defaults(session, user_id)
            address.is_default = True

        for field, value in data.items():
            if value is not None:
                setattr(address, field, value)

        address.updated_at = utcnow()
        return self.repo.save(session, address)

    def set_default(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
    ) -> ShippingAddress:
        address = self._get_owned_or_404(session, user_id, address_id)
        self.repo.unset_defaults(session, user_id)
        address.is_default = True
        address.updated_at = utcnow()
        return self.repo.save(session, address)

    def delete_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
    ) -> None:
        address = self._get_owned_or_404(session, user_id, address_id)
        self.repo.delete(session, address)
