# app/routers/sizes.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductSizeCreate, ProductSizeRead, ProductSizeUpdate
from app.services.product_service import ProductService

router = APIRouter(prefix="/sizes", tags=["Sizes"])

service = ProductService(ProductRepository())


@router.get("", response_model=list[ProductSizeRead])
def list_sizes(
    session: Session = Depends(get_session),
    only_active: bool = True,
):
    """Sizes ordered by display_order. Public."""
    return service.list_sizes(session, only_active=only_active)


@router.get("/{size_id}", response_model=ProductSizeRead)
def get_size(size_id: uuid.UUID, session: Session = Depends(get_session)):
    return service.get_size(session, size_id)


@router.post(
    "",
    response_model=ProductSizeRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_size(
    payload: ProductSizeCreate,
    session: Session = Depends(get_session),
):
    return service.create_size(session, payload)


@router.patch(
    "/{size_id}",
    response_model=ProductSizeRead,
    dependencies=[Depends(require_admin)],
)
def update_size(
    size_id: uuid.UUID,
    payload: ProductSizeUpdate,
    session: Session = Depends(get_session),
):
    return service.update_size(session, size_id, payload)


@router.post(
    "/{size_id}/toggle",
    response_model=ProductSizeRead,
    dependencies=[Depends(require_admin)],
)
def toggle_size(size_id: uuid.UUID, session: Session = Depends(get_session)):
    """Flip is_active (admin only)."""
    return service.toggle_size(session, size_id)


@router.delete(
    "/{size_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_size(size_id: uuid.UUID, session: Session = Depends(get_session)):
    """
    Delete a size (admin only). Sizes still referenced by orders, carts
    or reservations answer 409.
    """
    service.delete_size(session, size_id)
    return None
