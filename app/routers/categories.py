# app/routers/categories.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.category_repo import CategoryRepository
from app.schemas.category import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    CategoryWithCount,
)
from app.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

service = CategoryService(CategoryRepository())


@router.get("", response_model=list[CategoryRead])
def list_categories(session: Session = Depends(get_session)):
    """Active categories by name. Public."""
    return service.list_categories(session)


@router.get(
    "/with-counts",
    response_model=list[CategoryWithCount],
    dependencies=[Depends(require_admin)],
)
def list_categories_with_counts(session: Session = Depends(get_session)):
    """Every category with its number of active products (admin only)."""
    return service.list_with_product_count(session)


@router.get("/{category_id}", response_model=CategoryRead)
def get_category(category_id: uuid.UUID, session: Session = Depends(get_session)):
    return service.get_category(session, category_id)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
):
    return service.create_category(session, payload)


@router.patch(
    "/{category_id}",
    response_model=CategoryRead,
    dependencies=[Depends(require_admin)],
)
def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
):
    return service.update_category(session, category_id, payload)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_category(category_id: uuid.UUID, session: Session = Depends(get_session)):
    """
    Delete a category (admin only). Categories with active products
    answer 409.
    """
    service.delete_category(session, category_id)
    return None
