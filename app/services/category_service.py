# app/services/category_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.timeutils import utcnow
from app.models.category import Category
from app.repositories.category_repo import CategoryRepository
from app.schemas.category import CategoryCreate, CategoryUpdate, CategoryWithCount

logger = logging.getLogger(__name__)


class CategoryService:
    """
    Catalog categories.

    A category can only be deleted once none of its products is active;
    inactive products left in it lose their category.
    """

    def __init__(self, repo: CategoryRepository):
        self.repo = repo

    def _get_or_404(self, session: Session, category_id: uuid.UUID) -> Category:
        category = self.repo.get_by_id(session, category_id)
        if not category:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Categoría no encontrada",
            )
        return category

    def _ensure_name_free(
        self,
        session: Session,
        name: str,
        current_id: uuid.UUID | None = None,
    ) -> None:
        existing = self.repo.get_by_name(session, name)
        if existing and existing.id != current_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f'Ya existe una categoría llamada "{existing.name}"',
            )

    def list_categories(self, session: Session) -> list[Category]:
        return self.repo.list_categories(session, only_active=True)

    def list_with_product_count(self, session: Session) -> list[CategoryWithCount]:
        return [
            CategoryWithCount(**category.model_dump(), product_count=count)
            for category, count in self.repo.list_with_active_product_count(session)
        ]

    def get_category(self, session: Session, category_id: uuid.UUID) -> Category:
        return self._get_or_404(session, category_id)

    def create_category(self, session: Session, payload: CategoryCreate) -> Category:
        self._ensure_name_free(session, payload.name)
        category = self.repo.save(
            session,
            Category(name=payload.name, description=payload.description.strip()),
        )
        logger.info(f"Category created: {category.name}")
        return category

    def update_category(
        self,
        session: Session,
        category_id: uuid.UUID,
        payload: CategoryUpdate,
    ) -> Category:
        category = self._get_or_404(session, category_id)
        data = payload.model_dump(exclude_unset=True)
        if data.get("name"):
            self._ensure_name_free(session, data["name"], current_id=category.id)

        for field, value in data.items():
            setattr(category, field, value)
        category.updated_at = utcnow()
        return self.repo.save(session, category)

    def delete_category(self, session: Session, category_id: uuid.UUID) -> None:
        category = self._get_or_404(session, category_id)
        active = self.repo.count_active_products(session, category.id)
        if active:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=(
                    f'No se puede eliminar la categoría "{category.name}" porque tiene '
                    f"{active} producto(s) activo(s) asociado(s). "
                    "Primero mueve o desactiva los productos."
                ),
            )
        self.repo.delete(session, category)
        logger.info(f"Category deleted: {category_id}")
