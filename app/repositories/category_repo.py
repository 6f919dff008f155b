# app/repositories/category_repo.py
import uuid

from sqlalchemy import func, update
from sqlmodel import Session, select

from app.models.category import Category
from app.models.product import Product


class CategoryRepository:
    """
    Data access layer for categories.
    """

    def get_by_id(self, session: Session, category_id: uuid.UUID) -> Category | None:
        return session.get(Category, category_id)

    def get_by_name(self, session: Session, name: str) -> Category | None:
        stmt = select(Category).where(func.lower(Category.name) == name.lower())
        return session.exec(stmt).first()

    def list_categories(self, session: Session, only_active: bool = True) -> list[Category]:
        stmt = select(Category)
        if only_active:
            stmt = stmt.where(Category.is_active == True)
        return session.exec(stmt.order_by(Category.name)).all()

    def list_with_active_product_count(
        self,
        session: Session,
    ) -> list[tuple[Category, int]]:
        """Every category (active or not) with its number of active products."""
        product_count = func.count(Product.id)
        stmt = (
            select(Category, product_count)
            .outerjoin(
                Product,
                (Product.category_id == Category.id) & (Product.is_active == True),
            )
            .group_by(Category.id)
            .order_by(Category.name)
        )
        return [(category, int(count)) for category, count in session.exec(stmt).all()]

    def count_active_products(self, session: Session, category_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Product)
            .where(Product.category_id == category_id, Product.is_active == True)
        )
        return int(session.exec(stmt).one() or 0)

    def save(self, session: Session, category: Category) -> Category:
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    def delete(self, session: Session, category: Category) -> None:
        """
        Detach the remaining (inactive) products, then delete the row,
        in one commit.
        """
        session.execute(
            update(Product)
            .where(Product.category_id == category.id)
            .values(category_id=None)
            .execution_options(synchronize_session="fetch")
        )
        session.delete(category)
        session.commit()
