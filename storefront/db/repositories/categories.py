from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import or_, select, update

from storefront.db.models import Category, Product
from storefront.db.repositories.base import Page, Repository


class CategoriesRepository(Repository):
    def list(
        self,
        *,
        page: int,
        limit: int,
        search: Optional[str] = None,
        parent_id: Optional[str] = None,
        is_published: Optional[bool] = None,
    ) -> Page[Category]:
        stmt = select(Category)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Category.name.ilike(pattern), Category.description.ilike(pattern)))
        if parent_id is not None:
            if parent_id in ("", "root", "null"):
                stmt = stmt.where(Category.parent_id.is_(None))
            else:
                stmt = stmt.where(Category.parent_id == parent_id)
        if is_published is not None:
            stmt = stmt.where(Category.is_published.is_(is_published))
        return self.paginate(stmt.order_by(Category.name.asc()), page=page, limit=limit)

    def list_published(self) -> list[Category]:
        stmt = select(Category).where(Category.is_published.is_(True)).order_by(Category.name.asc())
        return list(self.session.scalars(stmt).all())

    def get(self, *, category_id: str) -> Optional[Category]:
        return self.session.get(Category, category_id)

    def get_by_slug(self, *, slug: str) -> Optional[Category]:
        return self.session.scalars(select(Category).where(Category.slug == slug)).first()

    def create(self, **fields: Any) -> Category:
        return self.save(Category(**fields))

    def update(self, *, category_id: str, **fields: Any) -> Optional[Category]:
        category = self.get(category_id=category_id)
        if not category:
            return None
        for key, value in fields.items():
            setattr(category, key, value)
        return self.save(category)

    def delete(self, *, category_id: str) -> bool:
        category = self.get(category_id=category_id)
        if not category:
            return False
        self.session.execute(
            update(Category).where(Category.parent_id == category_id).values(parent_id=None)
        )
        self.session.execute(
            update(Product).where(Product.category_id == category_id).values(category_id=None)
        )
        self.remove(category)
        return True
