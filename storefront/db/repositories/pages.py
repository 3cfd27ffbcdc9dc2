from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import or_, select

from storefront.db.enums import PageTypeEnum
from storefront.db.models import DynamicPage
from storefront.db.repositories.base import Page, Repository


class PagesRepository(Repository):
    def list(
        self,
        *,
        page: int,
        limit: int,
        search: Optional[str] = None,
        page_type: Optional[PageTypeEnum] = None,
        is_published: Optional[bool] = None,
    ) -> Page[DynamicPage]:
        stmt = select(DynamicPage)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    DynamicPage.title.ilike(pattern),
                    DynamicPage.slug.ilike(pattern),
                    DynamicPage.description.ilike(pattern),
                )
            )
        if page_type:
            stmt = stmt.where(DynamicPage.page_type == page_type)
        if is_published is not None:
            stmt = stmt.where(DynamicPage.is_published.is_(is_published))
        return self.paginate(stmt.order_by(DynamicPage.updated_at.desc()), page=page, limit=limit)

    def get(self, *, page_id: str) -> Optional[DynamicPage]:
        return self.session.get(DynamicPage, page_id)

    def get_by_slug(self, *, slug: str, published_only: bool = False) -> Optional[DynamicPage]:
        stmt = select(DynamicPage).where(DynamicPage.slug == slug)
        if published_only:
            stmt = stmt.where(DynamicPage.is_published.is_(True))
        return self.session.scalars(stmt).first()

    def create(self, **fields: Any) -> DynamicPage:
        return self.save(DynamicPage(**fields))

    def update(self, *, page_id: str, **fields: Any) -> Optional[DynamicPage]:
        page = self.get(page_id=page_id)
        if not page:
            return None
        for key, value in fields.items():
            setattr(page, key, value)
        return self.save(page)

    def increment_view_count(self, page: DynamicPage) -> DynamicPage:
        page.view_count = (page.view_count or 0) + 1
        return self.save(page)
