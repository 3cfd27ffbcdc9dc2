from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import or_, select

from storefront.db.models import Brand, Product
from storefront.db.repositories.base import Page, Repository


class BrandsRepository(Repository):
    def list(
        self,
        *,
        page: int,
        limit: int,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Page[Brand]:
        stmt = select(Brand)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Brand.name.ilike(pattern), Brand.description.ilike(pattern)))
        if is_active is not None:
            stmt = stmt.where(Brand.is_active.is_(is_active))
        return self.paginate(stmt.order_by(Brand.name.asc()), page=page, limit=limit)

    def list_active(self) -> list[Brand]:
        stmt = select(Brand).where(Brand.is_active.is_(True)).order_by(Brand.name.asc())
        return list(self.session.scalars(stmt).all())

    def get(self, *, brand_id: str) -> Optional[Brand]:
        return self.session.get(Brand, brand_id)

    def get_by_slug(self, *, slug: str) -> Optional[Brand]:
        return self.session.scalars(select(Brand).where(Brand.slug == slug)).first()

    def get_by_name(self, *, name: str) -> Optional[Brand]:
        return self.session.scalars(select(Brand).where(Brand.name == name)).first()

    def ids_matching(self, *, search: str) -> list[str]:
        stmt = select(Brand.id).where(Brand.name.ilike(f"%{search}%"), Brand.is_active.is_(True))
        return list(self.session.scalars(stmt).all())

    def has_products(self, *, brand_id: str) -> bool:
        stmt = select(Product.id).where(Product.brand_id == brand_id).limit(1)
        return self.session.execute(stmt).first() is not None

    def create(self, **fields: Any) -> Brand:
        return self.save(Brand(**fields))

    def update(self, *, brand_id: str, **fields: Any) -> Optional[Brand]:
        brand = self.get(brand_id=brand_id)
        if not brand:
            return None
        for key, value in fields.items():
            setattr(brand, key, value)
        return self.save(brand)
