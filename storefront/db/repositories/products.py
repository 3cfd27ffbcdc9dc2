from __future__ import annotations

from collections.abc import Callable
from typing import Any, Iterable, Optional

from sqlalchemy import or_, select

from storefront.db.models import Brand, Product
from storefront.db.repositories.base import Page, Repository


class ProductsRepository(Repository):
    def list(
        self,
        *,
        page: int,
        limit: int,
        category_ids: Optional[list[str]] = None,
        brand_id: Optional[str] = None,
        search: Optional[str] = None,
        is_published: Optional[bool] = None,
        predicate: Optional[Callable[[Product], bool]] = None,
    ) -> Page[Product]:
        stmt = select(Product)
        if category_ids:
            stmt = stmt.where(Product.category_id.in_(category_ids))
        if brand_id:
            stmt = stmt.where(Product.brand_id == brand_id)
        if search:
            pattern = f"%{search}%"
            matching_brands = select(Brand.id).where(Brand.name.ilike(pattern), Brand.is_active.is_(True))
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.sku.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.brand_id.in_(matching_brands),
                )
            )
        if is_published is not None:
            stmt = stmt.where(Product.is_published.is_(is_published))
        stmt = stmt.order_by(Product.created_at.desc(), Product.id.asc())

        if predicate is None:
            return self.paginate(stmt, page=page, limit=limit)

        # Attribute filters run over the JSON attribute map in Python so they behave
        # the same on every backend.
        matching = [product for product in self.session.scalars(stmt).all() if predicate(product)]
        offset = (page - 1) * limit
        return Page(items=matching[offset : offset + limit], total=len(matching), page=page, limit=limit)

    def get(self, *, product_id: str) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def get_many(self, *, product_ids: Iterable[str]) -> dict[str, Product]:
        ids = {product_id for product_id in product_ids if product_id}
        if not ids:
            return {}
        products = self.session.scalars(select(Product).where(Product.id.in_(ids))).all()
        return {product.id: product for product in products}

    def get_by_slug(self, *, slug: str, published_only: bool = False) -> Optional[Product]:
        stmt = select(Product).where(Product.slug == slug)
        if published_only:
            stmt = stmt.where(Product.is_published.is_(True))
        return self.session.scalars(stmt).first()

    def get_published(self, *, identifier: str) -> Optional[Product]:
        stmt = select(Product).where(
            or_(Product.id == identifier, Product.slug == identifier),
            Product.is_published.is_(True),
        )
        return self.session.scalars(stmt).first()

    def list_published_by_brand(self, *, brand_id: str) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.brand_id == brand_id, Product.is_published.is_(True))
            .order_by(Product.created_at.desc())
        )
        return list(self.session.scalars(stmt).all())

    def sku_exists(self, *, sku: str, exclude_id: Optional[str] = None) -> bool:
        stmt = select(Product.id).where(Product.sku == sku)
        if exclude_id:
            stmt = stmt.where(Product.id != exclude_id)
        return self.session.execute(stmt.limit(1)).first() is not None

    def create(self, **fields: Any) -> Product:
        return self.save(Product(**fields))

    def update(self, *, product_id: str, **fields: Any) -> Optional[Product]:
        product = self.get(product_id=product_id)
        if not product:
            return None
        for key, value in fields.items():
            setattr(product, key, value)
        return self.save(product)
