from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from storefront.db.models import DynamicPage, Product
from storefront.db.repositories.brands import BrandsRepository
from storefront.db.repositories.categories import CategoriesRepository
from storefront.db.repositories.pages import PagesRepository
from storefront.db.repositories.site_config import SiteConfigRepository
from storefront.services.catalog import category_binding_record, product_binding_record
from storefront.services.data_binding import (
    BINDING_SOURCES,
    apply_bindings_to_page,
    build_binding_context,
)
from storefront.services.errors import NotFoundError

logger = logging.getLogger(__name__)


def page_document(page: DynamicPage) -> dict[str, Any]:
    """The stored page in the camelCase shape the builder and resolver work on."""

    return {
        "id": page.id,
        "title": page.title,
        "slug": page.slug,
        "description": page.description,
        "pageType": page.page_type.value if page.page_type else None,
        "segments": [dict(segment) for segment in page.segments or []],
        "gridCells": [dict(cell) for cell in page.grid_cells or []],
        "seoTitle": page.seo_title,
        "seoDescription": page.seo_description,
        "seoKeywords": list(page.seo_keywords or []),
        "ogImage": page.og_image,
        "isPublished": page.is_published,
        "pageSettings": dict(page.page_settings or {}),
        "viewCount": page.view_count,
        "createdAt": page.created_at.isoformat() if page.created_at else None,
        "updatedAt": page.updated_at.isoformat() if page.updated_at else None,
    }


def _visible_on_desktop(block: Any) -> bool:
    if not isinstance(block, Mapping):
        return False
    visibility = block.get("visibility")
    if isinstance(visibility, Mapping) and visibility.get("showOnDesktop") is False:
        return False
    return True


def filter_visible_content(document: Mapping[str, Any]) -> dict[str, Any]:
    """Drop hidden segments and blocks hidden on desktop, ordering segments by ``order``."""

    filtered = dict(document)
    segments = [
        segment
        for segment in document.get("segments") or []
        if isinstance(segment, Mapping) and segment.get("isVisible", True)
    ]
    segments.sort(key=lambda segment: segment.get("order") or 0)
    filtered["segments"] = [
        {**segment, "blocks": [block for block in segment.get("blocks") or [] if _visible_on_desktop(block)]}
        for segment in segments
    ]
    filtered["gridCells"] = [
        {**cell, "blocks": [block for block in cell.get("blocks") or [] if _visible_on_desktop(block)]}
        for cell in document.get("gridCells") or []
        if isinstance(cell, Mapping)
    ]
    return filtered


def product_context_record(session: Session, product: Product) -> dict[str, Any]:
    brand = BrandsRepository(session).get(brand_id=product.brand_id) if product.brand_id else None
    category = (
        CategoriesRepository(session).get(category_id=product.category_id) if product.category_id else None
    )
    return product_binding_record(product, brand=brand, category=category)


def resolve_product_template(session: Session, product: Product) -> DynamicPage:
    repo = PagesRepository(session)
    if product.custom_page_id:
        page = repo.get(page_id=product.custom_page_id)
        if page:
            return page
        logger.warning(
            "Custom product page missing, using default",
            extra={"product_id": product.id, "page_id": product.custom_page_id},
        )
    default_page_id = SiteConfigRepository(session).get().default_product_page_id
    page = repo.get(page_id=default_page_id) if default_page_id else None
    if not page:
        raise NotFoundError("Product page template not found")
    return page


def render_product_page(session: Session, product: Product) -> dict[str, Any]:
    record = product_context_record(session, product)
    template = resolve_product_template(session, product)
    context = build_binding_context(product=record)
    page = apply_bindings_to_page(filter_visible_content(page_document(template)), context)
    return {"product": record, "templateId": template.id, "page": page}


def render_public_page(
    session: Session,
    page: DynamicPage,
    *,
    product: Optional[Product] = None,
    category_slug: Optional[str] = None,
) -> dict[str, Any]:
    document = filter_visible_content(page_document(page))
    product_record = product_context_record(session, product) if product is not None else None
    category_record = None
    if category_slug:
        category = CategoriesRepository(session).get_by_slug(slug=category_slug)
        if not category or not category.is_published:
            raise NotFoundError("Category not found")
        category_record = category_binding_record(category)
    if product_record is None and category_record is None:
        return document
    context = build_binding_context(product=product_record, category=category_record)
    return apply_bindings_to_page(document, context)


def preview_page(
    session: Session,
    page: DynamicPage,
    *,
    context: Mapping[str, Mapping[str, Any]],
    product: Optional[Product] = None,
    category_id: Optional[str] = None,
    skip_media_gallery: bool = False,
) -> dict[str, Any]:
    binding_context = {
        name: dict(record) for name, record in context.items() if name in BINDING_SOURCES and record is not None
    }
    if product is not None:
        binding_context["product"] = product_context_record(session, product)
    if category_id:
        category = CategoriesRepository(session).get(category_id=category_id)
        if not category:
            raise NotFoundError("Category not found")
        binding_context["category"] = category_binding_record(category)
    return apply_bindings_to_page(page_document(page), binding_context, skip_media_gallery)
