from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from storefront.auth.dependencies import AuthContext, require_permission
from storefront.auth.permissions import Permission
from storefront.db.deps import get_session
from storefront.db.enums import PageTypeEnum
from storefront.db.models import DynamicPage
from storefront.db.repositories.pages import PagesRepository
from storefront.db.repositories.products import ProductsRepository
from storefront.db.repositories.site_config import SiteConfigRepository
from storefront.routers.common import (
    Pagination,
    changed_fields,
    clean_optional_id,
    conflict,
    drop_nulls,
    get_pagination,
    not_found,
)
from storefront.schemas.pages import PageCreateRequest, PagePreviewRequest, PageUpdateRequest
from storefront.services.pages import page_document, preview_page
from storefront.services.slugs import generate_unique_slug

router = APIRouter(prefix="/admin/pages", tags=["pages"])

_PAGE_FIELDS = {
    "title": "title",
    "slug": "slug",
    "description": "description",
    "pageType": "page_type",
    "seoTitle": "seo_title",
    "seoDescription": "seo_description",
    "seoKeywords": "seo_keywords",
    "ogImage": "og_image",
    "isPublished": "is_published",
    "pageSettings": "page_settings",
}


def _dump_blocks(models: list[Any]) -> list[dict[str, Any]]:
    return [model.model_dump(mode="json", exclude_none=True) for model in models]


@router.get("")
def list_pages(
    search: Optional[str] = None,
    pageType: Optional[PageTypeEnum] = None,
    isPublished: Optional[bool] = None,
    pagination: Pagination = Depends(get_pagination),
    auth: AuthContext = Depends(require_permission(Permission.manage_pages)),
    session: Session = Depends(get_session),
):
    result = PagesRepository(session).list(
        page=pagination.page,
        limit=pagination.limit,
        search=(search or "").strip() or None,
        page_type=pageType,
        is_published=isPublished,
    )
    return result.envelope([page_document(page) for page in result.items], key="pages")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_page(
    payload: PageCreateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_pages)),
    session: Session = Depends(get_session),
):
    page = PagesRepository(session).create(
        title=payload.title.strip(),
        slug=generate_unique_slug(session, model=DynamicPage, desired_slug=payload.slug or payload.title),
        description=payload.description,
        page_type=payload.pageType,
        segments=_dump_blocks(payload.segments),
        grid_cells=_dump_blocks(payload.gridCells),
        seo_title=payload.seoTitle,
        seo_description=payload.seoDescription,
        seo_keywords=payload.seoKeywords,
        og_image=payload.ogImage,
        is_published=payload.isPublished,
        page_settings=payload.pageSettings,
    )
    return page_document(page)


@router.get("/{page_id}")
def get_page(
    page_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_pages)),
    session: Session = Depends(get_session),
):
    page = PagesRepository(session).get(page_id=page_id)
    if not page:
        raise not_found("Page")
    return page_document(page)


@router.patch("/{page_id}")
def update_page(
    page_id: str,
    payload: PageUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_pages)),
    session: Session = Depends(get_session),
):
    repo = PagesRepository(session)
    if not repo.get(page_id=page_id):
        raise not_found("Page")

    fields = drop_nulls(changed_fields(payload, _PAGE_FIELDS), "title", "page_type", "is_published")
    if payload.segments is not None:
        fields["segments"] = _dump_blocks(payload.segments)
    if payload.gridCells is not None:
        fields["grid_cells"] = _dump_blocks(payload.gridCells)
    if fields.get("slug"):
        fields["slug"] = generate_unique_slug(
            session, model=DynamicPage, desired_slug=fields["slug"], exclude_id=page_id
        )
    else:
        fields.pop("slug", None)
    if "title" in fields:
        fields["title"] = fields["title"].strip()
    if "seo_keywords" in fields:
        fields["seo_keywords"] = fields["seo_keywords"] or []
    if "page_settings" in fields:
        fields["page_settings"] = fields["page_settings"] or {}

    page = repo.update(page_id=page_id, **fields)
    return page_document(page)


@router.delete("/{page_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_page(
    page_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_pages)),
    session: Session = Depends(get_session),
):
    repo = PagesRepository(session)
    page = repo.get(page_id=page_id)
    if not page:
        raise not_found("Page")
    if SiteConfigRepository(session).get().default_product_page_id == page_id:
        raise conflict("Page is the default product page and cannot be deleted.")
    repo.remove(page)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{page_id}/preview")
def preview(
    page_id: str,
    payload: PagePreviewRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_pages)),
    session: Session = Depends(get_session),
):
    page = PagesRepository(session).get(page_id=page_id)
    if not page:
        raise not_found("Page")
    product = None
    product_id = clean_optional_id(payload.productId)
    if product_id:
        product = ProductsRepository(session).get(product_id=product_id)
        if not product:
            raise not_found("Product")
    return preview_page(
        session,
        page,
        context=payload.context,
        product=product,
        category_id=clean_optional_id(payload.categoryId),
        skip_media_gallery=payload.skipMediaGallery,
    )
