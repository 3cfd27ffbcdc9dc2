from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from storefront.auth.dependencies import AuthContext, require_permission
from storefront.auth.permissions import Permission
from storefront.db.deps import get_session
from storefront.db.models import Brand
from storefront.db.repositories.brands import BrandsRepository
from storefront.routers.common import (
    Pagination,
    changed_fields,
    conflict,
    drop_nulls,
    get_pagination,
    not_found,
)
from storefront.schemas.brands import BrandCreateRequest, BrandUpdateRequest
from storefront.services.slugs import generate_unique_slug

router = APIRouter(prefix="/admin/brands", tags=["brands"])

_BRAND_FIELDS = {
    "name": "name",
    "slug": "slug",
    "description": "description",
    "logo": "logo",
    "website": "website",
    "isActive": "is_active",
}


def _ensure_unique_name(repo: BrandsRepository, *, name: str, exclude_id: Optional[str] = None) -> None:
    existing = repo.get_by_name(name=name)
    if existing and existing.id != exclude_id:
        raise conflict("A brand with this name already exists.")


@router.get("")
def list_brands(
    search: Optional[str] = None,
    isActive: Optional[bool] = None,
    pagination: Pagination = Depends(get_pagination),
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    result = BrandsRepository(session).list(
        page=pagination.page, limit=pagination.limit, search=search, is_active=isActive
    )
    return result.envelope(jsonable_encoder(result.items), key="brands")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_brand(
    payload: BrandCreateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    repo = BrandsRepository(session)
    name = payload.name.strip()
    _ensure_unique_name(repo, name=name)
    brand = repo.create(
        name=name,
        slug=generate_unique_slug(session, model=Brand, desired_slug=payload.slug or name),
        description=payload.description,
        logo=payload.logo,
        website=payload.website,
        is_active=payload.isActive,
    )
    return jsonable_encoder(brand)


@router.get("/{brand_id}")
def get_brand(
    brand_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    brand = BrandsRepository(session).get(brand_id=brand_id)
    if not brand:
        raise not_found("Brand")
    return jsonable_encoder(brand)


@router.patch("/{brand_id}")
def update_brand(
    brand_id: str,
    payload: BrandUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    repo = BrandsRepository(session)
    brand = repo.get(brand_id=brand_id)
    if not brand:
        raise not_found("Brand")

    fields = drop_nulls(changed_fields(payload, _BRAND_FIELDS), "name", "is_active")
    if "name" in fields:
        fields["name"] = fields["name"].strip()
        _ensure_unique_name(repo, name=fields["name"], exclude_id=brand.id)
    if fields.get("slug"):
        fields["slug"] = generate_unique_slug(
            session, model=Brand, desired_slug=fields["slug"], exclude_id=brand.id
        )
    elif "name" in fields and fields["name"] != brand.name:
        fields["slug"] = generate_unique_slug(
            session, model=Brand, desired_slug=fields["name"], exclude_id=brand.id
        )
    else:
        fields.pop("slug", None)

    brand = repo.update(brand_id=brand_id, **fields)
    return jsonable_encoder(brand)


@router.delete("/{brand_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_brand(
    brand_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    repo = BrandsRepository(session)
    brand = repo.get(brand_id=brand_id)
    if not brand:
        raise not_found("Brand")
    if repo.has_products(brand_id=brand_id):
        raise conflict("Brand is referenced by products and cannot be deleted.")
    repo.remove(brand)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
