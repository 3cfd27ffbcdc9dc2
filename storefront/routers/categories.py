from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.auth.dependencies import AuthContext, require_permission
from storefront.auth.permissions import Permission
from storefront.db.deps import get_session
from storefront.db.models import Category
from storefront.db.repositories.categories import CategoriesRepository
from storefront.routers.common import (
    Pagination,
    changed_fields,
    clean_optional_id,
    conflict,
    drop_nulls,
    get_pagination,
    not_found,
)
from storefront.schemas.categories import CategoryCreateRequest, CategoryUpdateRequest
from storefront.services.catalog import build_category_tree, is_descendant
from storefront.services.slugs import generate_unique_slug

router = APIRouter(prefix="/admin/categories", tags=["categories"])

_CATEGORY_FIELDS = {
    "name": "name",
    "slug": "slug",
    "parentId": "parent_id",
    "description": "description",
    "image": "image",
    "isPublished": "is_published",
}


def _ensure_unique_name(session: Session, *, name: str, exclude_id: Optional[str] = None) -> None:
    stmt = select(Category.id).where(Category.name == name)
    if exclude_id:
        stmt = stmt.where(Category.id != exclude_id)
    if session.execute(stmt).first():
        raise conflict("A category with this name already exists.")


def _validate_parent(
    session: Session, *, parent_id: Optional[str], category_id: Optional[str] = None
) -> Optional[str]:
    parent_id = clean_optional_id(parent_id)
    if parent_id is None:
        return None
    if category_id and parent_id == category_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="A category cannot be its own parent."
        )
    if not CategoriesRepository(session).get(category_id=parent_id):
        raise not_found("Parent category")
    if category_id and is_descendant(session, ancestor_id=category_id, candidate_id=parent_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A category cannot be moved under one of its descendants.",
        )
    return parent_id


@router.get("")
def list_categories(
    search: Optional[str] = None,
    parentId: Optional[str] = None,
    isPublished: Optional[bool] = None,
    pagination: Pagination = Depends(get_pagination),
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    result = CategoriesRepository(session).list(
        page=pagination.page,
        limit=pagination.limit,
        search=search,
        parent_id=parentId,
        is_published=isPublished,
    )
    return result.envelope(jsonable_encoder(result.items), key="categories")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    name = payload.name.strip()
    _ensure_unique_name(session, name=name)
    parent_id = _validate_parent(session, parent_id=payload.parentId)
    category = CategoriesRepository(session).create(
        name=name,
        slug=generate_unique_slug(session, model=Category, desired_slug=payload.slug or name),
        parent_id=parent_id,
        description=payload.description,
        image=payload.image,
        is_published=payload.isPublished,
    )
    return jsonable_encoder(category)


@router.get("/{category_id}")
def get_category(
    category_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    category = CategoriesRepository(session).get(category_id=category_id)
    if not category:
        raise not_found("Category")
    return jsonable_encoder(category)


@router.get("/{category_id}/tree")
def get_category_tree(
    category_id: str,
    includeProductCount: bool = False,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    category = CategoriesRepository(session).get(category_id=category_id)
    if not category:
        raise not_found("Category")
    return build_category_tree(session, root=category, include_product_count=includeProductCount)


@router.patch("/{category_id}")
def update_category(
    category_id: str,
    payload: CategoryUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    repo = CategoriesRepository(session)
    category = repo.get(category_id=category_id)
    if not category:
        raise not_found("Category")

    fields = drop_nulls(changed_fields(payload, _CATEGORY_FIELDS), "name", "is_published")
    if "name" in fields:
        fields["name"] = fields["name"].strip()
        _ensure_unique_name(session, name=fields["name"], exclude_id=category_id)
    if "parent_id" in fields:
        fields["parent_id"] = _validate_parent(
            session, parent_id=fields["parent_id"], category_id=category_id
        )
    if fields.get("slug"):
        fields["slug"] = generate_unique_slug(
            session, model=Category, desired_slug=fields["slug"], exclude_id=category_id
        )
    elif "name" in fields and fields["name"] != category.name:
        fields["slug"] = generate_unique_slug(
            session, model=Category, desired_slug=fields["name"], exclude_id=category_id
        )
    else:
        fields.pop("slug", None)

    category = repo.update(category_id=category_id, **fields)
    return jsonable_encoder(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    if not CategoriesRepository(session).delete(category_id=category_id):
        raise not_found("Category")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
