"""Unauthenticated read endpoints used by the storefront."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from storefront.db.deps import get_session
from storefront.db.repositories.attribute_definitions import AttributeDefinitionsRepository
from storefront.db.repositories.brands import BrandsRepository
from storefront.db.repositories.categories import CategoriesRepository
from storefront.db.repositories.pages import PagesRepository
from storefront.db.repositories.products import ProductsRepository
from storefront.routers.common import Pagination, get_pagination, not_found
from storefront.routers.products import list_products_page
from storefront.services.catalog import load_product_relations, serialize_product
from storefront.services.pages import render_product_page, render_public_page

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/products")
def list_published_products(
    request: Request,
    categoryId: Optional[str] = None,
    includeSubcategories: bool = False,
    selectedSubcategories: Optional[str] = None,
    brandId: Optional[str] = None,
    search: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    session: Session = Depends(get_session),
):
    return list_products_page(
        session,
        request=request,
        pagination=pagination,
        category_id=categoryId,
        include_subcategories=includeSubcategories,
        selected_subcategories=selectedSubcategories,
        brand_id=brandId,
        search=search,
        is_published=True,
    )


@router.get("/products/by-slug/{slug}/page")
def get_product_page(slug: str, session: Session = Depends(get_session)):
    product = ProductsRepository(session).get_by_slug(slug=slug, published_only=True)
    if not product:
        raise not_found("Product")
    return render_product_page(session, product)


@router.get("/products/{identifier}")
def get_published_product(identifier: str, session: Session = Depends(get_session)):
    product = ProductsRepository(session).get_published(identifier=identifier)
    if not product:
        raise not_found("Product")
    brands, categories = load_product_relations(session, [product])
    return serialize_product(
        product, brand=brands.get(product.brand_id), category=categories.get(product.category_id)
    )


@router.get("/brands")
def list_active_brands(session: Session = Depends(get_session)):
    return {"brands": jsonable_encoder(BrandsRepository(session).list_active())}


@router.get("/brands/{slug}")
def get_brand(slug: str, session: Session = Depends(get_session)):
    brand = BrandsRepository(session).get_by_slug(slug=slug)
    if not brand or not brand.is_active:
        raise not_found("Brand")
    products = ProductsRepository(session).list_published_by_brand(brand_id=brand.id)
    _, categories = load_product_relations(session, products)
    return {
        "brand": jsonable_encoder(brand),
        "products": [
            serialize_product(product, brand=brand, category=categories.get(product.category_id))
            for product in products
        ],
    }


@router.get("/categories")
def list_published_categories(session: Session = Depends(get_session)):
    return {"categories": jsonable_encoder(CategoriesRepository(session).list_published())}


@router.get("/attribute-definitions")
def list_attribute_definitions(session: Session = Depends(get_session)):
    return {"attributeDefinitions": jsonable_encoder(AttributeDefinitionsRepository(session).list_all())}


@router.get("/pages/{slug}")
def get_published_page(
    slug: str,
    productSlug: Optional[str] = None,
    categorySlug: Optional[str] = None,
    session: Session = Depends(get_session),
):
    repo = PagesRepository(session)
    page = repo.get_by_slug(slug=slug, published_only=True)
    if not page:
        raise not_found("Page")

    product = None
    if productSlug:
        product = ProductsRepository(session).get_by_slug(slug=productSlug, published_only=True)
        if not product:
            raise not_found("Product")

    page = repo.increment_view_count(page)
    return render_public_page(session, page, product=product, category_slug=categorySlug)
