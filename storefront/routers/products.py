from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from storefront.auth.dependencies import AuthContext, require_permission
from storefront.auth.permissions import Permission
from storefront.db.deps import get_session
from storefront.db.models import Product
from storefront.db.repositories.brands import BrandsRepository
from storefront.db.repositories.categories import CategoriesRepository
from storefront.db.repositories.pages import PagesRepository
from storefront.db.repositories.products import ProductsRepository
from storefront.routers.common import (
    Pagination,
    changed_fields,
    clean_optional_id,
    conflict,
    drop_nulls,
    get_pagination,
    not_found,
)
from storefront.schemas.products import BulkStockUpdateRequest, ProductCreateRequest, ProductUpdateRequest
from storefront.services.catalog import (
    apply_product_attributes,
    collect_category_ids,
    load_product_relations,
    normalize_attribute_map,
    normalize_variants,
    parse_attribute_filters,
    product_matches_attribute_filters,
    serialize_product,
)
from storefront.services.slugs import generate_unique_slug, slugify
from storefront.services.stock import bulk_update_stock

router = APIRouter(prefix="/admin/products", tags=["products"])

_PRODUCT_FIELDS = {
    "name": "name",
    "description": "description",
    "brandId": "brand_id",
    "slug": "slug",
    "price": "price",
    "salePrice": "sale_price",
    "sku": "sku",
    "stockQuantity": "stock_quantity",
    "images": "images",
    "categoryId": "category_id",
    "tags": "tags",
    "attributes": "attributes",
    "hasVariants": "has_variants",
    "variants": "variants",
    "seoTitle": "seo_title",
    "seoDescription": "seo_description",
    "isPublished": "is_published",
    "customPageId": "custom_page_id",
}


def _require_brand(session: Session, brand_id: str) -> None:
    if not BrandsRepository(session).get(brand_id=brand_id):
        raise not_found("Brand")


def _require_category(session: Session, category_id: Optional[str]) -> Optional[str]:
    category_id = clean_optional_id(category_id)
    if category_id and not CategoriesRepository(session).get(category_id=category_id):
        raise not_found("Category")
    return category_id


def _require_page(session: Session, page_id: Optional[str]) -> Optional[str]:
    page_id = clean_optional_id(page_id)
    if page_id and not PagesRepository(session).get(page_id=page_id):
        raise not_found("Page")
    return page_id


def _ensure_unique_sku(repo: ProductsRepository, sku: Optional[str], *, exclude_id: Optional[str] = None) -> None:
    if sku and repo.sku_exists(sku=sku, exclude_id=exclude_id):
        raise conflict("A product with this SKU already exists.")


def _serialize(session: Session, product: Product) -> dict[str, Any]:
    brands, categories = load_product_relations(session, [product])
    return serialize_product(
        product, brand=brands.get(product.brand_id), category=categories.get(product.category_id)
    )


def _category_filter(
    session: Session,
    *,
    category_id: Optional[str],
    include_subcategories: bool,
    selected_subcategories: Optional[str],
) -> Optional[list[str]]:
    category_id = clean_optional_id(category_id)
    if not category_id:
        return None
    if selected_subcategories:
        selected = [value.strip() for value in selected_subcategories.split(",") if value.strip()]
        return [category_id, *selected]
    if include_subcategories:
        return collect_category_ids(session, category_id=category_id)
    return [category_id]


def list_products_page(
    session: Session,
    *,
    request: Request,
    pagination: Pagination,
    category_id: Optional[str],
    include_subcategories: bool,
    selected_subcategories: Optional[str],
    brand_id: Optional[str],
    search: Optional[str],
    is_published: Optional[bool],
) -> dict[str, Any]:
    value_filters, presence_filters = parse_attribute_filters(request.query_params.multi_items())
    predicate = None
    if value_filters or presence_filters:

        def predicate(product: Product) -> bool:
            return product_matches_attribute_filters(
                product, value_filters=value_filters, presence_filters=presence_filters
            )

    result = ProductsRepository(session).list(
        page=pagination.page,
        limit=pagination.limit,
        category_ids=_category_filter(
            session,
            category_id=category_id,
            include_subcategories=include_subcategories,
            selected_subcategories=selected_subcategories,
        ),
        brand_id=clean_optional_id(brand_id),
        search=(search or "").strip() or None,
        is_published=is_published,
        predicate=predicate,
    )
    brands, categories = load_product_relations(session, result.items)
    items = [
        serialize_product(
            product, brand=brands.get(product.brand_id), category=categories.get(product.category_id)
        )
        for product in result.items
    ]
    return result.envelope(items, key="products")


@router.get("")
def list_products(
    request: Request,
    categoryId: Optional[str] = None,
    includeSubcategories: bool = False,
    selectedSubcategories: Optional[str] = None,
    brandId: Optional[str] = None,
    search: Optional[str] = None,
    isPublished: Optional[bool] = None,
    pagination: Pagination = Depends(get_pagination),
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
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
        is_published=isPublished,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    repo = ProductsRepository(session)
    _require_brand(session, payload.brandId)
    category_id = _require_category(session, payload.categoryId)
    custom_page_id = _require_page(session, payload.customPageId)

    sku = (payload.sku or "").strip() or None
    variants: list[dict[str, Any]] = []
    if payload.hasVariants:
        variants = normalize_variants([variant.model_dump() for variant in payload.variants])
        sku = sku or slugify(payload.name, fallback="product")
    _ensure_unique_sku(repo, sku)

    product = Product(
        name=payload.name.strip(),
        description=payload.description,
        brand_id=payload.brandId,
        category_id=category_id,
        slug=generate_unique_slug(session, model=Product, desired_slug=payload.slug or payload.name),
        price=payload.price,
        sale_price=payload.salePrice,
        sku=sku,
        stock_quantity=payload.stockQuantity,
        images=list(payload.images),
        tags=list(payload.tags),
        attributes=normalize_attribute_map(payload.attributes),
        has_variants=payload.hasVariants,
        variants=variants,
        seo_title=payload.seoTitle,
        seo_description=payload.seoDescription,
        is_published=payload.isPublished,
        custom_page_id=custom_page_id,
    )
    apply_product_attributes(product)
    product = repo.save(product)
    return _serialize(session, product)


@router.put("/bulk-stock-update")
def bulk_stock_update(
    payload: BulkStockUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    return bulk_update_stock(session, [update.model_dump() for update in payload.updates])


@router.get("/{product_id}")
def get_product(
    product_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    product = ProductsRepository(session).get(product_id=product_id)
    if not product:
        raise not_found("Product")
    return _serialize(session, product)


@router.patch("/{product_id}")
def update_product(
    product_id: str,
    payload: ProductUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    repo = ProductsRepository(session)
    product = repo.get(product_id=product_id)
    if not product:
        raise not_found("Product")

    fields = drop_nulls(
        changed_fields(payload, _PRODUCT_FIELDS),
        "name",
        "brand_id",
        "description",
        "stock_quantity",
        "has_variants",
        "is_published",
    )
    if "brand_id" in fields:
        _require_brand(session, fields["brand_id"])
    if "category_id" in fields:
        fields["category_id"] = _require_category(session, fields["category_id"])
    if "custom_page_id" in fields:
        fields["custom_page_id"] = _require_page(session, fields["custom_page_id"])
    if "name" in fields:
        fields["name"] = fields["name"].strip()
    if "sku" in fields:
        fields["sku"] = (fields["sku"] or "").strip() or None
        _ensure_unique_sku(repo, fields["sku"], exclude_id=product_id)
    if fields.get("slug"):
        fields["slug"] = generate_unique_slug(
            session, model=Product, desired_slug=fields["slug"], exclude_id=product_id
        )
    else:
        fields.pop("slug", None)
    for key in ("images", "tags"):
        if key in fields:
            fields[key] = list(fields[key] or [])
    if "attributes" in fields:
        fields["attributes"] = normalize_attribute_map(fields["attributes"])
    if "variants" in fields:
        fields["variants"] = normalize_variants(fields["variants"] or [])

    has_variants = fields.get("has_variants", product.has_variants)
    variants = fields.get("variants", product.variants or [])
    if has_variants and not variants:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Variant products must have at least one variant",
        )
    if not has_variants:
        fields["variants"] = []

    for key, value in fields.items():
        setattr(product, key, value)
    apply_product_attributes(product)
    product = repo.save(product)
    return _serialize(session, product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    repo = ProductsRepository(session)
    product = repo.get(product_id=product_id)
    if not product:
        raise not_found("Product")
    repo.remove(product)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
