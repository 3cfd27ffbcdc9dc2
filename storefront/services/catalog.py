from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional
from uuid import uuid4

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.db.models import Brand, Category, Product
from storefront.services.errors import ValidationError

logger = logging.getLogger(__name__)

_ATTRIBUTE_FILTER_PREFIX = "attribute."
_HAS_ATTRIBUTE_FILTER_PREFIX = "hasAttribute."


def normalize_attribute_values(values: Iterable[Any] | None) -> list[str]:
    """Trim, drop empties and de-duplicate while keeping first-seen order."""

    normalized: list[str] = []
    for value in values or []:
        if value is None:
            continue
        cleaned = str(value).strip()
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


def normalize_attribute_map(attributes: Mapping[str, Any] | None) -> dict[str, list[str]]:
    normalized: dict[str, list[str]] = {}
    for name, values in (attributes or {}).items():
        key = str(name).strip()
        if not key:
            continue
        if isinstance(values, (list, tuple)):
            cleaned = normalize_attribute_values(values)
        else:
            cleaned = normalize_attribute_values([values])
        if cleaned:
            normalized[key] = cleaned
    return normalized


def normalize_variants(variants: Iterable[Mapping[str, Any]] | None) -> list[dict[str, Any]]:
    normalized: list[dict[str, Any]] = []
    for raw in variants or []:
        variant = dict(raw)
        variant["id"] = str(variant.get("id") or uuid4())
        combination = variant.get("attributeCombination") or {}
        variant["attributeCombination"] = {
            str(key).strip(): str(value).strip()
            for key, value in combination.items()
            if str(key).strip() and value is not None and str(value).strip()
        }
        stock = variant.get("stockQuantity")
        stock = int(stock) if stock is not None else 0
        if stock < 0:
            raise ValidationError("Variant stock quantity cannot be negative")
        variant["stockQuantity"] = stock
        price = variant.get("price")
        if price is not None and price < 0:
            raise ValidationError("Variant price cannot be negative")
        variant["isActive"] = bool(variant.get("isActive", True))
        variant["images"] = list(variant.get("images") or [])
        normalized.append(variant)
    return normalized


def derive_variant_attributes(variants: Iterable[Mapping[str, Any]]) -> dict[str, list[str]]:
    """Build the canonical attribute map from the active variants of a product."""

    attributes: dict[str, list[str]] = {}
    for variant in variants:
        if not variant.get("isActive"):
            continue
        for name, value in (variant.get("attributeCombination") or {}).items():
            values = attributes.setdefault(name, [])
            if value not in values:
                values.append(value)
    return attributes


def variant_stock_total(variants: Iterable[Mapping[str, Any]]) -> int:
    return sum(int(variant.get("stockQuantity") or 0) for variant in variants if variant.get("isActive"))


def apply_product_attributes(product: Product) -> None:
    """Keep ``product.attributes`` and the derived stock total consistent with its variants."""

    if product.has_variants:
        variants = list(product.variants or [])
        product.attributes = derive_variant_attributes(variants)
        product.stock_quantity = variant_stock_total(variants)
    else:
        product.attributes = normalize_attribute_map(product.attributes)


def collect_category_ids(session: Session, *, category_id: str) -> list[str]:
    """Return ``category_id`` followed by every descendant id."""

    collected = [category_id]
    frontier = [category_id]
    while frontier:
        children = session.scalars(select(Category.id).where(Category.parent_id.in_(frontier))).all()
        frontier = [child for child in children if child not in collected]
        collected.extend(frontier)
    return collected


def is_descendant(session: Session, *, ancestor_id: str, candidate_id: str) -> bool:
    return candidate_id in collect_category_ids(session, category_id=ancestor_id)


def build_category_tree(
    session: Session, *, root: Category, include_product_count: bool = False
) -> dict[str, Any]:
    categories = session.scalars(select(Category).order_by(Category.name.asc())).all()
    children_by_parent: dict[Optional[str], list[Category]] = {}
    for category in categories:
        children_by_parent.setdefault(category.parent_id, []).append(category)

    counts: dict[str, int] = {}
    if include_product_count:
        rows = session.execute(
            select(Product.category_id, func.count(Product.id)).group_by(Product.category_id)
        ).all()
        counts = {category_id: count for category_id, count in rows if category_id}

    def _node(category: Category, level: int, path: list[str]) -> dict[str, Any]:
        node_path = [*path, category.name]
        node: dict[str, Any] = {
            "id": category.id,
            "name": category.name,
            "slug": category.slug,
            "level": level,
            "path": " > ".join(node_path),
            "children": [
                _node(child, level + 1, node_path) for child in children_by_parent.get(category.id, [])
            ],
        }
        if include_product_count:
            node["productCount"] = counts.get(category.id, 0)
        return node

    return _node(root, 0, [])


def parse_attribute_filters(
    query_items: Iterable[tuple[str, str]],
) -> tuple[dict[str, list[str]], list[str]]:
    """Read ``attribute.<Name>=v1,v2`` and ``hasAttribute.<Name>=true`` query parameters."""

    value_filters: dict[str, list[str]] = {}
    presence_filters: list[str] = []
    for key, raw_value in query_items:
        if key.startswith(_ATTRIBUTE_FILTER_PREFIX):
            name = key[len(_ATTRIBUTE_FILTER_PREFIX):].strip()
            values = normalize_attribute_values(raw_value.split(","))
            if name and values:
                value_filters.setdefault(name, [])
                value_filters[name].extend(v for v in values if v not in value_filters[name])
        elif key.startswith(_HAS_ATTRIBUTE_FILTER_PREFIX):
            name = key[len(_HAS_ATTRIBUTE_FILTER_PREFIX):].strip()
            if name and raw_value.strip().lower() == "true" and name not in presence_filters:
                presence_filters.append(name)
    return value_filters, presence_filters


def product_matches_attribute_filters(
    product: Product,
    *,
    value_filters: Mapping[str, list[str]],
    presence_filters: Iterable[str],
) -> bool:
    attributes = product.attributes or {}
    for name, wanted in value_filters.items():
        if not set(attributes.get(name) or []) & set(wanted):
            return False
    for name in presence_filters:
        if not attributes.get(name):
            return False
    return True


def _brand_summary(brand: Optional[Brand]) -> Optional[dict[str, Any]]:
    if brand is None:
        return None
    return {"id": brand.id, "name": brand.name, "slug": brand.slug}


def _category_summary(category: Optional[Category]) -> Optional[dict[str, Any]]:
    if category is None:
        return None
    return {"id": category.id, "name": category.name, "slug": category.slug, "parent_id": category.parent_id}


def serialize_product(
    product: Product, *, brand: Optional[Brand] = None, category: Optional[Category] = None
) -> dict[str, Any]:
    data = jsonable_encoder(product)
    data["brand"] = _brand_summary(brand)
    data["category"] = _category_summary(category)
    return data


def load_product_relations(
    session: Session, products: Iterable[Product]
) -> tuple[dict[str, Brand], dict[str, Category]]:
    products = list(products)
    brand_ids = {product.brand_id for product in products if product.brand_id}
    category_ids = {product.category_id for product in products if product.category_id}
    brands: dict[str, Brand] = {}
    categories: dict[str, Category] = {}
    if brand_ids:
        brands = {b.id: b for b in session.scalars(select(Brand).where(Brand.id.in_(brand_ids))).all()}
    if category_ids:
        categories = {
            c.id: c for c in session.scalars(select(Category).where(Category.id.in_(category_ids))).all()
        }
    return brands, categories


def product_binding_record(
    product: Product, *, brand: Optional[Brand] = None, category: Optional[Category] = None
) -> dict[str, Any]:
    """Shape a product the way page templates address it (``{{product.brand.name}}``)."""

    attributes = {name: list(values) for name, values in (product.attributes or {}).items()}
    record = {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "description": product.description,
        "price": product.price,
        "salePrice": product.sale_price,
        "sku": product.sku,
        "stockQuantity": product.stock_quantity,
        "stock": product.stock_quantity,
        "images": list(product.images or []),
        "tags": list(product.tags or []),
        "isPublished": product.is_published,
        "hasVariants": product.has_variants,
        "variants": [dict(variant) for variant in product.variants or []],
        "attributes": attributes,
        "attributeDefinitions": {name: list(values) for name, values in attributes.items()},
        "seoTitle": product.seo_title,
        "seoDescription": product.seo_description,
        "customPageId": product.custom_page_id,
        "brand": None,
        "category": None,
    }
    if brand is not None:
        record["brand"] = {"id": brand.id, "name": brand.name, "slug": brand.slug, "logo": brand.logo}
    if category is not None:
        record["category"] = {
            "id": category.id,
            "name": category.name,
            "slug": category.slug,
            "description": category.description,
            "image": category.image,
        }
    return record


def category_binding_record(category: Category) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "image": category.image,
        "parentId": category.parent_id,
    }
