from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from storefront.db.enums import StockStatusEnum
from storefront.db.models import Product
from storefront.db.repositories.products import ProductsRepository
from storefront.services.catalog import variant_stock_total

logger = logging.getLogger(__name__)


@dataclass
class StockLine:
    product_id: str
    requested_quantity: int
    name: str = ""
    variant_id: Optional[str] = None
    selected_attributes: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_order_item(cls, item: Mapping[str, Any]) -> "StockLine":
        return cls(
            product_id=str(item.get("productId") or ""),
            requested_quantity=int(item.get("quantity") or 0),
            name=str(item.get("name") or ""),
            variant_id=item.get("variantId") or None,
            selected_attributes=dict(item.get("selectedAttributes") or {}),
        )


def lines_from_order_items(items: Iterable[Mapping[str, Any]]) -> list[StockLine]:
    return [StockLine.from_order_item(item) for item in items]


def _find_variant_index(product: Product, line: StockLine, *, active_only: bool) -> Optional[int]:
    variants = product.variants or []
    if line.variant_id:
        for index, variant in enumerate(variants):
            if str(variant.get("id")) == line.variant_id:
                if active_only and not variant.get("isActive"):
                    return None
                return index
        return None
    if line.selected_attributes:
        for index, variant in enumerate(variants):
            if not variant.get("isActive"):
                continue
            combination = variant.get("attributeCombination") or {}
            if all(combination.get(key) == value for key, value in line.selected_attributes.items()):
                return index
    return None


def _available_quantity(product: Optional[Product], line: StockLine) -> tuple[int, Optional[str]]:
    if product is None:
        return 0, None
    if not product.has_variants:
        return int(product.stock_quantity or 0), None
    index = _find_variant_index(product, line, active_only=True)
    if index is None:
        return 0, None
    variant = product.variants[index]
    return int(variant.get("stockQuantity") or 0), variant.get("sku")


def classify_stock(lines: Iterable[StockLine], products: Mapping[str, Product]) -> dict[str, Any]:
    """Sort order lines into available, partially available and unavailable buckets."""

    available: list[dict[str, Any]] = []
    partial: list[dict[str, Any]] = []
    unavailable: list[dict[str, Any]] = []

    for line in lines:
        quantity, variant_sku = _available_quantity(products.get(line.product_id), line)
        entry = {
            "productId": line.product_id,
            "variantId": line.variant_id,
            "variantSku": variant_sku,
            "name": line.name,
            "availableQuantity": quantity,
            "requestedQuantity": line.requested_quantity,
        }
        if quantity >= line.requested_quantity:
            available.append({**entry, "actualQuantity": line.requested_quantity})
        elif quantity > 0:
            partial.append({**entry, "shortfall": line.requested_quantity - quantity})
        else:
            unavailable.append({**entry, "shortfall": line.requested_quantity})

    if not unavailable and not partial:
        outcome = StockStatusEnum.all_available
    elif available or partial:
        outcome = StockStatusEnum.partial_available
    else:
        outcome = StockStatusEnum.none_available

    return {
        "isValid": outcome == StockStatusEnum.all_available,
        "validationResult": outcome.value,
        "availableItems": available,
        "partiallyAvailableItems": partial,
        "unavailableItems": unavailable,
    }


def validation_message(result: Mapping[str, Any]) -> str:
    outcome = result.get("validationResult")
    if outcome == StockStatusEnum.all_available.value:
        return "All items are available in stock."
    if outcome == StockStatusEnum.partial_available.value:
        parts = []
        if result.get("availableItems"):
            parts.append(f"{len(result['availableItems'])} item(s) fully available")
        if result.get("partiallyAvailableItems"):
            parts.append(f"{len(result['partiallyAvailableItems'])} item(s) partially available")
        if result.get("unavailableItems"):
            parts.append(f"{len(result['unavailableItems'])} item(s) out of stock")
        return f"{', '.join(parts)}. Please review and edit the order."
    return "No items are available in stock. All requested items are out of stock."


def validate_order_stock(session: Session, lines: list[StockLine]) -> dict[str, Any]:
    products = ProductsRepository(session).get_many(product_ids=[line.product_id for line in lines])
    result = classify_stock(lines, products)
    result["message"] = validation_message(result)
    logger.info(
        "Validated order stock",
        extra={"lines": len(lines), "validation_result": result["validationResult"]},
    )
    return result


def _set_variants(product: Product, variants: list[dict[str, Any]]) -> None:
    product.variants = variants
    flag_modified(product, "variants")
    product.stock_quantity = variant_stock_total(variants)


def _adjust_line(product: Product, line: StockLine, delta: int) -> Optional[str]:
    """Apply ``delta`` units to the product or variant a line points at."""

    if not product.has_variants:
        current = int(product.stock_quantity or 0)
        if current + delta < 0:
            return f"Insufficient stock for product {line.name or product.name}"
        product.stock_quantity = current + delta
        return None

    if not line.variant_id and not line.selected_attributes:
        return f"No variant selected for product {line.name or product.name}"
    index = _find_variant_index(product, line, active_only=False if line.variant_id else True)
    if index is None:
        if line.variant_id:
            return f"Variant not found: {line.variant_id} for product {product.id}"
        return f"Variant not found for attributes in product {line.name or product.name}"

    variants = [dict(variant) for variant in product.variants]
    current = int(variants[index].get("stockQuantity") or 0)
    if current + delta < 0:
        return f"Insufficient stock for variant of product {line.name or product.name}"
    variants[index]["stockQuantity"] = current + delta
    _set_variants(product, variants)
    return None


def _apply_lines(session: Session, lines: list[StockLine], *, sign: int) -> list[str]:
    products = ProductsRepository(session).get_many(product_ids=[line.product_id for line in lines])
    errors: list[str] = []
    for line in lines:
        product = products.get(line.product_id)
        if product is None:
            errors.append(f"Product not found: {line.product_id}")
            continue
        error = _adjust_line(product, line, sign * line.requested_quantity)
        if error:
            errors.append(error)
    session.commit()
    return errors


def deduct_stock(session: Session, lines: list[StockLine]) -> list[str]:
    errors = _apply_lines(session, lines, sign=-1)
    if errors:
        logger.warning("Stock deduction reported errors", extra={"errors": errors})
    return errors


def restore_stock(session: Session, lines: list[StockLine]) -> list[str]:
    errors = _apply_lines(session, lines, sign=1)
    if errors:
        logger.warning("Stock restoration reported errors", extra={"errors": errors})
    return errors


def _apply_bulk_update(product: Product, update: Mapping[str, Any]) -> Optional[str]:
    stock_quantity = update.get("stockQuantity")
    price = update.get("price")
    sku = update.get("sku")

    if stock_quantity is not None and stock_quantity < 0:
        return "Stock quantity must be a non-negative number"
    if price is not None and price < 0:
        return "Price must be a non-negative number"

    variant_id = update.get("variantId")
    if variant_id:
        variants = [dict(variant) for variant in product.variants or []]
        matches = [index for index, variant in enumerate(variants) if str(variant.get("id")) == variant_id]
        if not matches:
            return "Variant not found"
        variant = variants[matches[0]]
        if stock_quantity is not None:
            variant["stockQuantity"] = stock_quantity
        if price is not None:
            variant["price"] = price
        if sku is not None:
            variant["sku"] = sku
        _set_variants(product, variants)
        return None

    if stock_quantity is not None:
        product.stock_quantity = stock_quantity
    if price is not None:
        product.price = price
    if sku is not None:
        product.sku = sku
    return None


def bulk_update_stock(session: Session, updates: list[Mapping[str, Any]]) -> dict[str, Any]:
    repo = ProductsRepository(session)
    results: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []

    for update in updates:
        product_id = update.get("productId")
        variant_id = update.get("variantId")
        product = repo.get(product_id=product_id) if product_id else None
        if product is None:
            errors.append({"productId": product_id, "variantId": variant_id, "error": "Product not found"})
            continue
        error = _apply_bulk_update(product, update)
        if error:
            session.rollback()
            errors.append({"productId": product_id, "variantId": variant_id, "error": error})
            continue
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            errors.append({"productId": product_id, "variantId": variant_id, "error": "SKU already exists"})
            continue
        results.append({"productId": product_id, "variantId": variant_id, "success": True})

    logger.info(
        "Bulk stock update completed",
        extra={"success_count": len(results), "error_count": len(errors)},
    )
    return {
        "message": "Bulk update completed",
        "successCount": len(results),
        "errorCount": len(errors),
        "results": results,
        "errors": errors,
    }
