"""Template binding for page documents.

Page content may carry ``{{source.path}}`` tokens (``{{product.name}}``,
``{{product.brand.name}}``, ``{{category.description}}``). At render time the
tokens are replaced with values looked up in a binding context, a mapping from the
source names below to plain entity records. Everything here works on plain dicts
and lists, never mutates its input and never raises on well-formed documents.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any, Optional

logger = logging.getLogger(__name__)

BINDING_SOURCES = ("product", "category", "customer", "collection")

_TOKEN_RE = re.compile(r"\{\{([^}]+)\}\}")

_BLOCK_TEXT_FIELDS = (
    "text",
    "buttonText",
    "buttonLink",
    "imageUrl",
    "imageAlt",
    "imageLink",
    "videoUrl",
    "htmlContent",
)
_CAROUSEL_ITEM_FIELDS = ("title", "subtitle", "buttonText", "imageUrl", "link")
_PAGE_TEXT_FIELDS = ("title", "description", "seoTitle", "seoDescription")


def build_binding_context(
    *,
    product: Optional[Mapping[str, Any]] = None,
    category: Optional[Mapping[str, Any]] = None,
    customer: Optional[Mapping[str, Any]] = None,
    collection: Optional[Mapping[str, Any]] = None,
) -> dict[str, Mapping[str, Any]]:
    """Collect the supplied entity records, dropping sources that were not given."""

    sources = {
        "product": product,
        "category": category,
        "customer": customer,
        "collection": collection,
    }
    return {name: record for name, record in sources.items() if record is not None}


def _has_source(record: Any) -> bool:
    if record is None:
        return False
    if isinstance(record, Mapping):
        return True
    return bool(record)


def _lookup(record: Any, field_path: str) -> Any:
    if record is None or not field_path:
        return None
    value = record
    for key in field_path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(key)
        elif isinstance(value, (list, tuple)) and key.isdigit():
            index = int(key)
            value = value[index] if index < len(value) else None
        else:
            return None
    return value


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_money(value: int | float) -> str:
    return f"${value:.2f}"


def _as_price(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _variant_price_range(product: Mapping[str, Any]) -> Optional[str]:
    variants = product.get("variants")
    if not product.get("hasVariants") or not isinstance(variants, list):
        return None
    prices = []
    for variant in variants:
        if not isinstance(variant, Mapping) or not variant.get("isActive"):
            continue
        # A variant without its own price sells at the product price.
        price = _as_price(variant.get("price") or product.get("price") or 0)
        if price is not None:
            prices.append(price)
    if not prices:
        return None
    low, high = min(prices), max(prices)
    if low == high:
        return _format_money(low)
    return f"{_format_money(low)} - {_format_money(high)}"


def _format_attribute_map(value: Mapping[str, Any]) -> str:
    parts = []
    for key, values in value.items():
        if isinstance(values, list):
            parts.append(f"{key}: {', '.join(str(item) for item in values)}")
        else:
            parts.append(f"{key}: {values}")
    return " | ".join(parts)


def _join_list(values: list[Any]) -> str:
    return ", ".join("" if item is None else str(item) for item in values)


def _format_value(value: Any, *, field_path: str, context: Mapping[str, Any]) -> str:
    if field_path in ("category", "brand") and isinstance(value, Mapping) and value.get("name"):
        return str(value["name"])

    if field_path in ("category.name", "brand.name"):
        return str(value)

    if field_path == "price":
        product = context.get("product")
        if isinstance(product, Mapping):
            price_range = _variant_price_range(product)
            if price_range is not None:
                return price_range

    if field_path in ("attributeDefinitions", "attributes") and isinstance(value, Mapping):
        return _format_attribute_map(value)

    if field_path == "variants":
        if isinstance(value, list) and value:
            suffix = "s" if len(value) > 1 else ""
            return f"{len(value)} variant{suffix} available"
        return "No variants"

    if isinstance(value, bool):
        return "Yes" if value else "No"

    if isinstance(value, (int, float)):
        if "price" in field_path.lower():
            return _format_money(value)
        return _format_number(value)

    if isinstance(value, list):
        if field_path == "images" and value:
            return str(value[0])
        return _join_list(value)

    if isinstance(value, Mapping):
        if value.get("name"):
            return str(value["name"])
        return json.dumps(value, default=str, separators=(",", ":"))

    return str(value)


def replace_bindings(text: Any, context: Mapping[str, Any]) -> Any:
    """Replace every ``{{source.path}}`` token in ``text``.

    Tokens naming a source that is not in ``context`` are kept verbatim; tokens whose
    path resolves to nothing become the empty string. Non-string or empty input is
    returned unchanged.
    """

    if not text or not isinstance(text, str):
        return text

    def _substitute(match: re.Match[str]) -> str:
        binding = match.group(1).strip()
        source_name, _, field_path = binding.partition(".")
        source = context.get(source_name)
        if not _has_source(source):
            return match.group(0)
        value = _lookup(source, field_path)
        if value is None:
            return ""
        return _format_value(value, field_path=field_path, context=context)

    result = _TOKEN_RE.sub(_substitute, text)
    if result != text:
        logger.debug("Resolved bindings", extra={"input": text[:200], "output": result[:200]})
    return result


def _variant_image_urls(product: Mapping[str, Any]) -> list[str]:
    urls: list[str] = []
    variants = product.get("variants")
    if not product.get("hasVariants") or not isinstance(variants, list):
        return urls
    for variant in variants:
        if not isinstance(variant, Mapping):
            continue
        images = variant.get("images")
        if not isinstance(images, list):
            continue
        for image in images:
            url = image if isinstance(image, str) else (image or {}).get("url")
            if url and url not in urls:
                urls.append(url)
    return urls


def _gallery_image_urls(product: Mapping[str, Any], field_path: str) -> list[str]:
    base_images = product.get("images")
    base_images = list(base_images) if isinstance(base_images, list) else []

    if "allImages" in field_path:
        urls = list(base_images)
        for url in _variant_image_urls(product):
            if url not in urls:
                urls.append(url)
        return urls
    if "baseImages" in field_path or "product.images" in field_path:
        return base_images
    if "variantImages" in field_path:
        return _variant_image_urls(product)
    return []


def _gallery_items(product: Mapping[str, Any], urls: list[str]) -> list[dict[str, Any]]:
    name = product.get("name") or "Product"
    return [
        {
            "id": f"media-{url.split('/')[-1]}-{index}",
            "type": "image",
            "url": url,
            "alt": f"{name} - Image {index + 1}",
            "thumbnail": url,
        }
        for index, url in enumerate(urls)
    ]


def apply_bindings_to_block(
    block: Any, context: Mapping[str, Any], skip_media_gallery: bool = False
) -> Any:
    """Return a copy of ``block`` with its content fields resolved against ``context``."""

    if not isinstance(block, Mapping) or not isinstance(block.get("content"), Mapping):
        return block

    # A gallery that already holds variant-specific images is handed back untouched.
    if skip_media_gallery and block.get("type") == "mediaGallery":
        return block

    content = dict(block["content"])

    for field in _BLOCK_TEXT_FIELDS:
        if content.get(field):
            content[field] = replace_bindings(content[field], context)

    product = context.get("product")
    if block.get("type") == "mediaGallery" and _has_source(product) and isinstance(product, Mapping):
        data_binding = content.get("dataBinding")
        field_path = ""
        if isinstance(data_binding, Mapping):
            field_path = data_binding.get("fieldPath") or ""
        urls = _gallery_image_urls(product, field_path)
        if urls:
            content["items"] = _gallery_items(product, urls)

    accordion_items = content.get("accordionItems")
    if isinstance(accordion_items, list):
        content["accordionItems"] = [
            {
                **item,
                "title": replace_bindings(item.get("title"), context),
                "content": replace_bindings(item.get("content"), context),
            }
            if isinstance(item, Mapping)
            else item
            for item in accordion_items
        ]

    carousel_items = content.get("carouselItems")
    if isinstance(carousel_items, list):
        resolved_items = []
        for item in carousel_items:
            if not isinstance(item, Mapping):
                resolved_items.append(item)
                continue
            resolved = dict(item)
            for field in _CAROUSEL_ITEM_FIELDS:
                if resolved.get(field):
                    resolved[field] = replace_bindings(resolved[field], context)
            resolved_items.append(resolved)
        content["carouselItems"] = resolved_items

    resolved_block = dict(block)
    resolved_block["content"] = content
    return resolved_block


def _apply_to_blocks(blocks: Any, context: Mapping[str, Any], skip_media_gallery: bool) -> Any:
    if not isinstance(blocks, list):
        return blocks
    return [apply_bindings_to_block(block, context, skip_media_gallery) for block in blocks]


def apply_bindings_to_segment(
    segment: Any, context: Mapping[str, Any], skip_media_gallery: bool = False
) -> Any:
    if not isinstance(segment, Mapping):
        return segment
    resolved = dict(segment)
    if "blocks" in resolved:
        resolved["blocks"] = _apply_to_blocks(resolved["blocks"], context, skip_media_gallery)
    return resolved


def apply_bindings_to_page(
    page: Any, context: Mapping[str, Any], skip_media_gallery: bool = False
) -> Any:
    """Return a copy of ``page`` with every segment, grid cell and page-level text resolved."""

    if not isinstance(page, Mapping):
        return page

    resolved = dict(page)

    segments = resolved.get("segments")
    if isinstance(segments, list):
        resolved["segments"] = [
            apply_bindings_to_segment(segment, context, skip_media_gallery) for segment in segments
        ]

    grid_cells = resolved.get("gridCells")
    if isinstance(grid_cells, list):
        cells = []
        for cell in grid_cells:
            if isinstance(cell, Mapping):
                cell = dict(cell)
                if "blocks" in cell:
                    cell["blocks"] = _apply_to_blocks(cell["blocks"], context, skip_media_gallery)
            cells.append(cell)
        resolved["gridCells"] = cells

    for field in _PAGE_TEXT_FIELDS:
        if resolved.get(field):
            resolved[field] = replace_bindings(resolved[field], context)

    return resolved
