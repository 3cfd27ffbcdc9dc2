from __future__ import annotations

import copy

from storefront.services.data_binding import (
    apply_bindings_to_block,
    apply_bindings_to_page,
    apply_bindings_to_segment,
    build_binding_context,
    replace_bindings,
)


def _variant(price, *, active: bool = True, images=None) -> dict:
    return {
        "id": f"v-{price}",
        "attributeCombination": {"Size": str(price)},
        "price": price,
        "stockQuantity": 3,
        "isActive": active,
        "images": images or [],
    }


def _product(**overrides) -> dict:
    product = {
        "id": "p1",
        "name": "Widget",
        "description": "A useful widget",
        "price": 19.5,
        "images": ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"],
        "hasVariants": False,
        "variants": [],
        "attributes": {"Color": ["Red", "Blue"], "Size": ["M"]},
        "brand": {"id": "b1", "name": "Acme"},
        "category": {"id": "c1", "name": "Tools"},
        "isPublished": True,
        "stock": 7,
    }
    product.update(overrides)
    return product


def test_text_without_tokens_is_unchanged():
    text = "Plain text with {single} braces"
    assert replace_bindings(text, {"product": _product()}) == text


def test_non_string_and_empty_input_returned_as_is():
    assert replace_bindings("", {"product": _product()}) == ""
    assert replace_bindings(None, {"product": _product()}) is None
    assert replace_bindings(42, {"product": _product()}) == 42


def test_token_with_absent_source_is_preserved():
    assert replace_bindings("Hello {{customer.firstName}}", {"product": _product()}) == (
        "Hello {{customer.firstName}}"
    )
    assert replace_bindings("{{product.name}}", {}) == "{{product.name}}"


def test_simple_field_resolves():
    assert replace_bindings("{{product.name}}", {"product": {"name": "Widget"}}) == "Widget"


def test_whitespace_inside_token_is_ignored():
    assert replace_bindings("{{ product.name }}", {"product": {"name": "Widget"}}) == "Widget"


def test_price_is_formatted_as_money():
    assert replace_bindings("{{product.price}}", {"product": {"price": 19.5}}) == "$19.50"
    assert replace_bindings("{{product.salePrice}}", {"product": {"salePrice": 10}}) == "$10.00"


def test_missing_field_on_present_source_becomes_empty():
    assert replace_bindings("{{product.missingField}}", {"product": {}}) == ""
    assert replace_bindings("[{{product.brand.website}}]", {"product": _product()}) == "[]"


def test_variant_price_range():
    product = _product(hasVariants=True, variants=[_variant(10), _variant(10), _variant(15)])
    assert replace_bindings("{{product.price}}", {"product": product}) == "$10.00 - $15.00"


def test_variant_price_range_collapses_equal_prices():
    product = _product(hasVariants=True, variants=[_variant(12), _variant(12)])
    assert replace_bindings("{{product.price}}", {"product": product}) == "$12.00"


def test_variant_price_range_ignores_inactive_variants():
    product = _product(
        hasVariants=True, variants=[_variant(10), _variant(99, active=False), _variant(20)]
    )
    assert replace_bindings("{{product.price}}", {"product": product}) == "$10.00 - $20.00"


def test_variant_price_range_accepts_string_prices():
    product = _product(hasVariants=True, price=5, variants=[_variant("10"), _variant(5)])
    assert replace_bindings("{{product.price}}", {"product": product}) == "$5.00 - $10.00"


def test_variant_price_range_skips_unparseable_prices():
    product = _product(
        hasVariants=True, variants=[_variant("call us"), _variant(8), _variant(" 12.5 ")]
    )
    assert replace_bindings("{{product.price}}", {"product": product}) == "$8.00 - $12.50"


def test_nested_brand_and_category_names():
    context = {"product": _product()}
    assert replace_bindings("{{product.brand.name}}", context) == "Acme"
    assert replace_bindings("{{product.category}}", context) == "Tools"
    assert replace_bindings("{{product.brand}}", context) == "Acme"


def test_images_resolve_to_first_image():
    context = {"product": {"images": ["a.jpg", "b.jpg"]}}
    assert replace_bindings("{{product.images}}", context) == "a.jpg"


def test_list_index_lookup():
    context = {"product": {"images": ["a.jpg", "b.jpg"]}}
    assert replace_bindings("{{product.images.1}}", context) == "b.jpg"
    assert replace_bindings("{{product.images.5}}", context) == ""


def test_other_lists_are_joined():
    context = {"product": {"tags": ["new", "sale"]}}
    assert replace_bindings("{{product.tags}}", context) == "new, sale"


def test_attribute_map_formatting():
    context = {"product": _product()}
    assert replace_bindings("{{product.attributes}}", context) == "Color: Red, Blue | Size: M"


def test_variants_summary():
    product = _product(hasVariants=True, variants=[_variant(10), _variant(15)])
    assert replace_bindings("{{product.variants}}", {"product": product}) == "2 variants available"
    single = _product(hasVariants=True, variants=[_variant(10)])
    assert replace_bindings("{{product.variants}}", {"product": single}) == "1 variant available"
    assert replace_bindings("{{product.variants}}", {"product": _product()}) == "No variants"


def test_booleans_and_numbers():
    context = {"product": _product()}
    assert replace_bindings("{{product.isPublished}}", context) == "Yes"
    assert replace_bindings("{{product.stock}}", context) == "7"
    assert replace_bindings("{{product.weight}}", {"product": {"weight": 2.0}}) == "2"


def test_mapping_without_name_is_compact_json():
    context = {"product": {"dimensions": {"w": 1, "h": 2}}}
    assert replace_bindings("{{product.dimensions}}", context) == '{"w":1,"h":2}'


def test_multiple_tokens_in_one_string():
    context = {"product": _product(), "category": {"name": "Tools", "description": "All tools"}}
    text = "{{product.name}} by {{product.brand.name}} in {{category.name}}: {{category.description}}"
    assert replace_bindings(text, context) == "Widget by Acme in Tools: All tools"


def test_empty_record_counts_as_present_source():
    assert replace_bindings("x{{category.name}}y", {"category": {}}) == "xy"


def test_build_binding_context_drops_missing_sources():
    product = _product()
    context = build_binding_context(product=product, category=None)
    assert context == {"product": product}


def test_block_text_fields_are_resolved_without_mutating_input():
    block = {
        "id": "b1",
        "type": "text",
        "content": {"text": "Buy {{product.name}}", "buttonText": "Only {{product.price}}"},
    }
    original = copy.deepcopy(block)
    resolved = apply_bindings_to_block(block, {"product": _product()})
    assert resolved["content"]["text"] == "Buy Widget"
    assert resolved["content"]["buttonText"] == "Only $19.50"
    assert block == original
    assert resolved is not block


def test_block_without_content_mapping_is_returned_unchanged():
    block = {"id": "b1", "type": "spacer"}
    assert apply_bindings_to_block(block, {"product": _product()}) is block
    assert apply_bindings_to_block("not a block", {}) == "not a block"


def test_media_gallery_skipped_returns_identical_object():
    block = {
        "id": "g1",
        "type": "mediaGallery",
        "content": {"dataBinding": {"fieldPath": "product.images"}, "items": []},
    }
    assert apply_bindings_to_block(block, {"product": _product()}, skip_media_gallery=True) is block


def test_media_gallery_is_populated_from_product_images():
    block = {
        "id": "g1",
        "type": "mediaGallery",
        "content": {"dataBinding": {"source": "product", "fieldPath": "product.images"}, "items": []},
    }
    resolved = apply_bindings_to_block(block, {"product": _product()})
    items = resolved["content"]["items"]
    assert [item["url"] for item in items] == [
        "https://cdn.example.com/a.jpg",
        "https://cdn.example.com/b.jpg",
    ]
    assert items[0]["id"] == "media-a.jpg-0"
    assert items[1]["alt"] == "Widget - Image 2"
    assert items[0]["thumbnail"] == items[0]["url"]
    assert items[0]["type"] == "image"


def test_media_gallery_all_images_merges_variant_images():
    product = _product(
        hasVariants=True,
        variants=[
            _variant(10, images=[{"url": "https://cdn.example.com/v1.jpg"}]),
            _variant(12, images=["https://cdn.example.com/a.jpg", "https://cdn.example.com/v2.jpg"]),
        ],
    )
    block = {
        "id": "g1",
        "type": "mediaGallery",
        "content": {"dataBinding": {"fieldPath": "product.allImages"}},
    }
    resolved = apply_bindings_to_block(block, {"product": product})
    assert [item["url"] for item in resolved["content"]["items"]] == [
        "https://cdn.example.com/a.jpg",
        "https://cdn.example.com/b.jpg",
        "https://cdn.example.com/v1.jpg",
        "https://cdn.example.com/v2.jpg",
    ]


def _gallery_urls(product: dict, field_path: str) -> list[str]:
    block = {
        "id": "g1",
        "type": "mediaGallery",
        "content": {"dataBinding": {"fieldPath": field_path}},
    }
    resolved = apply_bindings_to_block(block, {"product": product})
    return [item["url"] for item in resolved["content"].get("items", [])]


def _product_with_variant_images(**overrides) -> dict:
    return _product(
        variants=[
            _variant(10, images=[{"url": "https://cdn.example.com/v1.jpg"}]),
            _variant(12, images=["https://cdn.example.com/v2.jpg"]),
        ],
        **overrides,
    )


def test_media_gallery_variant_images_only():
    product = _product_with_variant_images(hasVariants=True)
    assert _gallery_urls(product, "product.variantImages") == [
        "https://cdn.example.com/v1.jpg",
        "https://cdn.example.com/v2.jpg",
    ]


def test_media_gallery_base_images_only():
    product = _product_with_variant_images(hasVariants=True)
    assert _gallery_urls(product, "product.baseImages") == [
        "https://cdn.example.com/a.jpg",
        "https://cdn.example.com/b.jpg",
    ]


def test_media_gallery_all_images_ignores_variants_when_product_has_none():
    product = _product_with_variant_images(hasVariants=False)
    assert _gallery_urls(product, "product.allImages") == [
        "https://cdn.example.com/a.jpg",
        "https://cdn.example.com/b.jpg",
    ]
    assert _gallery_urls(product, "product.variantImages") == []


def test_media_gallery_without_product_keeps_items():
    block = {
        "id": "g1",
        "type": "mediaGallery",
        "content": {"dataBinding": {"fieldPath": "product.images"}, "items": [{"url": "static.jpg"}]},
    }
    resolved = apply_bindings_to_block(block, {"category": {"name": "Tools"}})
    assert resolved["content"]["items"] == [{"url": "static.jpg"}]


def test_accordion_and_carousel_items_are_resolved():
    block = {
        "id": "a1",
        "type": "accordion",
        "content": {
            "accordionItems": [{"id": "i1", "title": "About {{product.name}}", "content": "{{product.description}}"}],
            "carouselItems": [{"title": "{{product.brand.name}}", "link": "/p/{{product.id}}", "subtitle": ""}],
        },
    }
    resolved = apply_bindings_to_block(block, {"product": _product()})
    assert resolved["content"]["accordionItems"] == [
        {"id": "i1", "title": "About Widget", "content": "A useful widget"}
    ]
    assert resolved["content"]["carouselItems"] == [{"title": "Acme", "link": "/p/p1", "subtitle": ""}]


def test_segment_blocks_are_resolved():
    segment = {
        "segmentId": "s1",
        "blocks": [{"id": "b1", "type": "text", "content": {"text": "{{product.name}}"}}],
    }
    resolved = apply_bindings_to_segment(segment, {"product": _product()})
    assert resolved["blocks"][0]["content"]["text"] == "Widget"
    assert segment["blocks"][0]["content"]["text"] == "{{product.name}}"


def _page() -> dict:
    return {
        "title": "{{product.name}} | Shop",
        "seoDescription": "Buy {{product.name}} from {{product.brand.name}}",
        "segments": [
            {
                "segmentId": "s1",
                "blocks": [
                    {"id": "b1", "type": "text", "content": {"text": "{{product.description}}"}},
                    {
                        "id": "b2",
                        "type": "mediaGallery",
                        "content": {"dataBinding": {"fieldPath": "product.images"}},
                    },
                ],
            }
        ],
        "gridCells": [
            {"cellId": "root", "blocks": [{"id": "b3", "type": "button", "content": {"buttonText": "{{product.price}}"}}]}
        ],
    }


def test_page_level_fields_segments_and_grid_cells_are_resolved():
    resolved = apply_bindings_to_page(_page(), {"product": _product()})
    assert resolved["title"] == "Widget | Shop"
    assert resolved["seoDescription"] == "Buy Widget from Acme"
    assert resolved["segments"][0]["blocks"][0]["content"]["text"] == "A useful widget"
    assert len(resolved["segments"][0]["blocks"][1]["content"]["items"]) == 2
    assert resolved["gridCells"][0]["blocks"][0]["content"]["buttonText"] == "$19.50"


def test_apply_bindings_to_page_is_idempotent():
    context = {"product": _product()}
    once = apply_bindings_to_page(_page(), context)
    twice = apply_bindings_to_page(once, context)
    assert twice == once


def test_apply_bindings_to_page_does_not_mutate_input():
    page = _page()
    original = copy.deepcopy(page)
    apply_bindings_to_page(page, {"product": _product()})
    assert page == original
