from __future__ import annotations


def _create_brand(api_client, *, name: str = "Acme") -> str:
    response = api_client.post("/admin/brands", json={"name": name})
    assert response.status_code == 201
    return response.json()["id"]


def _create_category(api_client, *, name: str, parent_id: str | None = None) -> str:
    payload: dict[str, object] = {"name": name, "isPublished": True}
    if parent_id is not None:
        payload["parentId"] = parent_id
    response = api_client.post("/admin/categories", json=payload)
    assert response.status_code == 201
    return response.json()["id"]


def _create_product(api_client, *, brand_id: str, name: str, sku: str, **extra) -> dict:
    payload: dict[str, object] = {
        "name": name,
        "description": f"{name} description",
        "brandId": brand_id,
        "price": 10,
        "sku": sku,
        "stockQuantity": 5,
    }
    payload.update(extra)
    response = api_client.post("/admin/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _variant_payload() -> dict:
    return {
        "name": "T-Shirt",
        "description": "Cotton tee",
        "hasVariants": True,
        "variants": [
            {"attributeCombination": {"Size": "S", "Color": "Red"}, "price": 10, "stockQuantity": 3},
            {"attributeCombination": {"Size": "M", "Color": "Red"}, "price": 15, "stockQuantity": 4},
            {"attributeCombination": {"Size": "L", "Color": "Blue"}, "price": 20, "stockQuantity": 8, "isActive": False},
        ],
    }


def test_create_simple_product(api_client):
    brand_id = _create_brand(api_client)
    product = _create_product(
        api_client, brand_id=brand_id, name="Coffee Mug", sku="MUG-1", attributes={"Material": ["Ceramic"]}
    )
    assert product["slug"] == "coffee-mug"
    assert product["brand"]["name"] == "Acme"
    assert product["attributes"] == {"Material": ["Ceramic"]}
    assert product["category"] is None


def test_simple_product_requires_price_and_sku(api_client):
    brand_id = _create_brand(api_client)
    response = api_client.post(
        "/admin/products", json={"name": "Mug", "description": "d", "brandId": brand_id, "price": 5}
    )
    assert response.status_code == 422


def test_create_product_unknown_brand(api_client):
    response = api_client.post(
        "/admin/products",
        json={"name": "Mug", "description": "d", "brandId": "missing", "price": 5, "sku": "X"},
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Brand not found"


def test_duplicate_sku_conflicts(api_client):
    brand_id = _create_brand(api_client)
    _create_product(api_client, brand_id=brand_id, name="Mug", sku="MUG-1")
    response = api_client.post(
        "/admin/products",
        json={"name": "Other Mug", "description": "d", "brandId": brand_id, "price": 5, "sku": "MUG-1"},
    )
    assert response.status_code == 409


def test_variant_product_derives_attributes_and_stock(api_client):
    brand_id = _create_brand(api_client)
    payload = _variant_payload()
    payload["brandId"] = brand_id
    response = api_client.post("/admin/products", json=payload)
    assert response.status_code == 201, response.text
    product = response.json()
    assert product["sku"] == "t-shirt"
    assert product["attributes"] == {"Size": ["S", "M"], "Color": ["Red"]}
    assert product["stock_quantity"] == 7
    assert all(variant["id"] for variant in product["variants"])


def test_variant_product_requires_variants(api_client):
    brand_id = _create_brand(api_client)
    response = api_client.post(
        "/admin/products",
        json={"name": "Tee", "description": "d", "brandId": brand_id, "hasVariants": True, "variants": []},
    )
    assert response.status_code == 422


def test_update_product_and_slug(api_client):
    brand_id = _create_brand(api_client)
    product = _create_product(api_client, brand_id=brand_id, name="Mug", sku="MUG-1")

    response = api_client.patch(
        f"/admin/products/{product['id']}",
        json={"price": 12.5, "slug": "Big Mug", "isPublished": True},
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["price"] == 12.5
    assert updated["slug"] == "big-mug"
    assert updated["is_published"] is True
    assert updated["sku"] == "MUG-1"


def test_update_missing_product(api_client):
    response = api_client.patch("/admin/products/missing", json={"price": 1})
    assert response.status_code == 404


def test_list_products_filters(api_client):
    acme = _create_brand(api_client, name="Acme")
    globex = _create_brand(api_client, name="Globex")
    clothing = _create_category(api_client, name="Clothing")
    shirts = _create_category(api_client, name="Shirts", parent_id=clothing)

    _create_product(
        api_client,
        brand_id=acme,
        name="Red Shirt",
        sku="RS",
        categoryId=shirts,
        attributes={"Color": ["Red"]},
    )
    _create_product(
        api_client,
        brand_id=globex,
        name="Blue Shirt",
        sku="BS",
        categoryId=shirts,
        attributes={"Color": ["Blue"]},
    )
    _create_product(api_client, brand_id=acme, name="Hat", sku="HAT", categoryId=clothing)

    response = api_client.get("/admin/products", params={"categoryId": clothing})
    assert response.json()["totalItems"] == 1

    response = api_client.get(
        "/admin/products", params={"categoryId": clothing, "includeSubcategories": "true"}
    )
    assert response.json()["totalItems"] == 3

    response = api_client.get("/admin/products", params={"brandId": globex})
    assert [item["name"] for item in response.json()["products"]] == ["Blue Shirt"]

    response = api_client.get("/admin/products", params={"search": "globex"})
    assert [item["name"] for item in response.json()["products"]] == ["Blue Shirt"]

    response = api_client.get("/admin/products", params={"attribute.Color": "Red"})
    assert [item["name"] for item in response.json()["products"]] == ["Red Shirt"]

    response = api_client.get("/admin/products", params={"hasAttribute.Color": "true", "limit": 1})
    body = response.json()
    assert body["totalItems"] == 2
    assert body["totalPages"] == 2
    assert len(body["products"]) == 1


def test_bulk_stock_update_endpoint(api_client):
    brand_id = _create_brand(api_client)
    product = _create_product(api_client, brand_id=brand_id, name="Mug", sku="MUG-1")

    response = api_client.put(
        "/admin/products/bulk-stock-update",
        json={"updates": [{"productId": product["id"], "stockQuantity": 40}, {"productId": "nope"}]},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["successCount"] == 1
    assert body["errorCount"] == 1

    detail = api_client.get(f"/admin/products/{product['id']}")
    assert detail.json()["stock_quantity"] == 40


def test_delete_product(api_client):
    brand_id = _create_brand(api_client)
    product = _create_product(api_client, brand_id=brand_id, name="Mug", sku="MUG-1")
    assert api_client.delete(f"/admin/products/{product['id']}").status_code == 204
    assert api_client.get(f"/admin/products/{product['id']}").status_code == 404


def test_catalog_permission_required(api_client, auth_context):
    auth_context.role = "order_manager"
    response = api_client.get("/admin/products")
    assert response.status_code == 403
    assert response.json()["detail"] == "Missing permission: manage_catalog"
