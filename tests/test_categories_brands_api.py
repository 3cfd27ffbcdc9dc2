from __future__ import annotations


def _create_category(api_client, *, name: str, parent_id: str | None = None) -> dict:
    payload: dict[str, object] = {"name": name}
    if parent_id is not None:
        payload["parentId"] = parent_id
    response = api_client.post("/admin/categories", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_brand_crud(api_client):
    response = api_client.post("/admin/brands", json={"name": "Acme Tools", "website": "https://acme.test"})
    assert response.status_code == 201
    brand = response.json()
    assert brand["slug"] == "acme-tools"
    assert brand["is_active"] is True

    duplicate = api_client.post("/admin/brands", json={"name": "Acme Tools"})
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "A brand with this name already exists."

    renamed = api_client.patch(f"/admin/brands/{brand['id']}", json={"name": "Acme Hardware"})
    assert renamed.status_code == 200
    assert renamed.json()["slug"] == "acme-hardware"

    listing = api_client.get("/admin/brands", params={"search": "hardware"})
    body = listing.json()
    assert body["totalItems"] == 1
    assert body["currentPage"] == 1
    assert body["brands"][0]["id"] == brand["id"]

    assert api_client.delete(f"/admin/brands/{brand['id']}").status_code == 204
    assert api_client.get(f"/admin/brands/{brand['id']}").status_code == 404


def test_brand_with_products_cannot_be_deleted(api_client):
    brand = api_client.post("/admin/brands", json={"name": "Acme"}).json()
    response = api_client.post(
        "/admin/products",
        json={"name": "Mug", "description": "d", "brandId": brand["id"], "price": 1, "sku": "M"},
    )
    assert response.status_code == 201
    assert api_client.delete(f"/admin/brands/{brand['id']}").status_code == 409


def test_category_hierarchy_and_tree(api_client):
    root = _create_category(api_client, name="Clothing")
    child = _create_category(api_client, name="Shirts", parent_id=root["id"])
    grandchild = _create_category(api_client, name="Tees", parent_id=child["id"])

    top_level = api_client.get("/admin/categories", params={"parentId": "root"}).json()
    assert [item["name"] for item in top_level["categories"]] == ["Clothing"]

    children = api_client.get("/admin/categories", params={"parentId": root["id"]}).json()
    assert [item["name"] for item in children["categories"]] == ["Shirts"]

    tree = api_client.get(f"/admin/categories/{root['id']}/tree", params={"includeProductCount": "true"})
    assert tree.status_code == 200
    node = tree.json()["children"][0]["children"][0]
    assert node["id"] == grandchild["id"]
    assert node["path"] == "Clothing > Shirts > Tees"
    assert node["productCount"] == 0


def test_category_cannot_become_its_own_ancestor(api_client):
    root = _create_category(api_client, name="Clothing")
    child = _create_category(api_client, name="Shirts", parent_id=root["id"])

    response = api_client.patch(f"/admin/categories/{root['id']}", json={"parentId": root["id"]})
    assert response.status_code == 400

    response = api_client.patch(f"/admin/categories/{root['id']}", json={"parentId": child["id"]})
    assert response.status_code == 400


def test_category_unknown_parent(api_client):
    response = api_client.post("/admin/categories", json={"name": "Orphan", "parentId": "missing"})
    assert response.status_code == 404


def test_deleting_category_detaches_children_and_products(api_client):
    root = _create_category(api_client, name="Clothing")
    child = _create_category(api_client, name="Shirts", parent_id=root["id"])
    brand = api_client.post("/admin/brands", json={"name": "Acme"}).json()
    product = api_client.post(
        "/admin/products",
        json={
            "name": "Hat",
            "description": "d",
            "brandId": brand["id"],
            "price": 1,
            "sku": "HAT",
            "categoryId": root["id"],
        },
    ).json()

    assert api_client.delete(f"/admin/categories/{root['id']}").status_code == 204
    assert api_client.get(f"/admin/categories/{child['id']}").json()["parent_id"] is None
    assert api_client.get(f"/admin/products/{product['id']}").json()["category_id"] is None


def test_attribute_definition_crud(api_client):
    response = api_client.post(
        "/admin/attribute-definitions", json={"name": "Color", "values": ["Red", " Red ", "Blue"]}
    )
    assert response.status_code == 201
    definition = response.json()
    assert definition["values"] == ["Red", "Blue"]

    updated = api_client.patch(
        f"/admin/attribute-definitions/{definition['id']}", json={"values": ["Green"]}
    )
    assert updated.json()["values"] == ["Green"]

    listing = api_client.get("/admin/attribute-definitions").json()
    assert listing["attributeDefinitions"][0]["name"] == "Color"

    assert api_client.delete(f"/admin/attribute-definitions/{definition['id']}").status_code == 204
