from __future__ import annotations

import pytest


_SHIPPING_ADDRESS = {
    "fullName": "Jane Doe",
    "phone": "555-0100",
    "street": "1 Main St",
    "city": "Springfield",
    "district": "Central",
    "postalCode": "12345",
    "country": "US",
}


def _create_product(api_client, *, sku: str = "MUG-1", stock_quantity: int = 5) -> dict:
    brand = api_client.post("/admin/brands", json={"name": f"Brand {sku}"})
    assert brand.status_code == 201
    response = api_client.post(
        "/admin/products",
        json={
            "name": f"Product {sku}",
            "description": "d",
            "brandId": brand.json()["id"],
            "price": 10,
            "sku": sku,
            "stockQuantity": stock_quantity,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def _create_order(api_client, *, product: dict, quantity: int = 2, **extra) -> dict:
    payload: dict[str, object] = {
        "customerName": "Jane Doe",
        "customerEmail": "Jane@Example.com",
        "phone": "555-0100",
        "shippingAddress": _SHIPPING_ADDRESS,
        "items": [
            {"productId": product["id"], "name": product["name"], "price": 10, "quantity": quantity}
        ],
        "totalAmount": 10 * quantity,
        "paymentMethod": "cod",
    }
    payload.update(extra)
    response = api_client.post("/admin/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _set_status(api_client, order_id: str, status: str, **extra):
    return api_client.put(f"/admin/orders/{order_id}/status", json={"status": status, **extra})


def test_create_order_creates_customer(api_client):
    product = _create_product(api_client)
    order = _create_order(api_client, product=product)

    assert order["status"] == "pending"
    assert order["payment_status"] == "unpaid"
    assert order["order_number"] == order["order_number"].upper()
    assert order["customer"]["email"] == "jane@example.com"
    assert order["customer"]["first_name"] == "Jane"
    assert order["customer"]["last_name"] == "Doe"

    second = _create_order(api_client, product=product, customerEmail="jane@example.com")
    assert second["customer_id"] == order["customer_id"]


def test_create_order_unknown_customer(api_client):
    product = _create_product(api_client)
    response = api_client.post(
        "/admin/orders",
        json={
            "customerId": "missing",
            "customerName": "Jane Doe",
            "phone": "555-0100",
            "shippingAddress": _SHIPPING_ADDRESS,
            "items": [{"productId": product["id"], "price": 10, "quantity": 1}],
            "totalAmount": 10,
            "paymentMethod": "cod",
        },
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Customer not found"


def test_create_order_requires_customer_email_without_id(api_client):
    product = _create_product(api_client)
    response = api_client.post(
        "/admin/orders",
        json={
            "customerName": "Jane Doe",
            "phone": "555-0100",
            "shippingAddress": _SHIPPING_ADDRESS,
            "items": [{"productId": product["id"], "price": 10, "quantity": 1}],
            "totalAmount": 10,
            "paymentMethod": "cod",
        },
    )
    assert response.status_code == 400


def test_create_order_rejects_empty_items(api_client):
    response = api_client.post(
        "/admin/orders",
        json={
            "customerName": "Jane Doe",
            "customerEmail": "jane@example.com",
            "phone": "555-0100",
            "shippingAddress": _SHIPPING_ADDRESS,
            "items": [],
            "totalAmount": 10,
            "paymentMethod": "cod",
        },
    )
    assert response.status_code == 422


def test_processing_deducts_and_cancel_restores_stock(api_client):
    product = _create_product(api_client, stock_quantity=5)
    order = _create_order(api_client, product=product, quantity=2)

    response = _set_status(api_client, order["id"], "processing")
    assert response.status_code == 200
    processing = response.json()
    assert processing["status"] == "processing"
    assert processing["stock_validation"]["stockDeducted"] is True
    assert processing["stock_validation"]["validationResult"] == "all_available"
    assert api_client.get(f"/admin/products/{product['id']}").json()["stock_quantity"] == 3

    # Re-entering processing must not deduct twice.
    _set_status(api_client, order["id"], "shipped")
    _set_status(api_client, order["id"], "processing")
    assert api_client.get(f"/admin/products/{product['id']}").json()["stock_quantity"] == 3

    cancelled = _set_status(api_client, order["id"], "cancelled").json()
    assert cancelled["status_reason"] == "Order cancelled. Stock restored."
    assert cancelled["stock_validation"]["stockDeducted"] is False
    assert api_client.get(f"/admin/products/{product['id']}").json()["stock_quantity"] == 5


def test_processing_with_insufficient_stock_goes_on_hold(api_client):
    product = _create_product(api_client, stock_quantity=1)
    order = _create_order(api_client, product=product, quantity=3)

    held = _set_status(api_client, order["id"], "processing").json()
    assert held["status"] == "on-hold"
    assert held["status_reason"].startswith("Cannot process: Insufficient stock")
    assert held["stock_validation"]["validationResult"] == "partial_available"
    assert held["stock_validation"]["stockDeducted"] is False
    assert api_client.get(f"/admin/products/{product['id']}").json()["stock_quantity"] == 1


def test_delivered_sets_flags_and_tracking(api_client):
    product = _create_product(api_client)
    order = _create_order(api_client, product=product)

    delivered = _set_status(api_client, order["id"], "delivered", trackingNumber="TRK-1").json()
    assert delivered["is_delivered"] is True
    assert delivered["delivered_at"] is not None
    assert delivered["tracking_number"] == "TRK-1"
    assert delivered["status_reason"] == "Order delivered successfully."


def test_unknown_status_rejected(api_client):
    product = _create_product(api_client)
    order = _create_order(api_client, product=product)
    assert _set_status(api_client, order["id"], "lost").status_code == 422


@pytest.mark.parametrize("payment_status, is_paid", [("paid", True), ("unpaid", False)])
def test_payment_status(api_client, payment_status, is_paid):
    product = _create_product(api_client)
    order = _create_order(api_client, product=product)

    response = api_client.put(
        f"/admin/orders/{order['id']}/payment-status", json={"paymentStatus": payment_status}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["payment_status"] == payment_status
    assert body["is_paid"] is is_paid


def test_live_stock_validation(api_client):
    product = _create_product(api_client, stock_quantity=1)
    order = _create_order(api_client, product=product, quantity=1)

    response = api_client.get(f"/admin/orders/{order['id']}/stock-validation")
    assert response.status_code == 200
    body = response.json()
    assert body["orderId"] == order["id"]
    assert body["isValid"] is True
    assert body["stockDeducted"] is False
    assert body["message"] == "All items are available in stock."


def test_list_orders_filters(api_client):
    product = _create_product(api_client, stock_quantity=10)
    first = _create_order(api_client, product=product)
    _create_order(api_client, product=product, customerEmail="bob@example.com", customerName="Bob")
    _set_status(api_client, first["id"], "shipped")

    response = api_client.get("/admin/orders", params={"status": "shipped"})
    body = response.json()
    assert body["totalItems"] == 1
    assert body["orders"][0]["id"] == first["id"]

    response = api_client.get("/admin/orders", params={"search": first["order_number"]})
    assert [item["id"] for item in response.json()["orders"]] == [first["id"]]

    response = api_client.get("/admin/orders", params={"customerId": first["customer_id"]})
    assert response.json()["totalItems"] == 1


def test_delete_order(api_client):
    product = _create_product(api_client)
    order = _create_order(api_client, product=product)
    assert api_client.delete(f"/admin/orders/{order['id']}").status_code == 204
    assert api_client.get(f"/admin/orders/{order['id']}").status_code == 404


def test_customer_crud_and_delete_guard(api_client):
    response = api_client.post(
        "/admin/customers", json={"email": "Sam@Example.com", "firstName": "Sam"}
    )
    assert response.status_code == 201
    customer = response.json()
    assert customer["email"] == "sam@example.com"

    duplicate = api_client.post("/admin/customers", json={"email": "sam@example.com"})
    assert duplicate.status_code == 409

    updated = api_client.patch(f"/admin/customers/{customer['id']}", json={"lastName": "Smith"})
    assert updated.json()["last_name"] == "Smith"

    product = _create_product(api_client)
    _create_order(api_client, product=product, customerId=customer["id"], customerEmail=None)

    response = api_client.delete(f"/admin/customers/{customer['id']}")
    assert response.status_code == 409
    assert response.json()["detail"] == "Customer has orders and cannot be deleted."


def test_order_manager_can_manage_orders(api_client, auth_context):
    auth_context.role = "order_manager"
    assert api_client.get("/admin/orders").status_code == 200
    assert api_client.get("/admin/pages").status_code == 403
