from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from storefront.auth.dependencies import AuthContext, require_permission
from storefront.auth.permissions import Permission
from storefront.db.deps import get_session
from storefront.db.enums import OrderStatusEnum
from storefront.db.models import Customer, Order
from storefront.db.repositories.customers import CustomersRepository
from storefront.db.repositories.orders import OrdersRepository
from storefront.routers.common import Pagination, clean_optional_id, get_pagination, not_found
from storefront.schemas.orders import OrderCreateRequest, OrderStatusUpdateRequest, PaymentStatusUpdateRequest
from storefront.services import orders as order_service

router = APIRouter(prefix="/admin/orders", tags=["orders"])


def _customer_summary(customer: Optional[Customer]) -> Optional[dict[str, Any]]:
    if customer is None:
        return None
    return {
        "id": customer.id,
        "email": customer.email,
        "first_name": customer.first_name,
        "last_name": customer.last_name,
        "phone": customer.phone,
    }


def _serialize(order: Order, customer: Optional[Customer]) -> dict[str, Any]:
    data = jsonable_encoder(order)
    data["customer"] = _customer_summary(customer)
    return data


def _serialize_one(session: Session, order: Order) -> dict[str, Any]:
    return _serialize(order, CustomersRepository(session).get(customer_id=order.customer_id))


@router.get("")
def list_orders(
    status_filter: Optional[OrderStatusEnum] = Query(None, alias="status"),
    customerId: Optional[str] = None,
    search: Optional[str] = None,
    dateFrom: Optional[datetime] = None,
    dateTo: Optional[datetime] = None,
    sortField: str = "createdAt",
    sortOrder: str = "desc",
    pagination: Pagination = Depends(get_pagination),
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    result = OrdersRepository(session).list(
        page=pagination.page,
        limit=pagination.limit,
        status=status_filter,
        customer_id=clean_optional_id(customerId),
        search=(search or "").strip() or None,
        date_from=dateFrom,
        date_to=dateTo,
        sort_field=sortField,
        sort_order=sortOrder,
    )
    customers_repo = CustomersRepository(session)
    customers: dict[str, Optional[Customer]] = {}
    items = []
    for order in result.items:
        if order.customer_id not in customers:
            customers[order.customer_id] = customers_repo.get(customer_id=order.customer_id)
        items.append(_serialize(order, customers[order.customer_id]))
    return result.envelope(items, key="orders")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreateRequest,
    auth: AuthContext = Depends(require_permission(Permission.create_order)),
    session: Session = Depends(get_session),
):
    order = order_service.create_order(
        session,
        customer_id=clean_optional_id(payload.customerId),
        customer_name=payload.customerName,
        customer_email=payload.customerEmail,
        phone=payload.phone,
        shipping_address=payload.shippingAddress.model_dump(),
        items=[item.model_dump() for item in payload.items],
        total_amount=payload.totalAmount,
        payment_method=payload.paymentMethod,
        delivery_note=payload.deliveryNote,
        admin_notes=payload.adminNotes,
    )
    return _serialize_one(session, order)


@router.get("/{order_id}")
def get_order(
    order_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    order = OrdersRepository(session).get(order_id=order_id)
    if not order:
        raise not_found("Order")
    return _serialize_one(session, order)


@router.put("/{order_id}/status")
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    order = order_service.update_order_status(
        session,
        order_id=order_id,
        new_status=payload.status,
        status_reason=payload.statusReason,
        tracking_number=payload.trackingNumber,
        admin_notes=payload.adminNotes,
    )
    return _serialize_one(session, order)


@router.put("/{order_id}/payment-status")
def update_payment_status(
    order_id: str,
    payload: PaymentStatusUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    order = order_service.update_payment_status(
        session, order_id=order_id, payment_status=payload.paymentStatus
    )
    return _serialize_one(session, order)


@router.get("/{order_id}/stock-validation")
def get_stock_validation(
    order_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    return order_service.live_stock_validation(session, order_id=order_id)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    repo = OrdersRepository(session)
    order = repo.get(order_id=order_id)
    if not order:
        raise not_found("Order")
    repo.remove(order)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
