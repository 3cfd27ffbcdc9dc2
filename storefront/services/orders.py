from __future__ import annotations

import logging
import string
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from storefront.db.enums import OrderStatusEnum, PaymentStatusEnum, StockStatusEnum
from storefront.db.models import Customer, Order
from storefront.db.repositories.customers import CustomersRepository
from storefront.db.repositories.orders import OrdersRepository
from storefront.services import stock
from storefront.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_BASE36_ALPHABET = string.digits + string.ascii_uppercase

_DEFAULT_STATUS_REASONS = {
    OrderStatusEnum.delivered: "Order delivered successfully.",
    OrderStatusEnum.shipped: "Order shipped.",
    OrderStatusEnum.failed: "Order failed.",
}


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_order_number(*, order_id: str, created_at: datetime) -> str:
    """Creation time in base 36 followed by the last four characters of the id."""

    millis = int(created_at.timestamp() * 1000)
    return f"{_to_base36(millis)}{order_id.replace('-', '')[-4:]}".upper()


def _split_name(full_name: str) -> tuple[str, Optional[str]]:
    parts = full_name.strip().split(None, 1)
    if not parts:
        return "", None
    return parts[0], parts[1] if len(parts) > 1 else None


def _resolve_customer(
    session: Session,
    *,
    customer_id: Optional[str],
    customer_name: str,
    customer_email: Optional[str],
    phone: str,
    shipping_address: dict[str, Any],
) -> Customer:
    repo = CustomersRepository(session)
    if customer_id:
        customer = repo.get(customer_id=customer_id)
        if not customer:
            raise NotFoundError("Customer not found")
        return customer

    if not customer_email:
        raise ValidationError("customerEmail is required when no customerId is supplied")

    customer = repo.get_by_email(email=customer_email)
    if customer:
        return customer

    first_name, last_name = _split_name(customer_name)
    logger.info("Creating customer for new order", extra={"email": customer_email.lower()})
    return repo.create(
        email=customer_email.strip().lower(),
        first_name=first_name or None,
        last_name=last_name,
        phone=phone,
        addresses=[shipping_address],
    )


def create_order(
    session: Session,
    *,
    customer_id: Optional[str],
    customer_name: str,
    customer_email: Optional[str],
    phone: str,
    shipping_address: dict[str, Any],
    items: list[dict[str, Any]],
    total_amount: float,
    payment_method: str,
    delivery_note: Optional[str] = None,
    admin_notes: Optional[str] = None,
) -> Order:
    if not items:
        raise ValidationError("Order must contain at least one item")
    if total_amount <= 0:
        raise ValidationError("Order total must be greater than zero")

    customer = _resolve_customer(
        session,
        customer_id=customer_id,
        customer_name=customer_name,
        customer_email=customer_email,
        phone=phone,
        shipping_address=shipping_address,
    )

    order_id = str(uuid4())
    created_at = datetime.now(timezone.utc)
    order = OrdersRepository(session).create(
        id=order_id,
        order_number=generate_order_number(order_id=order_id, created_at=created_at),
        customer_id=customer.id,
        items=items,
        total_amount=total_amount,
        payment_method=payment_method,
        shipping_address=shipping_address,
        delivery_note=delivery_note,
        admin_notes=admin_notes,
        created_at=created_at,
        updated_at=created_at,
    )
    logger.info(
        "Order created",
        extra={"order_id": order.id, "order_number": order.order_number, "customer_id": customer.id},
    )
    return order


def _stock_snapshot(result: dict[str, Any], *, deducted: bool) -> dict[str, Any]:
    return {
        "isValidated": True,
        "validationDate": datetime.now(timezone.utc).isoformat(),
        "validationResult": result["validationResult"],
        "availableItems": result["availableItems"],
        "partiallyAvailableItems": result["partiallyAvailableItems"],
        "unavailableItems": result["unavailableItems"],
        "stockDeducted": deducted,
    }


def _stock_deducted(order: Order) -> bool:
    return bool((order.stock_validation or {}).get("stockDeducted"))


def _start_processing(session: Session, order: Order, lines: list[stock.StockLine]) -> None:
    result = stock.validate_order_stock(session, lines)
    if result["validationResult"] != StockStatusEnum.all_available.value:
        order.status = OrderStatusEnum.on_hold
        order.status_reason = (
            "Cannot process: Insufficient stock for some items. "
            f"Validation result: {result['validationResult']}"
        )
        order.stock_validation = _stock_snapshot(result, deducted=False)
        logger.warning(
            "Order put on hold for insufficient stock",
            extra={"order_id": order.id, "validation_result": result["validationResult"]},
        )
        return

    errors = stock.deduct_stock(session, lines)
    if errors:
        order.status = OrderStatusEnum.on_hold
        order.status_reason = f"Stock deduction failed: {', '.join(errors)}"
        order.stock_validation = _stock_snapshot(result, deducted=False)
        return

    snapshot = _stock_snapshot(result, deducted=True)
    snapshot["stockDeductedAt"] = datetime.now(timezone.utc).isoformat()
    order.stock_validation = snapshot
    order.status_reason = "Stock deducted. Order processing."


def _cancel(session: Session, order: Order, lines: list[stock.StockLine]) -> None:
    if not _stock_deducted(order):
        order.status_reason = "Order cancelled."
        return
    errors = stock.restore_stock(session, lines)
    snapshot = dict(order.stock_validation or {})
    if errors:
        order.status_reason = f"Order cancelled. Stock restoration failed: {', '.join(errors)}"
    else:
        snapshot["stockDeducted"] = False
        snapshot.pop("stockDeductedAt", None)
        order.status_reason = "Order cancelled. Stock restored."
    order.stock_validation = snapshot
    flag_modified(order, "stock_validation")


def update_order_status(
    session: Session,
    *,
    order_id: str,
    new_status: OrderStatusEnum,
    status_reason: Optional[str] = None,
    tracking_number: Optional[str] = None,
    admin_notes: Optional[str] = None,
) -> Order:
    repo = OrdersRepository(session)
    order = repo.get(order_id=order_id)
    if not order:
        raise NotFoundError("Order not found")

    old_status = order.status
    order.status = new_status
    order.status_reason = None
    lines = stock.lines_from_order_items(order.items or [])

    if new_status == OrderStatusEnum.processing and old_status != OrderStatusEnum.processing:
        if not _stock_deducted(order):
            _start_processing(session, order, lines)
    elif new_status == OrderStatusEnum.cancelled and old_status != OrderStatusEnum.cancelled:
        _cancel(session, order, lines)

    if new_status == OrderStatusEnum.delivered:
        order.is_delivered = True
        order.delivered_at = datetime.now(timezone.utc)

    if status_reason:
        order.status_reason = status_reason
    elif not order.status_reason:
        order.status_reason = _DEFAULT_STATUS_REASONS.get(new_status)
    if tracking_number is not None:
        order.tracking_number = tracking_number
    if admin_notes is not None:
        order.admin_notes = admin_notes

    order = repo.save(order)
    logger.info(
        "Order status updated",
        extra={"order_id": order.id, "from_status": old_status.value, "to_status": order.status.value},
    )
    return order


def update_payment_status(session: Session, *, order_id: str, payment_status: PaymentStatusEnum) -> Order:
    repo = OrdersRepository(session)
    order = repo.get(order_id=order_id)
    if not order:
        raise NotFoundError("Order not found")
    order.payment_status = payment_status
    if payment_status == PaymentStatusEnum.paid:
        order.is_paid = True
        order.paid_at = datetime.now(timezone.utc)
    else:
        order.is_paid = False
        order.paid_at = None
    return repo.save(order)


def live_stock_validation(session: Session, *, order_id: str) -> dict[str, Any]:
    order = OrdersRepository(session).get(order_id=order_id)
    if not order:
        raise NotFoundError("Order not found")
    result = stock.validate_order_stock(session, stock.lines_from_order_items(order.items or []))
    result["orderId"] = order.id
    result["stockDeducted"] = _stock_deducted(order)
    return result
