from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import or_, select

from storefront.db.enums import OrderStatusEnum
from storefront.db.models import Customer, Order
from storefront.db.repositories.base import Page, Repository

_SORTABLE_FIELDS = {
    "createdAt": Order.created_at,
    "updatedAt": Order.updated_at,
    "totalAmount": Order.total_amount,
    "orderNumber": Order.order_number,
    "status": Order.status,
}


class OrdersRepository(Repository):
    def list(
        self,
        *,
        page: int,
        limit: int,
        status: Optional[OrderStatusEnum] = None,
        customer_id: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        sort_field: str = "createdAt",
        sort_order: str = "desc",
    ) -> Page[Order]:
        stmt = select(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        if customer_id:
            stmt = stmt.where(Order.customer_id == customer_id)
        if search:
            pattern = f"%{search}%"
            matching_customers = select(Customer.id).where(
                or_(
                    Customer.email.ilike(pattern),
                    Customer.first_name.ilike(pattern),
                    Customer.last_name.ilike(pattern),
                )
            )
            stmt = stmt.where(
                or_(Order.order_number.ilike(pattern), Order.customer_id.in_(matching_customers))
            )
        if date_from is not None:
            stmt = stmt.where(Order.created_at >= date_from)
        if date_to is not None:
            stmt = stmt.where(Order.created_at <= date_to)

        column = _SORTABLE_FIELDS.get(sort_field, Order.created_at)
        ordering = column.asc() if sort_order.lower() == "asc" else column.desc()
        return self.paginate(stmt.order_by(ordering, Order.id.asc()), page=page, limit=limit)

    def get(self, *, order_id: str) -> Optional[Order]:
        return self.session.get(Order, order_id)

    def create(self, **fields: Any) -> Order:
        return self.save(Order(**fields))
