from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import or_, select

from storefront.db.models import Customer, Order
from storefront.db.repositories.base import Page, Repository


class CustomersRepository(Repository):
    def list(
        self,
        *,
        page: int,
        limit: int,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Page[Customer]:
        stmt = select(Customer)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    Customer.email.ilike(pattern),
                    Customer.first_name.ilike(pattern),
                    Customer.last_name.ilike(pattern),
                )
            )
        if is_active is not None:
            stmt = stmt.where(Customer.is_active.is_(is_active))
        return self.paginate(stmt.order_by(Customer.created_at.desc()), page=page, limit=limit)

    def get(self, *, customer_id: str) -> Optional[Customer]:
        return self.session.get(Customer, customer_id)

    def get_by_email(self, *, email: str) -> Optional[Customer]:
        stmt = select(Customer).where(Customer.email == email.strip().lower())
        return self.session.scalars(stmt).first()

    def has_orders(self, *, customer_id: str) -> bool:
        stmt = select(Order.id).where(Order.customer_id == customer_id).limit(1)
        return self.session.execute(stmt).first() is not None

    def create(self, **fields: Any) -> Customer:
        return self.save(Customer(**fields))

    def update(self, *, customer_id: str, **fields: Any) -> Optional[Customer]:
        customer = self.get(customer_id=customer_id)
        if not customer:
            return None
        for key, value in fields.items():
            setattr(customer, key, value)
        return self.save(customer)
