from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select

from storefront.db.models import AdminUser
from storefront.db.repositories.base import Repository


class AdminUsersRepository(Repository):
    def get(self, *, user_id: str) -> Optional[AdminUser]:
        return self.session.get(AdminUser, user_id)

    def get_by_email(self, *, email: str) -> Optional[AdminUser]:
        stmt = select(AdminUser).where(AdminUser.email == email.strip().lower())
        return self.session.scalars(stmt).first()

    def create(self, **fields: Any) -> AdminUser:
        return self.save(AdminUser(**fields))
