from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select

from storefront.db.models import AttributeDefinition
from storefront.db.repositories.base import Page, Repository


class AttributeDefinitionsRepository(Repository):
    def list(self, *, page: int, limit: int, search: Optional[str] = None) -> Page[AttributeDefinition]:
        stmt = select(AttributeDefinition)
        if search:
            stmt = stmt.where(AttributeDefinition.name.ilike(f"%{search}%"))
        return self.paginate(stmt.order_by(AttributeDefinition.name.asc()), page=page, limit=limit)

    def list_all(self) -> list[AttributeDefinition]:
        stmt = select(AttributeDefinition).order_by(AttributeDefinition.name.asc())
        return list(self.session.scalars(stmt).all())

    def get(self, *, definition_id: str) -> Optional[AttributeDefinition]:
        return self.session.get(AttributeDefinition, definition_id)

    def create(self, **fields: Any) -> AttributeDefinition:
        return self.save(AttributeDefinition(**fields))

    def update(self, *, definition_id: str, **fields: Any) -> Optional[AttributeDefinition]:
        definition = self.get(definition_id=definition_id)
        if not definition:
            return None
        for key, value in fields.items():
            setattr(definition, key, value)
        return self.save(definition)
