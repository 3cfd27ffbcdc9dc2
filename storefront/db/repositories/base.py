from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    def envelope(self, items: list[Any], *, key: str = "items") -> dict[str, Any]:
        return {
            key: items,
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalItems": self.total,
        }


class Repository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def remove(self, obj) -> None:
        self.session.delete(obj)
        self.session.commit()

    def paginate(self, stmt: Select, *, page: int, limit: int) -> Page:
        total = self.session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
        offset = (page - 1) * limit
        items = list(self.session.scalars(stmt.offset(offset).limit(limit)).all())
        return Page(items=items, total=total, page=page, limit=limit)
