from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from fastapi import HTTPException, Query, status
from pydantic import BaseModel

from storefront.config import settings


@dataclass
class Pagination:
    page: int
    limit: int


def get_pagination(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> Pagination:
    return Pagination(page=page, limit=limit)


def clean_optional_id(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def changed_fields(payload: BaseModel, field_map: dict[str, str]) -> dict[str, Any]:
    """Map the fields a client actually sent from camelCase request names to column names."""

    provided = payload.model_dump(exclude_unset=True)
    return {field_map[key]: value for key, value in provided.items() if key in field_map}


def not_found(entity: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")


def conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def drop_nulls(fields: dict[str, Any], *columns: str) -> dict[str, Any]:
    """Ignore explicit nulls sent for columns that cannot hold them."""

    for column in columns:
        if column in fields and fields[column] is None:
            fields.pop(column)
    return fields
