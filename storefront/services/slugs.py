from __future__ import annotations

import re
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session


def slugify(value: str, *, fallback: str = "item") -> str:
    value = (value or "").strip().lower()
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"[^\w-]+", "", value)
    value = re.sub(r"-{2,}", "-", value).strip("-")
    return value or fallback


def generate_unique_slug(
    session: Session,
    *,
    model,
    desired_slug: str,
    exclude_id: Optional[str] = None,
) -> str:
    base = slugify(desired_slug)
    suffix = 0
    while True:
        slug = base if suffix == 0 else f"{base}-{suffix + 1}"
        stmt = select(model.id).where(model.slug == slug)
        if exclude_id:
            stmt = stmt.where(model.id != exclude_id)
        exists = session.execute(stmt).first()
        if not exists:
            return slug
        suffix += 1
