from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.auth.dependencies import AuthContext, require_permission
from storefront.auth.permissions import Permission
from storefront.db.deps import get_session
from storefront.db.models import AttributeDefinition
from storefront.db.repositories.attribute_definitions import AttributeDefinitionsRepository
from storefront.routers.common import Pagination, conflict, get_pagination, not_found
from storefront.schemas.attribute_definitions import (
    AttributeDefinitionCreateRequest,
    AttributeDefinitionUpdateRequest,
)
from storefront.services.catalog import normalize_attribute_values

router = APIRouter(prefix="/admin/attribute-definitions", tags=["attribute-definitions"])


def _ensure_unique_name(session: Session, *, name: str, exclude_id: Optional[str] = None) -> None:
    stmt = select(AttributeDefinition.id).where(AttributeDefinition.name == name)
    if exclude_id:
        stmt = stmt.where(AttributeDefinition.id != exclude_id)
    if session.execute(stmt).first():
        raise conflict("An attribute definition with this name already exists.")


@router.get("")
def list_attribute_definitions(
    search: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    result = AttributeDefinitionsRepository(session).list(
        page=pagination.page, limit=pagination.limit, search=search
    )
    return result.envelope(jsonable_encoder(result.items), key="attributeDefinitions")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_attribute_definition(
    payload: AttributeDefinitionCreateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    name = payload.name.strip()
    _ensure_unique_name(session, name=name)
    definition = AttributeDefinitionsRepository(session).create(
        name=name, values=normalize_attribute_values(payload.values)
    )
    return jsonable_encoder(definition)


@router.get("/{definition_id}")
def get_attribute_definition(
    definition_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    definition = AttributeDefinitionsRepository(session).get(definition_id=definition_id)
    if not definition:
        raise not_found("Attribute definition")
    return jsonable_encoder(definition)


@router.patch("/{definition_id}")
def update_attribute_definition(
    definition_id: str,
    payload: AttributeDefinitionUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    repo = AttributeDefinitionsRepository(session)
    if not repo.get(definition_id=definition_id):
        raise not_found("Attribute definition")
    fields = {}
    if payload.name is not None:
        fields["name"] = payload.name.strip()
        _ensure_unique_name(session, name=fields["name"], exclude_id=definition_id)
    if payload.values is not None:
        fields["values"] = normalize_attribute_values(payload.values)
    definition = repo.update(definition_id=definition_id, **fields)
    return jsonable_encoder(definition)


@router.delete("/{definition_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attribute_definition(
    definition_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_catalog)),
    session: Session = Depends(get_session),
):
    repo = AttributeDefinitionsRepository(session)
    definition = repo.get(definition_id=definition_id)
    if not definition:
        raise not_found("Attribute definition")
    repo.remove(definition)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
