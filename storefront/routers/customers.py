from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from storefront.auth.dependencies import AuthContext, require_permission
from storefront.auth.permissions import Permission
from storefront.db.deps import get_session
from storefront.db.repositories.customers import CustomersRepository
from storefront.routers.common import (
    Pagination,
    changed_fields,
    conflict,
    drop_nulls,
    get_pagination,
    not_found,
)
from storefront.schemas.customers import CustomerCreateRequest, CustomerUpdateRequest

router = APIRouter(prefix="/admin/customers", tags=["customers"])

_CUSTOMER_FIELDS = {
    "email": "email",
    "firstName": "first_name",
    "lastName": "last_name",
    "phone": "phone",
    "addresses": "addresses",
    "isActive": "is_active",
}


def _ensure_unique_email(repo: CustomersRepository, *, email: str, exclude_id: Optional[str] = None) -> None:
    existing = repo.get_by_email(email=email)
    if existing and existing.id != exclude_id:
        raise conflict("A customer with this email already exists.")


@router.get("")
def list_customers(
    search: Optional[str] = None,
    isActive: Optional[bool] = None,
    pagination: Pagination = Depends(get_pagination),
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    result = CustomersRepository(session).list(
        page=pagination.page, limit=pagination.limit, search=search, is_active=isActive
    )
    return result.envelope(jsonable_encoder(result.items), key="customers")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    repo = CustomersRepository(session)
    email = payload.email.strip().lower()
    _ensure_unique_email(repo, email=email)
    customer = repo.create(
        email=email,
        first_name=payload.firstName,
        last_name=payload.lastName,
        phone=payload.phone,
        addresses=payload.addresses,
        is_active=payload.isActive,
    )
    return jsonable_encoder(customer)


@router.get("/{customer_id}")
def get_customer(
    customer_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    customer = CustomersRepository(session).get(customer_id=customer_id)
    if not customer:
        raise not_found("Customer")
    return jsonable_encoder(customer)


@router.patch("/{customer_id}")
def update_customer(
    customer_id: str,
    payload: CustomerUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    repo = CustomersRepository(session)
    if not repo.get(customer_id=customer_id):
        raise not_found("Customer")

    fields = drop_nulls(changed_fields(payload, _CUSTOMER_FIELDS), "is_active")
    if fields.get("email"):
        fields["email"] = fields["email"].strip().lower()
        _ensure_unique_email(repo, email=fields["email"], exclude_id=customer_id)
    else:
        fields.pop("email", None)
    if "addresses" in fields:
        fields["addresses"] = fields["addresses"] or []

    customer = repo.update(customer_id=customer_id, **fields)
    return jsonable_encoder(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: str,
    auth: AuthContext = Depends(require_permission(Permission.manage_orders)),
    session: Session = Depends(get_session),
):
    repo = CustomersRepository(session)
    customer = repo.get(customer_id=customer_id)
    if not customer:
        raise not_found("Customer")
    if repo.has_orders(customer_id=customer_id):
        raise conflict("Customer has orders and cannot be deleted.")
    repo.remove(customer)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
