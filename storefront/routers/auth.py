from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.auth.dependencies import AuthContext, get_current_user, require_permission
from storefront.auth.permissions import Permission, ROLE_PERMISSIONS
from storefront.auth.security import create_access_token, hash_password, verify_password
from storefront.config import settings
from storefront.db.deps import get_session
from storefront.db.models import AdminUser
from storefront.db.repositories.admin_users import AdminUsersRepository
from storefront.routers.common import conflict, not_found
from storefront.schemas.auth import AdminUserCreateRequest, LoginRequest

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _serialize_admin(user: AdminUser) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "permissions": sorted(permission.value for permission in ROLE_PERMISSIONS.get(user.role, ())),
        "is_active": user.is_active,
    }


@router.post("/login")
def login(payload: LoginRequest, session: Session = Depends(get_session)):
    user = AdminUsersRepository(session).get_by_email(email=payload.email)
    if not user or not user.is_active or not verify_password(payload.password, user.password_hash):
        logger.info("Rejected admin login", extra={"email": payload.email.lower()})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    token = create_access_token(subject=user.id, role=user.role.value)
    logger.info("Admin logged in", extra={"sub": user.id, "role": user.role.value})
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": _serialize_admin(user),
    }


@router.get("/me")
def me(auth: AuthContext = Depends(get_current_user), session: Session = Depends(get_session)):
    user = AdminUsersRepository(session).get(user_id=auth.user_id)
    if not user:
        raise not_found("User")
    return _serialize_admin(user)


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_admin_user(
    payload: AdminUserCreateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_admins)),
    session: Session = Depends(get_session),
):
    repo = AdminUsersRepository(session)
    email = payload.email.strip().lower()
    if repo.get_by_email(email=email):
        raise conflict("An admin with this email already exists.")
    user = repo.create(
        email=email,
        name=payload.name.strip(),
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    logger.info("Admin user created", extra={"created_by": auth.user_id, "sub": user.id})
    return _serialize_admin(user)
