from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from storefront.auth.permissions import Permission, has_permission
from storefront.auth.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from storefront.db.deps import get_session
from storefront.db.enums import AdminRoleEnum
from storefront.db.repositories.admin_users import AdminUsersRepository


@pytest.fixture()
def auth_client(app, db_session):
    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_session] = get_session_override
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


def _create_admin(db_session, *, email: str, role: AdminRoleEnum, password: str = "correct-horse") -> str:
    user = AdminUsersRepository(db_session).create(
        email=email,
        name=email.split("@")[0],
        password_hash=hash_password(password),
        role=role,
    )
    return user.id


def _login(client, email: str, password: str = "correct-horse"):
    return client.post("/auth/login", json={"email": email, "password": password})


def test_password_hashing():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret-pass", "not-a-bcrypt-hash")


def test_token_round_trip_and_expiry():
    token = create_access_token(subject="user-1", role="admin")
    claims = decode_access_token(token)
    assert claims["sub"] == "user-1"
    assert claims["role"] == "admin"

    expired = create_access_token(subject="user-1", role="admin", expires_delta=timedelta(minutes=-5))
    with pytest.raises(HTTPException) as excinfo:
        decode_access_token(expired)
    assert excinfo.value.status_code == 401


def test_role_permissions():
    assert has_permission("superadmin", Permission.manage_admins)
    assert has_permission("admin", Permission.manage_pages)
    assert not has_permission("admin", Permission.manage_admins)
    assert has_permission("order_manager", Permission.create_order)
    assert not has_permission("order_manager", Permission.manage_catalog)


def test_login_and_me(auth_client, db_session):
    user_id = _create_admin(db_session, email="owner@example.com", role=AdminRoleEnum.superadmin)

    response = _login(auth_client, "Owner@Example.com")
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == user_id
    assert "password_hash" not in body["user"]

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    me = auth_client.get("/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "owner@example.com"
    assert "manage_admins" in me.json()["permissions"]


def test_login_rejects_bad_credentials(auth_client, db_session):
    _create_admin(db_session, email="owner@example.com", role=AdminRoleEnum.superadmin)

    response = _login(auth_client, "owner@example.com", password="wrong-password")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"
    assert _login(auth_client, "nobody@example.com").status_code == 401


def test_protected_routes_require_valid_token(auth_client):
    assert auth_client.get("/admin/products").status_code == 401
    response = auth_client.get("/admin/products", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_order_manager_cannot_manage_catalog(auth_client, db_session):
    _create_admin(db_session, email="orders@example.com", role=AdminRoleEnum.order_manager)
    token = _login(auth_client, "orders@example.com").json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    assert auth_client.get("/admin/orders", headers=headers).status_code == 200
    response = auth_client.get("/admin/products", headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Missing permission: manage_catalog"


def test_create_admin_user(auth_client, db_session):
    _create_admin(db_session, email="owner@example.com", role=AdminRoleEnum.superadmin)
    _create_admin(db_session, email="editor@example.com", role=AdminRoleEnum.admin)
    owner_token = _login(auth_client, "owner@example.com").json()["access_token"]
    editor_token = _login(auth_client, "editor@example.com").json()["access_token"]
    payload = {"email": "new@example.com", "name": "New", "password": "long-enough", "role": "order_manager"}

    denied = auth_client.post(
        "/auth/users", json=payload, headers={"Authorization": f"Bearer {editor_token}"}
    )
    assert denied.status_code == 403

    created = auth_client.post(
        "/auth/users", json=payload, headers={"Authorization": f"Bearer {owner_token}"}
    )
    assert created.status_code == 201
    assert created.json()["role"] == "order_manager"
    assert _login(auth_client, "new@example.com", password="long-enough").status_code == 200

    duplicate = auth_client.post(
        "/auth/users", json=payload, headers={"Authorization": f"Bearer {owner_token}"}
    )
    assert duplicate.status_code == 409
