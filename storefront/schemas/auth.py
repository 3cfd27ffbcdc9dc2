from pydantic import BaseModel, EmailStr, Field

from storefront.db.enums import AdminRoleEnum


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminUserCreateRequest(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)
    role: AdminRoleEnum = AdminRoleEnum.admin
