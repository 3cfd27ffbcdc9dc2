from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field


class CustomerCreateRequest(BaseModel):
    email: EmailStr
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    phone: Optional[str] = None
    addresses: list[dict[str, Any]] = Field(default_factory=list)
    isActive: bool = True


class CustomerUpdateRequest(BaseModel):
    email: Optional[EmailStr] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    phone: Optional[str] = None
    addresses: Optional[list[dict[str, Any]]] = None
    isActive: Optional[bool] = None
