from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from storefront.db.enums import OrderStatusEnum, PaymentStatusEnum


class ShippingAddress(BaseModel):
    fullName: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    district: str = Field(..., min_length=1)
    postalCode: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class OrderItemPayload(BaseModel):
    productId: str
    variantId: Optional[str] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image: Optional[str] = None
    selectedAttributes: dict[str, str] = Field(default_factory=dict)


class OrderCreateRequest(BaseModel):
    customerId: Optional[str] = None
    customerName: str = Field(..., min_length=1)
    customerEmail: Optional[EmailStr] = None
    phone: str = Field(..., min_length=1)
    shippingAddress: ShippingAddress
    items: list[OrderItemPayload] = Field(..., min_length=1)
    totalAmount: float = Field(..., gt=0)
    paymentMethod: str = Field(..., min_length=1)
    deliveryNote: Optional[str] = None
    adminNotes: Optional[str] = None


class OrderStatusUpdateRequest(BaseModel):
    status: OrderStatusEnum
    statusReason: Optional[str] = None
    trackingNumber: Optional[str] = None
    adminNotes: Optional[str] = None


class PaymentStatusUpdateRequest(BaseModel):
    paymentStatus: PaymentStatusEnum
