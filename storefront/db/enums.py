from enum import Enum


class AdminRoleEnum(str, Enum):
    superadmin = "superadmin"
    admin = "admin"
    order_manager = "order_manager"


class OrderStatusEnum(str, Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    completed = "completed"
    cancelled = "cancelled"
    refunded = "refunded"
    on_hold = "on-hold"
    failed = "failed"


class PaymentStatusEnum(str, Enum):
    paid = "paid"
    unpaid = "unpaid"


class PageTypeEnum(str, Enum):
    landing = "landing"
    content = "content"
    category = "category"
    brand = "brand"
    product = "product"
    custom = "custom"


class StockStatusEnum(str, Enum):
    all_available = "all_available"
    partial_available = "partial_available"
    none_available = "none_available"
