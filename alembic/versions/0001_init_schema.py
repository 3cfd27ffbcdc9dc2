"""Initial schema"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_init_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
    money = sa.Numeric(12, 2)
    id_type = sa.String(36)

    page_type_enum = sa.Enum(
        "landing", "content", "category", "brand", "product", "custom", name="page_type"
    )
    order_status_enum = sa.Enum(
        "pending",
        "processing",
        "shipped",
        "delivered",
        "completed",
        "cancelled",
        "refunded",
        "on-hold",
        "failed",
        name="order_status",
    )
    payment_status_enum = sa.Enum("paid", "unpaid", name="payment_status")
    admin_role_enum = sa.Enum("superadmin", "admin", "order_manager", name="admin_role")

    op.create_table(
        "brands",
        sa.Column("id", id_type, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("slug", sa.String(200), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo", sa.Text(), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "categories",
        sa.Column("id", id_type, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("slug", sa.String(200), nullable=False, unique=True),
        sa.Column("parent_id", id_type, sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_categories_parent", "categories", ["parent_id"])

    op.create_table(
        "attribute_definitions",
        sa.Column("id", id_type, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("values", json_type, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "dynamic_pages",
        sa.Column("id", id_type, primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("slug", sa.String(300), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("page_type", page_type_enum, nullable=False, server_default="custom"),
        sa.Column("segments", json_type, nullable=False),
        sa.Column("grid_cells", json_type, nullable=False),
        sa.Column("seo_title", sa.String(70), nullable=True),
        sa.Column("seo_description", sa.String(160), nullable=True),
        sa.Column("seo_keywords", json_type, nullable=False),
        sa.Column("og_image", sa.Text(), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("page_settings", json_type, nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_dynamic_pages_type_published", "dynamic_pages", ["page_type", "is_published"])

    op.create_table(
        "products",
        sa.Column("id", id_type, primary_key=True),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("slug", sa.String(300), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", money, nullable=True),
        sa.Column("sale_price", money, nullable=True),
        sa.Column("sku", sa.String(100), nullable=True, unique=True),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("images", json_type, nullable=False),
        sa.Column("category_id", id_type, sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("brand_id", id_type, sa.ForeignKey("brands.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("tags", json_type, nullable=False),
        sa.Column("attributes", json_type, nullable=False),
        sa.Column("has_variants", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("variants", json_type, nullable=False),
        sa.Column("seo_title", sa.String(70), nullable=True),
        sa.Column("seo_description", sa.String(160), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "custom_page_id", id_type, sa.ForeignKey("dynamic_pages.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_products_brand", "products", ["brand_id"])
    op.create_index("idx_products_category", "products", ["category_id"])

    op.create_table(
        "customers",
        sa.Column("id", id_type, primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("first_name", sa.String(200), nullable=True),
        sa.Column("last_name", sa.String(200), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("addresses", json_type, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "orders",
        sa.Column("id", id_type, primary_key=True),
        sa.Column("order_number", sa.String(40), nullable=False, unique=True),
        sa.Column("customer_id", id_type, sa.ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("items", json_type, nullable=False),
        sa.Column("total_amount", money, nullable=False),
        sa.Column("status", order_status_enum, nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(100), nullable=False),
        sa.Column("payment_status", payment_status_enum, nullable=False, server_default="unpaid"),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipping_address", json_type, nullable=False),
        sa.Column("delivery_note", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("tracking_number", sa.String(200), nullable=True),
        sa.Column("status_reason", sa.Text(), nullable=True),
        sa.Column("stock_validation", json_type, nullable=True),
        sa.Column("is_delivered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_orders_customer", "orders", ["customer_id"])
    op.create_index("idx_orders_status_created", "orders", ["status", "created_at"])

    op.create_table(
        "site_config",
        sa.Column("id", id_type, primary_key=True),
        sa.Column("site_name", sa.String(200), nullable=False, server_default="Storefront"),
        sa.Column(
            "default_product_page_id",
            id_type,
            sa.ForeignKey("dynamic_pages.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "admin_users",
        sa.Column("id", id_type, primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("password_hash", sa.String(200), nullable=False),
        sa.Column("role", admin_role_enum, nullable=False, server_default="admin"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("admin_users")
    op.drop_table("site_config")
    op.drop_index("idx_orders_status_created", table_name="orders")
    op.drop_index("idx_orders_customer", table_name="orders")
    op.drop_table("orders")
    op.drop_table("customers")
    op.drop_index("idx_products_category", table_name="products")
    op.drop_index("idx_products_brand", table_name="products")
    op.drop_table("products")
    op.drop_index("idx_dynamic_pages_type_published", table_name="dynamic_pages")
    op.drop_table("dynamic_pages")
    op.drop_table("attribute_definitions")
    op.drop_index("idx_categories_parent", table_name="categories")
    op.drop_table("categories")
    op.drop_table("brands")

    bind = op.get_bind()
    for enum_name in ("admin_role", "payment_status", "order_status", "page_type"):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
