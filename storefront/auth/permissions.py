from enum import Enum

from storefront.db.enums import AdminRoleEnum


class Permission(str, Enum):
    create_order = "create_order"
    manage_orders = "manage_orders"
    manage_catalog = "manage_catalog"
    manage_pages = "manage_pages"
    manage_settings = "manage_settings"
    manage_admins = "manage_admins"


ROLE_PERMISSIONS: dict[AdminRoleEnum, frozenset[Permission]] = {
    AdminRoleEnum.superadmin: frozenset(Permission),
    AdminRoleEnum.admin: frozenset(
        {
            Permission.create_order,
            Permission.manage_orders,
            Permission.manage_catalog,
            Permission.manage_pages,
            Permission.manage_settings,
        }
    ),
    AdminRoleEnum.order_manager: frozenset({Permission.create_order, Permission.manage_orders}),
}


def has_permission(role: AdminRoleEnum | str, permission: Permission) -> bool:
    try:
        role = AdminRoleEnum(role)
    except ValueError:
        return False
    return permission in ROLE_PERMISSIONS.get(role, frozenset())
