from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from storefront.auth.security import hash_password  # noqa: E402
from storefront.config import settings  # noqa: E402
from storefront.db.base import Database  # noqa: E402
from storefront.db.enums import AdminRoleEnum  # noqa: E402
from storefront.db.repositories.admin_users import AdminUsersRepository  # noqa: E402


def main(email: str, name: str, password: str, role: AdminRoleEnum) -> None:
    database = Database.from_settings(settings).open()
    try:
        with database.session_scope() as session:
            repo = AdminUsersRepository(session)
            if repo.get_by_email(email=email):
                print(f"Admin already exists: {email}")
                return
            user = repo.create(
                email=email.strip().lower(),
                name=name,
                password_hash=hash_password(password),
                role=role,
            )
            print(f"Created {user.role.value} {user.email} ({user.id})")
    finally:
        database.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an admin user for the storefront API.")
    parser.add_argument("--email", required=True, help="Login e-mail of the admin.")
    parser.add_argument("--name", required=True, help="Display name of the admin.")
    parser.add_argument(
        "--role",
        choices=[role.value for role in AdminRoleEnum],
        default=AdminRoleEnum.superadmin.value,
        help="Role to grant.",
    )
    parser.add_argument("--password", default=None, help="Password; prompted for when omitted.")
    args = parser.parse_args()
    password = args.password or getpass.getpass("Password: ")
    main(email=args.email, name=args.name, password=password, role=AdminRoleEnum(args.role))
