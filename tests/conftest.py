import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

TEST_DB_PATH = ROOT_DIR / "test_storefront.db"

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import delete

from storefront.auth.dependencies import AuthContext, get_current_user
from storefront.config import settings
from storefront.db.base import Base, Database
from storefront.db.deps import get_session
from storefront.main import create_app


@pytest.fixture(scope="session", autouse=True)
def apply_migrations() -> None:
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()
    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(ROOT_DIR / "alembic"))
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def database(apply_migrations):
    db = Database(settings.DATABASE_URL).open()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(delete(table))
        session.commit()
        session.close()


@pytest.fixture()
def app(database):
    return create_app(database)


@pytest.fixture()
def auth_context() -> AuthContext:
    return AuthContext(user_id="test-admin", role="superadmin")


@pytest.fixture()
def override_dependencies(app, db_session, auth_context):
    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    def get_user_override():
        return auth_context

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_current_user] = get_user_override
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def api_client(app, override_dependencies):
    with TestClient(app) as client:
        yield client
