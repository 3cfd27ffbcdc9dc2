from collections.abc import Generator

from fastapi import Depends, Request

from storefront.db.base import Database


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_session(database: Database = Depends(get_database)) -> Generator:
    db = database.session()
    try:
        yield db
    finally:
        db.close()
