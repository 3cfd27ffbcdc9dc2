from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from storefront.auth.dependencies import AuthContext, require_permission
from storefront.auth.permissions import Permission
from storefront.db.deps import get_session
from storefront.db.repositories.pages import PagesRepository
from storefront.db.repositories.site_config import SiteConfigRepository
from storefront.routers.common import changed_fields, clean_optional_id, drop_nulls, not_found
from storefront.schemas.site_config import SiteConfigUpdateRequest

router = APIRouter(prefix="/admin/site-config", tags=["site-config"])

_SITE_CONFIG_FIELDS = {
    "siteName": "site_name",
    "defaultProductPageId": "default_product_page_id",
}


@router.get("")
def get_site_config(
    auth: AuthContext = Depends(require_permission(Permission.manage_settings)),
    session: Session = Depends(get_session),
):
    return jsonable_encoder(SiteConfigRepository(session).get())


@router.patch("")
def update_site_config(
    payload: SiteConfigUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.manage_settings)),
    session: Session = Depends(get_session),
):
    fields = drop_nulls(changed_fields(payload, _SITE_CONFIG_FIELDS), "site_name")
    if "default_product_page_id" in fields:
        page_id = clean_optional_id(fields["default_product_page_id"])
        if page_id and not PagesRepository(session).get(page_id=page_id):
            raise not_found("Page")
        fields["default_product_page_id"] = page_id
    return jsonable_encoder(SiteConfigRepository(session).update(**fields))
