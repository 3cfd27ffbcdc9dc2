from __future__ import annotations

from typing import Any

from sqlalchemy import select

from storefront.db.models import SiteConfig
from storefront.db.repositories.base import Repository


class SiteConfigRepository(Repository):
    def get(self) -> SiteConfig:
        config = self.session.scalars(select(SiteConfig).limit(1)).first()
        if config is None:
            config = self.save(SiteConfig())
        return config

    def update(self, **fields: Any) -> SiteConfig:
        config = self.get()
        for key, value in fields.items():
            setattr(config, key, value)
        return self.save(config)
