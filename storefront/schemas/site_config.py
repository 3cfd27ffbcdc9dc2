from typing import Optional

from pydantic import BaseModel, Field


class SiteConfigUpdateRequest(BaseModel):
    siteName: Optional[str] = Field(default=None, min_length=1, max_length=200)
    defaultProductPageId: Optional[str] = None
