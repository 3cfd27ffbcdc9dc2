from typing import Optional

from pydantic import BaseModel, Field


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    parentId: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    isPublished: bool = False


class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = None
    parentId: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    isPublished: Optional[bool] = None
