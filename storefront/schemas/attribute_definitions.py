from typing import Optional

from pydantic import BaseModel, Field


class AttributeDefinitionCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    values: list[str] = Field(default_factory=list)


class AttributeDefinitionUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    values: Optional[list[str]] = None
