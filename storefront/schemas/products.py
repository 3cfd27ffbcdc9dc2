from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VariantImage(BaseModel):
    url: str
    publicId: Optional[str] = None


class ProductVariantPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    attributeCombination: dict[str, str] = Field(default_factory=dict)
    sku: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    stockQuantity: int = Field(default=0, ge=0)
    isActive: bool = True
    images: list[VariantImage | str] = Field(default_factory=list)


class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., min_length=1)
    brandId: str
    slug: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    salePrice: Optional[float] = Field(default=None, ge=0)
    sku: Optional[str] = None
    stockQuantity: int = Field(default=0, ge=0)
    images: list[str] = Field(default_factory=list)
    categoryId: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    attributes: dict[str, list[str]] = Field(default_factory=dict)
    hasVariants: bool = False
    variants: list[ProductVariantPayload] = Field(default_factory=list)
    seoTitle: Optional[str] = Field(default=None, max_length=70)
    seoDescription: Optional[str] = Field(default=None, max_length=160)
    isPublished: bool = False
    customPageId: Optional[str] = None

    @model_validator(mode="after")
    def check_variant_requirements(self) -> "ProductCreateRequest":
        if self.hasVariants:
            if not self.variants:
                raise ValueError("Variant products must have at least one variant")
        elif self.price is None or not (self.sku or "").strip():
            raise ValueError("Missing required fields for non-variant product: price, sku")
        return self


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = Field(default=None, min_length=1)
    brandId: Optional[str] = None
    slug: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    salePrice: Optional[float] = Field(default=None, ge=0)
    sku: Optional[str] = None
    stockQuantity: Optional[int] = Field(default=None, ge=0)
    images: Optional[list[str]] = None
    categoryId: Optional[str] = None
    tags: Optional[list[str]] = None
    attributes: Optional[dict[str, list[str]]] = None
    hasVariants: Optional[bool] = None
    variants: Optional[list[ProductVariantPayload]] = None
    seoTitle: Optional[str] = Field(default=None, max_length=70)
    seoDescription: Optional[str] = Field(default=None, max_length=160)
    isPublished: Optional[bool] = None
    customPageId: Optional[str] = None


class BulkStockUpdateItem(BaseModel):
    productId: str
    variantId: Optional[str] = None
    stockQuantity: Optional[int] = None
    price: Optional[float] = None
    sku: Optional[str] = None


class BulkStockUpdateRequest(BaseModel):
    updates: list[BulkStockUpdateItem] = Field(..., min_length=1)
