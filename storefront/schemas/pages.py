"""Request models for dynamic pages.

A page holds ordered segments and a grid-cell tree; both own ordered blocks. Each
block type has its own content model and the ``type`` field selects which one
validates a block. Presentation attributes the builder adds (colors, spacing,
responsive settings) are kept as extra fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from storefront.db.enums import PageTypeEnum

DataSourceLiteral = Literal["static", "product", "category", "collection", "customer"]
SegmentLayoutLiteral = Literal[
    "fullWidth",
    "contained",
    "twoColumn",
    "threeColumn",
    "fourColumn",
    "sidebar-left",
    "sidebar-right",
    "custom",
]


def _new_block_id() -> str:
    return f"block-{uuid4().hex[:12]}"


class _Flexible(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class DataBinding(_Flexible):
    sourceType: DataSourceLiteral = "static"
    fieldPath: Optional[str] = None
    fallbackValue: Optional[Any] = None
    templateString: Optional[str] = None


class BlockContent(_Flexible):
    dataBinding: Optional[DataBinding] = None
    width: Optional[str] = None


class TextContent(BlockContent):
    text: Optional[str] = None
    textAlign: Optional[Literal["left", "center", "right", "justify"]] = None
    fontSize: Optional[str] = None
    fontWeight: Optional[str] = None
    color: Optional[str] = None


class ImageContent(BlockContent):
    imageUrl: Optional[str] = None
    imageAlt: Optional[str] = None
    imageLink: Optional[str] = None
    imageFit: Optional[Literal["cover", "contain", "fill", "none", "scale-down"]] = None


class VideoContent(BlockContent):
    videoUrl: Optional[str] = None
    videoType: Optional[Literal["youtube", "vimeo", "direct", "cloudinary"]] = None
    autoplay: Optional[bool] = None
    loop: Optional[bool] = None
    controls: Optional[bool] = None


class ButtonContent(BlockContent):
    buttonText: Optional[str] = None
    buttonLink: Optional[str] = None
    buttonStyle: Optional[str] = None
    buttonSize: Optional[str] = None
    openInNewTab: Optional[bool] = None


class MediaItem(_Flexible):
    id: Optional[str] = None
    type: Literal["image", "video"] = "image"
    url: str
    alt: Optional[str] = None
    thumbnail: Optional[str] = None
    link: Optional[str] = None


class MediaGalleryContent(BlockContent):
    items: list[MediaItem] = Field(default_factory=list)
    displayMode: Optional[str] = None
    itemsPerView: Optional[int] = None
    autoPlay: Optional[bool] = None
    showThumbnails: Optional[bool] = None
    showDots: Optional[bool] = None
    showArrows: Optional[bool] = None


class ProductFilter(_Flexible):
    filterType: Literal[
        "all", "category", "brand", "tags", "featured", "bestsellers", "newArrivals", "onSale", "custom"
    ] = "all"
    categoryIds: list[str] = Field(default_factory=list)
    brandIds: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    sortBy: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1, le=100)


class ProductListContent(BlockContent):
    productFilter: Optional[ProductFilter] = None
    displayStyle: Optional[str] = None
    columns: Optional[int] = Field(default=None, ge=1, le=12)
    showPrice: Optional[bool] = None
    showAddToCart: Optional[bool] = None


class ProductAttributeSelectorContent(BlockContent):
    attributeNames: list[str] = Field(default_factory=list)
    selectorStyle: Optional[str] = None


class CategoryListContent(BlockContent):
    categoryIds: list[str] = Field(default_factory=list)
    listDisplayStyle: Optional[str] = None
    showDescription: Optional[bool] = None
    showImage: Optional[bool] = None


class BrandListContent(BlockContent):
    brandIds: list[str] = Field(default_factory=list)
    listDisplayStyle: Optional[str] = None
    showDescription: Optional[bool] = None
    showImage: Optional[bool] = None


class CustomHtmlContent(BlockContent):
    htmlContent: Optional[str] = None
    customCSS: Optional[str] = None
    customJS: Optional[str] = None


class SpacerContent(BlockContent):
    spacerHeight: Optional[str] = None


class DividerContent(BlockContent):
    dividerStyle: Optional[Literal["solid", "dashed", "dotted", "double"]] = None
    dividerColor: Optional[str] = None
    dividerWidth: Optional[str] = None


class CarouselItem(_Flexible):
    imageUrl: Optional[str] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    link: Optional[str] = None
    buttonText: Optional[str] = None


class CarouselContent(BlockContent):
    carouselItems: list[CarouselItem] = Field(default_factory=list)
    autoplaySpeed: Optional[int] = None
    showDots: Optional[bool] = None
    showArrows: Optional[bool] = None


class AccordionItem(_Flexible):
    title: str
    content: str = ""


class AccordionContent(BlockContent):
    accordionItems: list[AccordionItem] = Field(default_factory=list)


class CountdownContent(BlockContent):
    countdownDate: Optional[datetime] = None
    countdownText: Optional[str] = None


class SocialLink(_Flexible):
    platform: Literal["facebook", "twitter", "instagram", "linkedin", "youtube", "tiktok", "pinterest"]
    url: str


class SocialMediaContent(BlockContent):
    socialLinks: list[SocialLink] = Field(default_factory=list)
    iconSize: Optional[str] = None
    iconStyle: Optional[Literal["default", "rounded", "square"]] = None


class FormField(_Flexible):
    type: Literal["text", "email", "textarea", "select", "checkbox", "radio"]
    label: str
    name: str
    required: bool = False
    options: list[str] = Field(default_factory=list)


class FormContent(BlockContent):
    formFields: list[FormField] = Field(default_factory=list)
    submitButtonText: Optional[str] = None
    formAction: Optional[str] = None


class MapContent(BlockContent):
    mapAddress: Optional[str] = None
    mapLatitude: Optional[float] = Field(default=None, ge=-90, le=90)
    mapLongitude: Optional[float] = Field(default=None, ge=-180, le=180)
    mapZoom: Optional[int] = Field(default=None, ge=0, le=22)


class BlockVisibility(_Flexible):
    showOnMobile: bool = True
    showOnTablet: bool = True
    showOnDesktop: bool = True


class _BlockBase(_Flexible):
    id: str = Field(default_factory=_new_block_id, validation_alias=AliasChoices("id", "blockId"))
    order: Optional[int] = None
    visibility: Optional[BlockVisibility] = None


class TextBlock(_BlockBase):
    type: Literal["text"]
    content: TextContent = Field(default_factory=TextContent)


class ImageBlock(_BlockBase):
    type: Literal["image"]
    content: ImageContent = Field(default_factory=ImageContent)


class VideoBlock(_BlockBase):
    type: Literal["video"]
    content: VideoContent = Field(default_factory=VideoContent)


class ButtonBlock(_BlockBase):
    type: Literal["button"]
    content: ButtonContent = Field(default_factory=ButtonContent)


class MediaGalleryBlock(_BlockBase):
    type: Literal["mediaGallery"]
    content: MediaGalleryContent = Field(default_factory=MediaGalleryContent)


class ProductListBlock(_BlockBase):
    type: Literal["productList"]
    content: ProductListContent = Field(default_factory=ProductListContent)


class ProductAttributeSelectorBlock(_BlockBase):
    type: Literal["productAttributeSelector"]
    content: ProductAttributeSelectorContent = Field(default_factory=ProductAttributeSelectorContent)


class CategoryListBlock(_BlockBase):
    type: Literal["categoryList"]
    content: CategoryListContent = Field(default_factory=CategoryListContent)


class BrandListBlock(_BlockBase):
    type: Literal["brandList"]
    content: BrandListContent = Field(default_factory=BrandListContent)


class CustomHtmlBlock(_BlockBase):
    type: Literal["customHtml"]
    content: CustomHtmlContent = Field(default_factory=CustomHtmlContent)


class SpacerBlock(_BlockBase):
    type: Literal["spacer"]
    content: SpacerContent = Field(default_factory=SpacerContent)


class DividerBlock(_BlockBase):
    type: Literal["divider"]
    content: DividerContent = Field(default_factory=DividerContent)


class CarouselBlock(_BlockBase):
    type: Literal["carousel"]
    content: CarouselContent = Field(default_factory=CarouselContent)


class AccordionBlock(_BlockBase):
    type: Literal["accordion"]
    content: AccordionContent = Field(default_factory=AccordionContent)


class TabsBlock(_BlockBase):
    type: Literal["tabs"]
    content: AccordionContent = Field(default_factory=AccordionContent)


class CountdownBlock(_BlockBase):
    type: Literal["countdown"]
    content: CountdownContent = Field(default_factory=CountdownContent)


class SocialMediaBlock(_BlockBase):
    type: Literal["socialMedia"]
    content: SocialMediaContent = Field(default_factory=SocialMediaContent)


class FormBlock(_BlockBase):
    type: Literal["form"]
    content: FormContent = Field(default_factory=FormContent)


class MapBlock(_BlockBase):
    type: Literal["map"]
    content: MapContent = Field(default_factory=MapContent)


Block = Annotated[
    Union[
        TextBlock,
        ImageBlock,
        VideoBlock,
        ButtonBlock,
        MediaGalleryBlock,
        ProductListBlock,
        ProductAttributeSelectorBlock,
        CategoryListBlock,
        BrandListBlock,
        CustomHtmlBlock,
        SpacerBlock,
        DividerBlock,
        CarouselBlock,
        AccordionBlock,
        TabsBlock,
        CountdownBlock,
        SocialMediaBlock,
        FormBlock,
        MapBlock,
    ],
    Field(discriminator="type"),
]

BLOCK_TYPES = (
    "text",
    "image",
    "video",
    "button",
    "mediaGallery",
    "productList",
    "productAttributeSelector",
    "categoryList",
    "brandList",
    "customHtml",
    "spacer",
    "divider",
    "carousel",
    "accordion",
    "tabs",
    "countdown",
    "socialMedia",
    "form",
    "map",
)


class Segment(_Flexible):
    segmentId: str = Field(default_factory=lambda: f"segment-{uuid4().hex[:12]}")
    name: str = "Section"
    layout: SegmentLayoutLiteral = "fullWidth"
    order: int = 0
    isVisible: bool = True
    blocks: list[Block] = Field(default_factory=list)


class GridCell(_Flexible):
    cellId: str
    parentId: Optional[str] = None
    split: Optional[Literal["horizontal", "vertical"]] = None
    splitRatio: float = Field(default=0.5, gt=0, lt=1)
    children: list[str] = Field(default_factory=list)
    blocks: list[Block] = Field(default_factory=list)


def _check_grid(cells: list[GridCell]) -> list[GridCell]:
    ids = [cell.cellId for cell in cells]
    if len(ids) != len(set(ids)):
        raise ValueError("gridCells must have unique cellId values")
    known = set(ids)
    for cell in cells:
        if cell.parentId is not None and cell.parentId not in known:
            raise ValueError(f"gridCell {cell.cellId} references unknown parent {cell.parentId}")
        missing = [child for child in cell.children if child not in known]
        if missing:
            raise ValueError(f"gridCell {cell.cellId} references unknown children {missing}")
        if cell.children and cell.split is None:
            raise ValueError(f"gridCell {cell.cellId} has children but no split direction")
    return cells


class PageCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    slug: Optional[str] = None
    description: Optional[str] = None
    pageType: PageTypeEnum = PageTypeEnum.custom
    segments: list[Segment] = Field(default_factory=list)
    gridCells: list[GridCell] = Field(default_factory=list)
    seoTitle: Optional[str] = Field(default=None, max_length=70)
    seoDescription: Optional[str] = Field(default=None, max_length=160)
    seoKeywords: list[str] = Field(default_factory=list)
    ogImage: Optional[str] = None
    isPublished: bool = False
    pageSettings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("gridCells")
    @classmethod
    def validate_grid(cls, value: list[GridCell]) -> list[GridCell]:
        return _check_grid(value)


class PageUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    slug: Optional[str] = None
    description: Optional[str] = None
    pageType: Optional[PageTypeEnum] = None
    segments: Optional[list[Segment]] = None
    gridCells: Optional[list[GridCell]] = None
    seoTitle: Optional[str] = Field(default=None, max_length=70)
    seoDescription: Optional[str] = Field(default=None, max_length=160)
    seoKeywords: Optional[list[str]] = None
    ogImage: Optional[str] = None
    isPublished: Optional[bool] = None
    pageSettings: Optional[dict[str, Any]] = None

    @field_validator("gridCells")
    @classmethod
    def validate_grid(cls, value: Optional[list[GridCell]]) -> Optional[list[GridCell]]:
        if value is None:
            return value
        return _check_grid(value)


class PagePreviewRequest(BaseModel):
    context: dict[str, dict[str, Any]] = Field(default_factory=dict)
    productId: Optional[str] = None
    categoryId: Optional[str] = None
    skipMediaGallery: bool = False
