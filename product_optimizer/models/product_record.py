from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Platform(str, Enum):
    """E-commerce platforms recognised by the platform detector."""

    AMAZON = "amazon"
    SHOPIFY = "shopify"
    WOOCOMMERCE = "woocommerce"
    ETSY = "etsy"
    WALMART = "walmart"
    EBAY = "ebay"
    GENERIC = "generic"


class Price(BaseModel):
    """
    Parsed price.

    Attributes:
        value (float): Numeric amount with separators and symbols removed.
        currency (Optional[str]): ISO-4217 code, inferred when the page only shows a symbol.
        raw (str): The text the value was parsed from.
    """

    value: float
    currency: Optional[str] = None
    raw: Optional[str] = None


class Description(BaseModel):
    html: Optional[str] = None
    text: str = ""


class ProductImage(BaseModel):
    src: str
    alt: Optional[str] = None


class Variant(BaseModel):
    name: str
    values: List[str] = Field(default_factory=list)


class SpecEntry(BaseModel):
    key: str
    value: str


class ReviewSummary(BaseModel):
    average: Optional[float] = None
    count: Optional[int] = None


class ProductRecord(BaseModel):
    """
    Canonical product record merged from every extractor that fired on a page.

    Only ``title`` is mandatory: a page without one is not a product page.
    Everything else is optional and defaults to empty.
    """

    title: str
    brand: Optional[str] = None
    price: Optional[Price] = None
    bullets: List[str] = Field(default_factory=list)
    description: Optional[Description] = None
    images: List[ProductImage] = Field(default_factory=list)
    variants: List[Variant] = Field(default_factory=list)
    specs: List[SpecEntry] = Field(default_factory=list)
    reviews: Optional[ReviewSummary] = None
    sku: Optional[str] = None
    availability: Optional[str] = None
    category_path: List[str] = Field(default_factory=list)
    platform: Platform = Platform.GENERIC
    url: Optional[str] = None
    captured_at: Optional[datetime] = None

    @property
    def description_text(self) -> str:
        return self.description.text if self.description else ""
