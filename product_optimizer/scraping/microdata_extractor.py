"""
Microdata extractor for ``itemtype="...schema.org/Product"`` markup.
"""

from typing import Any, Dict, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from product_optimizer.models import ExtractionMethod, ExtractionResult, ExtractionSource
from .base_extractor import BaseExtractor
from .json_ld_extractor import normalize_availability
from .web_scraper_utils import WebScraperUtils


PRODUCT_SCOPE_SELECTOR = '[itemtype*="schema.org/Product"]'

# Attribute holding the value for elements that do not carry it as text
VALUE_ATTRIBUTES = {
    "meta": "content",
    "img": "src",
    "a": "href",
    "link": "href",
    "time": "datetime",
}


def itemprop_value(element: Optional[Tag]) -> Optional[str]:
    """
    Read a microdata property value.

    Preference order: explicit ``content`` attribute, then the attribute
    implied by the element type, then stripped text.
    """
    if element is None:
        return None
    if element.has_attr("content"):
        return element["content"].strip() or None
    attribute = VALUE_ATTRIBUTES.get(element.name)
    if attribute and element.has_attr(attribute):
        return element[attribute].strip() or None
    return WebScraperUtils.element_text(element) or None


class MicrodataExtractor(BaseExtractor):
    name = "MicrodataExtractor"
    priority = 850
    confidence = 0.85
    source = ExtractionSource.STRUCTURED
    method = ExtractionMethod.MICRODATA

    def can_run(self, document: BeautifulSoup) -> bool:
        return document.select_one(PRODUCT_SCOPE_SELECTOR) is not None

    def extract(self, document: BeautifulSoup) -> ExtractionResult:
        scopes = document.select(PRODUCT_SCOPE_SELECTOR)
        data: Dict[str, Any] = {}
        if scopes:
            data = self._read_scope(scopes[0])
        return self.create_result(data, element_count=len(scopes))

    @staticmethod
    def _find_prop(scope: Tag, name: str) -> Optional[Tag]:
        """Prefer a property owned by ``scope`` over one in a nested item."""
        candidates = scope.select(f'[itemprop~="{name}"]')
        for element in candidates:
            if element.find_parent(attrs={"itemscope": True}) is scope:
                return element
        return candidates[0] if candidates else None

    def _read_scope(self, scope: Tag) -> Dict[str, Any]:
        def prop(name: str) -> Optional[str]:
            return itemprop_value(self._find_prop(scope, name))

        data: Dict[str, Any] = {}

        title = prop("name")
        if title:
            data["title"] = title

        description = WebScraperUtils.description_of(self._find_prop(scope, "description"))
        if description.get("text"):
            data["description"] = description

        image = prop("image")
        if image:
            data["images"] = [{"src": image, "alt": title}]

        brand = self._brand(scope)
        if brand:
            data["brand"] = brand

        price_element = self._find_prop(scope, "price")
        raw_price = itemprop_value(price_element)
        value = WebScraperUtils.parse_price(raw_price)
        if value is not None:
            data["price"] = {
                "value": value,
                "currency": prop("priceCurrency")
                or WebScraperUtils.infer_currency(raw_price),
                "raw": raw_price,
            }

        average = WebScraperUtils.parse_float(prop("ratingValue"))
        count = WebScraperUtils.parse_count(prop("reviewCount"))
        if average is not None or count is not None:
            data["reviews"] = {"average": average, "count": count}

        sku = prop("sku") or prop("gtin13") or prop("mpn")
        if sku:
            data["sku"] = sku

        availability = prop("availability")
        if availability:
            data["availability"] = normalize_availability(availability)

        return data

    @classmethod
    def _brand(cls, scope: Tag) -> Optional[str]:
        brand = cls._find_prop(scope, "brand")
        if brand is None:
            return None
        # Nested Brand/Organization scope
        if brand.has_attr("itemscope"):
            return itemprop_value(brand.select_one('[itemprop~="name"]'))
        return itemprop_value(brand)
