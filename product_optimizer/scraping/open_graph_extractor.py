"""
OpenGraph extractor for ``og:*`` and ``product:*`` meta tags.

Plain article and landing pages carry og:title too, so this extractor only
applies when a product signal (price, brand or a product og:type) exists.
"""

from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

from product_optimizer.models import ExtractionMethod, ExtractionResult, ExtractionSource
from .base_extractor import BaseExtractor
from .json_ld_extractor import normalize_availability
from .web_scraper_utils import WebScraperUtils


PRICE_PROPERTIES = ("og:price:amount", "product:price:amount")
CURRENCY_PROPERTIES = ("og:price:currency", "product:price:currency")
BRAND_PROPERTIES = ("og:brand", "product:brand")
AVAILABILITY_PROPERTIES = ("og:availability", "product:availability")


def meta_content(document: BeautifulSoup, *properties: str) -> Optional[str]:
    """Content of the first non-empty meta tag among ``properties``."""
    for prop in properties:
        tag = document.find("meta", attrs={"property": prop}) or document.find(
            "meta", attrs={"name": prop}
        )
        if tag is not None:
            content = (tag.get("content") or "").strip()
            if content:
                return content
    return None


class OpenGraphExtractor(BaseExtractor):
    name = "OpenGraphExtractor"
    priority = 800
    confidence = 0.70
    source = ExtractionSource.STRUCTURED
    method = ExtractionMethod.OPENGRAPH

    def can_run(self, document: BeautifulSoup) -> bool:
        og_type = (meta_content(document, "og:type") or "").lower()
        return bool(
            "product" in og_type
            or meta_content(document, *PRICE_PROPERTIES)
            or meta_content(document, *BRAND_PROPERTIES)
        )

    def extract(self, document: BeautifulSoup) -> ExtractionResult:
        data: Dict[str, Any] = {}

        title = meta_content(document, "og:title")
        if title:
            data["title"] = title

        description = meta_content(document, "og:description")
        if description:
            data["description"] = {"text": description}

        image = meta_content(document, "og:image", "og:image:url")
        if image:
            data["images"] = [{"src": image, "alt": title}]

        url = meta_content(document, "og:url")
        if url:
            data["url"] = url

        raw_price = meta_content(document, *PRICE_PROPERTIES)
        value = WebScraperUtils.parse_price(raw_price)
        if value is not None:
            data["price"] = {
                "value": value,
                "currency": meta_content(document, *CURRENCY_PROPERTIES),
                "raw": raw_price,
            }

        brand = meta_content(document, *BRAND_PROPERTIES)
        if brand:
            data["brand"] = brand

        availability = meta_content(document, *AVAILABILITY_PROPERTIES)
        if availability:
            data["availability"] = normalize_availability(availability)

        meta_tag_count = len(
            document.find_all("meta", attrs={"property": lambda p: p and p.startswith("og:")})
        )
        return self.create_result(data, meta_tag_count=meta_tag_count)
