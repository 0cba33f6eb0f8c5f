"""
JSON-LD extractor.

Reads schema.org Product nodes from ``application/ld+json`` script blocks.
This is the most reliable markup family and carries the highest priority.
"""

import json
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from product_optimizer.config import get_service_logger
from product_optimizer.models import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionSource,
)
from .base_extractor import BaseExtractor
from .web_scraper_utils import WebScraperUtils


logger = get_service_logger(__name__)

JSON_LD_SELECTOR = 'script[type="application/ld+json"]'

SPEC_PROPERTIES = ("color", "material", "size", "weight", "pattern", "model")


def normalize_availability(value: Any) -> Optional[str]:
    """'https://schema.org/InStock' -> 'InStock'."""
    if not value:
        return None
    return str(value).rstrip("/").rsplit("/", 1)[-1]


def _is_product_type(node_type: Any) -> bool:
    if isinstance(node_type, str):
        return node_type == "Product" or node_type.endswith("/Product")
    if isinstance(node_type, list):
        return any(_is_product_type(t) for t in node_type)
    return False


def find_product_node(node: Any) -> Optional[Dict[str, Any]]:
    """
    Depth-first search for a node whose @type is or contains Product.

    Covers @graph, mainEntity, itemListElement and any other nested
    object or list.
    """
    if isinstance(node, list):
        for item in node:
            found = find_product_node(item)
            if found is not None:
                return found
        return None

    if not isinstance(node, dict):
        return None

    if _is_product_type(node.get("@type")):
        return node

    for key in ("@graph", "mainEntity", "itemListElement"):
        if key in node:
            found = find_product_node(node[key])
            if found is not None:
                return found

    for key, value in node.items():
        if key in ("@graph", "mainEntity", "itemListElement"):
            continue
        if isinstance(value, (dict, list)):
            found = find_product_node(value)
            if found is not None:
                return found
    return None


class JsonLdExtractor(BaseExtractor):
    """Highest-priority extractor for JSON-LD Product markup."""

    name = "JsonLdExtractor"
    priority = 900
    confidence = 0.95
    source = ExtractionSource.STRUCTURED
    method = ExtractionMethod.JSON_LD

    def can_run(self, document: BeautifulSoup) -> bool:
        return document.select_one(JSON_LD_SELECTOR) is not None

    def extract(self, document: BeautifulSoup) -> ExtractionResult:
        scripts = document.select(JSON_LD_SELECTOR)
        data: Dict[str, Any] = {}
        invalid_blocks = 0

        for script in scripts:
            raw = script.string or script.get_text() or ""
            try:
                payload = json.loads(raw)
            except (json.JSONDecodeError, ValueError):
                invalid_blocks += 1
                logger.debug("Skipping invalid JSON-LD block")
                continue

            product = find_product_node(payload)
            if product is not None:
                data = self._map_product(product)
                if data.get("title"):
                    break

        return self.create_result(
            data, script_count=len(scripts), invalid_blocks=invalid_blocks
        )

    def _map_product(self, product: Dict[str, Any]) -> Dict[str, Any]:
        data: Dict[str, Any] = {}

        name = product.get("name")
        if name:
            data["title"] = WebScraperUtils.clean_text(str(name))

        description = product.get("description")
        if description:
            data["description"] = {"text": WebScraperUtils.clean_text(str(description))}

        image = self._first_image(product.get("image"))
        if image:
            data["images"] = [{"src": image, "alt": data.get("title")}]

        brand = product.get("brand")
        if isinstance(brand, dict):
            brand = brand.get("name")
        if isinstance(brand, list) and brand:
            brand = brand[0].get("name") if isinstance(brand[0], dict) else brand[0]
        if brand:
            data["brand"] = str(brand)

        offer = self._first_offer(product.get("offers"))
        price = self._price_from(offer) or self._price_from(product)
        if price:
            data["price"] = price
        if offer:
            data["availability"] = normalize_availability(offer.get("availability"))

        rating = product.get("aggregateRating")
        if isinstance(rating, dict):
            average = WebScraperUtils.parse_float(rating.get("ratingValue"))
            count = WebScraperUtils.parse_count(
                rating.get("reviewCount") or rating.get("ratingCount")
            )
            if average is not None or count is not None:
                data["reviews"] = {"average": average, "count": count}

        for key in ("sku", "gtin", "gtin13", "gtin14", "gtin8", "mpn"):
            if product.get(key):
                data["sku"] = str(product[key])
                break

        if product.get("url"):
            data["url"] = str(product["url"])

        category = product.get("category")
        if isinstance(category, str) and category.strip():
            separator = ">" if ">" in category else "/"
            data["category_path"] = [
                part.strip() for part in category.split(separator) if part.strip()
            ]

        data["specs"] = self._specs_from(product)
        return data

    @staticmethod
    def _first_image(image: Any) -> Optional[str]:
        if isinstance(image, list):
            image = image[0] if image else None
        if isinstance(image, dict):
            image = image.get("url") or image.get("contentUrl")
        return str(image) if image else None

    @staticmethod
    def _first_offer(offers: Any) -> Optional[Dict[str, Any]]:
        if isinstance(offers, list):
            offers = offers[0] if offers else None
        if not isinstance(offers, dict):
            return None
        nested = offers.get("offers")
        if offers.get("price") is None and isinstance(nested, list) and nested:
            if isinstance(nested[0], dict):
                return {**offers, **nested[0]}
        return offers

    @staticmethod
    def _price_from(node: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not node:
            return None
        raw = node.get("price")
        if raw is None or raw == "":
            raw = node.get("lowPrice")
        value = WebScraperUtils.parse_price(raw)
        if value is None:
            return None
        return {
            "value": value,
            "currency": node.get("priceCurrency"),
            "raw": str(raw),
        }

    @staticmethod
    def _specs_from(product: Dict[str, Any]) -> List[Dict[str, str]]:
        specs: List[Dict[str, str]] = []
        properties = product.get("additionalProperty") or []
        if isinstance(properties, dict):
            properties = [properties]
        for prop in properties:
            if not isinstance(prop, dict):
                continue
            key, value = prop.get("name"), prop.get("value")
            if key and value not in (None, ""):
                specs.append({"key": str(key).strip().lower(), "value": str(value)})

        for key in SPEC_PROPERTIES:
            value = product.get(key)
            if isinstance(value, dict):
                value = value.get("value") or value.get("name")
            if value not in (None, "") and not isinstance(value, (dict, list)):
                specs.append({"key": key, "value": str(value)})
        return specs
