"""
Platform detection from the page URL and markup.

Hostname matches are authoritative. Markup signals (Shopify wallet meta or
``Shopify.`` script, WooCommerce classes) only decide when the hostname is
not a known marketplace.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from product_optimizer.config import get_service_logger
from product_optimizer.models import Platform
from .json_ld_extractor import JSON_LD_SELECTOR
from .microdata_extractor import PRODUCT_SCOPE_SELECTOR


logger = get_service_logger(__name__)

HOSTNAME_PLATFORMS = (
    ("amazon.", Platform.AMAZON),
    ("etsy.", Platform.ETSY),
    ("walmart.", Platform.WALMART),
    ("ebay.", Platform.EBAY),
)


@dataclass
class PlatformDetection:
    platform: Platform = Platform.GENERIC
    confidence: float = 0.5
    method: str = "default"
    signals: Dict[str, Any] = field(default_factory=dict)


class PlatformDetector:
    """Detects the e-commerce platform serving a product page."""

    def detect(self, document: BeautifulSoup, url: Optional[str] = None) -> PlatformDetection:
        detection = PlatformDetection()
        host = (urlparse(url).hostname or "").lower() if url else ""
        detection.signals["hostname"] = host

        for marker, platform in HOSTNAME_PLATFORMS:
            if marker in host:
                detection.platform = platform
                detection.confidence = 1.0
                detection.method = "hostname"
                detection.signals[f"hostname_{platform.value}"] = True
                break

        if self._has_shopify_script(document):
            detection.signals["script_shopify"] = True
            self._adopt(detection, Platform.SHOPIFY, 0.95, "script[Shopify]")

        if document.find("meta", attrs={"name": "shopify-digital-wallet"}) is not None:
            detection.signals["meta_shopify"] = True
            self._adopt(detection, Platform.SHOPIFY, 0.9, "meta[shopify]")

        if self._has_woocommerce_class(document):
            detection.signals["class_woocommerce"] = True
            self._adopt(detection, Platform.WOOCOMMERCE, 0.85, "woocommerce class")

        has_structured = (
            document.select_one(JSON_LD_SELECTOR) is not None
            or document.select_one(PRODUCT_SCOPE_SELECTOR) is not None
        )
        if has_structured:
            detection.signals["has_semantic_data"] = True
            if detection.platform == Platform.GENERIC:
                detection.confidence = max(detection.confidence, 0.6)

        logger.debug(
            "Platform detected",
            platform=detection.platform.value,
            confidence=detection.confidence,
            method=detection.method,
        )
        return detection

    @staticmethod
    def _adopt(
        detection: PlatformDetection, platform: Platform, confidence: float, method: str
    ) -> None:
        if detection.platform == Platform.GENERIC:
            detection.platform = platform
            detection.confidence = confidence
            detection.method = method

    @staticmethod
    def _has_shopify_script(document: BeautifulSoup) -> bool:
        for script in document.find_all("script"):
            if script.get("type") == "application/ld+json":
                continue
            if "Shopify." in (script.string or ""):
                return True
        return False

    @staticmethod
    def _has_woocommerce_class(document: BeautifulSoup) -> bool:
        for element in document.find_all(class_=True):
            classes = element.get("class") or []
            if any("woocommerce" in name for name in classes):
                return True
        return False


# Global detector instance
platform_detector = PlatformDetector()


def get_platform_detector() -> PlatformDetector:
    return platform_detector
