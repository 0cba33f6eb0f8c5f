"""
Heuristic extractor for Product Page Optimizer.

Platform-agnostic DOM reading based on common e-commerce patterns: semantic
HTML, ``.price``/``.product-*`` class conventions, aria labels and data
attributes. Used as the fallback when a page carries no structured markup.
"""

from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from product_optimizer.models import ExtractionMethod, ExtractionResult, ExtractionSource
from .base_extractor import BaseExtractor
from .web_scraper_utils import WebScraperUtils


MAX_IMAGES = 5
MIN_IMAGE_WIDTH = 100
MAX_DESCRIPTION_CHARS = 500
MAX_BULLETS = 10
MAX_SPECS = 40
MAX_VARIANTS = 6
MAX_VARIANT_VALUES = 30


class HeuristicExtractor(BaseExtractor):
    """
    Selector-list extractor.

    Confidence depends on how many of the six core signals (title, price,
    brand, images, description, reviews) were found: 0.65 for four or more,
    0.55 for two or three, 0.40 otherwise. Bullets, specs and variants are
    read too but do not count as signals.
    """

    name = "HeuristicExtractor"
    priority = 500
    confidence = 0.40
    source = ExtractionSource.HEURISTIC
    method = ExtractionMethod.SEMANTIC_HTML

    def __init__(self):
        self.title_selectors = [
            'h1[itemprop~="name"]',
            "h1.product-title",
            "h1.product-name",
            'h1[class*="product"]',
            'h1[class*="title"]',
            "main h1",
            "article h1",
            '[role="main"] h1',
            ".product-title",
            ".product-name",
            ".productTitle",
            ".pdp-title",
            "#productTitle",
            "[data-product-title]",
            '[data-testid="product-title"]',
            "h1",
        ]

        self.price_selectors = [
            '[itemprop~="price"]',
            '[property="og:price:amount"]',
            ".price",
            ".product-price",
            ".productPrice",
            ".current-price",
            ".sale-price",
            ".final-price",
            '[class*="price"]',
            "[data-price]",
            "[data-product-price]",
            "#priceblock_ourprice",
            "#priceblock_dealprice",
            "#price",
            '[aria-label*="price"]',
            '[aria-label*="Price"]',
        ]

        self.brand_selectors = [
            '[itemprop~="brand"]',
            '[property="og:brand"]',
            ".brand",
            ".product-brand",
            ".productBrand",
            "[data-brand]",
            'a[href*="/brand/"]',
            'a[href*="/brands/"]',
            ".manufacturer",
        ]

        self.image_selectors = [
            '[itemprop~="image"]',
            ".product-image img",
            ".productImage img",
            "#product-image img",
            '[class*="product-image"] img',
            '[class*="productImage"] img',
            'main img[src*="product"]',
            "article img",
        ]

        self.description_selectors = [
            '[itemprop~="description"]',
            '[property="og:description"]',
            ".product-description",
            ".productDescription",
            "#productDescription",
            '[class*="description"]',
            "main p",
            "article p",
        ]

        self.rating_selectors = [
            '[itemprop~="ratingValue"]',
            ".rating-value",
            ".stars",
            '[aria-label*="rating"]',
            "[data-rating]",
        ]

        self.review_count_selectors = [
            '[itemprop~="reviewCount"]',
            ".review-count",
            ".reviews-count",
            '[aria-label*="reviews"]',
            "[data-review-count]",
        ]

        self.bullet_roots = [
            "#feature-bullets ul",
            ".product-features ul",
            ".product-highlights ul",
            ".woocommerce-product-details__short-description ul",
        ]

        self.spec_rows = (
            "#productDetails_techSpec_section_1 tr, "
            "#productDetails_detailBullets_sections1 tr, "
            "table.prodDetTable tr, "
            ".woocommerce-product-attributes tr, "
            "table.specifications tr"
        )

    def can_run(self, document: BeautifulSoup) -> bool:
        return True

    def extract(self, document: BeautifulSoup) -> ExtractionResult:
        data: Dict[str, Any] = {}
        signals = 0

        title = WebScraperUtils.first_text(document, self.title_selectors)
        if title:
            data["title"] = title
            signals += 1

        price = self._extract_price(document)
        if price:
            data["price"] = price
            signals += 1

        brand = self._extract_brand(document)
        if brand:
            data["brand"] = brand
            signals += 1

        images = self._extract_images(document)
        if images:
            data["images"] = images
            signals += 1

        description = self._extract_description(document)
        if description:
            data["description"] = description
            signals += 1

        reviews = self._extract_reviews(document)
        if reviews:
            data["reviews"] = reviews
            signals += 1

        data["bullets"] = self._extract_bullets(document)
        data["specs"] = self._extract_specs(document)
        data["variants"] = self._extract_variants(document)

        if signals >= 4:
            confidence = 0.65
        elif signals >= 2:
            confidence = 0.55
        else:
            confidence = self.confidence

        return self.create_result(data, confidence=confidence, signals_found=signals)

    @staticmethod
    def _attribute_or_text(element: Tag, *attributes: str) -> str:
        for attribute in attributes:
            value = element.get(attribute)
            if value and str(value).strip():
                return str(value).strip()
        return WebScraperUtils.element_text(element)

    def _extract_price(self, document: BeautifulSoup) -> Optional[Dict[str, Any]]:
        for selector in self.price_selectors:
            element = WebScraperUtils.select_one(document, selector)
            if element is None:
                continue
            raw = self._attribute_or_text(element, "content", "data-price", "data-product-price")
            value = WebScraperUtils.parse_price(raw)
            if value is None:
                continue
            return {
                "value": value,
                "currency": self._extract_currency(raw, element),
                "raw": raw,
            }
        return None

    @staticmethod
    def _extract_currency(raw: str, element: Tag) -> Optional[str]:
        currency = WebScraperUtils.infer_currency(raw)
        if currency:
            return currency
        scope = element.find_parent(attrs={"itemscope": True})
        if scope is not None:
            meta = scope.select_one('[itemprop~="priceCurrency"]')
            if meta is not None:
                return meta.get("content") or WebScraperUtils.element_text(meta) or None
        return None

    def _extract_brand(self, document: BeautifulSoup) -> Optional[str]:
        for selector in self.brand_selectors:
            element = WebScraperUtils.select_one(document, selector)
            if element is None:
                continue
            text = self._attribute_or_text(element, "content", "data-brand")
            if 1 < len(text) < 100:
                return text
        return None

    def _extract_images(self, document: BeautifulSoup) -> List[Dict[str, Any]]:
        images: List[Dict[str, Any]] = []
        for selector in self.image_selectors:
            try:
                elements = document.select(selector)
            except Exception:
                continue
            for element in elements:
                img = element if element.name == "img" else element.find("img")
                if img is None:
                    continue
                src = img.get("src") or img.get("data-src") or img.get("data-lazy-src")
                if not src:
                    continue
                width = WebScraperUtils.parse_count(img.get("width"))
                if width is not None and width < MIN_IMAGE_WIDTH:
                    continue
                images.append({"src": src, "alt": img.get("alt") or None})
                if len(images) >= MAX_IMAGES:
                    break
            if images:
                break
        return images

    def _extract_description(self, document: BeautifulSoup) -> Optional[Dict[str, str]]:
        for selector in self.description_selectors:
            element = WebScraperUtils.select_one(document, selector)
            if element is None:
                continue
            description = WebScraperUtils.description_of(element)
            text = description.get("text", "")
            if len(text) > 20:
                if len(text) > MAX_DESCRIPTION_CHARS:
                    description["text"] = text[:MAX_DESCRIPTION_CHARS] + "..."
                return description
        return None

    def _extract_reviews(self, document: BeautifulSoup) -> Optional[Dict[str, Any]]:
        average: Optional[float] = None
        count: Optional[int] = None

        for selector in self.rating_selectors:
            element = WebScraperUtils.select_one(document, selector)
            if element is None:
                continue
            rating = WebScraperUtils.parse_float(
                self._attribute_or_text(element, "content", "data-rating")
            )
            if rating is not None and 0 <= rating <= 5:
                average = rating
                break

        for selector in self.review_count_selectors:
            element = WebScraperUtils.select_one(document, selector)
            if element is None:
                continue
            reviews = WebScraperUtils.parse_count(
                self._attribute_or_text(element, "content", "data-review-count")
            )
            if reviews:
                count = reviews
                break

        if average is None and count is None:
            return None
        return {"average": average, "count": count}

    def _extract_bullets(self, document: BeautifulSoup) -> List[str]:
        for root_selector in self.bullet_roots:
            root = WebScraperUtils.select_one(document, root_selector)
            if root is None:
                continue
            bullets = [WebScraperUtils.element_text(li) for li in root.find_all("li")]
            return [b for b in bullets if b][:MAX_BULLETS]
        return []

    def _extract_specs(self, document: BeautifulSoup) -> List[Dict[str, str]]:
        specs: List[Dict[str, str]] = []
        for row in document.select(self.spec_rows):
            pair = self._spec_pair(row)
            if pair:
                specs.append({"key": pair[0], "value": pair[1]})
        return specs[:MAX_SPECS]

    @staticmethod
    def _spec_pair(row: Tag) -> Optional[Tuple[str, str]]:
        cells = row.find_all(["th", "td"])
        if len(cells) >= 2:
            key = WebScraperUtils.element_text(cells[0]).lower()
            value = " ".join(WebScraperUtils.element_text(c) for c in cells[1:]).strip()
        else:
            parts = WebScraperUtils.element_text(row).split(":", 1)
            if len(parts) != 2:
                return None
            key, value = parts[0].strip().lower(), parts[1].strip()
        if key and value:
            return key, value
        return None

    def _extract_variants(self, document: BeautifulSoup) -> List[Dict[str, Any]]:
        variants: List[Dict[str, Any]] = []
        for select in document.select("form select"):
            name = select.get("name") or select.get("id") or "option"
            values = [
                WebScraperUtils.element_text(option) for option in select.find_all("option")
            ]
            values = [v for v in values if v and "choose" not in v.lower()]
            if values:
                variants.append({"name": name, "values": values[:MAX_VARIANT_VALUES]})
        return variants[:MAX_VARIANTS]
