"""
Unit tests for platform detection and the ProductScraper facade.
"""

import pytest
from bs4 import BeautifulSoup

from product_optimizer.core.exceptions import NotAProductPageError
from product_optimizer.models import Platform
from product_optimizer.pipeline import ExtractionPipeline
from product_optimizer.processing import ProductScraper
from product_optimizer.scraping import PlatformDetector, get_platform_detector
from conftest import ARTICLE_HTML, HEURISTIC_HTML, JSON_LD_ONLY_HTML, RICH_PRODUCT_HTML


SHOPIFY_HTML = """
<html><head>
<meta name="shopify-digital-wallet" content="/123/digital_wallets/dialog">
<script>window.Shopify.theme = {"name": "Dawn"};</script>
</head><body><h1>Canvas Tote</h1></body></html>
"""

WOOCOMMERCE_HTML = """
<html><body class="product-template woocommerce-page">
<h1 class="product_title">Beeswax Candle</h1>
</body></html>
"""


def soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestPlatformDetector:
    @pytest.fixture
    def detector(self):
        return PlatformDetector()

    @pytest.mark.parametrize(
        "url,platform",
        [
            ("https://www.amazon.com/dp/B000", Platform.AMAZON),
            ("https://www.etsy.com/listing/1", Platform.ETSY),
            ("https://www.walmart.com/ip/2", Platform.WALMART),
            ("https://www.ebay.co.uk/itm/3", Platform.EBAY),
        ],
    )
    def test_hostname(self, detector, url, platform):
        detection = detector.detect(soup("<html></html>"), url)

        assert detection.platform == platform
        assert detection.confidence == 1.0
        assert detection.method == "hostname"

    def test_shopify_markup(self, detector):
        detection = detector.detect(soup(SHOPIFY_HTML), "https://tote.example.com/p")

        assert detection.platform == Platform.SHOPIFY
        assert detection.confidence == 0.95
        assert detection.signals["meta_shopify"] is True

    def test_woocommerce_markup(self, detector):
        detection = detector.detect(soup(WOOCOMMERCE_HTML), "https://candles.example.com")

        assert detection.platform == Platform.WOOCOMMERCE

    def test_hostname_beats_markup(self, detector):
        detection = detector.detect(soup(SHOPIFY_HTML), "https://www.amazon.de/dp/X")

        assert detection.platform == Platform.AMAZON

    def test_generic_with_structured_data(self, detector):
        detection = detector.detect(soup(JSON_LD_ONLY_HTML), None)

        assert detection.platform == Platform.GENERIC
        assert detection.confidence == 0.6
        assert detection.signals["has_semantic_data"] is True


class TestProductScraper:
    @pytest.fixture
    def scraper(self):
        return ProductScraper(
            pipeline=ExtractionPipeline(min_confidence=0.0, max_extractors=0, stop_on_success=False)
        )

    @pytest.mark.asyncio
    async def test_scrape_rich_page(self, scraper):
        record, result = await scraper.scrape(
            RICH_PRODUCT_HTML, "https://shop.example.com/products/widget-pro"
        )

        assert record.title == "Acme Widget Pro"
        assert record.brand == "Acme"
        assert record.price.value == 49.99
        assert record.price.currency == "USD"
        assert record.bullets == ["Hardened steel body.", "Fits every standard bench"]
        assert record.variants[0].values == ["Small", "Large"]
        assert record.url == "https://shop.example.com/products/widget-pro"
        assert record.platform == Platform.GENERIC
        assert record.captured_at is not None
        assert result.platform == "generic"

    @pytest.mark.asyncio
    async def test_relative_images_resolved(self, scraper):
        record, _ = await scraper.scrape(
            HEURISTIC_HTML, "https://shop.example.com/products/trail-runner"
        )

        assert record.images[0].src == "https://shop.example.com/img/shoe-1.jpg"
        assert record.reviews.count == 1234
        assert record.description.html == (
            "Lightweight trail shoe with a grippy outsole for wet rock."
        )

    @pytest.mark.asyncio
    async def test_platform_hint_skips_detection(self, scraper):
        record, _ = await scraper.scrape(
            JSON_LD_ONLY_HTML, "https://www.amazon.com/dp/B000", platform_hint="shopify"
        )

        assert record.platform == Platform.SHOPIFY

    @pytest.mark.asyncio
    async def test_unknown_hint_is_generic(self, scraper):
        record, _ = await scraper.scrape(JSON_LD_ONLY_HTML, platform_hint="bigcommerce")

        assert record.platform == Platform.GENERIC

    @pytest.mark.asyncio
    async def test_detected_platform_on_record(self, scraper):
        record, _ = await scraper.scrape(JSON_LD_ONLY_HTML, "https://www.etsy.com/listing/9")

        assert record.platform == Platform.ETSY

    @pytest.mark.asyncio
    async def test_not_a_product_page(self, scraper):
        with pytest.raises(NotAProductPageError) as exc_info:
            await scraper.scrape(ARTICLE_HTML, "https://blog.example.com/sleep")

        assert exc_info.value.context["url"] == "https://blog.example.com/sleep"

    def test_default_detector_is_shared(self):
        assert ProductScraper().detector is get_platform_detector()
