"""
Product scraper facade.

Parses raw HTML, detects the platform, runs the extraction pipeline and
builds the final ProductRecord.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple, Union

from bs4 import BeautifulSoup

from product_optimizer.config import get_service_logger
from product_optimizer.core.exceptions import NotAProductPageError
from product_optimizer.models import PipelineResult, Platform, ProductRecord
from product_optimizer.pipeline.extraction_pipeline import ExtractionPipeline
from product_optimizer.scraping import (
    PlatformDetector,
    WebScraperUtils,
    get_platform_detector,
)


logger = get_service_logger(__name__)


class ProductScraper:
    """Turns a product page into a ProductRecord plus extraction provenance."""

    def __init__(
        self,
        pipeline: Optional[ExtractionPipeline] = None,
        detector: Optional[PlatformDetector] = None,
    ):
        self.pipeline = pipeline or ExtractionPipeline()
        self.detector = detector or get_platform_detector()

    async def scrape(
        self,
        html: Union[str, bytes],
        url: Optional[str] = None,
        platform_hint: Optional[str] = None,
    ) -> Tuple[ProductRecord, PipelineResult]:
        """
        Extract a product record from page HTML.

        Args:
            html: Raw page markup
            url: Page URL, used for platform detection and relative links
            platform_hint: Known platform; skips detection when given

        Returns:
            (ProductRecord, PipelineResult)

        Raises:
            NotAProductPageError: If no extractor found a title
        """
        document = BeautifulSoup(html, "html.parser")

        if platform_hint:
            try:
                platform = Platform(platform_hint)
            except ValueError:
                logger.warning(f"Unknown platform hint {platform_hint}, using generic")
                platform = Platform.GENERIC
        else:
            platform = self.detector.detect(document, url).platform

        result = await self.pipeline.extract(document, platform.value)

        if not result.is_product_page:
            raise NotAProductPageError(
                "No product title found on page",
                {"url": url, "platform": platform.value, **result.summary()},
            )

        record = self.build_record(result, url, platform)
        logger.info(
            "Product scraped",
            url=url,
            platform=platform.value,
            title=record.title,
            overall_confidence=round(result.overall_confidence, 4),
        )
        return record, result

    @staticmethod
    def build_record(
        result: PipelineResult, url: Optional[str], platform: Platform
    ) -> ProductRecord:
        data = dict(result.data)
        page_url = url or data.get("url")
        data["url"] = page_url
        data["platform"] = platform
        data["captured_at"] = datetime.now(timezone.utc)

        if page_url and data.get("images"):
            data["images"] = [
                {**image, "src": WebScraperUtils.resolve_url(image.get("src"), page_url)}
                for image in data["images"]
            ]
        return ProductRecord.model_validate(data)
