"""
Extraction pipeline for the Product Page Optimizer.

Runs the registered extractors in descending priority order against one
parsed document and reconciles their results into a single partial product
record with per-field confidence and provenance.
"""

import asyncio
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup

from product_optimizer.config import get_service_logger, get_settings, log_extractor_run
from product_optimizer.models import ExtractionResult, PipelineResult
from product_optimizer.scraping import ProductExtractor, default_extractors


logger = get_service_logger(__name__)
settings = get_settings()


class ExtractionPipeline:
    """
    Priority-ordered extractor orchestration.

    Extractors run sequentially so the merge is deterministic. An extractor
    that raises or exceeds ``extractor_timeout`` is logged and skipped; the
    run is never aborted.
    """

    def __init__(
        self,
        extractors: Optional[Iterable[ProductExtractor]] = None,
        min_confidence: Optional[float] = None,
        max_extractors: Optional[int] = None,
        stop_on_success: Optional[bool] = None,
        extractor_timeout: Optional[float] = None,
    ):
        self.min_confidence = (
            settings.min_confidence if min_confidence is None else min_confidence
        )
        self.max_extractors = (
            settings.max_extractors if max_extractors is None else max_extractors
        )
        self.stop_on_success = (
            settings.stop_on_success if stop_on_success is None else stop_on_success
        )
        self.extractor_timeout = (
            settings.extractor_timeout
            if extractor_timeout is None
            else extractor_timeout
        )

        self._extractors: List[ProductExtractor] = []
        self.register_extractors(
            default_extractors() if extractors is None else extractors
        )

    def register_extractor(self, extractor: ProductExtractor) -> None:
        self._extractors.append(extractor)
        # list.sort is stable, equal priorities keep registration order
        self._extractors.sort(key=lambda e: e.priority, reverse=True)
        logger.debug(
            f"Registered {extractor.name}", priority=extractor.priority
        )

    def register_extractors(self, extractors: Iterable[ProductExtractor]) -> None:
        for extractor in extractors:
            self.register_extractor(extractor)

    @property
    def extractors(self) -> List[ProductExtractor]:
        return list(self._extractors)

    async def extract(
        self, document: BeautifulSoup, platform_hint: Optional[str] = None
    ) -> PipelineResult:
        """
        Run the pipeline over one document.

        Args:
            document: Already-parsed page
            platform_hint: Detected platform, used for telemetry only

        Returns:
            PipelineResult with merged data and provenance. A page with no
            signal gives empty data and overall confidence 0.
        """
        start_time = time.perf_counter()
        results: List[ExtractionResult] = []
        extractors_run = 0

        for extractor in self._extractors:
            if self.max_extractors > 0 and extractors_run >= self.max_extractors:
                logger.debug(f"Reached max_extractors limit ({self.max_extractors})")
                break

            if not extractor.can_run(document):
                log_extractor_run(
                    logger, extractor.name, "skipped", platform=platform_hint
                )
                continue

            run_start = time.perf_counter()
            try:
                result = await asyncio.wait_for(
                    extractor.run(document), timeout=self.extractor_timeout
                )
            except asyncio.TimeoutError:
                log_extractor_run(
                    logger,
                    extractor.name,
                    "timeout",
                    duration_ms=(time.perf_counter() - run_start) * 1000,
                    platform=platform_hint,
                    error=f"Timed out after {self.extractor_timeout}s",
                )
                continue
            except Exception as e:
                log_extractor_run(
                    logger,
                    extractor.name,
                    "failure",
                    duration_ms=(time.perf_counter() - run_start) * 1000,
                    platform=platform_hint,
                    error=str(e),
                )
                continue

            extractors_run += 1
            duration_ms = (time.perf_counter() - run_start) * 1000

            if result.confidence < self.min_confidence:
                log_extractor_run(
                    logger,
                    extractor.name,
                    "filtered",
                    confidence=result.confidence,
                    duration_ms=duration_ms,
                    platform=platform_hint,
                )
                continue

            results.append(result)
            log_extractor_run(
                logger,
                extractor.name,
                "success",
                fields=result.fields_extracted,
                confidence=result.confidence,
                duration_ms=duration_ms,
                platform=platform_hint,
            )

            if self.stop_on_success and result.fields_extracted:
                logger.debug("Stopping early, stop_on_success is set")
                break

        data, field_confidence, field_sources = self.merge_results(results)
        pipeline_result = PipelineResult(
            data=data,
            overall_confidence=self.overall_confidence(results),
            field_confidence=field_confidence,
            field_sources=field_sources,
            extractor_results=results,
            extractors_run=extractors_run,
            extractors_contributed=sum(1 for r in results if r.fields_extracted),
            elapsed_ms=(time.perf_counter() - start_time) * 1000,
            platform=platform_hint,
        )

        logger.info(
            "Extraction complete",
            platform=platform_hint,
            extractors_run=pipeline_result.extractors_run,
            extractors_contributed=pipeline_result.extractors_contributed,
            overall_confidence=round(pipeline_result.overall_confidence, 4),
            fields=sorted(data.keys()),
            elapsed_ms=round(pipeline_result.elapsed_ms, 2),
        )
        return pipeline_result

    @staticmethod
    def merge_results(
        results: List[ExtractionResult],
    ) -> Tuple[Dict[str, Any], Dict[str, float], Dict[str, str]]:
        """
        Merge extractor results field by field.

        A value replaces the current one only when its extractor's confidence
        is strictly greater than the confidence recorded for that field.

        Returns:
            (merged data, field confidence, field sources)
        """
        merged: Dict[str, Any] = {}
        field_confidence: Dict[str, float] = {}
        field_sources: Dict[str, str] = {}

        for result in results:
            for field_name in result.fields_extracted:
                if result.confidence > field_confidence.get(field_name, -1.0):
                    merged[field_name] = result.data[field_name]
                    field_confidence[field_name] = result.confidence
                    field_sources[field_name] = result.extractor_name

        return merged, field_confidence, field_sources

    @staticmethod
    def overall_confidence(results: List[ExtractionResult]) -> float:
        """Confidence weighted by the number of fields each result produced."""
        total_weight = 0
        weighted_sum = 0.0
        for result in results:
            weight = len(result.fields_extracted)
            total_weight += weight
            weighted_sum += result.confidence * weight
        return weighted_sum / total_weight if total_weight > 0 else 0.0
