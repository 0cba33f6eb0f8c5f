"""
Extractor contract for the product extraction pipeline.

Every extractor reads an already-parsed BeautifulSoup document and returns a
single ExtractionResult. Higher priority extractors run first and the
pipeline reconciles their results.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Protocol, runtime_checkable

from bs4 import BeautifulSoup

from product_optimizer.config import get_service_logger
from product_optimizer.core.exceptions import ExtractorException
from product_optimizer.models import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionSource,
)


logger = get_service_logger(__name__)


@runtime_checkable
class ProductExtractor(Protocol):
    name: str
    priority: int
    method: ExtractionMethod

    def can_run(self, document: BeautifulSoup) -> bool: ...

    async def run(self, document: BeautifulSoup) -> ExtractionResult: ...


class BaseExtractor(ABC):
    """
    Shared behaviour for the shipped extractors.

    Subclasses implement ``can_run`` and ``extract``. ``run`` executes the
    blocking ``extract`` in a worker thread, so the pipeline's timeout can
    abandon it, and turns an internal failure into an empty result instead
    of propagating it to the pipeline.
    """

    name: str = "BaseExtractor"
    priority: int = 0
    confidence: float = 0.0
    source: ExtractionSource = ExtractionSource.STRUCTURED
    method: ExtractionMethod = ExtractionMethod.SEMANTIC_HTML

    @abstractmethod
    def can_run(self, document: BeautifulSoup) -> bool:
        """Cheap, side-effect-free applicability check."""

    @abstractmethod
    def extract(self, document: BeautifulSoup) -> ExtractionResult:
        """Read the document. May raise; ``run`` contains it."""

    async def run(self, document: BeautifulSoup) -> ExtractionResult:
        try:
            return await asyncio.to_thread(self._extract_or_raise, document)
        except ExtractorException as e:
            logger.warning(str(e), extractor=self.name)
            return ExtractionResult.empty(
                self.name, self.source, self.method, error=str(e)
            )

    def _extract_or_raise(self, document: BeautifulSoup) -> ExtractionResult:
        try:
            return self.extract(document)
        except Exception as e:
            raise ExtractorException(
                f"{self.name} failed internally: {e}", self.name
            ) from e

    def create_result(
        self,
        data: Dict[str, Any],
        confidence: float = None,
        **metadata: Any,
    ) -> ExtractionResult:
        return ExtractionResult(
            data=data,
            confidence=self.confidence if confidence is None else confidence,
            source=self.source,
            method=self.method,
            extractor_name=self.name,
            metadata=metadata,
        )

    def __repr__(self) -> str:
        return f"<{self.name} priority={self.priority}>"
