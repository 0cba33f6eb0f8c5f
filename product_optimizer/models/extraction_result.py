from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ExtractionSource(str, Enum):
    STRUCTURED = "structured"
    HEURISTIC = "heuristic"


class ExtractionMethod(str, Enum):
    JSON_LD = "json-ld"
    MICRODATA = "microdata"
    OPENGRAPH = "opengraph"
    SEMANTIC_HTML = "semantic-html"


def is_empty_value(value: Any) -> bool:
    """A value counts as absent when it is None, an empty string or an empty container."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


class ExtractionResult(BaseModel):
    """
    Candidate partial product record produced by a single extractor.

    Empty values are dropped from ``data`` on construction, so
    ``fields_extracted`` always lists exactly the keys of ``data``.

    Attributes:
        data (Dict[str, Any]): Partial record keyed by ProductRecord field name.
        confidence (float): Extractor confidence in [0, 1].
        source (ExtractionSource): Structured markup or heuristic DOM reading.
        method (ExtractionMethod): Markup family the extractor reads.
        extractor_name (str): Name of the producing extractor.
        fields_extracted (List[str]): Field names carrying a non-empty value.
        metadata (Dict[str, Any]): Extractor-specific diagnostics.
    """

    model_config = ConfigDict(frozen=True)

    data: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(ge=0.0, le=1.0)
    source: ExtractionSource
    method: ExtractionMethod
    extractor_name: str
    fields_extracted: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _derive_fields(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        data = {
            key: value
            for key, value in (values.get("data") or {}).items()
            if not is_empty_value(value)
        }
        return {**values, "data": data, "fields_extracted": list(data.keys())}

    @classmethod
    def empty(
        cls,
        extractor_name: str,
        source: ExtractionSource,
        method: ExtractionMethod,
        **metadata: Any,
    ) -> "ExtractionResult":
        """Zero-confidence result used when an extractor finds nothing."""
        return cls(
            data={},
            confidence=0.0,
            source=source,
            method=method,
            extractor_name=extractor_name,
            metadata=metadata,
        )


class PipelineResult(BaseModel):
    """
    Merged outcome of one extraction pipeline run.

    ``overall_confidence`` is weighted by the number of fields each
    contributing extractor produced, so a rich low-confidence reading can
    outweigh a sparse high-confidence one.
    """

    data: Dict[str, Any] = Field(default_factory=dict)
    overall_confidence: float = 0.0
    field_confidence: Dict[str, float] = Field(default_factory=dict)
    field_sources: Dict[str, str] = Field(default_factory=dict)
    extractor_results: List[ExtractionResult] = Field(default_factory=list)
    extractors_run: int = 0
    extractors_contributed: int = 0
    elapsed_ms: float = 0.0
    platform: Optional[str] = None

    @property
    def is_product_page(self) -> bool:
        return not is_empty_value(self.data.get("title"))

    def summary(self) -> Dict[str, Any]:
        """Compact view for logs and API responses."""
        return {
            "fields": sorted(self.data.keys()),
            "overall_confidence": round(self.overall_confidence, 4),
            "field_confidence": self.field_confidence,
            "field_sources": self.field_sources,
            "extractors_run": self.extractors_run,
            "extractors_contributed": self.extractors_contributed,
            "elapsed_ms": round(self.elapsed_ms, 2),
            "platform": self.platform,
        }
