"""
Task request, response and output models.

Python attributes are snake_case; the wire form exchanged with the provider
and the HTTP API is camelCase.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .product_record import ProductRecord


class TaskKind(str, Enum):
    LONG_TAIL = "generate.longTail"
    META = "generate.meta"
    BULLETS = "rewrite.bullets"
    GAPS = "detect.gaps"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LongTailSuggestion(WireModel):
    phrase: str = Field(min_length=1)
    score: float = Field(ge=0.0, le=1.0)
    rationale: Optional[str] = None
    category: Optional[str] = None


class MetaSuggestion(WireModel):
    meta_title: str = Field(min_length=1, max_length=60)
    meta_description: str = Field(max_length=160)
    meta_title_length: int = Field(ge=0)
    meta_description_length: int = Field(ge=0)


class RewrittenBullet(WireModel):
    original: str
    rewritten: str = Field(min_length=1)
    length: int = Field(ge=0)


class AttributeGap(WireModel):
    key: str = Field(min_length=1)
    severity: Literal["low", "medium", "high"]
    suggestion: str


class GapResult(WireModel):
    gaps: List[AttributeGap] = Field(default_factory=list)
    gap_score: int = Field(ge=0)
    classification: Literal["none", "mild", "moderate", "severe"]


class TaskRequest(BaseModel):
    """
    Request to run one generation task.

    Attributes:
        task (str): Task kind; unknown kinds yield an unsuccessful response.
        input (Dict[str, Any]): Task payload used for the cache key.
        offline (bool): Skip the provider and go straight to the heuristic.
    """

    task: str
    input: Dict[str, Any] = Field(default_factory=dict)
    offline: bool = False


class TaskResponse(BaseModel):
    """
    Outcome of one task, identical in shape whichever path produced it.

    ``fallback_used`` marks heuristic data and ``cache_hit`` marks data served
    from either cache tier. Only an unknown task kind sets ``success`` False.
    """

    task: str
    success: bool
    data: Optional[Any] = None
    elapsed_ms: float = 0.0
    fallback_used: bool = False
    cache_hit: bool = False
    error: Optional[str] = None


class ProgressEvent(BaseModel):
    task: str
    status: Literal["start", "done", "error"]
    response: Optional[TaskResponse] = None
    error: Optional[str] = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OptimizationResult(BaseModel):
    """Aggregate of one analysis pass over a product record."""

    product: ProductRecord
    long_tail: Optional[List[LongTailSuggestion]] = None
    meta: Optional[MetaSuggestion] = None
    rewritten_bullets: Optional[List[RewrittenBullet]] = None
    gaps: Optional[GapResult] = None
    responses: List[TaskResponse] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utc_now)
