from .product_record import (
    Platform,
    Price,
    Description,
    ProductImage,
    Variant,
    SpecEntry,
    ReviewSummary,
    ProductRecord,
)
from .extraction_result import (
    ExtractionSource,
    ExtractionMethod,
    ExtractionResult,
    PipelineResult,
)
from .task_models import (
    TaskKind,
    LongTailSuggestion,
    MetaSuggestion,
    RewrittenBullet,
    AttributeGap,
    GapResult,
    TaskRequest,
    TaskResponse,
    ProgressEvent,
    OptimizationResult,
)
from .cache_entry import CacheEntry

__all__ = [
    "Platform",
    "Price",
    "Description",
    "ProductImage",
    "Variant",
    "SpecEntry",
    "ReviewSummary",
    "ProductRecord",
    "ExtractionSource",
    "ExtractionMethod",
    "ExtractionResult",
    "PipelineResult",
    "TaskKind",
    "LongTailSuggestion",
    "MetaSuggestion",
    "RewrittenBullet",
    "AttributeGap",
    "GapResult",
    "TaskRequest",
    "TaskResponse",
    "ProgressEvent",
    "OptimizationResult",
    "CacheEntry",
]
