"""
Structural validators for task outputs.

Values are round-tripped through their JSON wire form and validated in
strict mode, so a string where a number belongs is rejected rather than
coerced. Validation failures raise ValidationException.
"""

from typing import Annotated, Any, List

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_json, to_jsonable_python

from product_optimizer.core.exceptions import ValidationException
from product_optimizer.models import (
    GapResult,
    LongTailSuggestion,
    MetaSuggestion,
    RewrittenBullet,
)


LongTailList = Annotated[List[LongTailSuggestion], Field(min_length=1)]
BulletList = List[RewrittenBullet]

long_tail_adapter = TypeAdapter(LongTailList)
meta_adapter = TypeAdapter(MetaSuggestion)
bullets_adapter = TypeAdapter(BulletList)
gaps_adapter = TypeAdapter(GapResult)


def _validate(adapter: TypeAdapter, value: Any, label: str) -> Any:
    try:
        raw = to_json(value, by_alias=True)
    except Exception as e:
        raise ValidationException(f"{label} is not JSON serializable: {e}")
    try:
        return adapter.validate_json(raw, strict=True)
    except PydanticValidationError as e:
        raise ValidationException(
            f"Invalid {label}: {e.error_count()} error(s)", e.errors()
        )


def validate_long_tail(value: Any) -> List[LongTailSuggestion]:
    return _validate(long_tail_adapter, value, "long-tail suggestions")


def validate_meta(value: Any) -> MetaSuggestion:
    return _validate(meta_adapter, value, "meta suggestion")


def validate_bullets(value: Any) -> List[RewrittenBullet]:
    return _validate(bullets_adapter, value, "rewritten bullets")


def validate_gaps(value: Any) -> GapResult:
    return _validate(gaps_adapter, value, "gap result")


def to_wire(value: Any) -> Any:
    """JSON-compatible camelCase form of a validated task output."""
    return to_jsonable_python(value, by_alias=True)
