"""
Task handler registry for the Product Page Optimizer.

Every task kind maps to one TaskHandler bundling its prompt builder,
provider-output normalizer, validator, heuristic fallback, the record fields
that key its cache entries and its cache TTL.
The registry is closed: kinds outside TaskKind have no handler.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from product_optimizer.config import get_settings
from product_optimizer.models import ProductRecord, TaskKind
from product_optimizer.utils import TextUtils
from .heuristics import (
    heuristic_bullets,
    heuristic_gaps,
    heuristic_long_tail,
    heuristic_meta,
)
from .validators import (
    validate_bullets,
    validate_gaps,
    validate_long_tail,
    validate_meta,
)


settings = get_settings()

META_TITLE_CAP = 60
META_DESCRIPTION_CAP = 160
BULLET_CAP = 160
MAX_LONG_TAIL = 8


@dataclass(frozen=True)
class TaskHandler:
    kind: TaskKind
    build_prompt: Callable[[ProductRecord, Dict[str, Any]], str]
    normalize: Callable[[Any, ProductRecord], Any]
    validate: Callable[[Any], Any]
    heuristic: Callable[[ProductRecord], Any]
    cache_input: Callable[[ProductRecord], Dict[str, Any]]
    ttl_seconds: int
    heuristic_only: bool = False


def _title(record: ProductRecord, payload: Dict[str, Any]) -> str:
    title = payload.get("title") or record.title
    return TextUtils.truncate(str(title), settings.max_title_chars)


def _bullets(record: ProductRecord, payload: Dict[str, Any]) -> List[str]:
    bullets = payload.get("bullets")
    if not isinstance(bullets, list):
        bullets = record.bullets
    return TextUtils.truncate_all(
        [str(b) for b in bullets], settings.max_bullets, settings.max_bullet_chars
    )


def _description(record: ProductRecord) -> str:
    return TextUtils.truncate(record.description_text, settings.max_description_chars)


def _unwrap_list(parsed: Any) -> Any:
    """Accept ``{"suggestions": [...]}``-style wrappers around a list."""
    if isinstance(parsed, dict):
        lists = [v for v in parsed.values() if isinstance(v, list)]
        if len(lists) == 1:
            return lists[0]
    return parsed


# Long-tail keywords


def build_long_tail_prompt(record: ProductRecord, payload: Dict[str, Any]) -> str:
    description = _description(record)
    prompt = (
        f"Generate {MAX_LONG_TAIL} JSON objects each with phrase, rationale and "
        "score (0-1) describing long-tail e-commerce search modifiers for the "
        f"product: {_title(record, payload)}."
    )
    if description:
        prompt += f" Product description: {description}"
    return prompt + " ONLY output a JSON array."


def long_tail_input(record: ProductRecord) -> Dict[str, Any]:
    return {"title": record.title, "description": _description(record)}


def normalize_long_tail(parsed: Any, record: ProductRecord) -> Any:
    parsed = _unwrap_list(parsed)
    if not isinstance(parsed, list):
        return parsed
    return parsed[:MAX_LONG_TAIL]


# Meta tags


def build_meta_prompt(record: ProductRecord, payload: Dict[str, Any]) -> str:
    return (
        f"Create metaTitle (<= {META_TITLE_CAP} chars) and metaDescription "
        f"(<= 155 chars) as JSON {{\"metaTitle\": \"...\", \"metaDescription\": \"...\"}} "
        f"for the product: {_title(record, payload)}."
    )


def meta_input(record: ProductRecord) -> Dict[str, Any]:
    # The heuristic reads the first bullet, or the description without bullets
    first_bullet = record.bullets[0].strip() if record.bullets else ""
    return {"title": record.title, "summary": first_bullet or _description(record)}


def normalize_meta(parsed: Any, record: ProductRecord) -> Any:
    if not isinstance(parsed, dict):
        return parsed
    title = parsed.get("metaTitle", parsed.get("meta_title"))
    description = parsed.get("metaDescription", parsed.get("meta_description"))
    if not isinstance(title, str) or not isinstance(description, str):
        return parsed
    title = title.strip()[:META_TITLE_CAP]
    description = description.strip()[:META_DESCRIPTION_CAP]
    return {
        "metaTitle": title,
        "metaDescription": description,
        "metaTitleLength": len(title),
        "metaDescriptionLength": len(description),
    }


# Bullet rewriting


def build_bullets_prompt(record: ProductRecord, payload: Dict[str, Any]) -> str:
    return (
        "Rewrite these product bullets as a JSON array of strings. Keep every "
        f"fact and stay under {BULLET_CAP} characters each: "
        f"{json.dumps(_bullets(record, payload), ensure_ascii=False)}"
    )


def bullets_input(record: ProductRecord) -> Dict[str, Any]:
    return {"bullets": list(record.bullets)}


def normalize_bullets(parsed: Any, record: ProductRecord) -> Any:
    parsed = _unwrap_list(parsed)
    if not isinstance(parsed, list):
        return parsed
    normalized = []
    for i, item in enumerate(parsed[: settings.max_bullets]):
        original = record.bullets[i] if i < len(record.bullets) else ""
        if isinstance(item, dict):
            item = item.get("rewritten", item)
        if not isinstance(item, str):
            # Left as-is for the validator to reject
            normalized.append(item)
            continue
        rewritten = item.strip()[:BULLET_CAP]
        normalized.append(
            {"original": original, "rewritten": rewritten, "length": len(rewritten)}
        )
    return normalized


# Attribute gaps


def build_gaps_prompt(record: ProductRecord, payload: Dict[str, Any]) -> str:
    return ""


def gaps_input(record: ProductRecord) -> Dict[str, Any]:
    return {"specs": [spec.model_dump() for spec in record.specs]}


def normalize_gaps(parsed: Any, record: ProductRecord) -> Any:
    return parsed


TASK_HANDLERS: Dict[TaskKind, TaskHandler] = {
    TaskKind.LONG_TAIL: TaskHandler(
        kind=TaskKind.LONG_TAIL,
        build_prompt=build_long_tail_prompt,
        normalize=normalize_long_tail,
        validate=validate_long_tail,
        heuristic=heuristic_long_tail,
        cache_input=long_tail_input,
        ttl_seconds=settings.ttl_long_tail_seconds,
    ),
    TaskKind.META: TaskHandler(
        kind=TaskKind.META,
        build_prompt=build_meta_prompt,
        normalize=normalize_meta,
        validate=validate_meta,
        heuristic=heuristic_meta,
        cache_input=meta_input,
        ttl_seconds=settings.ttl_meta_seconds,
    ),
    TaskKind.BULLETS: TaskHandler(
        kind=TaskKind.BULLETS,
        build_prompt=build_bullets_prompt,
        normalize=normalize_bullets,
        validate=validate_bullets,
        heuristic=heuristic_bullets,
        cache_input=bullets_input,
        ttl_seconds=settings.ttl_bullets_seconds,
    ),
    TaskKind.GAPS: TaskHandler(
        kind=TaskKind.GAPS,
        build_prompt=build_gaps_prompt,
        normalize=normalize_gaps,
        validate=validate_gaps,
        heuristic=heuristic_gaps,
        cache_input=gaps_input,
        ttl_seconds=settings.ttl_gaps_seconds,
        heuristic_only=True,
    ),
}


def get_task_handler(task: str) -> Optional[TaskHandler]:
    """Handler for a task kind string, or None when the kind is unknown."""
    try:
        return TASK_HANDLERS[TaskKind(task)]
    except ValueError:
        return None
