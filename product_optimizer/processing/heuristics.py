"""
Deterministic, network-free fallbacks for every generation task.

Each function maps a ProductRecord to the same output shape the provider path
produces, so callers cannot tell the two apart except by ``fallback_used``.
"""

from typing import List

from product_optimizer.models import (
    GapResult,
    LongTailSuggestion,
    MetaSuggestion,
    ProductRecord,
    RewrittenBullet,
)
from product_optimizer.utils import TextUtils
from .gap_detector import detect_gaps


LONG_TAIL_MODIFIERS = ["buy", "best", "affordable", "discount", "for sale"]
LONG_TAIL_BASE_WORDS = 4
LONG_TAIL_BASE_SCORE = 0.40
LONG_TAIL_SCORE_STEP = 0.05

META_TITLE_LIMIT = 60
META_TITLE_SUFFIX = " | Buy Online"
META_DESCRIPTION_SOURCE_CHARS = 120
META_DESCRIPTION_SUFFIX = " Fast shipping."
META_DESCRIPTION_LIMIT = 150

BULLET_COUNT = 5
BULLET_LIMIT = 155


def heuristic_long_tail(record: ProductRecord) -> List[LongTailSuggestion]:
    """Modifier + first four significant title words, scored 0.40 to 0.60."""
    base = " ".join(TextUtils.significant_words(record.title)[:LONG_TAIL_BASE_WORDS])
    suggestions = []
    for i, modifier in enumerate(LONG_TAIL_MODIFIERS):
        phrase = f"{modifier} {base}".strip().lower()
        suggestions.append(
            LongTailSuggestion(
                phrase=phrase,
                score=round(LONG_TAIL_BASE_SCORE + i * LONG_TAIL_SCORE_STEP, 2),
            )
        )
    return suggestions


def heuristic_meta(record: ProductRecord) -> MetaSuggestion:
    # Title shortened so the suffixed meta title stays within the limit
    title_budget = META_TITLE_LIMIT - len(META_TITLE_SUFFIX)
    title = TextUtils.clean(record.title)[:title_budget].rstrip()
    meta_title = f"{title}{META_TITLE_SUFFIX}"

    source = record.bullets[0] if record.bullets else ""
    if not source.strip():
        source = record.description_text[:META_DESCRIPTION_SOURCE_CHARS]
    source = TextUtils.clean(source)
    meta_description = f"{source}{META_DESCRIPTION_SUFFIX}".strip()[:META_DESCRIPTION_LIMIT]

    return MetaSuggestion(
        meta_title=meta_title,
        meta_description=meta_description,
        meta_title_length=len(meta_title),
        meta_description_length=len(meta_description),
    )


def heuristic_bullets(record: ProductRecord) -> List[RewrittenBullet]:
    rewritten = []
    for bullet in record.bullets[:BULLET_COUNT]:
        trimmed = TextUtils.clean(bullet)
        if trimmed.endswith("."):
            trimmed = trimmed[:-1].rstrip()
        trimmed = trimmed[:BULLET_LIMIT]
        if not trimmed:
            continue
        rewritten.append(
            RewrittenBullet(original=bullet, rewritten=trimmed, length=len(trimmed))
        )
    return rewritten


def heuristic_gaps(record: ProductRecord) -> GapResult:
    return detect_gaps(record)
