"""
Attribute gap detection.

Compares a record's spec keys against the attributes shoppers expect for its
platform and scores what is missing. Always computed locally.
"""

from typing import Dict, List, Optional, Union

from product_optimizer.models import AttributeGap, GapResult, Platform, ProductRecord


GENERIC_ATTRIBUTES = ["material", "dimensions", "weight", "color", "size", "brand"]

PLATFORM_ATTRIBUTES: Dict[Platform, List[str]] = {
    Platform.AMAZON: ["asin", "item model number"],
    Platform.SHOPIFY: ["sku", "vendor"],
    Platform.WOOCOMMERCE: ["sku", "category"],
    Platform.ETSY: ["occasion", "style"],
    Platform.WALMART: ["model", "upc"],
    Platform.EBAY: ["condition", "mpn"],
}

GAP_WEIGHT = 2


def _normalize_key(key: str) -> str:
    return " ".join(key.lower().split())


def get_expected_attributes(platform: Optional[Union[Platform, str]] = None) -> List[str]:
    """Generic attributes plus the platform's own, without duplicates."""
    try:
        platform = Platform(platform) if platform else Platform.GENERIC
    except ValueError:
        platform = Platform.GENERIC
    expected = list(GENERIC_ATTRIBUTES)
    for key in PLATFORM_ATTRIBUTES.get(platform, []):
        if key not in expected:
            expected.append(key)
    return expected


def classify_gap_score(gap_score: int) -> str:
    if gap_score > 8:
        return "severe"
    if gap_score > 4:
        return "moderate"
    if gap_score > 0:
        return "mild"
    return "none"


def detect_gaps(record: ProductRecord) -> GapResult:
    present = {_normalize_key(spec.key) for spec in record.specs}
    gaps = [
        AttributeGap(
            key=key,
            severity="medium",
            suggestion=f"Add {key} for completeness",
        )
        for key in get_expected_attributes(record.platform)
        if _normalize_key(key) not in present
    ]
    gap_score = len(gaps) * GAP_WEIGHT
    return GapResult(
        gaps=gaps,
        gap_score=gap_score,
        classification=classify_gap_score(gap_score),
    )
