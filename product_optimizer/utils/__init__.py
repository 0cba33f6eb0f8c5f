"""Utilities module for the Product Page Optimizer."""

from .fingerprint import normalize_url, normalize_value, task_fingerprint
from .text_utils import TextUtils

__all__ = [
    "normalize_url",
    "normalize_value",
    "task_fingerprint",
    "TextUtils",
]
