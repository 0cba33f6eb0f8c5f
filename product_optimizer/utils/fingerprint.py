import hashlib
import json
import re
from typing import Any, Optional
from urllib.parse import urlparse, urlunparse


def normalize_url(url: Optional[str]) -> str:
    """Lowercase host, strip trailing slashes and fragments, sort query params."""
    if not url:
        return ""
    parsed = urlparse(url.strip())
    scheme = parsed.scheme or "https"
    netloc = parsed.netloc.lower()
    path = re.sub(r"/+$", "", parsed.path) or "/"
    query = "&".join(sorted(filter(None, parsed.query.split("&"))))
    return urlunparse((scheme, netloc, path, "", query, ""))


def normalize_value(value: Any) -> Any:
    """Collapse whitespace in every string of a JSON-like structure."""
    if isinstance(value, str):
        return " ".join(value.split())
    if isinstance(value, dict):
        return {str(k): normalize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_value(v) for v in value]
    return value


def task_fingerprint(
    task: str, payload: Any, url: Optional[str] = None, platform: Optional[str] = None
) -> str:
    """
    Cache key for a task run.

    Equal (task, normalized input, page context) triples always map to the
    same key; key order in ``payload`` does not matter. The page context is
    the normalized URL plus the platform.
    """
    context = f"{platform or ''}|{normalize_url(url)}"
    canonical = json.dumps(
        {"task": task, "input": normalize_value(payload), "context": context},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
