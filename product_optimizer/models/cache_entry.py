import time
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """
    Stored task result.

    Attributes:
        key (str): Fingerprint of task, normalized input and page context.
        value (Any): JSON-compatible task output in wire form.
        stored_at (float): Epoch seconds at write time.
        source (str): 'provider' or 'heuristic'.
    """

    key: str
    value: Any
    stored_at: float = Field(default_factory=time.time)
    source: Literal["provider", "heuristic"] = "provider"

    def is_expired(self, ttl_seconds: float, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return now - self.stored_at > ttl_seconds
