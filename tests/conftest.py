"""
Pytest configuration and fixtures for the Product Page Optimizer tests.

Provides sample pages, product records and in-memory collaborators shared by
all test modules.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from product_optimizer.models import CacheEntry, ProductRecord, SpecEntry
from product_optimizer.services import TaskCache


JSON_LD_ONLY_HTML = """
<html><head>
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "Product", "name": "Acme Widget"}
</script>
</head><body></body></html>
"""

RICH_PRODUCT_HTML = """
<html>
<head>
  <meta property="og:type" content="product">
  <meta property="og:title" content="Acme Widget Pro (OG)">
  <meta property="og:image" content="https://cdn.example.com/og.jpg">
  <meta property="product:price:amount" content="49.99">
  <meta property="product:price:currency" content="USD">
  <script type="application/ld+json">
  {
    "@context": "https://schema.org",
    "@graph": [
      {"@type": "WebPage", "name": "Shop"},
      {
        "@type": "Product",
        "name": "Acme Widget Pro",
        "description": "A sturdy widget for every workshop.",
        "image": ["https://cdn.example.com/widget.jpg"],
        "brand": {"@type": "Brand", "name": "Acme"},
        "sku": "AW-100",
        "offers": {"@type": "Offer", "price": "49.99", "priceCurrency": "USD",
                   "availability": "https://schema.org/InStock"},
        "aggregateRating": {"ratingValue": "4.6", "reviewCount": "128"},
        "additionalProperty": [{"name": "Material", "value": "Steel"}]
      }
    ]
  }
  </script>
</head>
<body>
  <main>
    <h1 class="product-title">Acme Widget Pro</h1>
    <div id="feature-bullets"><ul>
      <li>Hardened steel body.</li>
      <li>Fits every standard bench</li>
    </ul></div>
    <table class="specifications">
      <tr><th>Color</th><td>Red</td></tr>
      <tr><th>Weight</th><td>1.2 kg</td></tr>
    </table>
    <form><select name="size">
      <option>Choose a size</option><option>Small</option><option>Large</option>
    </select></form>
  </main>
</body>
</html>
"""

MICRODATA_HTML = """
<html><body>
<div itemscope itemtype="https://schema.org/Product">
  <div itemprop="brand" itemscope itemtype="https://schema.org/Brand">
    <span itemprop="name">Globex</span>
  </div>
  <h1 itemprop="name">Globex Kettle</h1>
  <img itemprop="image" src="https://cdn.example.com/kettle.jpg" alt="kettle">
  <p itemprop="description">Boils water quickly and quietly.</p>
  <div itemprop="offers" itemscope itemtype="https://schema.org/Offer">
    <span itemprop="price" content="29.50">$29.50</span>
    <meta itemprop="priceCurrency" content="USD">
    <link itemprop="availability" href="https://schema.org/OutOfStock">
  </div>
  <span itemprop="sku">GK-7</span>
</div>
</body></html>
"""

HEURISTIC_HTML = """
<html><body>
<main>
  <h1 class="product-title">Trail Runner Shoe</h1>
  <span class="price">£1,299.00</span>
  <a href="/brand/stride">Stride</a>
  <div class="product-image">
    <img src="/img/icon.png" width="32">
    <img src="/img/shoe-1.jpg" width="800" alt="Shoe side">
  </div>
  <div class="product-description">Lightweight trail shoe with a grippy outsole for wet rock.</div>
  <span class="rating-value">4.2</span>
  <span class="review-count">1,234 reviews</span>
</main>
</body></html>
"""

ARTICLE_HTML = """
<html><head>
  <meta property="og:type" content="article">
  <meta property="og:title" content="Ten tips for better sleep">
</head>
<body><p>Short.</p></body></html>
"""


class FakeProvider:
    """
    In-memory CompletionProvider.

    ``replies`` maps a prompt substring to a reply string or an exception to
    raise. ``default`` is used when nothing matches.
    """

    def __init__(self, replies: Optional[Dict[str, Any]] = None, default: Any = None):
        self.replies = replies or {}
        self.default = default
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.default
        for fragment, value in self.replies.items():
            if fragment in prompt:
                reply = value
                break
        if isinstance(reply, BaseException):
            raise reply
        if reply is None:
            raise ConnectionError("no reply configured")
        return reply


class MemoryStore:
    """Dict-backed CacheStore."""

    def __init__(self):
        self.entries: Dict[str, CacheEntry] = {}
        self.deleted: List[str] = []

    async def get(self, key: str) -> Optional[CacheEntry]:
        return self.entries.get(key)

    async def set(self, key: str, entry: CacheEntry) -> None:
        self.entries[key] = entry

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.entries.pop(key, None)


class FailingStore(MemoryStore):
    async def get(self, key: str) -> Optional[CacheEntry]:
        raise OSError("disk unavailable")

    async def set(self, key: str, entry: CacheEntry) -> None:
        raise OSError("disk full")


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_record() -> Callable[..., ProductRecord]:
    """Factory for product records with sensible defaults."""

    def _make(**overrides: Any) -> ProductRecord:
        values: Dict[str, Any] = {
            "title": "Wireless Mouse",
            "url": "https://shop.example.com/products/wireless-mouse",
        }
        values.update(overrides)
        return ProductRecord(**values)

    return _make


@pytest.fixture
def sample_record(make_record) -> ProductRecord:
    return make_record(
        title="Ergonomic Wireless Mouse with Silent Clicks",
        brand="Logi",
        bullets=[
            "Silent clicks for quiet offices.",
            "Up to 24 months of battery life",
            "Contoured shape for right-handed users.",
        ],
        description={"text": "A comfortable mouse built for long working days."},
        specs=[SpecEntry(key="Color", value="Graphite")],
    )


@pytest.fixture
def memory_cache() -> TaskCache:
    return TaskCache(store=None)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider_factory() -> Callable[..., FakeProvider]:
    return FakeProvider


def json_reply(value: Any, fenced: bool = False) -> str:
    text = json.dumps(value)
    return f"```json\n{text}\n```" if fenced else text


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
