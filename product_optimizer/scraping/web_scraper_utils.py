"""
This module handles all web scraping utility operations shared by the extractors.
"""

import copy
import re
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag


CURRENCY_SYMBOLS = {
    "$": "USD",
    "£": "GBP",
    "€": "EUR",
    "¥": "JPY",
    "₹": "INR",
}

CURRENCY_CODES = ("USD", "GBP", "EUR", "JPY", "INR", "CAD", "AUD", "CHF", "CNY", "SEK")

_PRICE_NUMBER = re.compile(r"\d[\d.,]*")
_COUNT_NUMBER = re.compile(r"[\d,]+")
_WHITESPACE = re.compile(r"\s+")

NON_CONTENT_TAGS = ["script", "style", "noscript"]


class WebScraperUtils:
    """
    This class handles all web scraping utility operations.
    """

    @staticmethod
    def clean_text(text: Optional[str]) -> str:
        """Collapse whitespace runs and strip."""
        if not text:
            return ""
        return _WHITESPACE.sub(" ", text).strip()

    @staticmethod
    def element_text(element: Optional[Tag]) -> str:
        if element is None:
            return ""
        return WebScraperUtils.clean_text(element.get_text(" ", strip=True))

    @staticmethod
    def content_fragment(element: Tag) -> Tag:
        """Copy of ``element`` without script, style and noscript descendants."""
        fragment = copy.copy(element)
        for node in fragment.find_all(NON_CONTENT_TAGS):
            node.decompose()
        return fragment

    @staticmethod
    def description_of(element: Optional[Tag]) -> Dict[str, str]:
        """
        Inner markup and plain text of a description element.

        Elements carrying a ``content`` attribute (meta tags) only yield text.
        """
        if element is None:
            return {}
        content = element.get("content")
        if content and str(content).strip():
            return {"text": WebScraperUtils.clean_text(str(content))}
        fragment = WebScraperUtils.content_fragment(element)
        description = {"text": WebScraperUtils.element_text(fragment)}
        html = fragment.decode_contents().strip()
        if html:
            description["html"] = html
        return description

    @staticmethod
    def select_one(soup: BeautifulSoup, selector: str) -> Optional[Tag]:
        """
        select_one that treats an unsupported selector as no match.

        Returns:
            The first matching element, or None.
        """
        try:
            return soup.select_one(selector)
        except Exception:
            return None

    @staticmethod
    def first_text(soup: BeautifulSoup, selectors: Iterable[str]) -> Optional[str]:
        """Text of the first selector that matches a non-empty element."""
        for selector in selectors:
            text = WebScraperUtils.element_text(WebScraperUtils.select_one(soup, selector))
            if text:
                return text
        return None

    @staticmethod
    def parse_price(text: Any) -> Optional[float]:
        """
        Parse a price string such as "$1,299.00", "1.299,00 €" or "19.99".

        Currency symbols and thousands separators are removed. A trailing
        comma group of exactly two digits is read as the decimal part.
        """
        if text is None:
            return None
        if isinstance(text, (int, float)) and not isinstance(text, bool):
            return float(text)

        match = _PRICE_NUMBER.search(str(text))
        if not match:
            return None
        number = match.group(0).rstrip(".,")

        if "," in number and "." in number:
            if number.rfind(",") > number.rfind("."):
                number = number.replace(".", "").replace(",", ".")
            else:
                number = number.replace(",", "")
        elif "," in number:
            head, _, tail = number.rpartition(",")
            if len(tail) == 2 and "," not in head:
                number = f"{head}.{tail}"
            else:
                number = number.replace(",", "")

        try:
            return float(number)
        except ValueError:
            return None

    @staticmethod
    def parse_count(text: Any) -> Optional[int]:
        """Extract an integer count from text like "1,234 reviews"."""
        if text is None:
            return None
        if isinstance(text, int) and not isinstance(text, bool):
            return text
        match = _COUNT_NUMBER.search(str(text))
        if not match:
            return None
        digits = match.group(0).replace(",", "")
        return int(digits) if digits else None

    @staticmethod
    def parse_float(text: Any) -> Optional[float]:
        if text is None or isinstance(text, bool):
            return None
        if isinstance(text, (int, float)):
            return float(text)
        match = re.search(r"\d+(?:\.\d+)?", str(text))
        return float(match.group(0)) if match else None

    @staticmethod
    def infer_currency(text: Optional[str]) -> Optional[str]:
        """Map a currency symbol or code found in ``text`` to an ISO code."""
        if not text:
            return None
        for symbol, code in CURRENCY_SYMBOLS.items():
            if symbol in text:
                return code
        upper = text.upper()
        for code in CURRENCY_CODES:
            if code in upper:
                return code
        return None

    @staticmethod
    def resolve_url(src: Optional[str], base_url: Optional[str]) -> Optional[str]:
        """Convert protocol-relative and relative URLs to absolute ones."""
        if not src:
            return None
        src = src.strip()
        if src.startswith("//"):
            return "https:" + src
        if src.startswith("http") or src.startswith("data:") or not base_url:
            return src
        return urljoin(base_url, src)
