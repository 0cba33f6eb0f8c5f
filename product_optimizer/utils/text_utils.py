from typing import List, Optional


class TextUtils:

    @staticmethod
    def clean(text: Optional[str]) -> str:
        """Collapse whitespace runs and strip."""
        return " ".join((text or "").split())

    @staticmethod
    def truncate(text: Optional[str], limit: int, suffix: str = "") -> str:
        """
        Cut ``text`` to at most ``limit`` characters, suffix included.

        Args:
            text: Input string, None is treated as empty
            limit: Maximum length of the result
            suffix: Appended when the text was cut (e.g. "...")
        """
        text = (text or "").strip()
        if len(text) <= limit:
            return text
        if len(suffix) >= limit:
            return text[:limit]
        return text[: limit - len(suffix)].rstrip() + suffix

    @staticmethod
    def truncate_all(items: List[str], max_items: int, max_chars: int) -> List[str]:
        return [TextUtils.truncate(item, max_chars) for item in items[:max_items]]

    @staticmethod
    def significant_words(text: Optional[str], min_length: int = 4) -> List[str]:
        """Words of at least ``min_length`` characters, in order of appearance."""
        return [word for word in (text or "").split() if len(word) >= min_length]
