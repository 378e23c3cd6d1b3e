"""Text helpers."""

from __future__ import annotations

from typing import Any, Iterable, Optional


def text_context(description: Optional[str], category: Any) -> str:
    """Lowercase ``description + " " + category`` used for keyword matching."""
    category = getattr(category, "value", category)
    return f"{description or ''} {category or ''}".lower()


def contains_any(text: str, needles: Iterable[str]) -> bool:
    """Return True if any needle is a substring of text."""
    return any(needle in text for needle in needles)
