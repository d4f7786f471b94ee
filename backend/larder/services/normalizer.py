"""
Ingredient name normalization.

The normalized name is the merge key for shopping list and pantry lines.
It is deliberately shallow: no stemming, pluralization or unit handling,
so "tomato" and "tomatoes" remain separate lines.
"""

from typing import Optional


def normalize(name: Optional[str]) -> str:
    """Lowercase and trim an ingredient name."""
    if name is None:
        return ""
    return str(name).strip().lower()


def same_item(a: Optional[str], b: Optional[str]) -> bool:
    """Check whether two names refer to the same line item."""
    return normalize(a) == normalize(b)
