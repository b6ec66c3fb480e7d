"""Keyword-based merchant categorization"""

from typing import List, Tuple

DEFAULT_CATEGORY = "Other"

# Checked in order; the first group with a matching keyword wins
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    (
        "Food & Dining",
        ("restaurant", "cafe", "coffee", "pizza", "burger", "food", "grubhub", "doordash", "ubereats"),
    ),
    ("Groceries", ("grocery", "supermarket", "walmart", "target", "whole foods", "trader joe")),
    ("Transportation", ("uber", "lyft", "taxi", "gas", "fuel", "parking")),
    ("Shopping", ("amazon", "ebay", "mall", "store")),
    ("Entertainment", ("netflix", "spotify", "hulu", "cinema", "theater", "movie")),
    ("Utilities", ("electric", "water", "internet", "phone", "verizon", "at&t")),
    ("Healthcare", ("pharmacy", "hospital", "doctor", "medical", "cvs", "walgreens")),
    ("Travel", ("airline", "hotel", "airbnb", "booking")),
]

CATEGORIES = tuple(name for name, _ in CATEGORY_KEYWORDS) + (DEFAULT_CATEGORY,)


def categorize_transaction(merchant: str, amount: float = 0.0) -> str:
    """
    Map a merchant string to a spending category.

    Case-insensitive substring match against CATEGORY_KEYWORDS in priority
    order. The amount is accepted for interface stability but no rule uses it.

    Example:
        "Starbucks Coffee" -> "Food & Dining"
        "UberEats Order"   -> "Food & Dining" (checked before Transportation)
    """
    merchant_lower = (merchant or "").lower()

    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in merchant_lower for keyword in keywords):
            return category

    return DEFAULT_CATEGORY
