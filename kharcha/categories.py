CATEGORIES: list[str] = [
    "Food & Dining",
    "Transportation",
    "Housing",
    "Entertainment",
    "Shopping",
    "Utilities",
    "Healthcare",
    "Travel",
    "Education",
    "Groceries",
    "Subscriptions",
    "Personal Care",
    "Gifts & Donations",
    "Other",
]

FALLBACK_CATEGORY = "Other"

_BY_LOWER = {c.lower(): c for c in CATEGORIES}


def is_valid_category(name: str | None) -> bool:
    return name in CATEGORIES


def match_category(name: str | None) -> str | None:
    """Return the canonical label for a case-insensitive match, or None."""
    if not name:
        return None
    return _BY_LOWER.get(name.strip().lower())


def get_categories_str() -> str:
    return ", ".join(CATEGORIES)
