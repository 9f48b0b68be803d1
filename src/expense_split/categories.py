"""Expense categories and category resolution."""

import logging
from collections.abc import Iterable

from .models import Category

logger = logging.getLogger(__name__)

OTHER_CATEGORY = "Other"

DEFAULT_CATEGORIES: list[Category] = [
    Category(id="Food & Drink", group_name="Food"),
    Category(id="Coffee", group_name="Food"),
    Category(id="Groceries", group_name="Food"),
    Category(id="Shopping", group_name="Lifestyle"),
    Category(id="Entertainment", group_name="Lifestyle"),
    Category(id="Gifts", group_name="Lifestyle"),
    Category(id="Travel", group_name="Travel"),
    Category(id="Transportation", group_name="Travel"),
    Category(id="Rent", group_name="Home"),
    Category(id="Utilities", group_name="Home"),
    Category(id="Health", group_name="Personal"),
    Category(id="Education", group_name="Personal"),
    Category(id=OTHER_CATEGORY, group_name="General"),
]


def normalize_category(value: str) -> str:
    """
    Normalize a category identifier for consistent matching.

    Args:
        value: The raw category identifier

    Returns:
        Normalized identifier (lowercase, stripped)
    """
    return value.lower().strip()


def resolve_category(
    value: str | None,
    categories: Iterable[Category],
    default: str = OTHER_CATEGORY,
) -> str | None:
    """
    Map a form category onto a known category id.

    Args:
        value: Category chosen on the form, possibly empty
        categories: Known categories
        default: Category used when ``value`` is empty

    Returns:
        Canonical category id, ``default`` for an empty value, or None if the
        value matches no known category
    """
    if value is None or not value.strip():
        logger.debug(f"No category chosen, defaulting to '{default}'")
        return default

    wanted = normalize_category(value)
    for category in categories:
        if normalize_category(category.id) == wanted:
            return category.id

    logger.debug(f"Unknown category '{value}'")
    return None
