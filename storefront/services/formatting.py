"""Display helpers for prices and ratings."""

from __future__ import annotations


def format_currency(amount: float) -> str:
    """Format an amount as US dollars, e.g. ``$1,234.50``."""

    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_rating(rating: float) -> str:
    return f"{rating:.1f}"
