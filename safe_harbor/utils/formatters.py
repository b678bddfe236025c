"""Number, currency and date formatting utilities for the Safe Harbor engine."""

from datetime import date
from typing import Optional


def format_currency(value: float, decimals: int = 1, prefix: str = "$") -> str:
    """Format a number as an abbreviated currency string.

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.
        prefix: Currency symbol prefix.

    Returns:
        Formatted currency string (e.g., "$8.0M").
    """
    if abs(value) >= 1e9:
        return f"{prefix}{value / 1e9:,.{decimals}f}B"
    if abs(value) >= 1e6:
        return f"{prefix}{value / 1e6:,.{decimals}f}M"
    if abs(value) >= 1e3:
        return f"{prefix}{value / 1e3:,.{decimals}f}K"
    return f"{prefix}{value:,.{decimals}f}"


def format_millions(value: float, decimals: int = 1, prefix: str = "$") -> str:
    """Format a dollar amount in millions regardless of size (e.g., "$0.5M")."""
    return f"{prefix}{value / 1e6:,.{decimals}f}M"


def format_currency_exact(value: float, decimals: int = 2, prefix: str = "$") -> str:
    """Format a number as exact currency string without abbreviation.

    Negative amounts keep the sign ahead of the symbol ("-$1,250.00").

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.
        prefix: Currency symbol prefix.

    Returns:
        Formatted currency string (e.g., "$2,500,000.00").
    """
    sign = "-" if value < 0 else ""
    return f"{sign}{prefix}{abs(value):,.{decimals}f}"


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    """Format a value already expressed in percent (e.g., 6.5 -> "6.50%").

    Args:
        value: Percentage value, or None if undefined.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string, or "N/A".
    """
    if value is None:
        return "N/A"
    return f"{value:,.{decimals}f}%"


def format_long_date(value: Optional[date]) -> str:
    """Format a date as "Month D, YYYY" (e.g., "March 30, 2026")."""
    if value is None:
        return "N/A"
    return f"{value:%B} {value.day}, {value.year}"


def format_short_date(value: Optional[date]) -> str:
    """Format a date as "Mon D, YYYY" (e.g., "Dec 31, 2025")."""
    if value is None:
        return "N/A"
    return f"{value:%b} {value.day}, {value.year}"


def format_days(value: Optional[int]) -> str:
    """Format a day count relative to a deadline."""
    if value is None:
        return "N/A"
    if value < 0:
        return f"{-value} days past"
    if value == 1:
        return "1 day"
    return f"{value} days"
