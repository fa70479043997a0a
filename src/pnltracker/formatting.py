"""
Display helpers. Amounts are rounded to cents only here, never in the
P&L calculations themselves.
"""
from datetime import date, datetime
from typing import Optional, Union


def format_currency(amount: float) -> str:
    """Format an amount as US dollars, e.g. $1,234.50 or -$12.00."""
    rounded = round(amount, 2)
    if rounded < 0:
        return f"-${abs(rounded):,.2f}"
    return f"${abs(rounded):,.2f}"


def format_percentage(percentage: float) -> str:
    """Signed percentage with two decimals, e.g. +4.50%."""
    # Adding 0.0 turns -0.0 into 0.0, so tiny losses print as +0.00%
    rounded = round(percentage, 2) + 0.0
    sign = "+" if rounded >= 0 else ""
    return f"{sign}{rounded:.2f}%"


def format_optional_currency(amount: Optional[float], placeholder: str = "-") -> str:
    if amount is None:
        return placeholder
    return format_currency(amount)


def format_date(value: Union[date, datetime]) -> str:
    """Short month date, e.g. Jan 15, 2024."""
    return f"{value.strftime('%b')} {value.day}, {value.year}"
