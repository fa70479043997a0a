"""
Write-boundary validation for portfolios and trades.

Everything that reaches the P&L aggregator has passed through here, so the
aggregator never sees a zero initial value or a non-positive quantity.
"""
import math
from typing import Tuple

from .models import Trade
from .errors import InvalidRecordError


def _require_positive_amount(value, field: str) -> float:
    if value is None:
        raise InvalidRecordError(f"{field} is required")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"{field} must be a number")
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidRecordError(f"{field} must be a positive amount")
    return amount


def validate_portfolio(name: str, initial_value: float) -> Tuple[str, float]:
    """
    Validate portfolio fields.

    Returns:
        (name, initial_value) with the name stripped of surrounding whitespace

    Raises:
        InvalidRecordError: blank name, or initial value that is not a
            finite positive number
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise InvalidRecordError("Portfolio name is required")

    amount = _require_positive_amount(initial_value, "Initial value")
    return clean_name, amount


def validate_trade(trade: Trade) -> Trade:
    """
    Validate a trade and return a normalised copy.

    The ticker is stripped and upper-cased. An exit price may be lower than
    the entry price (a loss) but must itself be a finite, non-negative amount.
    """
    ticker = (trade.ticker or "").strip().upper()
    if not ticker:
        raise InvalidRecordError("Ticker is required")

    entry_price = _require_positive_amount(trade.entry_price, "Entry price")

    exit_price = trade.exit_price
    if exit_price is not None:
        exit_price = float(exit_price)
        if not math.isfinite(exit_price) or exit_price < 0:
            raise InvalidRecordError("Exit price must be a non-negative amount")

    if trade.quantity <= 0:
        raise InvalidRecordError("Quantity must be a positive whole number")

    return trade.model_copy(
        update={
            "ticker": ticker,
            "entry_price": entry_price,
            "exit_price": exit_price,
        }
    )
