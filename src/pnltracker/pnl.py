"""
Portfolio P&L aggregation

Single source of truth for trade and portfolio profit-and-loss. The API,
the dashboard and the chart frames all call into this module.
"""
import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from .models import Trade, Portfolio
from .errors import InvalidRecordError


@dataclass
class PortfolioPnL:
    """Aggregate P&L for one portfolio"""
    total_pnl: float
    total_value: float
    percentage_change: float


@dataclass
class PortfolioSummary:
    """P&L plus trade counts, as shown on portfolio cards"""
    total_pnl: float
    total_value: float
    percentage_change: float
    open_trades: int
    closed_trades: int

    @property
    def total_trades(self) -> int:
        return self.open_trades + self.closed_trades


@dataclass
class PnLPoint:
    """One closed trade on the cumulative P&L curve"""
    trade_date: date
    cumulative_pnl: float
    trade_pnl: float
    ticker: str


def is_open(trade: Trade) -> bool:
    """A trade without an exit price is an open position."""
    return trade.exit_price is None


def calculate_trade_pnl(trade: Trade) -> Optional[float]:
    """
    Realized P&L of a single trade.

    Returns None for open positions. No rounding is applied here; round at
    presentation time.
    """
    if is_open(trade):
        return None
    return (trade.exit_price - trade.entry_price) * trade.quantity


def calculate_trade_return_pct(trade: Trade) -> Optional[float]:
    """Percentage move from entry to exit, or None for open positions."""
    if is_open(trade):
        return None
    return (trade.exit_price - trade.entry_price) / trade.entry_price * 100


def _closed_by_date(trades: Iterable[Trade]) -> List[Trade]:
    # sorted() is stable: same-day trades keep their input order
    closed = [trade for trade in trades if not is_open(trade)]
    return sorted(closed, key=lambda t: t.trade_date)


def _realized_total(trades: Iterable[Trade]) -> float:
    # Same order as build_cumulative_series, so the float sums agree exactly
    total = 0.0
    for trade in _closed_by_date(trades):
        total += calculate_trade_pnl(trade)
    return total


def calculate_portfolio_pnl(portfolio: Portfolio) -> PortfolioPnL:
    """
    Calculate portfolio-level P&L.

    Args:
        portfolio: Portfolio with its trades loaded

    Returns:
        PortfolioPnL with:
        - total_pnl: realized P&L summed over closed trades
        - total_value: initial value plus total_pnl
        - percentage_change: return on the initial value, in percent

    Raises:
        InvalidRecordError: if the initial value is not a finite positive
            number. Validation on write keeps such portfolios out of storage.
    """
    initial_value = portfolio.initial_value
    if not math.isfinite(initial_value) or initial_value <= 0:
        raise InvalidRecordError("Initial value must be a positive amount")

    total_pnl = _realized_total(portfolio.trades)
    total_value = initial_value + total_pnl
    percentage_change = (total_value - initial_value) / initial_value * 100

    return PortfolioPnL(
        total_pnl=total_pnl,
        total_value=total_value,
        percentage_change=percentage_change,
    )


def summarize_portfolio(portfolio: Portfolio) -> PortfolioSummary:
    """Portfolio P&L together with open/closed trade counts."""
    pnl = calculate_portfolio_pnl(portfolio)
    open_count = sum(1 for trade in portfolio.trades if is_open(trade))

    return PortfolioSummary(
        total_pnl=pnl.total_pnl,
        total_value=pnl.total_value,
        percentage_change=pnl.percentage_change,
        open_trades=open_count,
        closed_trades=len(portfolio.trades) - open_count,
    )


def build_cumulative_series(trades: Iterable[Trade]) -> List[PnLPoint]:
    """
    Build the cumulative realized P&L series for charting.

    Closed trades are ordered by trade date, with same-day trades in input
    order. The last point's cumulative_pnl equals the portfolio's total_pnl.
    Both sum in the same order, so the match is exact.
    """
    series = []
    cumulative = 0.0
    for trade in _closed_by_date(trades):
        trade_pnl = calculate_trade_pnl(trade)
        cumulative += trade_pnl
        series.append(
            PnLPoint(
                trade_date=trade.trade_date,
                cumulative_pnl=cumulative,
                trade_pnl=trade_pnl,
                ticker=trade.ticker,
            )
        )

    return series
