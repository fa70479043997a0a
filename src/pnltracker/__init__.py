# Portfolio P&L tracker
from .pnl import (
    is_open,
    calculate_trade_pnl,
    calculate_trade_return_pct,
    calculate_portfolio_pnl,
    summarize_portfolio,
    build_cumulative_series,
)

__all__ = [
    'is_open',
    'calculate_trade_pnl',
    'calculate_trade_return_pct',
    'calculate_portfolio_pnl',
    'summarize_portfolio',
    'build_cumulative_series',
]
