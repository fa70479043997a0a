import pandas as pd
from typing import List
from .models import Trade
from .pnl import (
    build_cumulative_series,
    calculate_trade_pnl,
    calculate_trade_return_pct,
    is_open,
)


def trades_to_dataframe(trades: List[Trade]) -> pd.DataFrame:
    """Convert list of trades to pandas DataFrame with P&L columns."""
    if not trades:
        return pd.DataFrame()

    data = []
    for trade in trades:
        data.append(
            {
                "id": trade.id,
                "ticker": trade.ticker,
                "entry_price": trade.entry_price,
                "exit_price": trade.exit_price,
                "quantity": trade.quantity,
                "trade_date": pd.Timestamp(trade.trade_date),
                "portfolio_id": trade.portfolio_id,
                "status": "open" if is_open(trade) else "closed",
                "pnl": calculate_trade_pnl(trade),
                "return_pct": calculate_trade_return_pct(trade),
            }
        )

    return pd.DataFrame(data)


def cumulative_pnl_frame(trades: List[Trade]) -> pd.DataFrame:
    """Cumulative realized P&L over time, one row per closed trade."""
    series = build_cumulative_series(trades)
    if not series:
        return pd.DataFrame()

    return pd.DataFrame(
        [
            {
                "trade_date": pd.Timestamp(point.trade_date),
                "cumulative_pnl": point.cumulative_pnl,
                "trade_pnl": point.trade_pnl,
                "ticker": point.ticker,
            }
            for point in series
        ]
    )


def pnl_by_ticker(trades: List[Trade]) -> pd.DataFrame:
    """Realized P&L and trade counts grouped by ticker."""
    df = trades_to_dataframe(trades)
    if df.empty:
        return pd.DataFrame()

    # Open trades count toward the totals but carry no realized P&L
    df["pnl"] = df["pnl"].astype(float).fillna(0.0)
    df["is_open"] = df["status"] == "open"

    grouped = (
        df.groupby("ticker")
        .agg(
            realized_pnl=("pnl", "sum"),
            trades=("ticker", "size"),
            open_trades=("is_open", "sum"),
        )
        .reset_index()
    )
    grouped["open_trades"] = grouped["open_trades"].astype(int)

    return grouped.sort_values("realized_pnl", ascending=False).reset_index(drop=True)
