"""
Shared response models and error translation for the routers
"""
from fastapi import HTTPException
from pydantic import BaseModel
from datetime import date
from typing import Optional
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "src"))

from pnltracker.errors import (
    TrackerError,
    InvalidRecordError,
    NotFoundError,
    PortfolioHasTradesError,
)
from pnltracker.models import Trade
from pnltracker.pnl import calculate_trade_pnl, calculate_trade_return_pct, is_open


class TradeResponse(BaseModel):
    id: int
    ticker: str
    entry_price: float
    exit_price: Optional[float]
    quantity: int
    trade_date: date
    portfolio_id: int
    is_open: bool
    pnl: Optional[float]
    return_pct: Optional[float]


def trade_response(trade: Trade) -> TradeResponse:
    return TradeResponse(
        **trade.model_dump(),
        is_open=is_open(trade),
        pnl=calculate_trade_pnl(trade),
        return_pct=calculate_trade_return_pct(trade),
    )


def to_http_exception(exc: TrackerError) -> HTTPException:
    """Map storage errors onto HTTP status codes"""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (InvalidRecordError, PortfolioHasTradesError)):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
