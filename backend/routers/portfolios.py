"""
Portfolios router
"""
from fastapi import APIRouter
from pydantic import BaseModel
from datetime import date, datetime
from typing import List
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "src"))

from pnltracker.db import db
from pnltracker.errors import TrackerError
from pnltracker.models import Portfolio
from pnltracker.pnl import summarize_portfolio, build_cumulative_series
from backend.routers.common import TradeResponse, trade_response, to_http_exception

router = APIRouter()


class PortfolioWrite(BaseModel):
    name: str
    initial_value: float


class PortfolioSummaryResponse(BaseModel):
    total_pnl: float
    total_value: float
    percentage_change: float
    open_trades: int
    closed_trades: int


class PortfolioResponse(BaseModel):
    id: int
    name: str
    initial_value: float
    created_at: datetime
    trades: List[TradeResponse]
    summary: PortfolioSummaryResponse


class PnLPointResponse(BaseModel):
    trade_date: date
    cumulative_pnl: float
    trade_pnl: float
    ticker: str


def portfolio_response(portfolio: Portfolio) -> PortfolioResponse:
    summary = summarize_portfolio(portfolio)
    return PortfolioResponse(
        id=portfolio.id,
        name=portfolio.name,
        initial_value=portfolio.initial_value,
        created_at=portfolio.created_at,
        trades=[trade_response(t) for t in portfolio.trades],
        summary=PortfolioSummaryResponse(
            total_pnl=summary.total_pnl,
            total_value=summary.total_value,
            percentage_change=summary.percentage_change,
            open_trades=summary.open_trades,
            closed_trades=summary.closed_trades,
        ),
    )


@router.get("/", response_model=List[PortfolioResponse])
async def list_portfolios():
    """List all portfolios with their trades and P&L summary"""
    return [portfolio_response(p) for p in db.list_portfolios()]


@router.post("/", response_model=PortfolioResponse)
async def create_portfolio(portfolio: PortfolioWrite):
    """Create a new portfolio"""
    try:
        created = db.create_portfolio(portfolio.name, portfolio.initial_value)
    except TrackerError as e:
        raise to_http_exception(e)
    return portfolio_response(created)


@router.get("/{portfolio_id}", response_model=PortfolioResponse)
async def get_portfolio(portfolio_id: int):
    """Get a specific portfolio"""
    try:
        portfolio = db.get_portfolio(portfolio_id)
    except TrackerError as e:
        raise to_http_exception(e)
    return portfolio_response(portfolio)


@router.put("/{portfolio_id}", response_model=PortfolioResponse)
async def update_portfolio(portfolio_id: int, portfolio: PortfolioWrite):
    """Replace a portfolio's name and initial value"""
    try:
        updated = db.update_portfolio(portfolio_id, portfolio.name, portfolio.initial_value)
    except TrackerError as e:
        raise to_http_exception(e)
    return portfolio_response(updated)


@router.delete("/{portfolio_id}")
async def delete_portfolio(portfolio_id: int):
    """Delete a portfolio; rejected while it still owns trades"""
    try:
        db.delete_portfolio(portfolio_id)
    except TrackerError as e:
        raise to_http_exception(e)
    return {"message": "Portfolio deleted successfully"}


@router.get("/{portfolio_id}/trades", response_model=List[TradeResponse])
async def list_portfolio_trades(portfolio_id: int):
    """Trades of one portfolio, oldest first"""
    try:
        db.get_portfolio(portfolio_id)
    except TrackerError as e:
        raise to_http_exception(e)
    return [trade_response(t) for t in db.list_trades(portfolio_id=portfolio_id, ascending=True)]


@router.get("/{portfolio_id}/pnl-series", response_model=List[PnLPointResponse])
async def get_pnl_series(portfolio_id: int):
    """Cumulative realized P&L, one point per closed trade"""
    try:
        db.get_portfolio(portfolio_id)
    except TrackerError as e:
        raise to_http_exception(e)

    trades = db.list_trades(portfolio_id=portfolio_id, ascending=True)
    return [
        PnLPointResponse(
            trade_date=point.trade_date,
            cumulative_pnl=point.cumulative_pnl,
            trade_pnl=point.trade_pnl,
            ticker=point.ticker,
        )
        for point in build_cumulative_series(trades)
    ]
