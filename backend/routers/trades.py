"""
Trades router
"""
from fastapi import APIRouter
from pydantic import BaseModel
from datetime import date
from typing import Optional, List
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "src"))

from pnltracker.db import db
from pnltracker.errors import TrackerError
from pnltracker.models import Trade
from backend.routers.common import TradeResponse, trade_response, to_http_exception

router = APIRouter()


class TradeWrite(BaseModel):
    ticker: str
    entry_price: float
    exit_price: Optional[float] = None
    quantity: int
    trade_date: date
    portfolio_id: int

    def to_trade(self) -> Trade:
        return Trade(**self.model_dump())


@router.get("/", response_model=List[TradeResponse])
async def list_trades(portfolio_id: Optional[int] = None):
    """List all trades, newest first"""
    return [trade_response(t) for t in db.list_trades(portfolio_id=portfolio_id)]


@router.post("/", response_model=TradeResponse)
async def create_trade(trade: TradeWrite):
    """Create a new trade"""
    try:
        inserted_trade = db.create_trade(trade.to_trade())
    except TrackerError as e:
        raise to_http_exception(e)
    return trade_response(inserted_trade)


@router.get("/{trade_id}", response_model=TradeResponse)
async def get_trade(trade_id: int):
    """Get a specific trade"""
    try:
        trade = db.get_trade(trade_id)
    except TrackerError as e:
        raise to_http_exception(e)
    return trade_response(trade)


@router.put("/{trade_id}", response_model=TradeResponse)
async def update_trade(trade_id: int, trade: TradeWrite):
    """Replace every field of a trade"""
    try:
        updated = db.update_trade(trade_id, trade.to_trade())
    except TrackerError as e:
        raise to_http_exception(e)
    return trade_response(updated)


@router.delete("/{trade_id}")
async def delete_trade(trade_id: int):
    """Delete a trade"""
    try:
        db.delete_trade(trade_id)
    except TrackerError as e:
        raise to_http_exception(e)
    return {"message": "Trade deleted successfully"}
