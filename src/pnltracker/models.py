from pydantic import BaseModel
from datetime import datetime, date
from typing import List, Optional


class Trade(BaseModel):
    id: Optional[int] = None
    ticker: str
    entry_price: float
    exit_price: Optional[float] = None  # None while the position is open
    quantity: int
    trade_date: date
    portfolio_id: int


class Portfolio(BaseModel):
    id: Optional[int] = None
    name: str
    initial_value: float  # Basis for percentage return
    created_at: Optional[datetime] = None
    trades: List[Trade] = []
