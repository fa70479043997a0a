"""
Errors raised by the storage and aggregation layers.

Routers translate these into HTTP responses; the Streamlit UI shows the
message with ``st.error``.
"""


class TrackerError(Exception):
    """Base class for portfolio tracker errors"""


class InvalidRecordError(TrackerError, ValueError):
    """A portfolio or trade failed validation at the write boundary"""


class NotFoundError(TrackerError, LookupError):
    """No portfolio or trade exists with the requested id"""


class PortfolioHasTradesError(TrackerError):
    """A portfolio cannot be deleted while it still owns trades"""

    def __init__(self, portfolio_id: int, trade_count: int):
        self.portfolio_id = portfolio_id
        self.trade_count = trade_count
        super().__init__(
            "Cannot delete portfolio with existing trades. "
            "Please delete all trades first."
        )
