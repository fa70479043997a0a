"""
Sample data for a fresh database.

Usage:
    python -m pnltracker.seed
"""
import logging
from datetime import date
from typing import List

from .db import Database
from .models import Trade, Portfolio

logger = logging.getLogger(__name__)

SAMPLE_PORTFOLIOS = [
    {
        "name": "Growth Portfolio",
        "initial_value": 10000.0,
        "trades": [
            ("AAPL", 150.00, 165.00, 10, date(2024, 1, 15)),
            ("GOOGL", 2800.00, 2950.00, 2, date(2024, 2, 1)),
            ("MSFT", 320.00, None, 15, date(2024, 3, 1)),  # Open position
        ],
    },
    {
        "name": "Dividend Portfolio",
        "initial_value": 15000.0,
        "trades": [
            ("JNJ", 160.00, 155.00, 20, date(2024, 1, 20)),
            ("PG", 140.00, 145.00, 25, date(2024, 2, 15)),
        ],
    },
]


def seed_sample_data(database: Database) -> List[Portfolio]:
    """Insert the sample portfolios and trades; returns the created portfolios."""
    created = []
    for sample in SAMPLE_PORTFOLIOS:
        portfolio = database.create_portfolio(sample["name"], sample["initial_value"])
        for ticker, entry_price, exit_price, quantity, trade_date in sample["trades"]:
            database.create_trade(
                Trade(
                    ticker=ticker,
                    entry_price=entry_price,
                    exit_price=exit_price,
                    quantity=quantity,
                    trade_date=trade_date,
                    portfolio_id=portfolio.id,
                )
            )
        created.append(database.get_portfolio(portfolio.id))

    logger.info(f"Seeded {len(created)} sample portfolios")
    return created


def main():
    logging.basicConfig(level=logging.INFO)
    database = Database()
    try:
        seed_sample_data(database)
        print(f"Sample data seeded successfully into {database.db_path}")
    finally:
        database.close()


if __name__ == "__main__":
    main()
