import sqlite3
import os
import logging
from typing import List, Optional
from datetime import datetime, date

from .models import Trade, Portfolio
from .errors import NotFoundError, PortfolioHasTradesError
from .validation import validate_portfolio, validate_trade

logger = logging.getLogger(__name__)

_TRADE_COLUMNS = "id, ticker, entry_price, exit_price, quantity, trade_date, portfolio_id"


def _row_to_trade(row) -> Trade:
    return Trade(
        id=row[0],
        ticker=row[1],
        entry_price=row[2],
        exit_price=row[3],
        quantity=row[4],
        trade_date=date.fromisoformat(row[5]),
        portfolio_id=row[6],
    )


class Database:
    def __init__(self, db_path: str = None):
        # PNL_DB_PATH lets tests and production point at different files
        if db_path is None:
            db_path = os.getenv('PNL_DB_PATH', 'pnl.db')

        self.db_path = db_path
        self._conn = None
        self._init_db()

    def _get_connection(self):
        """Get a database connection, creating it if necessary."""
        if self.db_path == ":memory:":
            if self._conn is None:
                # Shared with the FastAPI worker thread
                self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
                self._conn.execute("PRAGMA foreign_keys = ON")
                self._create_tables(self._conn.cursor())
                self._conn.commit()
            return self._conn
        else:
            conn = sqlite3.connect(self.db_path)
            conn.execute("PRAGMA foreign_keys = ON")
            return conn

    def _release(self, conn):
        # Only file-based connections are per-call
        if self.db_path != ":memory:":
            conn.close()

    def _create_tables(self, cursor):
        """Create database tables if they don't exist."""
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS portfolios (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                initial_value REAL NOT NULL CHECK (initial_value > 0),
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS trades (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                ticker TEXT NOT NULL,
                entry_price REAL NOT NULL,
                exit_price REAL,
                quantity INTEGER NOT NULL CHECK (quantity > 0),
                trade_date TEXT NOT NULL,
                portfolio_id INTEGER NOT NULL
                    REFERENCES portfolios (id) ON DELETE RESTRICT
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_trades_portfolio
            ON trades (portfolio_id, trade_date)
        """)

    def _init_db(self):
        """Initialize database and create tables if they don't exist."""
        if self.db_path != ":memory:":
            conn = self._get_connection()
            self._create_tables(conn.cursor())
            conn.commit()
            conn.close()

    # Portfolios

    def create_portfolio(self, name: str, initial_value: float) -> Portfolio:
        """Insert a portfolio into the database."""
        name, initial_value = validate_portfolio(name, initial_value)
        created_at = datetime.now()

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO portfolios (name, initial_value, created_at)
                VALUES (?, ?, ?)
            """, (name, initial_value, created_at.isoformat()))
            conn.commit()
            portfolio_id = cursor.lastrowid
        finally:
            self._release(conn)

        logger.info(f"Created portfolio {portfolio_id} ({name})")
        return Portfolio(
            id=portfolio_id,
            name=name,
            initial_value=initial_value,
            created_at=created_at,
            trades=[],
        )

    def _fetch_portfolio_row(self, cursor, portfolio_id: int):
        cursor.execute("""
            SELECT id, name, initial_value, created_at
            FROM portfolios
            WHERE id = ?
        """, (portfolio_id,))
        return cursor.fetchone()

    def get_portfolio(self, portfolio_id: int) -> Portfolio:
        """Retrieve one portfolio with its trades (newest first)."""
        conn = self._get_connection()
        try:
            row = self._fetch_portfolio_row(conn.cursor(), portfolio_id)
        finally:
            self._release(conn)

        if row is None:
            raise NotFoundError(f"Portfolio {portfolio_id} not found")

        return Portfolio(
            id=row[0],
            name=row[1],
            initial_value=row[2],
            created_at=datetime.fromisoformat(row[3]),
            trades=self.list_trades(portfolio_id=row[0]),
        )

    def list_portfolios(self) -> List[Portfolio]:
        """Retrieve all portfolios, newest first, each with its trades."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT id, name, initial_value, created_at
                FROM portfolios
                ORDER BY created_at DESC, id DESC
            """)
            rows = cursor.fetchall()
        finally:
            self._release(conn)

        trades_by_portfolio = {}
        for trade in self.list_trades():
            trades_by_portfolio.setdefault(trade.portfolio_id, []).append(trade)

        return [
            Portfolio(
                id=row[0],
                name=row[1],
                initial_value=row[2],
                created_at=datetime.fromisoformat(row[3]),
                trades=trades_by_portfolio.get(row[0], []),
            )
            for row in rows
        ]

    def update_portfolio(self, portfolio_id: int, name: str, initial_value: float) -> Portfolio:
        """Replace a portfolio's name and initial value."""
        name, initial_value = validate_portfolio(name, initial_value)

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE portfolios
                SET name = ?, initial_value = ?
                WHERE id = ?
            """, (name, initial_value, portfolio_id))
            conn.commit()
            updated = cursor.rowcount
        finally:
            self._release(conn)

        if not updated:
            raise NotFoundError(f"Portfolio {portfolio_id} not found")

        logger.info(f"Updated portfolio {portfolio_id}")
        return self.get_portfolio(portfolio_id)

    def delete_portfolio(self, portfolio_id: int) -> None:
        """
        Delete a portfolio.

        Raises:
            PortfolioHasTradesError: the portfolio still owns trades
            NotFoundError: no such portfolio
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if self._fetch_portfolio_row(cursor, portfolio_id) is None:
                raise NotFoundError(f"Portfolio {portfolio_id} not found")

            trade_count = self._count_trades(cursor, portfolio_id)
            if trade_count > 0:
                logger.warning(
                    f"Refused to delete portfolio {portfolio_id}: {trade_count} trades remain"
                )
                raise PortfolioHasTradesError(portfolio_id, trade_count)

            try:
                cursor.execute("DELETE FROM portfolios WHERE id = ?", (portfolio_id,))
                conn.commit()
            except sqlite3.IntegrityError:
                # A trade was added after the count; the foreign key refused the delete
                conn.rollback()
                trade_count = self._count_trades(cursor, portfolio_id)
                logger.warning(
                    f"Refused to delete portfolio {portfolio_id}: {trade_count} trades remain"
                )
                raise PortfolioHasTradesError(portfolio_id, trade_count)
        finally:
            self._release(conn)

        logger.info(f"Deleted portfolio {portfolio_id}")

    def _count_trades(self, cursor, portfolio_id: int) -> int:
        cursor.execute(
            "SELECT COUNT(*) FROM trades WHERE portfolio_id = ?", (portfolio_id,)
        )
        return cursor.fetchone()[0]

    # Trades

    def _ensure_portfolio_exists(self, cursor, portfolio_id: int):
        if self._fetch_portfolio_row(cursor, portfolio_id) is None:
            raise NotFoundError(f"Portfolio {portfolio_id} not found")

    def create_trade(self, trade: Trade) -> Trade:
        """Insert a trade into the database."""
        trade = validate_trade(trade)

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            self._ensure_portfolio_exists(cursor, trade.portfolio_id)
            try:
                cursor.execute("""
                    INSERT INTO trades (ticker, entry_price, exit_price, quantity, trade_date, portfolio_id)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, (
                    trade.ticker,
                    trade.entry_price,
                    trade.exit_price,
                    trade.quantity,
                    trade.trade_date.isoformat(),
                    trade.portfolio_id,
                ))
                conn.commit()
            except sqlite3.IntegrityError:
                # The portfolio was deleted after the existence check
                conn.rollback()
                raise NotFoundError(f"Portfolio {trade.portfolio_id} not found")
            trade.id = cursor.lastrowid
        finally:
            self._release(conn)

        logger.info(f"Created trade {trade.id}: {trade.ticker} x{trade.quantity}")
        return trade

    def get_trade(self, trade_id: int) -> Trade:
        """Retrieve a single trade."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_TRADE_COLUMNS} FROM trades WHERE id = ?", (trade_id,))
            row = cursor.fetchone()
        finally:
            self._release(conn)

        if row is None:
            raise NotFoundError(f"Trade {trade_id} not found")
        return _row_to_trade(row)

    def list_trades(self, portfolio_id: Optional[int] = None, ascending: bool = False) -> List[Trade]:
        """
        Retrieve trades ordered by trade date.

        Args:
            portfolio_id: restrict to one portfolio; None returns all trades
            ascending: oldest first instead of newest first
        """
        direction = "ASC" if ascending else "DESC"
        query = f"SELECT {_TRADE_COLUMNS} FROM trades"
        params = ()
        if portfolio_id is not None:
            query += " WHERE portfolio_id = ?"
            params = (portfolio_id,)
        # Same-day ties stay in insertion order either way, so a date sort of
        # either listing yields the same sequence
        query += f" ORDER BY trade_date {direction}, id ASC"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()
        finally:
            self._release(conn)

        return [_row_to_trade(row) for row in rows]

    def update_trade(self, trade_id: int, trade: Trade) -> Trade:
        """Replace every field of an existing trade."""
        trade = validate_trade(trade)

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            self._ensure_portfolio_exists(cursor, trade.portfolio_id)
            try:
                cursor.execute("""
                    UPDATE trades
                    SET ticker = ?, entry_price = ?, exit_price = ?, quantity = ?,
                        trade_date = ?, portfolio_id = ?
                    WHERE id = ?
                """, (
                    trade.ticker,
                    trade.entry_price,
                    trade.exit_price,
                    trade.quantity,
                    trade.trade_date.isoformat(),
                    trade.portfolio_id,
                    trade_id,
                ))
                conn.commit()
            except sqlite3.IntegrityError:
                # The portfolio was deleted after the existence check
                conn.rollback()
                raise NotFoundError(f"Portfolio {trade.portfolio_id} not found")
            updated = cursor.rowcount
        finally:
            self._release(conn)

        if not updated:
            raise NotFoundError(f"Trade {trade_id} not found")

        logger.info(f"Updated trade {trade_id}")
        trade.id = trade_id
        return trade

    def delete_trade(self, trade_id: int) -> None:
        """Delete a trade."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM trades WHERE id = ?", (trade_id,))
            conn.commit()
            deleted = cursor.rowcount
        finally:
            self._release(conn)

        if not deleted:
            raise NotFoundError(f"Trade {trade_id} not found")
        logger.info(f"Deleted trade {trade_id}")

    def close(self):
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None


# Global database instance
db = Database()
