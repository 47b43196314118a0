"""
DuckDB Database Module for FPL Price Predictor

Provides database connection management and schema initialization for the
price history store.
"""

import duckdb
from pathlib import Path
from typing import Optional
import threading
import atexit
import logging

from ..config import DB_PATH

logger = logging.getLogger(__name__)

# Global connection
_global_connection: Optional[duckdb.DuckDBPyConnection] = None
_lock = threading.Lock()


def get_connection(db_path: Optional[str] = None) -> duckdb.DuckDBPyConnection:
    """
    Get the global DuckDB connection, creating it (and the schema) on
    first use.

    Args:
        db_path: Database file, defaults to config.DB_PATH

    Returns:
        DuckDB connection
    """
    global _global_connection

    with _lock:
        if _global_connection is None:
            path = db_path or DB_PATH
            if path != ':memory:':
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            _global_connection = duckdb.connect(str(path))
            init_schema(_global_connection)

        return _global_connection


def close_connection():
    """Close the global connection if it exists."""
    global _global_connection

    with _lock:
        if _global_connection is not None:
            try:
                _global_connection.close()
            except duckdb.Error as e:
                logger.warning("Error closing price history database: %s", e)
            _global_connection = None


# Register cleanup on exit
atexit.register(close_connection)


def init_schema(con: Optional[duckdb.DuckDBPyConnection] = None):
    """
    Initialize the database schema.

    Creates all tables if they don't exist. Safe to call multiple times.

    Args:
        con: Optional connection to use. If None, gets global connection.
    """
    if con is None:
        con = get_connection()

    # Last seen price per player
    con.execute("""
        CREATE TABLE IF NOT EXISTS price_snapshots (
            player_id INTEGER PRIMARY KEY,
            now_cost INTEGER NOT NULL,
            captured_at TIMESTAMP NOT NULL
        )
    """)

    # Observed price moves
    con.execute("""
        CREATE TABLE IF NOT EXISTS price_changes (
            player_id INTEGER NOT NULL,
            web_name VARCHAR,
            old_price INTEGER,
            new_price INTEGER,
            change_type VARCHAR NOT NULL,  -- 'rise' | 'fall'
            change_time TIMESTAMP NOT NULL
        )
    """)

    con.execute("""
        CREATE INDEX IF NOT EXISTS idx_price_changes_time
        ON price_changes (change_time)
    """)


def reset_database(con: Optional[duckdb.DuckDBPyConnection] = None):
    """Drop and recreate all tables."""
    if con is None:
        con = get_connection()

    con.execute("DROP TABLE IF EXISTS price_changes")
    con.execute("DROP TABLE IF EXISTS price_snapshots")
    init_schema(con)


def get_db_stats(con: Optional[duckdb.DuckDBPyConnection] = None) -> dict:
    """Row counts per table and the database location."""
    if con is None:
        con = get_connection()

    stats = {}
    for table in ('price_snapshots', 'price_changes'):
        stats[table] = con.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    stats['db_path'] = DB_PATH
    return stats
