"""Data fetching and price history storage"""

from .fetcher import FPLDataFetcher, FPLFetchError, FetchBundle
from .database import get_connection, init_schema, get_db_stats, reset_database, close_connection
from .repository import PriceChangeRepository

__all__ = [
    'FPLDataFetcher', 'FPLFetchError', 'FetchBundle',
    'get_connection', 'init_schema', 'get_db_stats', 'reset_database', 'close_connection',
    'PriceChangeRepository',
]
