"""
FPL data fetcher

Fetches the bootstrap snapshot and the gameweek transfer feed from the
FPL API, and the recent price changes from the local history store. The
three fetches are independent and run concurrently.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Any

import duckdb
import requests

from ..config import (
    FPL_BOOTSTRAP_URL,
    API_TIMEOUT,
    REQUEST_HEADERS,
    DISPLAY_CONFIG,
)
from ..engine.player_prediction import utc_now
from ..engine.report import top_transfer_deltas
from ..models.price_change import PriceHistory

logger = logging.getLogger(__name__)


class FPLFetchError(Exception):
    """A required upstream fetch failed."""

    def __init__(self, message: str, source: str = 'fpl', cause: Optional[Exception] = None):
        super().__init__(message)
        self.source = source
        self.cause = cause


@dataclass
class FetchBundle:
    """Results of one fetch cycle"""
    bootstrap: Dict[str, Any]
    transfers: Dict[str, List[Dict[str, Any]]]
    history: Optional[PriceHistory]
    fetched_at: datetime


class FPLDataFetcher:
    """
    Fetches the inputs of the price model.

    Bootstrap and transfers are required: a failure raises FPLFetchError.
    Price history is optional: a failure is logged and treated as
    "no history".
    """

    def __init__(self,
                 repository=None,
                 bootstrap_url: str = FPL_BOOTSTRAP_URL,
                 transfers_url: Optional[str] = None,
                 timeout: int = API_TIMEOUT,
                 session: Optional[requests.Session] = None):
        """
        Initialize the fetcher.

        Args:
            repository: PriceChangeRepository for history (optional)
            bootstrap_url: bootstrap-static endpoint
            transfers_url: Endpoint carrying transfers_*_event counts
                (defaults to the bootstrap endpoint)
            timeout: HTTP timeout in seconds
            session: requests session to reuse
        """
        self.repository = repository
        self.bootstrap_url = bootstrap_url
        self.transfers_url = transfers_url or bootstrap_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(REQUEST_HEADERS)

    def _get_json(self, url: str, source: str) -> Dict[str, Any]:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error("Error fetching %s: %s", source, e)
            raise FPLFetchError(f"Error fetching {source}: {e}", source, e) from e

        if response.status_code != 200:
            logger.error("%s API error: %s", source, response.status_code)
            raise FPLFetchError(
                f"{source} API responded with status: {response.status_code}", source
            )

        try:
            return response.json()
        except ValueError as e:
            raise FPLFetchError(f"Invalid JSON from {source}: {e}", source, e) from e

    def fetch_bootstrap(self) -> Dict[str, Any]:
        """Fetch the bootstrap-static payload."""
        data = self._get_json(self.bootstrap_url, 'bootstrap')
        if not isinstance(data, dict) or not isinstance(data.get('elements'), list):
            raise FPLFetchError("bootstrap payload has no 'elements' list", 'bootstrap')
        return data

    def fetch_transfers(self, limit: int = DISPLAY_CONFIG.TOP_TRANSFERS_LIMIT
                        ) -> Dict[str, List[Dict[str, Any]]]:
        """Fetch the top transfers in / out of the current gameweek."""
        data = self._get_json(self.transfers_url, 'transfers')
        try:
            if isinstance(data, dict) and 'transfers_in' in data:
                return {
                    'transfers_in': list(data.get('transfers_in') or []),
                    'transfers_out': list(data.get('transfers_out') or []),
                }
            if not isinstance(data, dict) or not isinstance(data.get('elements'), list):
                raise FPLFetchError("transfers payload has no transfer data", 'transfers')
            return top_transfer_deltas(data['elements'], limit)
        except (TypeError, ValueError, AttributeError) as e:
            raise FPLFetchError(f"Malformed transfers payload: {e}", 'transfers', e) from e

    def fetch_price_changes(self, now: Optional[datetime] = None,
                            days: int = DISPLAY_CONFIG.HISTORY_LOOKBACK_DAYS
                            ) -> Optional[PriceHistory]:
        """Recent price changes, or None when history is unavailable."""
        if self.repository is None:
            return None

        now = now or utc_now()
        try:
            return self.repository.get_recent(now - timedelta(days=days))
        except (duckdb.Error, OSError) as e:
            logger.warning("Price history unavailable: %s", e)
            return None

    def fetch_all(self, now: Optional[datetime] = None) -> FetchBundle:
        """
        Fetch transfers, bootstrap and history concurrently.

        Raises:
            FPLFetchError: if transfers or bootstrap could not be fetched
        """
        now = now or utc_now()

        with ThreadPoolExecutor(max_workers=3) as pool:
            transfers_future = pool.submit(self.fetch_transfers)
            bootstrap_future = pool.submit(self.fetch_bootstrap)
            history_future = pool.submit(self.fetch_price_changes, now)

            transfers = transfers_future.result()
            bootstrap = bootstrap_future.result()
            history = history_future.result()

        return FetchBundle(
            bootstrap=bootstrap,
            transfers=transfers,
            history=history,
            fetched_at=now,
        )

    @staticmethod
    def load_from_file(filepath: str) -> Dict[str, Any]:
        """
        Load a saved bootstrap-static payload.

        Raises:
            FPLFetchError: if the file is missing or not valid bootstrap JSON
        """
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise FPLFetchError(f"File not found: {filepath}", 'file', e) from e
        except json.JSONDecodeError as e:
            raise FPLFetchError(f"Invalid JSON in {filepath}: {e}", 'file', e) from e

        # Accept both a raw bootstrap dump and an analyzer export wrapping it
        if isinstance(data, dict) and 'elements' not in data and 'bootstrap' in data:
            data = data['bootstrap']
        if not isinstance(data, dict) or not isinstance(data.get('elements'), list):
            raise FPLFetchError(f"No bootstrap elements in {filepath}", 'file')
        return data
