"""
Price predictor orchestration

Runs one fetch cycle (transfers, bootstrap, history), records the price
snapshot and builds the risers/fallers report. A failed required fetch
leaves the predictor in an error state with no report.
"""

import logging
import threading
from datetime import datetime
from typing import Optional, List, Dict, Any

import duckdb

from .config import PRICE_CONFIG, DISPLAY_CONFIG, PricePredictionConfig, DisplayConfig
from .data.fetcher import FPLDataFetcher, FPLFetchError, FetchBundle
from .data.repository import PriceChangeRepository
from .engine.player_prediction import utc_now, Window
from .engine.report import build_price_report, team_price_impact, top_transfer_deltas
from .models.prediction import PredictionReport
from .models.price_change import PriceHistory

logger = logging.getLogger(__name__)


class PricePredictor:
    """Main predictor class that orchestrates fetching and prediction"""

    def __init__(self,
                 fetcher: Optional[FPLDataFetcher] = None,
                 repository: Optional[PriceChangeRepository] = None,
                 config: PricePredictionConfig = PRICE_CONFIG,
                 display: DisplayConfig = DISPLAY_CONFIG,
                 active_managers: int = 0):
        self.repository = repository
        self.fetcher = fetcher or FPLDataFetcher(repository=repository)
        self.config = config
        self.display = display
        self.active_managers = active_managers

        self.report: Optional[PredictionReport] = None
        self.bootstrap: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        self.last_refresh: Optional[datetime] = None

        # Serializes fetch cycles between the scheduler and request threads
        self._lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self.report is not None

    def is_stale(self, max_age_seconds: int, now: Optional[datetime] = None) -> bool:
        """Whether the report is missing or older than max_age_seconds"""
        if self.last_refresh is None:
            return True
        now = now or utc_now()
        return (now - self.last_refresh).total_seconds() > max_age_seconds

    def _record_snapshot(self, bootstrap: Dict[str, Any], now: datetime) -> int:
        if self.repository is None:
            return 0
        try:
            changes = self.repository.record_snapshot(bootstrap.get('elements', []), now)
        except duckdb.Error as e:
            logger.warning("Could not record price snapshot: %s", e)
            return 0
        if changes:
            logger.info("Recorded %d price changes", changes)
        return changes

    def _build(self, bundle: FetchBundle, window: Optional[Window]) -> PredictionReport:
        history = bundle.history
        if self._record_snapshot(bundle.bootstrap, bundle.fetched_at):
            # Include moves detected in this cycle
            history = self.fetcher.fetch_price_changes(bundle.fetched_at) or history

        report = build_price_report(
            bundle.bootstrap,
            bundle.transfers,
            history=history,
            now=bundle.fetched_at,
            window=window,
            active_managers=self.active_managers,
            config=self.config,
            display=self.display,
        )

        self.bootstrap = bundle.bootstrap
        self.report = report
        self.error = None
        self.last_refresh = bundle.fetched_at
        return report

    def refresh(self, now: Optional[datetime] = None,
                window: Optional[Window] = None) -> Optional[PredictionReport]:
        """
        Fetch fresh data and rebuild the report.

        Returns:
            The new report, or None if a required fetch failed (the error
            message is kept in self.error and the previous report dropped)
        """
        with self._lock:
            try:
                bundle = self.fetcher.fetch_all(now)
            except FPLFetchError as e:
                logger.error("Price prediction refresh failed: %s", e)
                self.error = str(e)
                self.report = None
                return None

            return self._build(bundle, window)

    def load_from_file(self, filepath: str, now: Optional[datetime] = None,
                       window: Optional[Window] = None) -> Optional[PredictionReport]:
        """Build the report from a saved bootstrap-static file."""
        now = now or utc_now()
        with self._lock:
            try:
                bootstrap = self.fetcher.load_from_file(filepath)
            except FPLFetchError as e:
                logger.error("Could not load %s: %s", filepath, e)
                self.error = str(e)
                self.report = None
                return None

            bundle = FetchBundle(
                bootstrap=bootstrap,
                transfers=top_transfer_deltas(bootstrap['elements'],
                                              self.display.TOP_TRANSFERS_LIMIT),
                history=self.fetcher.fetch_price_changes(now),
                fetched_at=now,
            )
            return self._build(bundle, window)

    def get_history(self, days: int = DISPLAY_CONFIG.HISTORY_LOOKBACK_DAYS,
                    now: Optional[datetime] = None) -> PriceHistory:
        """Recent price changes (empty when no history store is available)"""
        history = self.fetcher.fetch_price_changes(now, days=days)
        return history if history is not None else PriceHistory()

    def get_team_impact(self, player_ids: List[int],
                        now: Optional[datetime] = None) -> Dict[str, Any]:
        """Recent price impact on a list of player ids"""
        return team_price_impact(player_ids, self.get_history(now=now))

    def get_statistics(self) -> Dict[str, Any]:
        """Summary of the current state"""
        return {
            'initialized': self.is_initialized,
            'error': self.error,
            'last_refresh': self.last_refresh.isoformat() if self.last_refresh else None,
            'total_predictions': self.report.total_predictions if self.report else 0,
            'risers': len(self.report.risers) if self.report else 0,
            'fallers': len(self.report.fallers) if self.report else 0,
            'players': len(self.bootstrap.get('elements', [])) if self.bootstrap else 0,
        }
