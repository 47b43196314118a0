"""
FPL Price Predictor Configuration

Contains price-change model constants, display rules, and system constants.
"""

import os
from dataclasses import dataclass
from typing import Dict
from enum import IntEnum


class Position(IntEnum):
    """FPL position IDs"""
    GK = 1
    DEF = 2
    MID = 3
    FWD = 4


POSITION_NAMES: Dict[int, str] = {
    Position.GK: 'GK',
    Position.DEF: 'DEF',
    Position.MID: 'MID',
    Position.FWD: 'FWD',
}


# =============================================================================
# PRICE CHANGE MODEL
# =============================================================================

@dataclass(frozen=True)
class PricePredictionConfig:
    """Tunable constants of the price-change probability model"""

    # Baseline normalized-transfer threshold required to trigger a change
    BASE_UP_THRESHOLD: float = 3.0
    BASE_DOWN_THRESHOLD: float = 3.0

    # How strongly higher ownership raises the required threshold
    OWNERSHIP_UP_EXP: float = 0.8
    OWNERSHIP_DOWN_EXP: float = 0.8

    # Ownership fraction floor (avoids dividing by ~0 for unowned players)
    MIN_OWNERSHIP_FRACTION: float = 0.01

    # Availability flag multipliers (a flag makes a move easier)
    FLAG_UP_MULT: Dict[str, float] = None
    FLAG_DOWN_MULT: Dict[str, float] = None

    # Scores are dampened right after a change
    COOLDOWN_HOURS: float = 24.0
    COOLDOWN_DAMP: float = 0.25

    # Same-direction damping for a change in the lookback window
    RECENT_DAYS_DAMP: float = 7.0
    RECENT_UP_DAMP: float = 0.3
    RECENT_DOWN_DAMP: float = 0.3

    # Steepness of the logistic score -> probability conversion
    LAMBDA_SIGMOID: float = 2.0

    # Score multiplier reached at the gameweek deadline
    TIME_WEIGHT_ENDGAME: float = 1.05

    # Floor for the number of active managers
    MIN_ACTIVE_MANAGERS: int = 6_000_000

    # Signal classification bar
    SIGNAL_MIN_PROB: float = 0.85
    SIGNAL_MIN_MARGIN: float = 0.25

    def __post_init__(self):
        # Initialize mutable defaults
        if self.FLAG_UP_MULT is None:
            object.__setattr__(self, 'FLAG_UP_MULT', {
                'none': 1.0,
                'yellow': 0.9,
                'red': 0.8,
            })
        if self.FLAG_DOWN_MULT is None:
            object.__setattr__(self, 'FLAG_DOWN_MULT', {
                'none': 1.0,
                'yellow': 0.8,
                'red': 0.6,
            })


# Global model configuration instance
PRICE_CONFIG = PricePredictionConfig()


# =============================================================================
# DISPLAY / REPORT RULES
# =============================================================================

@dataclass(frozen=True)
class DisplayConfig:
    """Rules for turning probabilities into the risers/fallers report"""

    # Players below this event transfer count are not shown
    MIN_EVENT_TRANSFERS: int = 20_000

    # Maximum length of the risers and fallers lists
    MAX_LIST_SIZE: int = 50

    # Size of the top transfers in/out lists derived from bootstrap
    TOP_TRANSFERS_LIMIT: int = 100

    # Lookback for matching a player's last price change
    HISTORY_LOOKBACK_DAYS: int = 7

    # Synthesized gameweek window around "now" (days)
    WINDOW_DAYS_BEFORE: int = 2
    WINDOW_DAYS_AFTER: int = 5

    # Progress anchors
    PROGRESS_ANCHOR: float = 100.0
    PROGRESS_NEUTRAL: float = 95.0
    PROGRESS_MISSING: float = 100.0
    PROGRESS_SIGNAL_SPAN: float = 8.0
    PROGRESS_BASE: float = 88.0
    PROGRESS_BASE_SPAN: float = 12.0

    # Hourly change estimate
    HOURLY_CHANGE_CAP: float = 0.3
    HOURLY_CHANGE_SCALE: float = 0.2

    # Change-time labels by progress
    TONIGHT_PROGRESS: float = 105.0
    TOMORROW_PROGRESS: float = 102.0
    TWO_DAYS_PROGRESS: float = 98.0

    # FPL price updates run daily at this UTC time
    PRICE_UPDATE_HOUR_UTC: int = 1
    PRICE_UPDATE_MINUTE_UTC: int = 30

    # Report metadata
    ACCURACY_LABEL: str = "heuristic"
    ALGORITHM_VERSION: str = "price-probability-v1.0"


DISPLAY_CONFIG = DisplayConfig()


# Status codes that mark a player as flagged
FLAG_YELLOW_STATUSES = ('d',)
FLAG_RED_STATUSES = ('i', 's', 'u', 'n')

# A doubtful player at or below this chance is treated as red
RED_FLAG_MAX_CHANCE = 25


# =============================================================================
# API CONFIGURATION
# =============================================================================

FPL_API_URL = "https://fantasy.premierleague.com/api"
FPL_BOOTSTRAP_URL = f"{FPL_API_URL}/bootstrap-static/"

# API request timeout in seconds
API_TIMEOUT = 30

REQUEST_HEADERS: Dict[str, str] = {
    'User-Agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
    ),
    'Accept': 'application/json',
    'Accept-Language': 'en-US,en;q=0.9',
}

# Age (in seconds) after which the API rebuilds the report
REPORT_MAX_AGE = 3600

# Background refresh interval (in minutes)
REFRESH_INTERVAL_MINUTES = 60


# =============================================================================
# FILE PATHS
# =============================================================================

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.environ.get(
    'FPL_PRICES_DATA_DIR', os.path.join(PROJECT_ROOT, 'exported_data')
)
OUTPUT_DIR = os.path.join(DATA_DIR, 'output')
DB_PATH = os.environ.get(
    'FPL_PRICES_DB', os.path.join(DATA_DIR, 'fpl_prices.duckdb')
)
