"""
Prediction result models for FPL price predictor
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any

from .player import Flag


class Signal(str, Enum):
    """Direction the model expects a price to move"""
    LIKELY_UP = 'likely_up'
    LIKELY_DOWN = 'likely_down'
    NEUTRAL = 'neutral'


@dataclass
class PredictionInputs:
    """Everything the probability model needs for one player"""

    transfers_in_gw: int
    transfers_out_gw: int
    ownership_pct: float
    now: datetime
    flag: Flag = Flag.NONE
    last_price_change_at: Optional[datetime] = None
    price_change_dir_last: Optional[str] = None  # 'up' | 'down'
    active_managers_estimate: int = 0
    gw_start_at: Optional[datetime] = None
    gw_deadline_at: Optional[datetime] = None


@dataclass
class PredictionResult:
    """
    Output of the probability model.

    prob_up and prob_down come from two independent logistic evaluations
    and do not sum to 1.
    """

    prob_up: float
    prob_down: float
    signal: Signal
    explanation: str = ""

    # Diagnostics
    score_up: float = 0.0
    score_down: float = 0.0
    threshold_up: float = 0.0
    threshold_down: float = 0.0
    normalized_in: float = 0.0
    normalized_out: float = 0.0
    time_weight: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'prob_up': round(self.prob_up, 4),
            'prob_down': round(self.prob_down, 4),
            'signal': self.signal.value,
            'explanation': self.explanation,
        }


@dataclass
class PlayerPrediction:
    """A player's price prediction, ready for display"""

    # Player info
    id: int
    web_name: str
    position: str = ''
    team: Any = None
    price: float = 0.0
    ownership: float = 0.0
    form: float = 0.0
    total_points: int = 0

    # Transfer activity
    transfers_in_event: int = 0
    transfers_out_event: int = 0
    is_riser: bool = False

    # Display fields
    progress: float = 100.0
    hourly_change: float = 0.0
    change_time: str = "Unlikely"
    target_reached: bool = False

    # Model output (None when the player could not be scored)
    result: Optional[PredictionResult] = None

    @property
    def signal(self) -> Signal:
        return self.result.signal if self.result else Signal.NEUTRAL

    @property
    def prob_up(self) -> float:
        return self.result.prob_up if self.result else 0.0

    @property
    def prob_down(self) -> float:
        return self.result.prob_down if self.result else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'id': self.id,
            'web_name': self.web_name,
            'position': self.position,
            'team': self.team,
            'price': self.price,
            'ownership': self.ownership,
            'form': self.form,
            'total_points': self.total_points,
            'transfers_in_event': self.transfers_in_event,
            'transfers_out_event': self.transfers_out_event,
            'is_riser': self.is_riser,
            'progress': round(self.progress, 2),
            'hourly_change': round(self.hourly_change, 3),
            'change_time': self.change_time,
            'target_reached': self.target_reached,
            'prob_up': round(self.prob_up, 4),
            'prob_down': round(self.prob_down, 4),
            'signal': self.signal.value,
        }


@dataclass
class PredictionReport:
    """Risers/fallers report built from one fetch cycle"""

    predictions: List[PlayerPrediction] = field(default_factory=list)
    risers: List[PlayerPrediction] = field(default_factory=list)
    fallers: List[PlayerPrediction] = field(default_factory=list)

    # Metadata
    accuracy: str = ""
    last_updated: Optional[datetime] = None
    next_update: Optional[datetime] = None
    algorithm: str = ""

    @property
    def total_predictions(self) -> int:
        return len(self.predictions)

    def get_prediction(self, player_id: int) -> Optional[PlayerPrediction]:
        for prediction in self.predictions:
            if prediction.id == player_id:
                return prediction
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'predictions': [p.to_dict() for p in self.predictions],
            'risers': [p.to_dict() for p in self.risers],
            'fallers': [p.to_dict() for p in self.fallers],
            'total_predictions': self.total_predictions,
            'accuracy': self.accuracy,
            'last_updated': self.last_updated.isoformat() if self.last_updated else None,
            'next_update': self.next_update.isoformat() if self.next_update else None,
            'algorithm': self.algorithm,
        }
