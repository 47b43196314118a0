"""Data models for FPL price predictor"""

from .player import PlayerSnapshot, TransferDelta, Flag
from .price_change import PriceChangeRecord, PriceHistory
from .prediction import (
    Signal, PredictionInputs, PredictionResult, PlayerPrediction, PredictionReport
)

__all__ = [
    'PlayerSnapshot', 'TransferDelta', 'Flag',
    'PriceChangeRecord', 'PriceHistory',
    'Signal', 'PredictionInputs', 'PredictionResult', 'PlayerPrediction', 'PredictionReport',
]
