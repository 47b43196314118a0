"""Price prediction engine modules"""

from .price_probability import estimate_price_probability, classify_signal
from .player_prediction import build_player_prediction
from .report import build_price_report, team_price_impact, top_transfer_deltas

__all__ = [
    'estimate_price_probability', 'classify_signal', 'build_player_prediction',
    'build_price_report', 'team_price_impact', 'top_transfer_deltas',
]
