"""
Threshold and normalization helpers for the price-change model

Turns raw gameweek transfer counts into ownership-relative pressure and
computes the ownership/flag dependent thresholds that pressure is
measured against.
"""

import math
from datetime import datetime
from typing import Optional, Tuple, Union

from ..config import PRICE_CONFIG, PricePredictionConfig
from ..models.player import Flag


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp a value into [low, high]"""
    return max(low, min(high, value))


def sigmoid(score: float, steepness: float) -> float:
    """Logistic function 1 / (1 + e^(-steepness * score))"""
    z = steepness * score
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    # Same value, evaluated without overflowing exp() for large negative z
    ez = math.exp(z)
    return ez / (1.0 + ez)


def ownership_fraction(ownership_pct: float,
                       config: PricePredictionConfig = PRICE_CONFIG) -> float:
    """Ownership percentage (0-100) as a fraction, floored"""
    return max(config.MIN_OWNERSHIP_FRACTION, (ownership_pct or 0.0) / 100.0)


def normalize_transfers(count: int,
                        ownership_pct: float,
                        active_managers: int = 0,
                        config: PricePredictionConfig = PRICE_CONFIG) -> float:
    """
    Express a raw transfer count relative to the player's owner base.

    The count is divided by the active manager base (never below
    MIN_ACTIVE_MANAGERS) and again by the ownership fraction, so a heavily
    owned player needs proportionally more transfers to register the same
    pressure.
    """
    managers = max(config.MIN_ACTIVE_MANAGERS, active_managers or 0)
    return (count or 0) / managers / ownership_fraction(ownership_pct, config)


def compute_thresholds(ownership_pct: float,
                       flag: Union[Flag, str] = Flag.NONE,
                       config: PricePredictionConfig = PRICE_CONFIG) -> Tuple[float, float]:
    """
    Compute the (up, down) thresholds for a player.

    Higher ownership raises both thresholds; an availability flag lowers
    them, the down threshold more than the up threshold.

    Returns:
        Tuple of (threshold_up, threshold_down)
    """
    own = ownership_fraction(ownership_pct, config)
    flag_key = Flag(flag).value

    th_up = (config.BASE_UP_THRESHOLD
             * own ** config.OWNERSHIP_UP_EXP
             * config.FLAG_UP_MULT.get(flag_key, 1.0))
    th_down = (config.BASE_DOWN_THRESHOLD
               * own ** config.OWNERSHIP_DOWN_EXP
               * config.FLAG_DOWN_MULT.get(flag_key, 1.0))

    return th_up, th_down


def time_weight(now: datetime,
                gw_start_at: Optional[datetime],
                gw_deadline_at: Optional[datetime],
                config: PricePredictionConfig = PRICE_CONFIG) -> float:
    """
    Linear ramp from 1.0 at the window start to TIME_WEIGHT_ENDGAME at the
    deadline. Exactly 1.0 outside the window or without a usable window.
    """
    if gw_start_at is None or gw_deadline_at is None:
        return 1.0

    span = (gw_deadline_at - gw_start_at).total_seconds()
    if span <= 0:
        return 1.0

    if now < gw_start_at or now > gw_deadline_at:
        return 1.0

    elapsed = (now - gw_start_at).total_seconds() / span
    return 1.0 + (config.TIME_WEIGHT_ENDGAME - 1.0) * elapsed
