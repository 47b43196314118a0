"""
Price change probability estimator

Converts one player's gameweek transfer pressure into a pair of
independent probabilities (rise, fall) and a conservative signal.
"""

from typing import Tuple

from ..config import PRICE_CONFIG, PricePredictionConfig
from ..models.player import Flag
from ..models.prediction import PredictionInputs, PredictionResult, Signal
from .thresholds import (
    clamp,
    sigmoid,
    normalize_transfers,
    compute_thresholds,
    time_weight,
)


def classify_signal(prob_up: float, prob_down: float,
                    config: PricePredictionConfig = PRICE_CONFIG) -> Signal:
    """
    Classify a probability pair.

    A direction is only called when its probability clears SIGNAL_MIN_PROB
    and beats the opposite direction by at least SIGNAL_MIN_MARGIN.
    """
    if prob_up >= config.SIGNAL_MIN_PROB and (prob_up - prob_down) >= config.SIGNAL_MIN_MARGIN:
        return Signal.LIKELY_UP
    if prob_down >= config.SIGNAL_MIN_PROB and (prob_down - prob_up) >= config.SIGNAL_MIN_MARGIN:
        return Signal.LIKELY_DOWN
    return Signal.NEUTRAL


def _recency_factors(inputs: PredictionInputs,
                     config: PricePredictionConfig) -> Tuple[float, float, bool, bool]:
    """
    Damping factors from the last price change.

    Returns:
        (factor_up, factor_down, in_cooldown, recent_change)
    """
    if inputs.last_price_change_at is None:
        return 1.0, 1.0, False, False

    hours_since = (inputs.now - inputs.last_price_change_at).total_seconds() / 3600
    if hours_since < 0:
        return 1.0, 1.0, False, False

    factor_up = factor_down = 1.0

    in_cooldown = hours_since < config.COOLDOWN_HOURS
    if in_cooldown:
        factor_up *= config.COOLDOWN_DAMP
        factor_down *= config.COOLDOWN_DAMP

    recent_change = hours_since < config.RECENT_DAYS_DAMP * 24
    if recent_change:
        if inputs.price_change_dir_last == 'up':
            factor_up *= config.RECENT_UP_DAMP
        elif inputs.price_change_dir_last == 'down':
            factor_down *= config.RECENT_DOWN_DAMP

    return factor_up, factor_down, in_cooldown, recent_change


def estimate_price_probability(inputs: PredictionInputs,
                               config: PricePredictionConfig = PRICE_CONFIG) -> PredictionResult:
    """
    Estimate rise/fall probabilities for one player.

    Pure function of its arguments: the same inputs (including ``now``)
    always give the same result.

    Args:
        inputs: Normalized per-player model inputs
        config: Model constants

    Returns:
        PredictionResult with both probabilities in [0, 1]
    """
    flag = Flag(inputs.flag)

    norm_in = normalize_transfers(
        inputs.transfers_in_gw, inputs.ownership_pct, inputs.active_managers_estimate, config
    )
    norm_out = normalize_transfers(
        inputs.transfers_out_gw, inputs.ownership_pct, inputs.active_managers_estimate, config
    )

    th_up, th_down = compute_thresholds(inputs.ownership_pct, flag, config)

    score_up = (norm_in / th_up) - 1.0
    score_down = (norm_out / th_down) - 1.0

    factor_up, factor_down, in_cooldown, recent_change = _recency_factors(inputs, config)
    score_up *= factor_up
    score_down *= factor_down

    weight = time_weight(inputs.now, inputs.gw_start_at, inputs.gw_deadline_at, config)
    score_up *= weight
    score_down *= weight

    prob_up = clamp(sigmoid(score_up, config.LAMBDA_SIGMOID))
    prob_down = clamp(sigmoid(score_down, config.LAMBDA_SIGMOID))

    signal = classify_signal(prob_up, prob_down, config)

    explanation = (
        f"normIn={norm_in:.4f} normOut={norm_out:.4f} "
        f"thUp={th_up:.4f} thDown={th_down:.4f} "
        f"scoreUp={score_up:.3f} scoreDown={score_down:.3f} "
        f"flag={flag.value} own={inputs.ownership_pct:.1f}% "
        f"recent={'yes' if recent_change else 'no'} "
        f"cooldown={'yes' if in_cooldown else 'no'} "
        f"timeW={weight:.3f}"
    )

    return PredictionResult(
        prob_up=prob_up,
        prob_down=prob_down,
        signal=signal,
        explanation=explanation,
        score_up=score_up,
        score_down=score_down,
        threshold_up=th_up,
        threshold_down=th_down,
        normalized_in=norm_in,
        normalized_out=norm_out,
        time_weight=weight,
    )
