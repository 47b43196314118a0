"""
Per-player price prediction assembly

Merges a player's transfer record with the bootstrap snapshot and any
recent price change, runs the probability model and maps the result into
display fields (progress, hourly change, time-to-change).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple, Union, Any

from ..config import PRICE_CONFIG, DISPLAY_CONFIG, PricePredictionConfig, DisplayConfig
from ..models.player import PlayerSnapshot, TransferDelta
from ..models.price_change import PriceHistory, PriceChangeRecord, parse_timestamp
from ..models.prediction import PlayerPrediction, PredictionInputs, PredictionResult, Signal
from .price_probability import estimate_price_probability

logger = logging.getLogger(__name__)

Window = Tuple[datetime, datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_now(now: Any = None) -> datetime:
    """Evaluation time as aware UTC; the current time when missing or unparseable"""
    parsed = parse_timestamp(now) if now is not None else None
    return parsed or utc_now()


def synthesized_window(now: datetime,
                       display: DisplayConfig = DISPLAY_CONFIG) -> Window:
    """Gameweek window assumed when real boundaries are not supplied"""
    return (now - timedelta(days=display.WINDOW_DAYS_BEFORE),
            now + timedelta(days=display.WINDOW_DAYS_AFTER))


def find_recent_change(player_id: int,
                       history: Optional[PriceHistory],
                       now: datetime,
                       lookback_days: int = DISPLAY_CONFIG.HISTORY_LOOKBACK_DAYS
                       ) -> Optional[PriceChangeRecord]:
    """Most recent price change for a player within the lookback window"""
    if history is None:
        return None

    cutoff = now - timedelta(days=lookback_days)
    for record in history.for_player(player_id):
        if cutoff <= record.change_time <= now:
            return record
    return None


def change_time_label(progress: float, display: DisplayConfig = DISPLAY_CONFIG) -> str:
    """Coarse time-to-change label for a (riser-oriented) progress value"""
    if progress >= display.TONIGHT_PROGRESS:
        return "Tonight"
    if progress >= display.TOMORROW_PROGRESS:
        return "Tomorrow"
    if progress >= display.TWO_DAYS_PROGRESS:
        return "2 days"
    return ">2 days"


def unlikely_prediction(transfer: TransferDelta,
                        display: DisplayConfig = DISPLAY_CONFIG) -> PlayerPrediction:
    """Most conservative prediction, used when a player cannot be scored"""
    return PlayerPrediction(
        id=transfer.id,
        web_name=transfer.web_name,
        position=transfer.position,
        team=transfer.team,
        price=transfer.now_cost / 10,
        transfers_in_event=transfer.transfers_in_event,
        transfers_out_event=transfer.transfers_out_event,
        is_riser=transfer.is_riser_candidate,
        progress=display.PROGRESS_MISSING,
        hourly_change=0.0,
        change_time="Unlikely",
        target_reached=False,
    )


def _display_fields(result: PredictionResult,
                    is_riser: bool,
                    is_faller: bool,
                    display: DisplayConfig) -> Tuple[float, float, str]:
    """Map model output to (progress, hourly_change, change_time)"""
    magnitude = min(display.HOURLY_CHANGE_CAP,
                    max(result.prob_up, result.prob_down) * display.HOURLY_CHANGE_SCALE)

    if is_riser:
        if result.signal == Signal.LIKELY_UP:
            progress = display.PROGRESS_ANCHOR + result.prob_up * display.PROGRESS_SIGNAL_SPAN
        else:
            progress = display.PROGRESS_BASE + result.prob_up * display.PROGRESS_BASE_SPAN
        return progress, magnitude, change_time_label(progress, display)

    if is_faller:
        # Mirror image of the riser scale around the anchor
        if result.signal == Signal.LIKELY_DOWN:
            progress = display.PROGRESS_ANCHOR - result.prob_down * display.PROGRESS_SIGNAL_SPAN
        else:
            progress = (2 * display.PROGRESS_ANCHOR - display.PROGRESS_BASE
                        - result.prob_down * display.PROGRESS_BASE_SPAN)
        mirrored = 2 * display.PROGRESS_ANCHOR - progress
        return progress, -magnitude, change_time_label(mirrored, display)

    progress = display.PROGRESS_NEUTRAL
    return progress, 0.0, change_time_label(progress, display)


def _as_transfer(transfer: Union[TransferDelta, Dict[str, Any]]) -> TransferDelta:
    if isinstance(transfer, TransferDelta):
        return transfer
    return TransferDelta.from_dict(transfer)


def build_player_prediction(transfer: Union[TransferDelta, Dict[str, Any]],
                            bootstrap_index: Dict[int, PlayerSnapshot],
                            history: Optional[PriceHistory] = None,
                            now: Optional[datetime] = None,
                            window: Optional[Window] = None,
                            active_managers: int = 0,
                            config: PricePredictionConfig = PRICE_CONFIG,
                            display: DisplayConfig = DISPLAY_CONFIG) -> PlayerPrediction:
    """
    Build the display prediction for one transfer-feed player.

    Never raises for bad upstream data: a player without a bootstrap match,
    or whose data cannot be scored, gets the conservative "Unlikely"
    prediction.

    Args:
        transfer: Transfer record (TransferDelta or raw feed dict)
        bootstrap_index: Player snapshots keyed by player id
        history: Recent price changes, if available
        now: Evaluation time (defaults to the current UTC time)
        window: (gameweek start, deadline); synthesized around now if None
        active_managers: Estimate of active managers (floored by config)
        config: Model constants
        display: Display constants

    Returns:
        PlayerPrediction
    """
    transfer = _as_transfer(transfer)
    now = coerce_now(now)

    snapshot = bootstrap_index.get(transfer.id)
    if snapshot is None:
        logger.debug("No bootstrap entry for player %s", transfer.id)
        return unlikely_prediction(transfer, display)

    is_riser = transfer.is_riser_candidate
    is_faller = transfer.is_faller_candidate

    recent = find_recent_change(transfer.id, history, now, display.HISTORY_LOOKBACK_DAYS)

    if window is None:
        gw_start_at, gw_deadline_at = synthesized_window(now, display)
    else:
        gw_start_at, gw_deadline_at = (parse_timestamp(window[0]), parse_timestamp(window[1]))

    inputs = PredictionInputs(
        transfers_in_gw=transfer.transfers_in_event,
        transfers_out_gw=transfer.transfers_out_event,
        ownership_pct=snapshot.ownership_pct,
        now=now,
        flag=snapshot.flag,
        last_price_change_at=recent.change_time if recent else None,
        price_change_dir_last=recent.direction if recent else None,
        active_managers_estimate=active_managers,
        gw_start_at=gw_start_at,
        gw_deadline_at=gw_deadline_at,
    )

    try:
        result = estimate_price_probability(inputs, config)
    except (TypeError, ValueError, ZeroDivisionError, OverflowError) as e:
        logger.warning("Could not score player %s: %s", transfer.id, e)
        return unlikely_prediction(transfer, display)

    progress, hourly_change, change_time = _display_fields(result, is_riser, is_faller, display)

    return PlayerPrediction(
        id=snapshot.id,
        web_name=transfer.web_name or snapshot.web_name,
        position=transfer.position or snapshot.position,
        team=snapshot.team_short or transfer.team or snapshot.team,
        price=snapshot.price,
        ownership=snapshot.ownership_pct,
        form=snapshot.form,
        total_points=snapshot.total_points,
        transfers_in_event=transfer.transfers_in_event,
        transfers_out_event=transfer.transfers_out_event,
        is_riser=is_riser,
        progress=progress,
        hourly_change=hourly_change,
        change_time=change_time,
        target_reached=result.signal != Signal.NEUTRAL,
        result=result,
    )
