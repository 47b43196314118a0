"""
Risers/fallers report builder

Applies the display cutoff, ranks the per-player predictions and attaches
report metadata. Also derives the top transfers in/out feed from the
bootstrap elements and summarizes price impact on a squad.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Any, Iterable, Union

from ..config import PRICE_CONFIG, DISPLAY_CONFIG, PricePredictionConfig, DisplayConfig
from ..models.player import PlayerSnapshot, TransferDelta, parse_int
from ..models.price_change import PriceHistory
from ..models.prediction import PredictionReport
from .player_prediction import build_player_prediction, coerce_now, Window

logger = logging.getLogger(__name__)


def index_bootstrap(bootstrap: Union[Dict[str, Any], List[Dict[str, Any]]]
                    ) -> Dict[int, PlayerSnapshot]:
    """
    Build player snapshots keyed by id.

    Accepts either the full bootstrap-static payload or its 'elements' list.
    """
    if isinstance(bootstrap, dict):
        elements = bootstrap.get('elements', []) or []
        teams = bootstrap.get('teams', []) or []
    else:
        elements = bootstrap or []
        teams = []

    team_map = {t.get('id'): t.get('short_name', '') for t in teams}

    index = {}
    for element in elements:
        if not isinstance(element, dict):
            continue
        snapshot = PlayerSnapshot.from_fpl_bootstrap(element, team_map)
        index[snapshot.id] = snapshot
    return index


def top_transfer_deltas(elements: Iterable[Dict[str, Any]],
                        limit: int = DISPLAY_CONFIG.TOP_TRANSFERS_LIMIT
                        ) -> Dict[str, List[Dict[str, Any]]]:
    """
    Split bootstrap elements into one-sided top transfers in/out lists.

    An element goes to 'transfers_in' when more managers bought than sold
    it this gameweek, otherwise to 'transfers_out'. Each entry only carries
    the count for its own side.
    """
    ins, outs = [], []

    for element in elements or []:
        if not isinstance(element, dict):
            continue
        t_in = parse_int(element.get('transfers_in_event'))
        t_out = parse_int(element.get('transfers_out_event'))
        if t_in == 0 and t_out == 0:
            continue

        entry = {
            'id': element.get('id'),
            'web_name': element.get('web_name', ''),
            'position': element.get('element_type'),
            'team': element.get('team'),
            'now_cost': element.get('now_cost', 0),
            'transfers_in_event': 0,
            'transfers_out_event': 0,
        }
        if t_in > t_out:
            entry['transfers_in_event'] = t_in
            ins.append(entry)
        else:
            entry['transfers_out_event'] = t_out
            outs.append(entry)

    ins.sort(key=lambda e: e['transfers_in_event'], reverse=True)
    outs.sort(key=lambda e: e['transfers_out_event'], reverse=True)

    return {'transfers_in': ins[:limit], 'transfers_out': outs[:limit]}


def merge_transfer_feed(transfers: Dict[str, List[Dict[str, Any]]]) -> List[TransferDelta]:
    """
    Combine the transfers in/out arrays into one delta per player.

    A player listed on both sides keeps both counts (and so is neither a
    pure riser nor a pure faller).
    """
    merged: Dict[int, TransferDelta] = {}

    for key in ('transfers_in', 'transfers_out'):
        for entry in transfers.get(key, []) or []:
            if not isinstance(entry, dict):
                continue
            delta = TransferDelta.from_dict(entry)
            existing = merged.get(delta.id)
            if existing is None:
                merged[delta.id] = delta
            else:
                existing.transfers_in_event += delta.transfers_in_event
                existing.transfers_out_event += delta.transfers_out_event

    return list(merged.values())


def next_price_update(now: Optional[datetime] = None,
                      display: DisplayConfig = DISPLAY_CONFIG) -> datetime:
    """Next occurrence of the daily price update time (UTC), strictly after now"""
    now = coerce_now(now)
    candidate = now.replace(
        hour=display.PRICE_UPDATE_HOUR_UTC,
        minute=display.PRICE_UPDATE_MINUTE_UTC,
        second=0,
        microsecond=0,
    )
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def last_price_update(now: Optional[datetime] = None,
                      display: DisplayConfig = DISPLAY_CONFIG) -> datetime:
    """Most recent daily price update time (UTC) at or before now"""
    return next_price_update(now, display) - timedelta(days=1)


def _event_transfers(delta: TransferDelta) -> int:
    if delta.is_riser_candidate:
        return delta.transfers_in_event
    if delta.is_faller_candidate:
        return delta.transfers_out_event
    return max(delta.transfers_in_event, delta.transfers_out_event)


def build_price_report(bootstrap: Union[Dict[str, Any], List[Dict[str, Any]]],
                       transfers: Dict[str, List[Dict[str, Any]]],
                       history: Optional[PriceHistory] = None,
                       now: Optional[datetime] = None,
                       window: Optional[Window] = None,
                       active_managers: int = 0,
                       config: PricePredictionConfig = PRICE_CONFIG,
                       display: DisplayConfig = DISPLAY_CONFIG) -> PredictionReport:
    """
    Build the risers/fallers report for one fetch cycle.

    Args:
        bootstrap: bootstrap-static payload (or its elements list)
        transfers: {'transfers_in': [...], 'transfers_out': [...]}
        history: Recent price changes (None when unavailable)
        now: Evaluation time (defaults to current UTC time)
        window: Real gameweek (start, deadline), if known
        active_managers: Active manager estimate
        config: Model constants
        display: Display constants

    Returns:
        PredictionReport
    """
    now = coerce_now(now)
    index = index_bootstrap(bootstrap)

    predictions = []
    for delta in merge_transfer_feed(transfers):
        if _event_transfers(delta) < display.MIN_EVENT_TRANSFERS:
            continue
        predictions.append(build_player_prediction(
            delta, index,
            history=history,
            now=now,
            window=window,
            active_managers=active_managers,
            config=config,
            display=display,
        ))

    risers = sorted(
        (p for p in predictions if p.transfers_in_event > 0 and p.transfers_out_event == 0),
        key=lambda p: p.progress,
        reverse=True,
    )[:display.MAX_LIST_SIZE]
    fallers = sorted(
        (p for p in predictions if p.transfers_out_event > 0 and p.transfers_in_event == 0),
        key=lambda p: p.progress,
    )[:display.MAX_LIST_SIZE]

    logger.info("Built price report: %d predictions, %d risers, %d fallers",
                len(predictions), len(risers), len(fallers))

    return PredictionReport(
        predictions=predictions,
        risers=risers,
        fallers=fallers,
        accuracy=display.ACCURACY_LABEL,
        last_updated=now,
        next_update=next_price_update(now, display),
        algorithm=display.ALGORITHM_VERSION,
    )


def team_price_impact(player_ids: Iterable[int],
                      history: Optional[PriceHistory]) -> Dict[str, Any]:
    """
    Summarize recent price moves affecting a squad.

    Returns:
        dict with affected_players, total_value_change (tenths) and
        individual_changes
    """
    ids = set(player_ids)
    changes = [r for r in (history.records if history else []) if r.player_id in ids]
    changes.sort(key=lambda r: r.change_time, reverse=True)

    individual = [{
        'player_id': r.player_id,
        'web_name': r.web_name,
        'change': r.change_amount,
        'change_time': r.change_time.astimezone(timezone.utc).isoformat(),
    } for r in changes]

    return {
        'affected_players': len({r.player_id for r in changes}),
        'total_value_change': sum(r.change_amount for r in changes),
        'individual_changes': individual,
    }
