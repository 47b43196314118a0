"""
Player data models for FPL price predictor
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

from ..config import (
    POSITION_NAMES,
    FLAG_YELLOW_STATUSES,
    FLAG_RED_STATUSES,
    RED_FLAG_MAX_CHANCE,
)


class Flag(str, Enum):
    """Availability flag shown next to a player in FPL"""
    NONE = 'none'
    YELLOW = 'yellow'
    RED = 'red'

    @classmethod
    def from_status(cls, status: Optional[str],
                    chance_of_playing: Optional[int] = None) -> 'Flag':
        """
        Map an FPL status code to an availability flag.

        'a' is available, 'd' doubtful, 'i' injured, 's' suspended,
        'u' unavailable and 'n' not eligible.
        """
        status = (status or '').lower()

        if status in FLAG_YELLOW_STATUSES:
            if chance_of_playing is not None and chance_of_playing <= RED_FLAG_MAX_CHANCE:
                return cls.RED
            return cls.YELLOW
        if status in FLAG_RED_STATUSES:
            return cls.RED
        return cls.NONE


def parse_decimal(value: Any) -> float:
    """Parse FPL's string-encoded decimals ("12.3"), falling back to 0.0"""
    try:
        return float(str(value).replace('%', '').strip())
    except (TypeError, ValueError):
        return 0.0


def parse_int(value: Any) -> int:
    """Parse an integer count, falling back to 0"""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def position_name(element_type: Any) -> str:
    """Human-readable position name for an FPL element_type"""
    if isinstance(element_type, str) and not element_type.isdigit():
        return element_type
    return POSITION_NAMES.get(parse_int(element_type), 'UNK')


@dataclass
class PlayerSnapshot:
    """A player as seen in one bootstrap-static fetch"""

    # Identifiers
    id: int
    web_name: str
    position: str = 'MID'
    team: int = 0
    team_short: str = ''

    # Market data
    ownership_pct: float = 0.0
    now_cost: int = 0
    form: float = 0.0
    total_points: int = 0

    # Status
    status: str = 'a'
    chance_of_playing_next_round: Optional[int] = None

    # Event counters
    cost_change_event: int = 0
    transfers_in_event: int = 0
    transfers_out_event: int = 0

    @property
    def price(self) -> float:
        """Price in currency units (now_cost is in tenths)"""
        return self.now_cost / 10

    @property
    def flag(self) -> Flag:
        return Flag.from_status(self.status, self.chance_of_playing_next_round)

    @classmethod
    def from_fpl_bootstrap(cls, element: Dict[str, Any],
                           team_map: Optional[Dict[int, str]] = None) -> 'PlayerSnapshot':
        """Create from an element of the bootstrap-static feed"""
        team_id = parse_int(element.get('team'))
        chance = element.get('chance_of_playing_next_round')

        return cls(
            id=parse_int(element.get('id')),
            web_name=element.get('web_name', 'Unknown'),
            position=position_name(element.get('element_type', 3)),
            team=team_id,
            team_short=(team_map or {}).get(team_id, ''),
            ownership_pct=parse_decimal(element.get('selected_by_percent')),
            now_cost=parse_int(element.get('now_cost')),
            form=parse_decimal(element.get('form')),
            total_points=parse_int(element.get('total_points')),
            status=element.get('status') or 'a',
            chance_of_playing_next_round=None if chance is None else parse_int(chance),
            cost_change_event=parse_int(element.get('cost_change_event')),
            transfers_in_event=parse_int(element.get('transfers_in_event')),
            transfers_out_event=parse_int(element.get('transfers_out_event')),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'id': self.id,
            'web_name': self.web_name,
            'position': self.position,
            'team': self.team,
            'team_short': self.team_short,
            'ownership': self.ownership_pct,
            'price': self.price,
            'form': self.form,
            'total_points': self.total_points,
            'status': self.status,
            'flag': self.flag.value,
        }


@dataclass
class TransferDelta:
    """Transfers in/out of a player during the current gameweek"""

    id: int
    web_name: str = ''
    position: str = ''
    team: Any = None
    now_cost: int = 0
    transfers_in_event: int = 0
    transfers_out_event: int = 0

    @property
    def net_transfers(self) -> int:
        return self.transfers_in_event - self.transfers_out_event

    @property
    def is_riser_candidate(self) -> bool:
        return self.transfers_in_event > 0 and self.transfers_out_event == 0

    @property
    def is_faller_candidate(self) -> bool:
        return self.transfers_out_event > 0 and self.transfers_in_event == 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TransferDelta':
        """Create from a transfers_in / transfers_out feed entry"""
        return cls(
            id=parse_int(data.get('id')),
            web_name=data.get('web_name', ''),
            position=position_name(data.get('position', data.get('element_type', ''))),
            team=data.get('team'),
            now_cost=parse_int(data.get('now_cost')),
            transfers_in_event=parse_int(data.get('transfers_in_event')),
            transfers_out_event=parse_int(data.get('transfers_out_event')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'web_name': self.web_name,
            'position': self.position,
            'team': self.team,
            'now_cost': self.now_cost,
            'transfers_in_event': self.transfers_in_event,
            'transfers_out_event': self.transfers_out_event,
        }
