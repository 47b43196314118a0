"""
Price change history models
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

RISE = 'rise'
FALL = 'fall'


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO timestamp into an aware UTC datetime.

    Accepts a trailing 'Z'; naive values are taken to be UTC.
    Returns None for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class PriceChangeRecord:
    """One observed price move for a player"""

    player_id: int
    change_time: datetime
    change_type: str  # 'rise' | 'fall'
    web_name: str = ''
    old_price: Optional[int] = None
    new_price: Optional[int] = None

    @property
    def direction(self) -> str:
        """Model direction ('up' / 'down') of this change"""
        return 'up' if self.change_type == RISE else 'down'

    @property
    def change_amount(self) -> int:
        """Signed change in tenths (defaults to one step)"""
        if self.old_price is not None and self.new_price is not None:
            return self.new_price - self.old_price
        return 1 if self.change_type == RISE else -1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['PriceChangeRecord']:
        """Create from a feed entry; returns None when the entry is malformed"""
        change_time = parse_timestamp(data.get('change_time'))
        change_type = str(data.get('change_type', '')).lower()
        if change_time is None or change_type not in (RISE, FALL):
            return None

        try:
            player_id = int(data.get('player_id'))
        except (TypeError, ValueError):
            return None

        return cls(
            player_id=player_id,
            change_time=change_time,
            change_type=change_type,
            web_name=data.get('web_name', ''),
            old_price=data.get('old_price'),
            new_price=data.get('new_price'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'player_id': self.player_id,
            'web_name': self.web_name,
            'change_time': self.change_time.isoformat(),
            'change_type': self.change_type,
            'old_price': self.old_price,
            'new_price': self.new_price,
        }


@dataclass
class PriceHistory:
    """Recent price moves split into risers and fallers"""

    risers: List[PriceChangeRecord] = field(default_factory=list)
    fallers: List[PriceChangeRecord] = field(default_factory=list)

    @property
    def records(self) -> List[PriceChangeRecord]:
        return self.risers + self.fallers

    def for_player(self, player_id: int) -> List[PriceChangeRecord]:
        """All records for a player, newest first"""
        matches = [r for r in self.records if r.player_id == player_id]
        return sorted(matches, key=lambda r: r.change_time, reverse=True)

    @classmethod
    def from_records(cls, records: List[PriceChangeRecord]) -> 'PriceHistory':
        history = cls()
        for record in records:
            if record.change_type == RISE:
                history.risers.append(record)
            else:
                history.fallers.append(record)
        return history

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PriceHistory':
        """Parse the {risers: [...], fallers: [...]} shape, skipping bad rows"""
        records = []
        for key in ('risers', 'fallers'):
            for entry in (data or {}).get(key, []) or []:
                record = PriceChangeRecord.from_dict(entry)
                if record:
                    records.append(record)
        return cls.from_records(records)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'risers': [r.to_dict() for r in self.risers],
            'fallers': [r.to_dict() for r in self.fallers],
        }
