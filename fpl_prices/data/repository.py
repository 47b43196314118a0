"""
Repository Layer for the price history store

All SQL against the DuckDB price tables is centralized here.
Timestamps are stored as naive UTC and returned as aware UTC datetimes.
"""

import duckdb
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Iterable

from .database import get_connection
from ..engine.report import last_price_update
from ..models.player import PlayerSnapshot
from ..models.price_change import PriceChangeRecord, PriceHistory, RISE, FALL


def _to_db_time(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _from_db_time(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc)


class PriceChangeRepository:
    """Repository for observed price snapshots and changes."""

    def __init__(self, con: Optional[duckdb.DuckDBPyConnection] = None):
        self.con = con or get_connection()

    def latest_prices(self) -> Dict[int, int]:
        """Last recorded now_cost per player."""
        rows = self.con.cursor().execute(
            "SELECT player_id, now_cost FROM price_snapshots"
        ).fetchall()
        return {player_id: now_cost for player_id, now_cost in rows}

    def record_snapshot(self, elements: Iterable[Dict[str, Any]],
                        captured_at: datetime) -> int:
        """
        Store the latest price of every player and log any price moves
        since the previous snapshot.

        A player seen for the first time with a non-zero cost_change_event
        is seeded with one change dated at the last daily price update.

        Args:
            elements: bootstrap-static elements
            captured_at: Fetch time

        Returns:
            Number of price changes recorded
        """
        previous = self.latest_prices()
        ts = _to_db_time(captured_at)
        seeded_ts = _to_db_time(last_price_update(captured_at))

        snapshots = {}
        changes = []
        for element in elements:
            if not isinstance(element, dict) or element.get('now_cost') is None:
                continue
            player = PlayerSnapshot.from_fpl_bootstrap(element)
            if not player.id:
                continue

            snapshots[player.id] = (player.id, player.now_cost, ts)

            old_cost = previous.get(player.id)
            change_time = ts
            if old_cost is None and player.cost_change_event:
                old_cost = player.now_cost - player.cost_change_event
                change_time = seeded_ts

            if old_cost is not None and old_cost != player.now_cost:
                change_type = RISE if player.now_cost > old_cost else FALL
                changes.append((
                    player.id, player.web_name, old_cost, player.now_cost, change_type, change_time
                ))

        cur = self.con.cursor()
        if snapshots:
            cur.executemany(
                "INSERT OR REPLACE INTO price_snapshots (player_id, now_cost, captured_at) "
                "VALUES (?, ?, ?)",
                list(snapshots.values()),
            )
        if changes:
            cur.executemany("""
                INSERT INTO price_changes
                    (player_id, web_name, old_price, new_price, change_type, change_time)
                VALUES (?, ?, ?, ?, ?, ?)
            """, changes)

        return len(changes)

    def add_change(self, record: PriceChangeRecord):
        """Insert a single price change."""
        self.con.cursor().execute("""
            INSERT INTO price_changes
                (player_id, web_name, old_price, new_price, change_type, change_time)
            VALUES (?, ?, ?, ?, ?, ?)
        """, [record.player_id, record.web_name, record.old_price, record.new_price,
              record.change_type, _to_db_time(record.change_time)])

    def _rows_to_records(self, rows) -> List[PriceChangeRecord]:
        return [
            PriceChangeRecord(
                player_id=player_id,
                web_name=web_name or '',
                old_price=old_price,
                new_price=new_price,
                change_type=change_type,
                change_time=_from_db_time(change_time),
            )
            for player_id, web_name, old_price, new_price, change_type, change_time in rows
        ]

    def get_recent(self, since: datetime) -> PriceHistory:
        """All price changes at or after `since`, newest first."""
        rows = self.con.cursor().execute("""
            SELECT player_id, web_name, old_price, new_price, change_type, change_time
            FROM price_changes
            WHERE change_time >= ?
            ORDER BY change_time DESC
        """, [_to_db_time(since)]).fetchall()
        return PriceHistory.from_records(self._rows_to_records(rows))

    def get_for_player(self, player_id: int, limit: int = 20) -> List[PriceChangeRecord]:
        """Price changes for one player, newest first."""
        rows = self.con.cursor().execute("""
            SELECT player_id, web_name, old_price, new_price, change_type, change_time
            FROM price_changes
            WHERE player_id = ?
            ORDER BY change_time DESC
            LIMIT ?
        """, [player_id, limit]).fetchall()
        return self._rows_to_records(rows)

    def count(self) -> int:
        return self.con.cursor().execute("SELECT COUNT(*) FROM price_changes").fetchone()[0]
