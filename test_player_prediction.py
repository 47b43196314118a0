"""
Unit tests for per-player price prediction assembly.

Tests display field mapping, the missing-player default, history matching
and the window handling of build_player_prediction.
"""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from fpl_prices.engine.player_prediction import (
    build_player_prediction,
    change_time_label,
    find_recent_change,
    synthesized_window,
)
from fpl_prices.engine.report import index_bootstrap
from fpl_prices.models.player import TransferDelta
from fpl_prices.models.price_change import PriceChangeRecord, PriceHistory
from fpl_prices.models.prediction import Signal


NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
PAST_WINDOW = (NOW - timedelta(days=10), NOW - timedelta(days=9))


def element(player_id, web_name, ownership, now_cost=60, status='a', chance=None):
    return {
        'id': player_id,
        'web_name': web_name,
        'element_type': 3,
        'team': 1,
        'now_cost': now_cost,
        'selected_by_percent': str(ownership),
        'form': '5.5',
        'total_points': 80,
        'status': status,
        'chance_of_playing_next_round': chance,
        'transfers_in_event': 0,
        'transfers_out_event': 0,
    }


BOOTSTRAP = {
    'teams': [{'id': 1, 'short_name': 'ARS'}],
    'elements': [
        element(1, 'Saka', 40.0, now_cost=100),
        element(2, 'Mbeumo', 1.0, now_cost=75),
        element(3, 'Wissa', 1.0, now_cost=65),
        element(4, 'Havertz', 10.0, now_cost=80, status='i'),
    ],
}


class TestChangeTimeLabel(unittest.TestCase):
    """Test cases for change_time_label."""

    def test_labels(self):
        self.assertEqual(change_time_label(107.0), "Tonight")
        self.assertEqual(change_time_label(105.0), "Tonight")
        self.assertEqual(change_time_label(103.0), "Tomorrow")
        self.assertEqual(change_time_label(98.0), "2 days")
        self.assertEqual(change_time_label(97.9), ">2 days")


class TestBuildPlayerPrediction(unittest.TestCase):
    """Test cases for build_player_prediction."""

    def setUp(self):
        self.index = index_bootstrap(BOOTSTRAP)

    def test_missing_bootstrap_match_is_unlikely(self):
        transfer = TransferDelta(id=999, web_name='Ghost', transfers_in_event=50000)
        prediction = build_player_prediction(transfer, self.index, now=NOW)

        self.assertEqual(prediction.progress, 100.0)
        self.assertEqual(prediction.hourly_change, 0.0)
        self.assertEqual(prediction.change_time, "Unlikely")
        self.assertFalse(prediction.target_reached)
        self.assertIsNone(prediction.result)
        self.assertEqual(prediction.signal, Signal.NEUTRAL)

    def test_moderate_riser(self):
        transfer = TransferDelta(id=1, web_name='Saka', transfers_in_event=500000)
        prediction = build_player_prediction(transfer, self.index, now=NOW, window=PAST_WINDOW)

        self.assertTrue(prediction.is_riser)
        self.assertEqual(prediction.signal, Signal.NEUTRAL)
        self.assertAlmostEqual(prediction.progress, 88 + prediction.prob_up * 12)
        self.assertAlmostEqual(prediction.hourly_change, prediction.prob_up * 0.2)
        self.assertEqual(prediction.change_time, ">2 days")
        self.assertFalse(prediction.target_reached)
        self.assertEqual(prediction.team, 'ARS')
        self.assertEqual(prediction.price, 10.0)

    def test_strong_riser(self):
        transfer = {'id': 2, 'web_name': 'Mbeumo', 'transfers_in_event': 100000}
        prediction = build_player_prediction(transfer, self.index, now=NOW, window=PAST_WINDOW)

        self.assertEqual(prediction.signal, Signal.LIKELY_UP)
        self.assertAlmostEqual(prediction.progress, 100 + prediction.prob_up * 8)
        self.assertGreaterEqual(prediction.progress, 105)
        self.assertEqual(prediction.change_time, "Tonight")
        self.assertAlmostEqual(prediction.hourly_change, 0.2, places=3)
        self.assertTrue(prediction.target_reached)

    def test_strong_faller(self):
        transfer = TransferDelta(id=3, web_name='Wissa', transfers_out_event=100000)
        prediction = build_player_prediction(transfer, self.index, now=NOW, window=PAST_WINDOW)

        self.assertFalse(prediction.is_riser)
        self.assertEqual(prediction.signal, Signal.LIKELY_DOWN)
        self.assertAlmostEqual(prediction.progress, 100 - prediction.prob_down * 8)
        self.assertLess(prediction.progress, 100)
        self.assertEqual(prediction.change_time, "Tonight")
        self.assertLess(prediction.hourly_change, 0)
        self.assertTrue(prediction.target_reached)

    def test_moderate_faller(self):
        transfer = TransferDelta(id=1, web_name='Saka', transfers_out_event=300000)
        prediction = build_player_prediction(transfer, self.index, now=NOW, window=PAST_WINDOW)

        self.assertEqual(prediction.signal, Signal.NEUTRAL)
        self.assertAlmostEqual(prediction.progress, 112 - prediction.prob_down * 12)
        self.assertEqual(prediction.change_time, ">2 days")

    def test_both_sides_is_neutral_display(self):
        transfer = TransferDelta(id=1, transfers_in_event=40000, transfers_out_event=30000)
        prediction = build_player_prediction(transfer, self.index, now=NOW, window=PAST_WINDOW)

        self.assertEqual(prediction.progress, 95.0)
        self.assertEqual(prediction.hourly_change, 0.0)
        self.assertEqual(prediction.change_time, ">2 days")
        self.assertIsNotNone(prediction.result)

    def test_flag_from_status(self):
        transfer = TransferDelta(id=4, transfers_out_event=200000)
        prediction = build_player_prediction(transfer, self.index, now=NOW, window=PAST_WINDOW)
        self.assertIn('flag=red', prediction.result.explanation)

    def test_recent_change_is_used(self):
        history = PriceHistory.from_records([
            PriceChangeRecord(player_id=1, change_time=NOW - timedelta(hours=5), change_type='rise'),
        ])
        transfer = TransferDelta(id=1, transfers_in_event=500000)
        prediction = build_player_prediction(
            transfer, self.index, history=history, now=NOW, window=PAST_WINDOW
        )

        self.assertIn('cooldown=yes', prediction.result.explanation)
        self.assertIn('recent=yes', prediction.result.explanation)

    def test_scoring_error_falls_back_to_unlikely(self):
        transfer = TransferDelta(id=1, transfers_in_event=500000)
        with patch('fpl_prices.engine.player_prediction.estimate_price_probability',
                   side_effect=ValueError("bad data")):
            prediction = build_player_prediction(transfer, self.index, now=NOW)

        self.assertEqual(prediction.change_time, "Unlikely")
        self.assertIsNone(prediction.result)

    def test_unparseable_now_falls_back_to_current_time(self):
        transfer = TransferDelta(id=1, transfers_in_event=500000)
        history = PriceHistory.from_records([
            PriceChangeRecord(player_id=1, change_time=NOW, change_type='rise'),
        ])
        prediction = build_player_prediction(transfer, self.index, history=history, now='not-a-time')

        self.assertIsNotNone(prediction.result)
        self.assertTrue(prediction.is_riser)

    def test_accepts_iso_window(self):
        transfer = TransferDelta(id=1, transfers_in_event=500000)
        window = ('2025-01-13T12:00:00Z', '2025-01-15T12:00:00Z')
        prediction = build_player_prediction(transfer, self.index, now=NOW, window=window)
        self.assertAlmostEqual(prediction.result.time_weight, 1.05)

    def test_synthesized_window_default(self):
        start, deadline = synthesized_window(NOW)
        self.assertEqual(start, NOW - timedelta(days=2))
        self.assertEqual(deadline, NOW + timedelta(days=5))

        transfer = TransferDelta(id=1, transfers_in_event=500000)
        prediction = build_player_prediction(transfer, self.index, now=NOW)
        self.assertAlmostEqual(prediction.result.time_weight, 1 + 0.05 * 2 / 7)


class TestFindRecentChange(unittest.TestCase):
    """Test cases for find_recent_change."""

    def setUp(self):
        self.history = PriceHistory.from_records([
            PriceChangeRecord(player_id=1, change_time=NOW - timedelta(days=2), change_type='fall'),
            PriceChangeRecord(player_id=1, change_time=NOW - timedelta(days=1), change_type='rise'),
            PriceChangeRecord(player_id=2, change_time=NOW - timedelta(days=9), change_type='rise'),
            PriceChangeRecord(player_id=3, change_time=NOW + timedelta(hours=1), change_type='rise'),
        ])

    def test_newest_change_wins(self):
        record = find_recent_change(1, self.history, NOW)
        self.assertEqual(record.change_type, 'rise')
        self.assertEqual(record.direction, 'up')

    def test_outside_lookback(self):
        self.assertIsNone(find_recent_change(2, self.history, NOW))

    def test_future_change_ignored(self):
        self.assertIsNone(find_recent_change(3, self.history, NOW))

    def test_no_history(self):
        self.assertIsNone(find_recent_change(1, None, NOW))


def run_tests():
    """Run all tests and print results."""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()
    for case in (TestChangeTimeLabel, TestBuildPlayerPrediction, TestFindRecentChange):
        suite.addTests(loader.loadTestsFromTestCase(case))
    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)
    return result.wasSuccessful()


if __name__ == '__main__':
    success = run_tests()
    exit(0 if success else 1)
