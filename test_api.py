"""
Unit tests for the Flask API.

Drives the app through the Flask test client with a predictor whose
fetcher is mocked.
"""

import unittest
from datetime import timedelta
from unittest.mock import MagicMock

from fpl_prices import api
from fpl_prices.data.fetcher import FPLFetchError, FetchBundle
from fpl_prices.engine.player_prediction import utc_now
from fpl_prices.models.price_change import PriceChangeRecord, PriceHistory
from fpl_prices.predictor import PricePredictor


BOOTSTRAP = {
    'teams': [{'id': 1, 'short_name': 'CHE'}],
    'elements': [
        {'id': 10, 'web_name': 'Palmer', 'element_type': 3, 'team': 1, 'now_cost': 110,
         'selected_by_percent': '1.0', 'status': 'a'},
        {'id': 11, 'web_name': 'Jackson', 'element_type': 4, 'team': 1, 'now_cost': 78,
         'selected_by_percent': '15.0', 'status': 'd', 'chance_of_playing_next_round': 75},
    ],
}

TRANSFERS = {
    'transfers_in': [{'id': 10, 'web_name': 'Palmer', 'transfers_in_event': 100000}],
    'transfers_out': [{'id': 11, 'web_name': 'Jackson', 'transfers_out_event': 60000}],
}


def make_fetcher(now):
    history = PriceHistory.from_records([
        PriceChangeRecord(player_id=10, change_time=now - timedelta(days=2),
                          change_type='rise', web_name='Palmer', old_price=109, new_price=110),
    ])
    fetcher = MagicMock()
    fetcher.fetch_all.return_value = FetchBundle(
        bootstrap=BOOTSTRAP, transfers=TRANSFERS, history=history, fetched_at=now,
    )
    fetcher.fetch_price_changes.return_value = history
    return fetcher


class TestPriceAPI(unittest.TestCase):
    """Test cases for the price prediction endpoints."""

    def setUp(self):
        self.fetcher = make_fetcher(utc_now())
        api.set_predictor(PricePredictor(fetcher=self.fetcher))
        self.client = api.app.test_client()

    def tearDown(self):
        api.set_predictor(None)

    def test_health(self):
        response = self.client.get('/api/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['status'], 'healthy')

    def test_price_predictions(self):
        response = self.client.get('/api/price-predictions')
        self.assertEqual(response.status_code, 200)

        body = response.get_json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['risers'][0]['web_name'], 'Palmer')
        self.assertEqual(body['data']['fallers'][0]['web_name'], 'Jackson')
        self.assertEqual(body['data']['accuracy'], 'heuristic')
        self.assertIsNotNone(body['data']['next_update'])

    def test_limit(self):
        response = self.client.get('/api/price-predictions?limit=0')
        body = response.get_json()
        self.assertEqual(body['data']['risers'], [])
        self.assertEqual(body['data']['total_predictions'], 2)

        response = self.client.get('/api/price-predictions?limit=-1')
        self.assertEqual(response.status_code, 400)

    def test_report_is_cached(self):
        self.client.get('/api/price-predictions')
        self.client.get('/api/price-predictions')
        self.assertEqual(self.fetcher.fetch_all.call_count, 1)

        self.client.get('/api/price-predictions?refresh=true')
        self.assertEqual(self.fetcher.fetch_all.call_count, 2)

    def test_upstream_failure_returns_503(self):
        self.fetcher.fetch_all.side_effect = FPLFetchError("transfers down", 'transfers')

        response = self.client.get('/api/price-predictions')
        self.assertEqual(response.status_code, 503)
        body = response.get_json()
        self.assertFalse(body['success'])
        self.assertEqual(body['message'], "transfers down")

    def test_player_prediction(self):
        response = self.client.get('/api/price-predictions/player/10')
        self.assertEqual(response.status_code, 200)

        data = response.get_json()['data']
        self.assertEqual(data['web_name'], 'Palmer')
        self.assertIn('recent=yes', data['explanation'])

    def test_player_not_found(self):
        response = self.client.get('/api/price-predictions/player/999')
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()['success'])

    def test_price_changes(self):
        response = self.client.get('/api/price-changes?days=3')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['data']['risers'][0]['player_id'], 10)

        self.assertEqual(self.client.get('/api/price-changes?days=0').status_code, 400)

    def test_price_impact(self):
        response = self.client.get('/api/price-impact?ids=10,11')
        self.assertEqual(response.status_code, 200)

        data = response.get_json()['data']
        self.assertEqual(data['affected_players'], 1)
        self.assertEqual(data['total_value_change'], 1)

    def test_price_impact_bad_ids(self):
        self.assertEqual(self.client.get('/api/price-impact').status_code, 400)
        self.assertEqual(self.client.get('/api/price-impact?ids=a,b').status_code, 400)


if __name__ == '__main__':
    unittest.main()
