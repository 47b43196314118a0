"""
Unit tests for PlayerSearch.
"""

import unittest

from fpl_prices.models.player import PlayerSnapshot
from fpl_prices.utils.name_search import PlayerSearch, normalize_name


class TestPlayerSearch(unittest.TestCase):
    """Test cases for PlayerSearch class."""

    def setUp(self):
        self.players = [
            PlayerSnapshot(id=1, web_name='Salah'),
            PlayerSnapshot(id=2, web_name='Haaland'),
            PlayerSnapshot(id=3, web_name='Muñoz'),
            PlayerSnapshot(id=4, web_name='B.Fernandes'),
            PlayerSnapshot(id=5, web_name='Gabriel'),
        ]
        self.search = PlayerSearch(self.players)

    def test_normalize_name(self):
        self.assertEqual(normalize_name('  Muñoz '), 'munoz')
        self.assertEqual(normalize_name('B.Fernandes'), 'bfernandes')
        self.assertEqual(normalize_name('Alexander-Arnold'), 'alexander-arnold')
        self.assertEqual(normalize_name(''), '')

    def test_exact_match(self):
        results = self.search.search('salah')
        self.assertEqual(results[0][0].id, 1)
        self.assertEqual(results[0][1], 100.0)

    def test_accent_insensitive(self):
        self.assertEqual(self.search.best_match('Munoz').id, 3)

    def test_typo(self):
        self.assertEqual(self.search.best_match('Haland').id, 2)

    def test_no_match(self):
        self.assertIsNone(self.search.best_match('qqqqqq'))
        self.assertEqual(self.search.search(''), [])


if __name__ == '__main__':
    unittest.main()
