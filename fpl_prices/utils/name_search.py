"""
Fuzzy player name search.

Handles accents, typos and partial names when looking a player up by name.
"""

from rapidfuzz import fuzz, process
from typing import Iterable, List, Tuple
import re
import unicodedata

from ..models.player import PlayerSnapshot


def remove_accents(text: str) -> str:
    """
    Remove accents from Unicode characters.

    Example: 'José' → 'Jose', 'Müller' → 'Muller'
    """
    nfd = unicodedata.normalize('NFD', text)
    return ''.join(char for char in nfd if unicodedata.category(char) != 'Mn')


def normalize_name(name: str) -> str:
    """Lowercase, strip accents and punctuation (hyphens kept)"""
    if not name:
        return ''
    name = remove_accents(name.lower().strip())
    name = re.sub(r'[^\w\s-]', '', name)
    return re.sub(r'\s+', ' ', name).strip()


class PlayerSearch:
    """
    Looks players up by (approximate) web name.

    Matching stages:
    1. Exact match after normalization
    2. Weighted fuzzy ratio over all players, above min_score
    """

    def __init__(self, players: Iterable[PlayerSnapshot], min_score: int = 70):
        self.players: List[PlayerSnapshot] = list(players)
        self.min_score = min_score
        self._names = [normalize_name(p.web_name) for p in self.players]

    def search(self, query: str, limit: int = 5) -> List[Tuple[PlayerSnapshot, float]]:
        """
        Find players matching a name.

        Returns:
            List of (player, score) with the best match first
        """
        norm_query = normalize_name(query)
        if not norm_query:
            return []

        exact = [(p, 100.0) for p, n in zip(self.players, self._names) if n == norm_query]
        if exact:
            return exact[:limit]

        results = process.extract(
            norm_query,
            self._names,
            scorer=fuzz.WRatio,
            score_cutoff=self.min_score,
            limit=limit,
        )
        return [(self.players[index], score) for _, score, index in results]

    def best_match(self, query: str):
        """Best matching player, or None"""
        results = self.search(query, limit=1)
        return results[0][0] if results else None
