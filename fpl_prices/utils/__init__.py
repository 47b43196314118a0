"""Utility functions"""

from .name_search import PlayerSearch, normalize_name

__all__ = ['PlayerSearch', 'normalize_name']
