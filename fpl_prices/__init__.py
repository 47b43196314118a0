"""
FPL Price Predictor

Estimates which Fantasy Premier League players are about to rise or fall
in price, based on gameweek transfer activity, ownership and recent price
changes.
"""

__version__ = "1.0.0"
__author__ = "Ilay Asayag"
