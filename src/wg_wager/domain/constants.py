"""Wager limits and time windows."""

from datetime import timedelta

MIN_STAKE = 1
MAX_STAKE = 1_000  # per parlay leg / per head-to-head wager
MAX_PARLAY_TOTAL = 3_000

PARLAY_POSITIONS = frozenset({1, 2, 3})
MAX_PARLAY_LEGS = 3

# Betting closes this long before the scheduled start.
BETTING_CUTOFF = timedelta(minutes=2)
CANCEL_WINDOW = timedelta(minutes=60)

# Head-to-head picks priced under 1.10x are capped to a small stake.
HEAVY_FAVORITE_ODDS = 110
HEAVY_FAVORITE_MAX_STAKE = 50

# Client odds hints are decimal odds; anything outside (0, 1000] is malformed.
MAX_CLIENT_ODDS = 1000.0
