"""Odds model parameters. Odds bounds are in hundredths (see wg_common.units)."""

FIELD_SIZE = 22  # candidates on the grid; unknown ranks fall back to last place

# Rank baseline: base * (1 + growth) ** (rank - 1)
RANK_BASE_ODDS = 1.3
RANK_GROWTH = 0.12

# Parlay (podium) market
PARLAY_HOUSE_EDGE_BPS = 1000  # 10%
PARLAY_MIN_ODDS = 110
PARLAY_MAX_ODDS = 5000
PARLAY_ODDS_DECIMALS = 1

# Head-to-head market
H2H_HOUSE_EDGE_BPS = 800  # 8%
H2H_SENSITIVITY = 0.15
H2H_MIN_ODDS = 105
H2H_MAX_ODDS = 1500
H2H_ODDS_DECIMALS = 2

# Client/server odds gaps above these are logged as tamper signals
H2H_ODDS_MISMATCH_ALERT = 50
PARLAY_ODDS_MISMATCH_ALERT = 100
