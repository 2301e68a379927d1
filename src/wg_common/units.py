"""Integer arithmetic for tokens and odds.

Token amounts are plain ints. Odds are stored as ints in hundredths
(1.05x -> 105) so payouts are exact: floor(stake * odds) == stake * odds // 100.
"""

import math

ODDS_SCALE = 100


def odds_from_float(value: float, decimals: int = 2) -> int:
    """Round half-up to ``decimals`` places and return hundredths.

    >>> odds_from_float(1.3449, 1)
    130
    >>> odds_from_float(0.9656, 2)
    97
    """
    if decimals not in (1, 2):
        raise ValueError(f"decimals must be 1 or 2, got {decimals}")
    step = 10 ** decimals
    rounded = math.floor(value * step + 0.5)
    return rounded * (ODDS_SCALE // step)


def odds_to_float(odds: int) -> float:
    return odds / ODDS_SCALE


def odds_to_display(odds: int) -> str:
    """105 -> '1.05x'."""
    return f"{odds // ODDS_SCALE}.{odds % ODDS_SCALE:02d}x"


def apply_odds(stake: int, odds: int) -> int:
    """floor(stake * odds) in integer arithmetic."""
    return stake * odds // ODDS_SCALE


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
