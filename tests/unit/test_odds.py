"""Tests for the odds engine: baseline, pool and head-to-head prices."""

import pytest

from src.wg_odds.domain.constants import (
    FIELD_SIZE,
    H2H_MAX_ODDS,
    H2H_MIN_ODDS,
    PARLAY_MAX_ODDS,
    PARLAY_MIN_ODDS,
)
from src.wg_odds.domain.odds import head_to_head_odds, normalize_rank, pool_odds, rank_odds


class TestRankOdds:
    def test_known_values(self) -> None:
        assert rank_odds(1) == 130
        assert rank_odds(2) == 150
        assert rank_odds(3) == 160
        assert rank_odds(22) == 1400

    def test_non_decreasing_in_rank(self) -> None:
        prices = [rank_odds(r) for r in range(1, FIELD_SIZE + 1)]
        assert prices == sorted(prices)

    def test_within_bounds(self) -> None:
        for r in range(-5, FIELD_SIZE + 10):
            assert PARLAY_MIN_ODDS <= rank_odds(r) <= PARLAY_MAX_ODDS

    def test_unknown_rank_prices_as_last(self) -> None:
        assert rank_odds(None) == rank_odds(FIELD_SIZE)
        assert normalize_rank(99) == FIELD_SIZE
        assert normalize_rank(0) == 1


class TestPoolOdds:
    def test_no_stake_falls_back_to_rank(self) -> None:
        assert pool_odds(0, 1000, 3) == rank_odds(3)
        assert pool_odds(0, 0, 3) == rank_odds(3)

    def test_pari_mutuel_price(self) -> None:
        # pool 1000 * 0.9 = 900, 300 on this outcome -> 3.0x
        assert pool_odds(300, 1000, 1) == 300

    def test_popular_pick_gets_worse_odds(self) -> None:
        assert pool_odds(600, 1000, 1) < pool_odds(100, 1000, 1)

    def test_clamped(self) -> None:
        assert pool_odds(1000, 1000, 1) == PARLAY_MIN_ODDS
        assert pool_odds(1, 1_000_000, 1) == PARLAY_MAX_ODDS


class TestHeadToHeadOdds:
    def test_even_matchup(self) -> None:
        odds = head_to_head_odds(5, 5)
        assert odds.odds_a == odds.odds_b == 185

    def test_known_pairing(self) -> None:
        odds = head_to_head_odds(1, 2)
        assert odds.odds_a == 172
        assert odds.odds_b == 200

    def test_heavy_favourite_clamped(self) -> None:
        odds = head_to_head_odds(1, 22)
        assert odds.odds_a == H2H_MIN_ODDS  # 0.97 before clamping
        assert odds.odds_b == H2H_MAX_ODDS

    @pytest.mark.parametrize("ra,rb", [(1, 22), (3, 7), (10, 11), (4, 4), (22, 2)])
    def test_symmetry(self, ra: int, rb: int) -> None:
        forward = head_to_head_odds(ra, rb)
        reverse = head_to_head_odds(rb, ra)
        assert forward.odds_a == reverse.odds_b
        assert forward.odds_b == reverse.odds_a

    def test_all_pairings_within_bounds(self) -> None:
        for ra in range(1, FIELD_SIZE + 1):
            for rb in range(1, FIELD_SIZE + 1):
                odds = head_to_head_odds(ra, rb)
                assert H2H_MIN_ODDS <= odds.odds_a <= H2H_MAX_ODDS
                assert H2H_MIN_ODDS <= odds.odds_b <= H2H_MAX_ODDS

    def test_favourite_never_pays_more(self) -> None:
        for rb in range(2, FIELD_SIZE + 1):
            odds = head_to_head_odds(1, rb)
            assert odds.odds_a <= odds.odds_b

    def test_for_side(self) -> None:
        odds = head_to_head_odds(1, 2)
        assert odds.for_side(True) == 172
        assert odds.for_side(False) == 200
