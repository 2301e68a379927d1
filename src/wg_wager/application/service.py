"""WagerApplicationService — placement, cancellation, listing, leaderboard.

place_wager and cancel_wager each run as ONE transaction spanning the wager
store and the ledger: commit on success, rollback and re-raise on any error,
so a failed call leaves no trace.

Ranks are read from the server-held candidate standings at placement and
snapshotted into the wager; client odds are stored for audit and compared
against the server price, never used for payout.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_account.domain.repository import AccountRepositoryProtocol
from src.wg_account.infrastructure.persistence import AccountRepository
from src.wg_common.datetime_utils import utc_now
from src.wg_common.enums import LeaderboardSort, LedgerEntryType, MarketType
from src.wg_common.errors import (
    DuplicateWagerError,
    NotWagerOwnerError,
    RaceNotFoundError,
    WagerNotFoundError,
)
from src.wg_common.id_generator import generate_wager_id
from src.wg_common.units import apply_odds, odds_to_float
from src.wg_odds.domain.constants import H2H_ODDS_MISMATCH_ALERT, PARLAY_ODDS_MISMATCH_ALERT
from src.wg_odds.domain.odds import head_to_head_odds, normalize_rank, rank_odds
from src.wg_race.domain.models import Candidate, Race
from src.wg_race.domain.repository import RaceRepositoryProtocol
from src.wg_race.infrastructure.persistence import RaceRepository
from src.wg_wager.application.schemas import (
    CancelWagerResponse,
    HeadToHeadMarketIn,
    LeaderboardEntryOut,
    LeaderboardResponse,
    ParlayMarketIn,
    PlaceWagerRequest,
    PlaceWagerResponse,
    WagerItem,
    WagerListResponse,
)
from src.wg_wager.domain.models import (
    HeadToHeadMarket,
    LeaderboardEntry,
    ParlayLeg,
    Wager,
    head_to_head_market,
    parlay_market,
)
from src.wg_wager.domain.repository import WagerRepositoryProtocol
from src.wg_wager.domain.rules import (
    check_betting_open,
    check_cancel_allowed,
    check_client_odds,
    check_head_to_head_pair,
    check_heavy_favorite,
    check_parlay_legs,
    check_stake,
    odds_mismatch,
)
from src.wg_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger("wg.wager")

_LIST_LIMIT = 100


def _rank_of(candidates: dict[str, Candidate], candidate_id: str) -> int:
    candidate = candidates.get(candidate_id)
    return normalize_rank(candidate.season_rank if candidate else None)


def _wager_to_item(wager: Wager) -> WagerItem:
    return WagerItem(
        id=wager.id,
        race_id=wager.race_id,
        market_type=wager.market_type,
        market=wager.market,
        stake=wager.stake,
        odds=odds_to_float(wager.odds) if wager.odds is not None else None,
        potential_payout=wager.potential_payout,
        status=wager.status,
        payout=wager.payout,
        settlement=wager.settlement,
        created_at=wager.created_at.isoformat() if wager.created_at else None,
        settled_at=wager.settled_at.isoformat() if wager.settled_at else None,
    )


class WagerApplicationService:
    def __init__(
        self,
        wager_repo: WagerRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        race_repo: RaceRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._wagers: WagerRepositoryProtocol = wager_repo or WagerRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._races: RaceRepositoryProtocol = race_repo or RaceRepository()
        self._clock = clock

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    async def place_wager(
        self, db: AsyncSession, user_id: str, req: PlaceWagerRequest
    ) -> PlaceWagerResponse:
        race = await self._races.get_race(db, req.race_id)
        if race is None:
            raise RaceNotFoundError(req.race_id)
        check_betting_open(race, self._clock())

        if isinstance(req.market, ParlayMarketIn):
            wager, leg_odds = await self._build_parlay(db, user_id, race, req.market)
        else:
            wager, leg_odds = await self._build_head_to_head(db, user_id, race, req.market)

        try:
            await self._accounts.ensure_account(db, user_id)
            if not await self._wagers.insert(db, wager):
                raise DuplicateWagerError(race.id)
            account, _ = await self._accounts.debit(
                db,
                user_id,
                wager.stake,
                LedgerEntryType.WAGER_STAKE.value,
                "WAGER",
                wager.id,
                f"{wager.market_type} stake on {race.name or race.id}",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Wager %s placed: user=%s race=%s type=%s stake=%d potential=%d",
            wager.id, user_id, race.id, wager.market_type, wager.stake, wager.potential_payout,
        )
        return PlaceWagerResponse(
            wager_id=wager.id,
            race_id=race.id,
            market_type=wager.market_type,
            stake=wager.stake,
            server_odds=[odds_to_float(o) for o in leg_odds],
            potential_payout=wager.potential_payout,
            balance=account.balance,
            status=wager.status,
        )

    async def _build_parlay(
        self, db: AsyncSession, user_id: str, race: Race, market: ParlayMarketIn
    ) -> tuple[Wager, list[int]]:
        check_parlay_legs([(leg.position, leg.candidate_id, leg.stake) for leg in market.legs])
        for leg in market.legs:
            check_client_odds(leg.client_odds)
        candidates = await self._races.get_candidates(
            db, [leg.candidate_id for leg in market.legs]
        )

        legs: list[ParlayLeg] = []
        for leg_in in sorted(market.legs, key=lambda leg: leg.position):
            rank = _rank_of(candidates, leg_in.candidate_id)
            odds = rank_odds(rank)
            if odds_mismatch(leg_in.client_odds, odds, PARLAY_ODDS_MISMATCH_ALERT):
                logger.warning(
                    "Odds mismatch on parlay leg: user=%s race=%s P%d candidate=%s "
                    "client=%.2f server=%.2f",
                    user_id, race.id, leg_in.position, leg_in.candidate_id,
                    leg_in.client_odds, odds_to_float(odds),
                )
            legs.append(
                ParlayLeg(
                    position=leg_in.position,
                    candidate_id=leg_in.candidate_id,
                    stake=leg_in.stake,
                    rank_at_bet=rank,
                    odds=odds,
                    client_odds=leg_in.client_odds,
                )
            )

        wager = Wager(
            id=generate_wager_id(),
            user_id=user_id,
            race_id=race.id,
            market_type=MarketType.PARLAY.value,
            market=parlay_market(legs),
            stake=sum(leg.stake for leg in legs),
            potential_payout=sum(apply_odds(leg.stake, leg.odds) for leg in legs),
        )
        return wager, [leg.odds for leg in legs]

    async def _build_head_to_head(
        self, db: AsyncSession, user_id: str, race: Race, market: HeadToHeadMarketIn
    ) -> tuple[Wager, list[int]]:
        check_head_to_head_pair(market.candidate_a, market.candidate_b, market.pick)
        check_stake(market.stake)
        check_client_odds(market.client_odds)
        candidates = await self._races.get_candidates(
            db, [market.candidate_a, market.candidate_b]
        )

        snapshot = HeadToHeadMarket(
            candidate_a=market.candidate_a,
            candidate_b=market.candidate_b,
            rank_a=_rank_of(candidates, market.candidate_a),
            rank_b=_rank_of(candidates, market.candidate_b),
            pick=market.pick,
        )
        odds = head_to_head_odds(snapshot.rank_a, snapshot.rank_b).for_side(snapshot.pick_is_a)
        check_heavy_favorite(odds, market.stake)
        if odds_mismatch(market.client_odds, odds, H2H_ODDS_MISMATCH_ALERT):
            logger.warning(
                "Odds mismatch on head-to-head: user=%s race=%s pick=%s client=%.2f server=%.2f",
                user_id, race.id, market.pick, market.client_odds, odds_to_float(odds),
            )

        wager = Wager(
            id=generate_wager_id(),
            user_id=user_id,
            race_id=race.id,
            market_type=MarketType.HEAD_TO_HEAD.value,
            market=head_to_head_market(snapshot),
            stake=market.stake,
            odds=odds,
            client_odds=market.client_odds,
            potential_payout=apply_odds(market.stake, odds),
        )
        return wager, [odds]

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    async def cancel_wager(
        self, db: AsyncSession, user_id: str, wager_id: str
    ) -> CancelWagerResponse:
        try:
            wager = await self._wagers.get_for_update(db, wager_id)
            if wager is None:
                raise WagerNotFoundError(wager_id)
            if wager.user_id != user_id:
                raise NotWagerOwnerError(wager_id)
            race = await self._races.get_race(db, wager.race_id)
            if race is None:
                raise RaceNotFoundError(wager.race_id)
            check_cancel_allowed(wager, race, self._clock())

            if not await self._wagers.delete(db, wager_id):
                raise WagerNotFoundError(wager_id)
            account, _ = await self._accounts.credit(
                db,
                user_id,
                wager.stake,
                LedgerEntryType.WAGER_REFUND.value,
                "WAGER",
                wager_id,
                f"Cancelled {wager.market_type} wager",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Wager %s cancelled by %s, refunded %d", wager_id, user_id, wager.stake)
        return CancelWagerResponse(
            wager_id=wager_id, refund_amount=wager.stake, balance=account.balance
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_wagers(
        self, db: AsyncSession, user_id: str, race_id: str | None
    ) -> WagerListResponse:
        wagers = await self._wagers.list_by_user(db, user_id, race_id, _LIST_LIMIT)
        return WagerListResponse(items=[_wager_to_item(w) for w in wagers])

    async def leaderboard(
        self, db: AsyncSession, user_id: str, sort: LeaderboardSort, limit: int
    ) -> LeaderboardResponse:
        entries = await self._wagers.leaderboard(db, sort, limit)
        me = next((e for e in entries if e.user_id == user_id), None)
        if me is None:
            me = await self._wagers.leaderboard_entry(db, sort, user_id)
        return LeaderboardResponse(
            sort=sort.value,
            items=[_entry_to_out(e) for e in entries],
            me=_entry_to_out(me) if me else None,
        )



def _entry_to_out(entry: LeaderboardEntry) -> LeaderboardEntryOut:
    return LeaderboardEntryOut(
        rank=entry.rank,
        user_id=entry.user_id,
        total_bets=entry.total_bets,
        won_bets=entry.won_bets,
        total_staked=entry.total_staked,
        total_won=entry.total_won,
        net_profit=entry.net_profit,
        win_rate=entry.win_rate,
    )
