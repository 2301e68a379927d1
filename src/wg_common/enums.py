"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class MarketType(str, Enum):
    PARLAY = "PARLAY"
    HEAD_TO_HEAD = "HEAD_TO_HEAD"


class WagerStatus(str, Enum):
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    VOID = "VOID"


class LedgerEntryType(str, Enum):
    GRANT = "GRANT"
    WAGER_STAKE = "WAGER_STAKE"
    WAGER_REFUND = "WAGER_REFUND"
    SETTLEMENT_PAYOUT = "SETTLEMENT_PAYOUT"
    SETTLEMENT_VOID = "SETTLEMENT_VOID"


class FinishClass(str, Enum):
    FINISHED = "FINISHED"
    DID_NOT_FINISH = "DID_NOT_FINISH"


class PassOutcome(str, Enum):
    """Result of one settlement pass over a race."""
    NO_RESULTS = "NO_RESULTS"
    ALREADY_SETTLED = "ALREADY_SETTLED"
    COMPLETE = "COMPLETE"
    INCOMPLETE = "INCOMPLETE"


class LeaderboardSort(str, Enum):
    NET_PROFIT = "net_profit"
    TOTAL_WON = "total_won"
    WIN_RATE = "win_rate"
