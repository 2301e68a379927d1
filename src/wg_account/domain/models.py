"""Domain models for wg_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    user_id: str
    balance: int           # tokens
    lifetime_earned: int   # tokens, monotonic: payouts and grants, never refunds
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # tokens, positive=credit negative=debit
    balance_after: int               # balance snapshot after the mutation
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class Discrepancy:
    """A user whose balance no longer equals the sum of their ledger entries."""

    user_id: str
    balance: int
    ledger_total: int

    @property
    def drift(self) -> int:
        return self.balance - self.ledger_total
