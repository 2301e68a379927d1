"""AccountRepository — the token ledger.

Every balance mutation is ONE atomic PostgreSQL statement (increment-style
UPDATE/UPSERT ... RETURNING) followed by an append-only ledger insert in the
same transaction. The debit guard ``balance >= :amount`` lives in the WHERE
clause, so two concurrent debits can never both pass against a stale balance:
a result of 0 rows means insufficient funds.

Transaction ownership: the CALLER (application service or settlement engine)
commits or rolls back. Nothing here calls commit().
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_account.domain.constants import EARNING_ENTRY_TYPES, MAX_DESCRIPTION_LENGTH
from src.wg_account.domain.models import Account, Discrepancy, LedgerEntry
from src.wg_common.errors import InsufficientBalanceError, InternalError

# ---------------------------------------------------------------------------
# SQL: accounts mutations
# ---------------------------------------------------------------------------

_ENSURE_ACCOUNT_SQL = text("""
    INSERT INTO accounts (user_id)
    VALUES (:user_id)
    ON CONFLICT (user_id) DO NOTHING
""")

# Upsert so that a payout to a user without an account row still lands.
_CREDIT_SQL = text("""
    INSERT INTO accounts (user_id, balance, lifetime_earned)
    VALUES (:user_id, :amount, :earned)
    ON CONFLICT (user_id) DO UPDATE
    SET balance = accounts.balance + EXCLUDED.balance,
        lifetime_earned = accounts.lifetime_earned + EXCLUDED.lifetime_earned,
        version = accounts.version + 1,
        updated_at = NOW()
    RETURNING user_id, balance, lifetime_earned, version, created_at, updated_at
""")

_DEBIT_SQL = text("""
    UPDATE accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance >= :amount
    RETURNING user_id, balance, lifetime_earned, version, created_at, updated_at
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_GET_ACCOUNT_SQL = text("""
    SELECT user_id, balance, lifetime_earned, version, created_at, updated_at
    FROM accounts
    WHERE user_id = :user_id
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = CAST(:entry_type AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_DISCREPANCIES_SQL = text("""
    SELECT a.user_id, a.balance, COALESCE(SUM(l.amount), 0) AS ledger_total
    FROM accounts a
    LEFT JOIN ledger_entries l ON l.user_id = a.user_id
    GROUP BY a.user_id, a.balance
    HAVING a.balance <> COALESCE(SUM(l.amount), 0)
    ORDER BY a.user_id
""")


def _row_to_account(row: object) -> Account:
    return Account(
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        lifetime_earned=row.lifetime_earned,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete repository — all balance mutations atomic at the SQL level."""

    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def ensure_account(self, db: AsyncSession, user_id: str) -> None:
        await db.execute(_ENSURE_ACCOUNT_SQL, {"user_id": user_id})

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[Account, LedgerEntry]:
        if amount <= 0:
            raise InternalError(f"Credit amount must be positive, got {amount}")
        earned = amount if entry_type in EARNING_ENTRY_TYPES else 0
        result = await db.execute(
            _CREDIT_SQL, {"user_id": user_id, "amount": amount, "earned": earned}
        )
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Credit upsert returned no rows for user {user_id}")
        account = _row_to_account(row)
        entry = await self._append_entry(
            db, account, entry_type, amount, ref_type, ref_id, description
        )
        return account, entry

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[Account, LedgerEntry]:
        if amount <= 0:
            raise InternalError(f"Debit amount must be positive, got {amount}")
        result = await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            current = await self.get_account(db, user_id)
            raise InsufficientBalanceError(amount, current.balance if current else 0)
        account = _row_to_account(row)
        entry = await self._append_entry(
            db, account, entry_type, -amount, ref_type, ref_id, description
        )
        return account, entry

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

    async def find_discrepancies(self, db: AsyncSession) -> list[Discrepancy]:
        rows = (await db.execute(_DISCREPANCIES_SQL)).fetchall()
        return [
            Discrepancy(user_id=r.user_id, balance=r.balance, ledger_total=int(r.ledger_total))
            for r in rows
        ]

    async def _append_entry(
        self,
        db: AsyncSession,
        account: Account,
        entry_type: str,
        signed_amount: int,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": account.user_id,
                "entry_type": entry_type,
                "amount": signed_amount,
                "balance_after": account.balance,
                "reference_type": ref_type,
                "reference_id": ref_id,
                "description": description[:MAX_DESCRIPTION_LENGTH],
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(row)
