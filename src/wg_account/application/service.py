"""AccountApplicationService — thin composition layer over the ledger.

grant() commits or rolls back its own transaction.
get_balance / list_ledger / reconcile are read-only.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_account.application.schemas import (
    BalanceResponse,
    DiscrepancyItem,
    GrantResponse,
    LedgerEntryItem,
    LedgerResponse,
    ReconcileResponse,
    cursor_decode,
    cursor_encode,
)
from src.wg_account.domain.repository import AccountRepositoryProtocol
from src.wg_account.infrastructure.persistence import AccountRepository
from src.wg_common.enums import LedgerEntryType

logger = logging.getLogger("wg.account")


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account(db, user_id)
        if account is None:
            # Accounts are created lazily; an unknown user simply has nothing yet.
            return BalanceResponse(user_id=user_id, balance=0, lifetime_earned=0)
        return BalanceResponse(
            user_id=user_id,
            balance=account.balance,
            lifetime_earned=account.lifetime_earned,
        )

    async def grant(
        self, db: AsyncSession, user_id: str, amount: int, reason: str
    ) -> GrantResponse:
        try:
            account, entry = await self._repo.credit(
                db, user_id, amount, LedgerEntryType.GRANT.value, "GRANT", None, reason
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Granted %d tokens to %s (%s)", amount, user_id, reason)
        return GrantResponse(
            user_id=user_id,
            balance=account.balance,
            granted=amount,
            ledger_entry_id=entry.id,
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [
            LedgerEntryItem(
                id=e.id,
                entry_type=e.entry_type,
                amount=e.amount,
                balance_after=e.balance_after,
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                description=e.description,
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]

        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def reconcile(self, db: AsyncSession) -> ReconcileResponse:
        """Report every user whose balance differs from the sum of their ledger."""
        found = await self._repo.find_discrepancies(db)
        for d in found:
            logger.error(
                "Ledger drift for %s: balance=%d ledger=%d", d.user_id, d.balance, d.ledger_total
            )
        return ReconcileResponse(
            ok=not found,
            discrepancies=[
                DiscrepancyItem(
                    user_id=d.user_id,
                    balance=d.balance,
                    ledger_total=d.ledger_total,
                    drift=d.drift,
                )
                for d in found
            ],
        )
