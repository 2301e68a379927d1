"""Pydantic schemas and cursor utilities for wg_account API."""

import base64
import json

from pydantic import BaseModel, Field

from src.wg_account.domain.constants import MAX_CREDIT_AMOUNT, MAX_DESCRIPTION_LENGTH

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class GrantRequest(BaseModel):
    amount: int = Field(..., gt=0, le=MAX_CREDIT_AMOUNT, description="Tokens to grant")
    reason: str = Field("Token grant", min_length=1, max_length=MAX_DESCRIPTION_LENGTH)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    balance: int
    lifetime_earned: int


class GrantResponse(BaseModel):
    user_id: str
    balance: int
    granted: int
    ledger_entry_id: int


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class DiscrepancyItem(BaseModel):
    user_id: str
    balance: int
    ledger_total: int
    drift: int


class ReconcileResponse(BaseModel):
    ok: bool
    discrepancies: list[DiscrepancyItem]
