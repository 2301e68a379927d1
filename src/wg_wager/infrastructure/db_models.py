"""SQLAlchemy ORM model for wg_wager (type reference only; see migrations)."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.wg_common.database import Base


class WagerORM(Base):
    __tablename__ = "wagers"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    race_id: Mapped[str] = mapped_column(String(16), nullable=False)
    market_type: Mapped[str] = mapped_column(String(16), nullable=False)
    market: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    stake: Mapped[int] = mapped_column(BigInteger, nullable=False)
    odds: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    client_odds: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    potential_payout: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="PENDING")
    payout: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    settlement: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
