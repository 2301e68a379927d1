"""SQLAlchemy ORM model for wg_settlement (type reference only; see migrations)."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.wg_common.database import Base


class SettlementRecordORM(Base):
    __tablename__ = "settlement_records"

    race_id: Mapped[str] = mapped_column(String(16), primary_key=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    round: Mapped[int] = mapped_column(Integer, nullable=False)
    race_name: Mapped[str] = mapped_column(String(128), nullable=False)
    parlay_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    parlay_lost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    parlay_void: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    h2h_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    h2h_lost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    h2h_void: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    # NOTE: insert-only; existence means the race is settled
