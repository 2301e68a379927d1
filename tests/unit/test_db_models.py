"""ORM metadata mirrors the Alembic schema."""

from src.wg_account.infrastructure.db_models import AccountORM, LedgerEntryORM
from src.wg_common.database import Base
from src.wg_race.infrastructure.db_models import CandidateORM, RaceORM
from src.wg_settlement.infrastructure.db_models import SettlementRecordORM
from src.wg_wager.infrastructure.db_models import WagerORM


def test_all_tables_registered() -> None:
    assert {
        AccountORM.__tablename__,
        LedgerEntryORM.__tablename__,
        RaceORM.__tablename__,
        CandidateORM.__tablename__,
        WagerORM.__tablename__,
        SettlementRecordORM.__tablename__,
    } <= set(Base.metadata.tables)


def test_settlement_record_keyed_by_race() -> None:
    pk = [c.name for c in SettlementRecordORM.__table__.primary_key.columns]
    assert pk == ["race_id"]


def test_wager_columns() -> None:
    columns = set(WagerORM.__table__.columns.keys())
    assert {"market", "stake", "odds", "client_odds", "status", "payout", "settlement"} <= columns
