"""003: create wagers table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wagers (
            id                VARCHAR(32)  PRIMARY KEY,
            user_id           VARCHAR(128) NOT NULL REFERENCES accounts (user_id),
            race_id           VARCHAR(16)  NOT NULL REFERENCES races (id),
            market_type       VARCHAR(16)  NOT NULL,
            market            JSONB        NOT NULL,
            stake             BIGINT       NOT NULL,
            odds              BIGINT,
            client_odds       NUMERIC(8, 2),
            potential_payout  BIGINT       NOT NULL,
            status            VARCHAR(10)  NOT NULL DEFAULT 'PENDING',
            payout            BIGINT       NOT NULL DEFAULT 0,
            settlement        JSONB,
            created_at        TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            settled_at        TIMESTAMPTZ,
            CONSTRAINT ck_wagers_market_type CHECK (market_type IN ('PARLAY', 'HEAD_TO_HEAD')),
            CONSTRAINT ck_wagers_status      CHECK (status IN ('PENDING', 'WON', 'LOST', 'VOID')),
            CONSTRAINT ck_wagers_stake_gt_0  CHECK (stake > 0),
            CONSTRAINT ck_wagers_payout_gte_0 CHECK (payout >= 0),
            CONSTRAINT ck_wagers_settled_at  CHECK ((status = 'PENDING') = (settled_at IS NULL))
        );
    """)
    # One parlay per (user, race); head-to-head wagers are not deduplicated.
    op.execute("""
        CREATE UNIQUE INDEX uq_wagers_parlay_user_race
        ON wagers (user_id, race_id)
        WHERE market_type = 'PARLAY';
    """)
    op.execute("CREATE INDEX idx_wagers_race_pending ON wagers (race_id, id) WHERE status = 'PENDING';")
    op.execute("CREATE INDEX idx_wagers_user ON wagers (user_id, id DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wagers CASCADE;")
