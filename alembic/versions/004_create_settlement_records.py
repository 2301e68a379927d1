"""004: create settlement_records table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE settlement_records (
            race_id       VARCHAR(16)  PRIMARY KEY,
            season        INTEGER      NOT NULL,
            round         INTEGER      NOT NULL,
            race_name     VARCHAR(128) NOT NULL,
            parlay_won    INTEGER      NOT NULL DEFAULT 0,
            parlay_lost   INTEGER      NOT NULL DEFAULT 0,
            parlay_void   INTEGER      NOT NULL DEFAULT 0,
            h2h_won       INTEGER      NOT NULL DEFAULT 0,
            h2h_lost      INTEGER      NOT NULL DEFAULT 0,
            h2h_void      INTEGER      NOT NULL DEFAULT 0,
            completed_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("COMMENT ON TABLE settlement_records IS 'One row per fully settled race - insert-only idempotency marker';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS settlement_records CASCADE;")
