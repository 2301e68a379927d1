"""002: create races and candidates tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE races (
            id          VARCHAR(16)  PRIMARY KEY,
            season      INTEGER      NOT NULL,
            round       INTEGER      NOT NULL,
            name        VARCHAR(128) NOT NULL,
            start_time  TIMESTAMPTZ  NOT NULL,
            created_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_races_season_round UNIQUE (season, round)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_races_updated_at
            BEFORE UPDATE ON races
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE candidates (
            id           VARCHAR(8)   PRIMARY KEY,
            name         VARCHAR(128) NOT NULL,
            team         VARCHAR(128),
            season_rank  INTEGER,
            updated_at   TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_candidates_rank_gte_1 CHECK (season_rank IS NULL OR season_rank >= 1)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_candidates_updated_at
            BEFORE UPDATE ON candidates
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS candidates CASCADE;")
    op.execute("DROP TABLE IF EXISTS races CASCADE;")
