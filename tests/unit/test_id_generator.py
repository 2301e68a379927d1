"""Tests for wg_common.id_generator and wg_common.datetime_utils."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.wg_common.datetime_utils import ensure_utc, utc_now
from src.wg_common.id_generator import SnowflakeIdGenerator, generate_wager_id


class TestSnowflakeIdGenerator:
    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(worker_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(worker_id=1)
        prev = gen.next_id()
        for _ in range(100):
            current = gen.next_id()
            assert current > prev
            prev = current

    def test_rejects_bad_worker_id(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(worker_id=1024)


class TestWagerId:
    def test_format(self) -> None:
        wager_id = generate_wager_id()
        assert wager_id.startswith("wg")
        assert len(wager_id) == 21

    def test_lexical_order_matches_creation_order(self) -> None:
        ids = [generate_wager_id() for _ in range(50)]
        assert ids == sorted(ids)


class TestDatetimeUtils:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo == UTC

    def test_naive_treated_as_utc(self) -> None:
        naive = datetime(2026, 3, 8, 4, 0)
        assert ensure_utc(naive) == datetime(2026, 3, 8, 4, 0, tzinfo=UTC)

    def test_converts_other_zones(self) -> None:
        seoul = datetime(2026, 3, 8, 13, 0, tzinfo=timezone(timedelta(hours=9)))
        assert ensure_utc(seoul) == datetime(2026, 3, 8, 4, 0, tzinfo=UTC)
