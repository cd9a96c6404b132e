"""Tests for mk_common.datetime_utils."""
from datetime import UTC, datetime, timedelta

from src.mk_common.datetime_utils import coerce_datetime, time_ago

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


class TestCoerceDatetime:
    def test_aware_datetime_passthrough(self) -> None:
        assert coerce_datetime(NOW) == NOW

    def test_naive_datetime_assumed_utc(self) -> None:
        assert coerce_datetime(datetime(2026, 10, 18, 12, 0)) == NOW

    def test_iso_string_with_z(self) -> None:
        assert coerce_datetime("2026-10-18T12:00:00Z") == NOW

    def test_epoch_seconds_and_millis(self) -> None:
        seconds = NOW.timestamp()
        assert coerce_datetime(seconds) == NOW
        assert coerce_datetime(int(seconds * 1000)) == NOW

    def test_timestamp_map(self) -> None:
        assert coerce_datetime({"seconds": int(NOW.timestamp()), "nanoseconds": 0}) == NOW

    def test_unparseable(self) -> None:
        assert coerce_datetime("yesterday") is None
        assert coerce_datetime(None) is None
        assert coerce_datetime(True) is None


class TestTimeAgo:
    def test_buckets(self) -> None:
        assert time_ago(NOW - timedelta(seconds=30), NOW) == "Just now"
        assert time_ago(NOW - timedelta(minutes=5), NOW) == "5m ago"
        assert time_ago(NOW - timedelta(hours=3), NOW) == "3h ago"
        assert time_ago(NOW - timedelta(days=2), NOW) == "2d ago"
        assert time_ago(NOW - timedelta(days=14), NOW) == "2w ago"

    def test_old_dates_are_formatted(self) -> None:
        assert time_ago(datetime(2026, 1, 5, tzinfo=UTC), NOW) == "Jan 05, 2026"

    def test_none(self) -> None:
        assert time_ago(None, NOW) == ""
