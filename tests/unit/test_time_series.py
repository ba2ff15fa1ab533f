"""
Tests for series reconciliation and trend.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from bucketline.components.timeframe import (
    BucketSize,
    RawRow,
    SeriesPoint,
    TimeFrame,
    UnsupportedBucketSizeError,
)


@pytest.fixture
def day_frame() -> TimeFrame:
    """2024-07-01 .. 2024-07-03, daily."""
    return TimeFrame.create(
        datetime(2024, 7, 1, tzinfo=UTC),
        datetime(2024, 7, 3, 23, 59, 59, tzinfo=UTC),
        BucketSize.DAY,
    )


def _counts(points: list[SeriesPoint]) -> list[int]:
    return [p.count for p in points]


class TestBuildTimeSeries:
    """Test merging rows onto the bucket axis."""

    def test_empty_rows_zero_fill(self, day_frame: TimeFrame) -> None:
        """No rows gives one zero per bucket."""
        points = day_frame.build_time_series([])

        assert [p.as_dict() for p in points] == [
            {"date": "2024-07-01T00:00:00Z", "count": 0},
            {"date": "2024-07-02T00:00:00Z", "count": 0},
            {"date": "2024-07-03T00:00:00Z", "count": 0},
        ]

    def test_sparse_rows(self, day_frame: TimeFrame) -> None:
        """Present buckets carry their count, gaps are zero."""
        points = day_frame.build_time_series([RawRow(date="2024-07-02", count=5)])

        assert _counts(points) == [0, 5, 0]

    def test_trailing_precision_tolerated(self) -> None:
        """Hour rows with seconds still match their bucket."""
        frame = TimeFrame.create(
            datetime(2024, 7, 1, 0, tzinfo=UTC),
            datetime(2024, 7, 1, 2, 59, 59, tzinfo=UTC),
            BucketSize.HOUR,
        )

        points = frame.build_time_series([("2024-07-01 01:00:00", 7)])

        assert _counts(points) == [0, 7, 0]
        assert points[1].date == "2024-07-01T01:00:00Z"

    def test_month_rows_in_db_format(self) -> None:
        """Month rows stored as YYYY-MM-01 match YYYY-MM keys."""
        frame = TimeFrame.create(
            datetime(2024, 7, 1, tzinfo=UTC),
            datetime(2024, 9, 30, tzinfo=UTC),
            BucketSize.MONTH,
        )

        points = frame.build_time_series([("2024-08-01", 12), ("2024-09", 3)])

        assert _counts(points) == [0, 12, 3]

    def test_rows_outside_axis_dropped(self, day_frame: TimeFrame) -> None:
        """Rows that match no bucket never change the series length."""
        points = day_frame.build_time_series(
            [("2024-06-30", 99), ("2024-07-01", 1), ("2024-07-04", 99)]
        )

        assert _counts(points) == [1, 0, 0]

    def test_duplicate_keys_last_wins(self, day_frame: TimeFrame) -> None:
        """Later rows replace earlier rows with the same normalized key."""
        points = day_frame.build_time_series(
            [("2024-07-02", 5), ("2024-07-02 00:00:00", 7)]
        )

        assert _counts(points) == [0, 7, 0]

    def test_mapping_rows(self, day_frame: TimeFrame) -> None:
        """Dict rows as returned by a dict row factory are accepted."""
        points = day_frame.build_time_series([{"date": "2024-07-03", "count": 4}])

        assert _counts(points) == [0, 0, 4]

    def test_pure(self, day_frame: TimeFrame) -> None:
        """Same inputs, same output."""
        rows = [RawRow("2024-07-01", 2), RawRow("2024-07-03", 8)]

        assert day_frame.build_time_series(rows) == day_frame.build_time_series(rows)


class TestTrend:
    """Test least-squares slope."""

    def _series(self, counts: list[int]) -> list[SeriesPoint]:
        start = datetime(2024, 7, 1, tzinfo=UTC)
        return [
            SeriesPoint(date=(start + timedelta(days=i)).strftime("%Y-%m-%d"), count=c)
            for i, c in enumerate(counts)
        ]

    def test_rising(self) -> None:
        assert TimeFrame.trend(self._series([0, 1, 2, 3])) == pytest.approx(1.0)

    def test_falling(self) -> None:
        assert TimeFrame.trend(self._series([3, 2, 1])) == pytest.approx(-1.0)

    def test_flat(self) -> None:
        assert TimeFrame.trend(self._series([4, 4, 4])) == pytest.approx(0.0)

    def test_too_short(self) -> None:
        """Fewer than two points has no slope."""
        assert TimeFrame.trend(self._series([9])) == 0.0
        assert TimeFrame.trend([]) == 0.0


class TestFrameHelpers:
    """Test small TimeFrame helpers."""

    def test_duration(self, day_frame: TimeFrame) -> None:
        assert day_frame.duration == timedelta(days=2, hours=23, minutes=59, seconds=59)

    def test_format_date(self) -> None:
        """Instants render in the stored bucket format."""
        frame = TimeFrame.create(
            datetime(2024, 7, 1, tzinfo=UTC),
            datetime(2024, 9, 30, tzinfo=UTC),
            BucketSize.MONTH,
        )

        assert frame.db_format == "%Y-%m-01"
        assert frame.format_date(datetime(2024, 8, 17, 9, tzinfo=UTC)) == "2024-08-01"

    def test_create_rejects_inverted(self) -> None:
        with pytest.raises(ValueError):
            TimeFrame.create(
                datetime(2024, 7, 2, tzinfo=UTC),
                datetime(2024, 7, 1, tzinfo=UTC),
                BucketSize.DAY,
            )

    def test_naive_instants_are_utc(self) -> None:
        frame = TimeFrame.create(
            datetime(2024, 7, 1),  # noqa: DTZ001
            datetime(2024, 7, 2),  # noqa: DTZ001
            "day",
        )

        assert frame.from_utc.tzinfo is UTC
        assert frame.bucket_size == BucketSize.DAY

    def test_direct_construction_normalizes(self) -> None:
        """The constructor coerces string sizes and defaults tz to UTC."""
        frame = TimeFrame(
            from_utc=datetime(2024, 7, 1, tzinfo=UTC),
            to_utc=datetime(2024, 7, 31, tzinfo=UTC),
            bucket_size="week",  # type: ignore[arg-type]
        )

        assert frame.bucket_size is BucketSize.WEEK
        assert frame.tz.key == "UTC"

    def test_create_rejects_unknown_size(self) -> None:
        with pytest.raises(UnsupportedBucketSizeError):
            TimeFrame.create(
                datetime(2024, 7, 1, tzinfo=UTC),
                datetime(2024, 7, 2, tzinfo=UTC),
                "quarter",
            )
