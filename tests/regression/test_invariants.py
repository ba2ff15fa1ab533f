"""
Regression invariants for the time-frame engine.

- R1: day ranges emit one point per local calendar day
- R2: series reconciliation is total and never invents counts
- R3: to = today always ends on today's local date
- R4: documented scenarios keep their exact outputs
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from bucketline.adapters.clock import FrozenClock
from bucketline.components.timeframe import (
    BucketSize,
    InvalidRangeError,
    InvalidTimezoneError,
    RawRow,
    TimeFrameParams,
    TimeFrameParser,
)

TIMEZONES = [
    "UTC",
    "Europe/Madrid",
    "Europe/London",
    "America/New_York",
    "America/Los_Angeles",
    "Asia/Tokyo",
    "Asia/Kolkata",
    "Pacific/Auckland",
    "Pacific/Honolulu",
]

CLOCK_TIMES = [
    datetime(2024, 7, 15, 0, 5, tzinfo=UTC),
    datetime(2024, 7, 15, 11, 0, tzinfo=UTC),
    datetime(2024, 7, 15, 23, 58, tzinfo=UTC),
    datetime(2025, 3, 30, 1, 30, tzinfo=UTC),  # Europe spring forward
    datetime(2025, 11, 2, 6, 30, tzinfo=UTC),  # US fall back
]


def _parser(now: datetime) -> TimeFrameParser:
    return TimeFrameParser(time_port=FrozenClock(now))


# --- R1: Day Point Count ---


@pytest.mark.parametrize("tz", TIMEZONES)
@pytest.mark.parametrize("days", [2, 7, 31, 60, 88])
def test_R1_day_points_match_calendar_days(tz: str, days: int) -> None:
    """R1: A day-bucketed range has one point per local calendar day."""
    parser = _parser(datetime(2025, 12, 31, 12, tzinfo=UTC))
    start = date(2025, 3, 1)
    end = start + timedelta(days=days)

    frame = parser.parse(
        TimeFrameParams(from_date=start.isoformat(), to_date=end.isoformat(), tz=tz)
    )
    points = frame.generate_reference_points()

    assert frame.bucket_size == BucketSize.DAY
    assert len(points) == days + 1
    assert points[0].bucket_key == start.isoformat()
    assert points[-1].bucket_key == end.isoformat()


# --- R2: Reconciliation Totality ---


@pytest.mark.parametrize(
    "rows",
    [
        [],
        [RawRow("2024-07-03", 4)],
        [RawRow("2024-07-01 00:00:00", 1), RawRow("2024-07-09", 9), RawRow("1999-01-01", 5)],
        [RawRow(f"2024-07-{d:02d}", d) for d in range(1, 11)],
    ],
)
def test_R2_series_is_total(rows: list[RawRow]) -> None:
    """R2: Output length is fixed and every count is 0 or an input count."""
    parser = _parser(datetime(2024, 7, 15, 14, 30, tzinfo=UTC))
    frame = parser.parse(TimeFrameParams(from_date="2024-07-01", to_date="2024-07-10"))

    series = frame.build_time_series(rows)
    input_counts = {r.count for r in rows}

    assert len(series) == len(frame.generate_reference_points())
    assert all(p.count == 0 or p.count in input_counts for p in series)
    assert series == frame.build_time_series(rows)


# --- R3: Today Is Never Missing ---


@pytest.mark.parametrize("tz", TIMEZONES)
@pytest.mark.parametrize("now", CLOCK_TIMES)
@pytest.mark.parametrize("lookback", [0, 6, 29])
def test_R3_today_is_last_point(tz: str, now: datetime, lookback: int) -> None:
    """R3: Requesting to = today ends on today's local date."""
    parser = _parser(now)
    today = parser.now(ZoneInfo(tz)).date()
    start = today - timedelta(days=lookback)

    frame = parser.parse(
        TimeFrameParams(from_date=start.isoformat(), to_date=today.isoformat(), tz=tz)
    )
    last = frame.generate_reference_points()[-1]

    if frame.bucket_size == BucketSize.HOUR:
        assert last.display_instant.astimezone(frame.tz).date() == today
    else:
        assert last.display_instant.date() == today
        assert last.bucket_key == today.isoformat()


# --- R4: Scenarios ---


def test_R4_utc_three_days_empty() -> None:
    """R4: Three UTC days, all zero on empty input."""
    parser = _parser(datetime(2024, 7, 15, 14, 30, tzinfo=UTC))
    frame = parser.parse(TimeFrameParams(from_date="2024-07-01", to_date="2024-07-03"))

    assert [p.as_dict() for p in frame.build_time_series([])] == [
        {"date": "2024-07-01T00:00:00Z", "count": 0},
        {"date": "2024-07-02T00:00:00Z", "count": 0},
        {"date": "2024-07-03T00:00:00Z", "count": 0},
    ]


def test_R4_madrid_last_point() -> None:
    """R4: Madrid month ending today ends on 2025-11-29."""
    parser = _parser(datetime(2025, 11, 29, 13, 2, tzinfo=UTC))
    frame = parser.parse(
        TimeFrameParams(from_date="2025-10-30", to_date="2025-11-29", tz="Europe/Madrid")
    )
    points = frame.generate_reference_points()

    assert frame.bucket_size == BucketSize.DAY
    assert len(points) >= 30
    assert points[-1].display == "2025-11-29T00:00:00Z"


def test_R4_invalid_timezone() -> None:
    """R4: Unknown timezone is rejected."""
    with pytest.raises(InvalidTimezoneError):
        _parser(datetime(2024, 7, 15, tzinfo=UTC)).parse(
            TimeFrameParams(from_date="2024-07-01", to_date="2024-07-03", tz="Invalid/Timezone")
        )


def test_R4_inverted_range() -> None:
    """R4: from after to is rejected."""
    with pytest.raises(InvalidRangeError):
        _parser(datetime(2025, 12, 1, tzinfo=UTC)).parse(
            TimeFrameParams(from_date="2025-11-29", to_date="2025-11-20")
        )
