"""
In-memory hourly aggregate repository.

Stores per-website counts keyed by UTC hour and groups them the same way
the SQLite grouping expressions do.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import UTC, datetime

from bucketline.components.timeframe import RawRow, TimeFrame, bucket_key_for


def _hour_start(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).replace(minute=0, second=0, microsecond=0)


class InMemoryHourlyAggregateRepo:
    """In-memory aggregate repository for testing/dev."""

    def __init__(self) -> None:
        self._counts: dict[int, dict[datetime, int]] = defaultdict(dict)

    def record(self, website_id: int, hour: datetime, count: int = 1) -> None:
        """Add count to the hourly bucket containing `hour`."""
        bucket = _hour_start(hour)
        hours = self._counts[website_id]
        hours[bucket] = hours.get(bucket, 0) + count

    def hourly_counts(self, website_id: int) -> dict[datetime, int]:
        return dict(self._counts.get(website_id, {}))

    def count_by_bucket(
        self,
        website_id: int,
        time_frame: TimeFrame,
        group_by: str,
    ) -> list[RawRow]:
        """Sum hourly counts per bucket key inside the frame, ordered by key."""
        totals: dict[str, int] = defaultdict(int)
        for hour, count in self._counts.get(website_id, {}).items():
            if time_frame.from_utc <= hour <= time_frame.to_utc:
                totals[bucket_key_for(hour, time_frame.bucket_size)] += count

        return [RawRow(date=key, count=totals[key]) for key in sorted(totals)]
