"""
SQLite hourly aggregate repository.

Rows live in `hourly_aggregates(website_id, hour, count)` where `hour` is
the UTC hour rendered as "YYYY-MM-DD HH:00:00". Grouping uses the
expression handed over by the time frame.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime

from bucketline.components.timeframe import (
    BUCKET_FORMATS,
    RawRow,
    TimeFrame,
    UnsupportedBucketSizeError,
)

logger = logging.getLogger(__name__)

HOUR_FORMAT = "%Y-%m-%d %H:00:00"
_BOUND_FORMAT = "%Y-%m-%d %H:%M:%S"

_ALLOWED_GROUP_BY = frozenset(fmt.group_by for fmt in BUCKET_FORMATS.values())

SCHEMA = """
CREATE TABLE IF NOT EXISTS hourly_aggregates (
    website_id INTEGER NOT NULL,
    hour TEXT NOT NULL,
    count INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (website_id, hour)
)
"""


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SQLiteHourlyAggregateRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def record(self, website_id: int, hour: datetime, count: int = 1) -> None:
        """Add count to the hourly row containing `hour`."""
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO hourly_aggregates (website_id, hour, count)
                VALUES (?, ?, ?)
                ON CONFLICT(website_id, hour) DO UPDATE SET
                    count = count + excluded.count
                """,
                (website_id, _utc(hour).strftime(HOUR_FORMAT), count),
            )
            conn.commit()
        finally:
            conn.close()

    def count_by_bucket(
        self,
        website_id: int,
        time_frame: TimeFrame,
        group_by: str,
    ) -> list[RawRow]:
        """
        Sum hourly counts per bucket inside the frame.

        Raises:
            UnsupportedBucketSizeError: If group_by is not one of the known
                bucket expressions.
        """
        if group_by not in _ALLOWED_GROUP_BY:
            msg = f"Unknown grouping expression: {group_by!r}"
            raise UnsupportedBucketSizeError(msg)

        # group_by is one of the fixed expressions above, never user input
        query = f"""
            SELECT {group_by} AS bucket, SUM(count) AS total
            FROM hourly_aggregates
            WHERE website_id = ? AND hour >= ? AND hour <= ?
            GROUP BY bucket
            ORDER BY bucket
        """  # noqa: S608

        conn = self._get_conn()
        try:
            rows = conn.execute(
                query,
                (
                    website_id,
                    time_frame.from_utc.strftime(_BOUND_FORMAT),
                    time_frame.to_utc.strftime(_BOUND_FORMAT),
                ),
            ).fetchall()
        finally:
            conn.close()

        logger.debug(
            "Grouped %d buckets for website %s (bucket=%s)",
            len(rows),
            website_id,
            time_frame.bucket_size.value,
        )
        return [RawRow(date=str(bucket), count=int(total)) for bucket, total in rows]
