"""
TimeFrame - immutable UTC window with a bucket size and a viewer timezone.

Builds the canonical bucket axis for a window and merges sparse grouped
query results onto it.

Key behaviors:
- From/To are stored in UTC; the timezone only decides calendar dates
- Day/week/month/year points display as UTC midnight of the local date
- Hour points display as the true UTC hour boundary
- Reconciled series always has one point per bucket, zero-filled
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo

from ._buckets import (
    DEFAULT_THRESHOLDS,
    BucketFormat,
    BucketLimitExceededError,
    BucketSize,
    BucketThresholds,
    InvalidRangeError,
    bucket_end_in_timezone,
    bucket_start_date,
    format_bucket_label,
    get_bucket_format,
    next_bucket_date,
    normalize_bucket_key,
    select_bucket_size,
)

logger = logging.getLogger(__name__)

MAX_REFERENCE_POINTS = 1000

RFC3339_UTC = "%Y-%m-%dT%H:%M:%SZ"

_UTC_ZONE = ZoneInfo("UTC")


# --- Enums ---


class RangeLabel(str, Enum):
    """Named date ranges offered by the range selector."""

    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    MONTH_TO_DATE = "month_to_date"
    LAST_MONTH = "last_month"
    YEAR_TO_DATE = "year_to_date"
    LAST_12_MONTHS = "last_12_months"
    ALL_TIME = "all_time"
    CUSTOM = "custom"


# --- Value Types ---


@dataclass(frozen=True)
class BucketPoint:
    """One tick on the time axis."""

    bucket_key: str
    display_instant: datetime

    @property
    def display(self) -> str:
        """Display instant as RFC3339 with a Z suffix."""
        return self.display_instant.strftime(RFC3339_UTC)


@dataclass(frozen=True)
class SeriesPoint:
    """Merged output point: display date and count."""

    date: str
    count: int

    def as_dict(self) -> dict[str, str | int]:
        return {"date": self.date, "count": self.count}


@dataclass(frozen=True)
class RawRow:
    """Grouped row as returned by storage."""

    date: str
    count: int


RowLike = RawRow | tuple[str, int] | Mapping[str, object]


def _coerce_row(row: RowLike) -> RawRow:
    """Accept RawRow, (date, count) tuples or {"date", "count"} mappings."""
    if isinstance(row, RawRow):
        return row
    if isinstance(row, Mapping):
        return RawRow(date=str(row["date"]), count=int(row["count"]))  # type: ignore[call-overload]
    key, count = row
    return RawRow(date=str(key), count=int(count))


def _ensure_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def _utc_midnight(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=UTC)


# --- TimeFrame ---


@dataclass(frozen=True)
class TimeFrame:
    """
    A [from, to] window in UTC with its bucket size.

    Instances are immutable. Naive instants are taken as UTC and aware
    instants are converted to UTC on construction.
    """

    from_utc: datetime
    to_utc: datetime
    bucket_size: BucketSize
    tz: ZoneInfo = field(default=_UTC_ZONE)
    label: RangeLabel = RangeLabel.CUSTOM

    def __post_init__(self) -> None:
        object.__setattr__(self, "from_utc", _ensure_utc(self.from_utc))
        object.__setattr__(self, "to_utc", _ensure_utc(self.to_utc))
        object.__setattr__(self, "bucket_size", get_bucket_format(self.bucket_size).bucket_size)

    # --- Constructors ---

    @classmethod
    def create(
        cls,
        from_time: datetime,
        to_time: datetime,
        bucket_size: BucketSize | str,
        tz: ZoneInfo | None = None,
        label: RangeLabel = RangeLabel.CUSTOM,
    ) -> TimeFrame:
        """
        Build a frame from raw instants and an explicit bucket size.

        Raises:
            InvalidRangeError: If from_time is after to_time.
            UnsupportedBucketSizeError: If bucket_size is unknown.
        """
        frame = cls(
            from_utc=from_time,
            to_utc=to_time,
            bucket_size=bucket_size,  # type: ignore[arg-type]
            tz=tz or _UTC_ZONE,
            label=label,
        )
        frame.validate()
        return frame

    @classmethod
    def from_client_timezone(
        cls,
        from_time: datetime,
        to_time: datetime,
        tz: ZoneInfo,
        thresholds: BucketThresholds = DEFAULT_THRESHOLDS,
        label: RangeLabel = RangeLabel.CUSTOM,
    ) -> TimeFrame:
        """
        Build a frame from viewer-local instants, choosing the bucket size.

        The bucket size is chosen from the UTC span. `to_time` is then moved
        to the last second of its local bucket.
        """
        from_utc = _ensure_utc(from_time)
        to_utc = _ensure_utc(to_time)

        bucket_size = select_bucket_size(from_utc, to_utc, thresholds)
        to_end = bucket_end_in_timezone(to_utc, bucket_size, tz)

        return cls.create(from_utc, to_end, bucket_size, tz=tz, label=label)

    # --- Properties ---

    @property
    def bucket_format(self) -> BucketFormat:
        return get_bucket_format(self.bucket_size)

    @property
    def duration(self) -> timedelta:
        return self.to_utc - self.from_utc

    @property
    def db_format(self) -> str:
        """strftime pattern of the stored bucket value."""
        return self.bucket_format.db_format

    def validate(self) -> None:
        """
        Check the window invariant.

        Raises:
            InvalidRangeError: If from is after to.
        """
        if self.from_utc > self.to_utc:
            msg = (
                f"from ({self.from_utc.strftime(RFC3339_UTC)}) must not be after "
                f"to ({self.to_utc.strftime(RFC3339_UTC)})"
            )
            raise InvalidRangeError(msg)

    def group_by_expression(self) -> str:
        """SQLite GROUP BY expression over the `hour` column for this frame."""
        return self.bucket_format.group_by

    def format_date(self, instant: datetime) -> str:
        """Render an instant the way storage stores this frame's bucket."""
        return _ensure_utc(instant).strftime(self.db_format)

    # --- Reference Points ---

    def generate_reference_points(
        self,
        max_points: int = MAX_REFERENCE_POINTS,
    ) -> list[BucketPoint]:
        """
        Enumerate every bucket between from and to, inclusive.

        Raises:
            BucketLimitExceededError: If more than max_points buckets fall
                in the window. The bucket size selector never produces such
                a frame, so this signals a caller bug.
        """
        if self.bucket_size == BucketSize.HOUR:
            return self._hour_points(max_points)
        return self._calendar_points(max_points)

    def _hour_points(self, max_points: int) -> list[BucketPoint]:
        fmt = self.bucket_format
        current = self.from_utc.replace(minute=0, second=0, microsecond=0)
        points: list[BucketPoint] = []

        while current <= self.to_utc:
            if len(points) >= max_points:
                self._limit_exceeded(max_points)
            points.append(
                BucketPoint(bucket_key=current.strftime(fmt.key_format), display_instant=current)
            )
            current += timedelta(hours=1)

        return points

    def _calendar_points(self, max_points: int) -> list[BucketPoint]:
        fmt = self.bucket_format
        local_from = self.from_utc.astimezone(self.tz)
        local_to = self.to_utc.astimezone(self.tz)

        current = bucket_start_date(local_from.date(), self.bucket_size)
        last = bucket_start_date(local_to.date(), self.bucket_size)
        # To's wall clock on the UTC axis, comparable with display instants
        end_marker = local_to.replace(tzinfo=UTC)

        points: list[BucketPoint] = []
        while not self._past_end(current, last, end_marker):
            if len(points) >= max_points:
                self._limit_exceeded(max_points)
            display = _utc_midnight(current)
            points.append(
                BucketPoint(bucket_key=display.strftime(fmt.key_format), display_instant=display)
            )
            current = next_bucket_date(current, self.bucket_size)

        return points

    def _past_end(self, current: date, last: date, end_marker: datetime) -> bool:
        if self.bucket_size == BucketSize.WEEK:
            return _utc_midnight(current) > end_marker
        return current > last

    def _limit_exceeded(self, max_points: int) -> None:
        logger.error(
            "Reference point limit reached: bucket=%s from=%s to=%s max=%d",
            self.bucket_size.value,
            self.from_utc.isoformat(),
            self.to_utc.isoformat(),
            max_points,
        )
        msg = (
            f"Time frame spans more than {max_points} {self.bucket_size.value} buckets; "
            "a coarser bucket size should have been selected"
        )
        raise BucketLimitExceededError(msg)

    # --- Series ---

    def build_time_series(
        self,
        rows: Iterable[RowLike],
        max_points: int = MAX_REFERENCE_POINTS,
    ) -> list[SeriesPoint]:
        """
        Merge grouped rows onto the full bucket axis.

        Row dates are normalized to the bucket's key prefix before matching,
        so trailing precision from storage is ignored. If two rows normalize
        to the same key the later one wins. Buckets without a row get 0.
        """
        counts: dict[str, int] = {}
        for row in rows:
            raw = _coerce_row(row)
            key = normalize_bucket_key(raw.date, self.bucket_size)
            if key in counts:
                logger.debug("Duplicate bucket key %s, keeping last count", key)
            counts[key] = raw.count

        return [
            SeriesPoint(
                date=point.display,
                count=counts.get(normalize_bucket_key(point.bucket_key, self.bucket_size), 0),
            )
            for point in self.generate_reference_points(max_points)
        ]

    def label_points(self, points: Iterable[BucketPoint]) -> list[str]:
        """Chart labels for already generated reference points."""
        return [format_bucket_label(point.display_instant, self.bucket_size) for point in points]

    def human_labels(self, max_points: int = MAX_REFERENCE_POINTS) -> list[str]:
        """Chart labels, one per reference point, rendered in UTC."""
        return self.label_points(self.generate_reference_points(max_points))

    @staticmethod
    def trend(points: Sequence[SeriesPoint]) -> float:
        """Least-squares slope of counts against point index."""
        n = len(points)
        if n < 2:
            return 0.0

        sum_x = sum_y = sum_xy = sum_xx = 0.0
        for i, point in enumerate(points):
            sum_x += i
            sum_y += point.count
            sum_xy += i * point.count
            sum_xx += i * i

        return (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
