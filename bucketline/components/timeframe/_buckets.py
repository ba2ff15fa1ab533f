"""
Bucket table - closed bucket sizes and their storage formats.

Every bucket size maps to exactly one BucketFormat row. The SQL grouping
expression, the in-memory key generator and the key normalizer all read
from that row, so the storage key and the reference key cannot drift apart.

Key behaviors:
- Bucket size chosen from the UTC span of a window
- Truncation happens in the viewer's timezone, never in UTC
- Keys are normalized by prefix length before any lookup
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo

# --- Enums ---


class BucketSize(str, Enum):
    """Aggregation granularity."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


# --- Errors ---


class TimeFrameError(ValueError):
    """Base class for time frame errors."""

    code = "timeframe_error"

    def __init__(self, message: str, field_name: str | None = None) -> None:
        self.message = message
        self.field_name = field_name
        super().__init__(message)


class InvalidTimezoneError(TimeFrameError):
    """Raised when a timezone name does not resolve."""

    code = "invalid_timezone"


class InvalidDateFormatError(TimeFrameError):
    """Raised when a date string is not YYYY-MM-DD."""

    code = "invalid_date_format"


class InvalidRangeError(TimeFrameError):
    """Raised when the resolved window starts after it ends."""

    code = "invalid_range"


class UnsupportedBucketSizeError(TimeFrameError):
    """Raised for a bucket size outside the closed enum."""

    code = "unsupported_bucket_size"


class BucketLimitExceededError(TimeFrameError):
    """Raised when a frame would emit more reference points than allowed."""

    code = "bucket_limit_exceeded"


# --- Format Table ---


@dataclass(frozen=True)
class BucketFormat:
    """Storage and display formats for one bucket size."""

    bucket_size: BucketSize
    group_by: str  # SQLite expression over the `hour` column
    key_length: int  # prefix length of a normalized key
    key_format: str  # strftime pattern producing the same key in Python
    db_format: str  # strftime pattern of the stored bucket value
    label_format: str  # strftime pattern for chart labels; %b is always English


_WEEK_GROUP_BY = "date(hour, 'start of day', '-' || ((strftime('%w', hour) + 6) % 7) || ' days')"

BUCKET_FORMATS: dict[BucketSize, BucketFormat] = {
    BucketSize.HOUR: BucketFormat(
        bucket_size=BucketSize.HOUR,
        group_by="strftime('%Y-%m-%d %H', hour)",
        key_length=13,
        key_format="%Y-%m-%d %H",
        db_format="%Y-%m-%d %H:00:00",
        label_format="%Y-%m-%dT%H:00:00Z",
    ),
    BucketSize.DAY: BucketFormat(
        bucket_size=BucketSize.DAY,
        group_by="strftime('%Y-%m-%d', hour)",
        key_length=10,
        key_format="%Y-%m-%d",
        db_format="%Y-%m-%d",
        label_format="%Y-%m-%d",
    ),
    BucketSize.WEEK: BucketFormat(
        bucket_size=BucketSize.WEEK,
        group_by=_WEEK_GROUP_BY,
        key_length=10,
        key_format="%Y-%m-%d",
        db_format="%Y-%m-%d",
        label_format="%Y-%m-%d",
    ),
    BucketSize.MONTH: BucketFormat(
        bucket_size=BucketSize.MONTH,
        group_by="strftime('%Y-%m', hour)",
        key_length=7,
        key_format="%Y-%m",
        db_format="%Y-%m-01",
        label_format="%b %Y",
    ),
    BucketSize.YEAR: BucketFormat(
        bucket_size=BucketSize.YEAR,
        group_by="strftime('%Y', hour)",
        key_length=4,
        key_format="%Y",
        db_format="%Y",
        label_format="%Y",
    ),
}


def get_bucket_format(bucket_size: BucketSize | str) -> BucketFormat:
    """
    Look up the format row for a bucket size.

    Accepts the enum or its string value.

    Raises:
        UnsupportedBucketSizeError: If the size is not one of the five
            known bucket sizes.
    """
    try:
        size = BucketSize(bucket_size)
    except ValueError:
        msg = f"Unsupported time frame bucket size: {bucket_size!r}"
        raise UnsupportedBucketSizeError(msg) from None
    return BUCKET_FORMATS[size]


_MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)  # fmt: skip


def format_bucket_label(instant: datetime, bucket_size: BucketSize | str) -> str:
    """
    Chart label for a bucket, rendered in UTC.

    Month names come from a fixed English table so labels do not change
    with the process locale.
    """
    fmt = get_bucket_format(bucket_size).label_format
    if instant.tzinfo is not None:
        instant = instant.astimezone(UTC)
    pattern = fmt.replace("%b", _MONTH_ABBREVIATIONS[instant.month - 1])
    return instant.strftime(pattern)


def group_by_expression(bucket_size: BucketSize | str) -> str:
    """SQLite GROUP BY expression for a bucket size."""
    return get_bucket_format(bucket_size).group_by


def normalize_bucket_key(value: str, bucket_size: BucketSize | str) -> str:
    """
    Normalize a bucket key to the canonical prefix for its bucket size.

    Storage may emit extra precision (e.g. "2024-07-01 14:00:00" for an
    hour bucket); the prefix is what identifies the bucket. Values shorter
    than the prefix are returned unchanged.
    """
    length = get_bucket_format(bucket_size).key_length
    if len(value) >= length:
        return value[:length]
    return value


def bucket_key_for(instant: datetime, bucket_size: BucketSize | str) -> str:
    """
    Key the SQL grouping expression would produce for a UTC timestamp.

    Naive datetimes are treated as UTC, matching how the hourly aggregate
    column is stored.
    """
    fmt = get_bucket_format(bucket_size)
    if instant.tzinfo is None:
        ts = instant.replace(tzinfo=UTC)
    else:
        ts = instant.astimezone(UTC)

    if fmt.bucket_size == BucketSize.WEEK:
        # ISO week start, (weekday + 6) % 7 with 0=Sunday
        ts = ts - timedelta(days=ts.weekday())
    return ts.strftime(fmt.key_format)


# --- Bucket Size Selection ---

YEAR_MIN_DAYS = 5 * 365
MONTH_MIN_DAYS = 3 * 30
DAY_MIN_DAYS = 2


@dataclass(frozen=True)
class BucketThresholds:
    """Minimum span, in days, for each coarse bucket size."""

    year_min_days: float = YEAR_MIN_DAYS
    month_min_days: float = MONTH_MIN_DAYS
    day_min_days: float = DAY_MIN_DAYS


DEFAULT_THRESHOLDS = BucketThresholds()


def select_bucket_size(
    from_utc: datetime,
    to_utc: datetime,
    thresholds: BucketThresholds = DEFAULT_THRESHOLDS,
) -> BucketSize:
    """
    Pick the bucket size for a UTC span.

    First match wins: >= 5 years -> year, >= 3 months -> month,
    >= 2 days -> day, otherwise hour.
    """
    days = (to_utc - from_utc).total_seconds() / 86400

    if days >= thresholds.year_min_days:
        return BucketSize.YEAR
    if days >= thresholds.month_min_days:
        return BucketSize.MONTH
    if days >= thresholds.day_min_days:
        return BucketSize.DAY
    return BucketSize.HOUR


# --- Calendar Helpers ---


def add_months(day: date, months: int) -> date:
    """Add calendar months to a date that falls on the 1st of a month."""
    index = day.year * 12 + (day.month - 1) + months
    return day.replace(year=index // 12, month=index % 12 + 1)


def bucket_start_date(day: date, bucket_size: BucketSize) -> date:
    """First calendar date of the bucket containing `day`."""
    if bucket_size == BucketSize.WEEK:
        return day - timedelta(days=day.weekday())
    if bucket_size == BucketSize.MONTH:
        return day.replace(day=1)
    if bucket_size == BucketSize.YEAR:
        return day.replace(month=1, day=1)
    return day


def next_bucket_date(day: date, bucket_size: BucketSize) -> date:
    """Start date of the bucket following the one starting at `day`."""
    if bucket_size == BucketSize.DAY:
        return day + timedelta(days=1)
    if bucket_size == BucketSize.WEEK:
        return day + timedelta(days=7)
    if bucket_size == BucketSize.MONTH:
        return add_months(day, 1)
    if bucket_size == BucketSize.YEAR:
        return day.replace(year=day.year + 1)
    msg = f"Bucket size has no calendar step: {bucket_size!r}"
    raise UnsupportedBucketSizeError(msg)


def _local_midnight(day: date, tz: ZoneInfo) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=tz)


# --- Truncation ---


def truncate_to_bucket_in_timezone(
    instant: datetime,
    bucket_size: BucketSize,
    tz: ZoneInfo,
) -> datetime:
    """
    Truncate an instant to the start of its bucket in the given timezone.

    The returned datetime carries `tz`. Truncating in UTC instead would put
    the boundary on the wrong local day for timezones whose midnight is not
    UTC midnight.
    """
    local = instant.astimezone(tz)

    if bucket_size == BucketSize.HOUR:
        return local.replace(minute=0, second=0, microsecond=0)
    if bucket_size in (BucketSize.DAY, BucketSize.WEEK, BucketSize.MONTH, BucketSize.YEAR):
        return _local_midnight(bucket_start_date(local.date(), bucket_size), tz)

    msg = f"Unsupported time frame bucket size: {bucket_size!r}"
    raise UnsupportedBucketSizeError(msg)


def bucket_end_in_timezone(
    instant: datetime,
    bucket_size: BucketSize,
    tz: ZoneInfo,
) -> datetime:
    """
    Last second of the local bucket containing `instant`, in UTC.

    Truncates in `tz`, advances one bucket unit, then steps back one second.
    """
    start = truncate_to_bucket_in_timezone(instant, bucket_size, tz)

    if bucket_size == BucketSize.HOUR:
        # Absolute hour; wall-clock arithmetic would be off across DST
        next_start = start.astimezone(UTC) + timedelta(hours=1)
    else:
        next_start = _local_midnight(next_bucket_date(start.date(), bucket_size), tz)

    return next_start.astimezone(UTC) - timedelta(seconds=1)
