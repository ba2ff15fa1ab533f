"""
Timeframe component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ._buckets import BucketSize
from ._impl import BucketPoint, SeriesPoint, TimeFrame

# --- Validation Error ---


@dataclass(frozen=True)
class TimeFrameValidationError:
    """Timeframe validation error."""

    code: str
    message: str
    field_name: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class ParseTimeFrameInput:
    """Input for resolving a date-range request into a time frame."""

    from_date: str = ""
    to_date: str = ""
    tz: str = ""
    first_event_at: datetime | None = None
    range_label: str | None = None


@dataclass(frozen=True)
class QueryReferencePointsInput:
    """Input for listing the bucket axis of a date-range request."""

    from_date: str = ""
    to_date: str = ""
    tz: str = ""
    first_event_at: datetime | None = None
    range_label: str | None = None


@dataclass(frozen=True)
class QueryTimeseriesInput:
    """Input for a zero-filled time series of one website."""

    website_id: int
    from_date: str = ""
    to_date: str = ""
    tz: str = ""
    first_event_at: datetime | None = None
    range_label: str | None = None


# --- Output Models ---


@dataclass(frozen=True)
class TimeFrameOutput:
    """Output for a parsed time frame."""

    time_frame: TimeFrame | None
    errors: list[TimeFrameValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ReferencePointsOutput:
    """Output for the bucket axis of a time frame."""

    points: tuple[BucketPoint, ...]
    labels: tuple[str, ...] = ()
    bucket_size: BucketSize | None = None
    group_by: str | None = None
    errors: list[TimeFrameValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class TimeseriesOutput:
    """Output for a reconciled time series."""

    points: tuple[SeriesPoint, ...]
    bucket_size: BucketSize | None = None
    trend: float = 0.0
    time_frame: TimeFrame | None = None
    errors: list[TimeFrameValidationError] = field(default_factory=list)
    success: bool = True
