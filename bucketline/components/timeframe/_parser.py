"""
TimeFrameParser - user input to a validated TimeFrame.

Turns (from date, to date, timezone, optional first event) into a UTC
window with a bucket size. The only clock read goes through the injected
TimePort, so a frozen clock makes every result deterministic.

Key behaviors:
- from is anchored to local midnight of its date
- to = today is clamped to min(now + buffer, end of today)
- to in the future is clamped the same way as to = today
- to in the past is the end of that local day
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ._buckets import (
    DEFAULT_THRESHOLDS,
    BucketThresholds,
    InvalidDateFormatError,
    InvalidRangeError,
    InvalidTimezoneError,
)
from ._impl import MAX_REFERENCE_POINTS, RangeLabel, TimeFrame
from .ports import RulesPort, TimePort

logger = logging.getLogger(__name__)

# Absorbs clock skew between servers and late-recorded events
TIME_WINDOW_BUFFER = timedelta(minutes=5)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_END_OF_DAY = time(23, 59, 59, 999999)


# --- Configuration ---


@dataclass(frozen=True)
class ParserConfig:
    """Parser configuration."""

    default_timezone: str = "UTC"
    time_window_buffer: timedelta = TIME_WINDOW_BUFFER
    default_lookback_days: int = 30
    all_time_fallback_years: int = 5
    max_reference_points: int = MAX_REFERENCE_POINTS
    thresholds: BucketThresholds = field(default=DEFAULT_THRESHOLDS)

    @classmethod
    def from_rules(cls, rules: RulesPort) -> ParserConfig:
        """Build parser config from a rules port."""
        thresholds = rules.get_bucket_thresholds()
        return cls(
            default_timezone=rules.get_default_timezone(),
            time_window_buffer=timedelta(seconds=rules.get_time_window_buffer_seconds()),
            default_lookback_days=rules.get_default_lookback_days(),
            all_time_fallback_years=rules.get_all_time_fallback_years(),
            max_reference_points=rules.get_max_reference_points(),
            thresholds=BucketThresholds(
                year_min_days=thresholds.get("year_min_days", DEFAULT_THRESHOLDS.year_min_days),
                month_min_days=thresholds.get("month_min_days", DEFAULT_THRESHOLDS.month_min_days),
                day_min_days=thresholds.get("day_min_days", DEFAULT_THRESHOLDS.day_min_days),
            ),
        )


DEFAULT_CONFIG = ParserConfig()


# --- Input Model ---


@dataclass(frozen=True)
class TimeFrameParams:
    """Raw request parameters."""

    from_date: str = ""
    to_date: str = ""
    tz: str = "UTC"
    first_event_at: datetime | None = None
    label: RangeLabel = RangeLabel.CUSTOM


# --- Helpers ---


def load_timezone(name: str) -> ZoneInfo:
    """
    Resolve an IANA timezone name.

    Raises:
        InvalidTimezoneError: If the name is not in the timezone database.
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        msg = f"error loading timezone {name!r}: {e}"
        raise InvalidTimezoneError(msg, field_name="tz") from e


def parse_date(value: str, field_name: str) -> date:
    """
    Parse a strict YYYY-MM-DD calendar date.

    Raises:
        InvalidDateFormatError: If value is not a valid YYYY-MM-DD date.
    """
    if not _DATE_PATTERN.match(value):
        msg = f"invalid '{field_name}' date {value!r}: expected YYYY-MM-DD"
        raise InvalidDateFormatError(msg, field_name=field_name)
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        msg = f"invalid '{field_name}' date {value!r}: {e}"
        raise InvalidDateFormatError(msg, field_name=field_name) from e


def local_midnight(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_local_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, _END_OF_DAY, tzinfo=tz)


# --- Parser ---


class TimeFrameParser:
    """
    Parses date-range requests into TimeFrames.

    The system clock is used only when no TimePort is injected.
    """

    def __init__(
        self,
        time_port: TimePort | None = None,
        config: ParserConfig | None = None,
    ) -> None:
        if time_port is None:
            from bucketline.adapters.clock import SystemClock

            time_port = SystemClock()
        self._time_port = time_port
        self._config = config or DEFAULT_CONFIG

    @property
    def config(self) -> ParserConfig:
        return self._config

    @property
    def time_port(self) -> TimePort:
        return self._time_port

    def now(self, tz: ZoneInfo) -> datetime:
        """Current time from the injected clock, in `tz`."""
        return self._time_port.now_utc().astimezone(tz)

    def parse(self, params: TimeFrameParams) -> TimeFrame:
        """
        Resolve request parameters into a TimeFrame.

        Raises:
            InvalidTimezoneError: Unknown timezone name.
            InvalidDateFormatError: A date is not YYYY-MM-DD.
            InvalidRangeError: from resolves after to.
        """
        tz = load_timezone(params.tz or self._config.default_timezone)
        now = self.now(tz)

        from_time = self._resolve_from(params, now, tz)
        to_time = self._resolve_to(params.to_date, now, tz)

        if from_time.astimezone(UTC) > to_time.astimezone(UTC):
            logger.warning(
                "Rejected range: from=%s resolves after to=%s (tz=%s)",
                params.from_date,
                params.to_date,
                tz.key,
            )
            msg = f"'from' date {params.from_date!r} is after 'to' date {params.to_date!r}"
            raise InvalidRangeError(msg)

        frame = TimeFrame.from_client_timezone(
            from_time,
            to_time,
            tz,
            thresholds=self._config.thresholds,
            label=params.label,
        )

        logger.debug(
            "Parsed time frame: from=%s to=%s bucket=%s tz=%s",
            frame.from_utc.isoformat(),
            frame.to_utc.isoformat(),
            frame.bucket_size.value,
            tz.key,
        )
        return frame

    def _resolve_from(self, params: TimeFrameParams, now: datetime, tz: ZoneInfo) -> datetime:
        if params.from_date:
            day = parse_date(params.from_date, "from")
        elif params.first_event_at is not None:
            first = params.first_event_at
            if first.tzinfo is None:
                first = first.replace(tzinfo=UTC)
            day = first.astimezone(tz).date()
        else:
            day = now.date() - timedelta(days=self._config.default_lookback_days)
        return local_midnight(day, tz)

    def _resolve_to(self, to_date: str, now: datetime, tz: ZoneInfo) -> datetime:
        if not to_date:
            return now

        day = parse_date(to_date, "to")
        end_of_day = end_of_local_day(day, tz).astimezone(UTC)
        now_utc = now.astimezone(UTC)

        if day >= now.date():
            # Ongoing or future day: stop at now + buffer, never past the end of today
            end_of_today = end_of_local_day(now.date(), tz).astimezone(UTC)
            buffered = now_utc + self._config.time_window_buffer
            return min(buffered, end_of_today)

        return end_of_day


def parse_time_frame(
    from_date: str = "",
    to_date: str = "",
    tz: str = "UTC",
    first_event_at: datetime | None = None,
    time_port: TimePort | None = None,
    config: ParserConfig | None = None,
) -> TimeFrame:
    """Parse a date-range request with a one-off parser."""
    parser = TimeFrameParser(time_port=time_port, config=config)
    return parser.parse(
        TimeFrameParams(
            from_date=from_date,
            to_date=to_date,
            tz=tz,
            first_event_at=first_event_at,
        )
    )
