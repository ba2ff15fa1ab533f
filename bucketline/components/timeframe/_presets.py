"""
Range presets - named ranges resolved to explicit from/to dates.

Every preset resolves to a pair of YYYY-MM-DD strings in the viewer's
timezone, so presets and custom ranges go through the same parser.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from ._impl import RangeLabel, TimeFrame
from ._parser import DEFAULT_CONFIG, ParserConfig, TimeFrameParams, TimeFrameParser, load_timezone
from .ports import TimePort

logger = logging.getLogger(__name__)

FALLBACK_LABEL = RangeLabel.LAST_7_DAYS


@dataclass(frozen=True)
class DateRange:
    """Explicit from/to calendar dates (YYYY-MM-DD)."""

    from_date: str
    to_date: str


def _years_back(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return day.replace(year=day.year - years, day=28)


def _coerce_label(label: RangeLabel | str) -> RangeLabel:
    try:
        resolved = RangeLabel(label)
    except ValueError:
        logger.info("Unknown range label %r, using %s", label, FALLBACK_LABEL.value)
        return FALLBACK_LABEL
    if resolved == RangeLabel.CUSTOM:
        return FALLBACK_LABEL
    return resolved


def _preset_dates(
    label: RangeLabel,
    today: date,
    first_event_day: date | None,
    config: ParserConfig,
) -> tuple[date, date]:
    if label == RangeLabel.TODAY:
        return today, today
    if label == RangeLabel.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if label == RangeLabel.LAST_7_DAYS:
        return today - timedelta(days=7), today
    if label == RangeLabel.LAST_30_DAYS:
        return today - timedelta(days=30), today
    if label == RangeLabel.LAST_90_DAYS:
        return today - timedelta(days=90), today
    if label == RangeLabel.MONTH_TO_DATE:
        return today.replace(day=1), today
    if label == RangeLabel.LAST_MONTH:
        last_day = today.replace(day=1) - timedelta(days=1)
        return last_day.replace(day=1), last_day
    if label == RangeLabel.YEAR_TO_DATE:
        return today.replace(month=1, day=1), today
    if label == RangeLabel.LAST_12_MONTHS:
        return _years_back(today, 1), today
    if label == RangeLabel.ALL_TIME:
        if first_event_day is not None and first_event_day <= today:
            return first_event_day, today
        return _years_back(today, config.all_time_fallback_years), today

    return _preset_dates(FALLBACK_LABEL, today, first_event_day, config)


def resolve_range(
    label: RangeLabel | str,
    tz: str,
    time_port: TimePort,
    first_event_at: datetime | None = None,
    config: ParserConfig = DEFAULT_CONFIG,
) -> DateRange:
    """
    Resolve a named range to explicit dates in the viewer's timezone.

    Unknown labels (and `custom`, which has no dates of its own) fall back
    to the last 7 days.

    Raises:
        InvalidTimezoneError: If tz does not resolve.
    """
    zone = load_timezone(tz or config.default_timezone)
    today = time_port.now_utc().astimezone(zone).date()

    first_event_day = None
    if first_event_at is not None:
        if first_event_at.tzinfo is None:
            first_event_at = first_event_at.replace(tzinfo=UTC)
        first_event_day = first_event_at.astimezone(zone).date()

    start, end = _preset_dates(_coerce_label(label), today, first_event_day, config)
    return DateRange(from_date=start.isoformat(), to_date=end.isoformat())


def identify_range(
    date_range: DateRange,
    tz: str,
    time_port: TimePort,
    first_event_at: datetime | None = None,
    config: ParserConfig = DEFAULT_CONFIG,
) -> RangeLabel | None:
    """Return the preset whose dates match `date_range` today, if any."""
    for label in RangeLabel:
        if label == RangeLabel.CUSTOM:
            continue
        if resolve_range(label, tz, time_port, first_event_at, config) == date_range:
            return label
    return None


def parse_range(
    label: RangeLabel | str,
    tz: str,
    parser: TimeFrameParser,
    first_event_at: datetime | None = None,
) -> TimeFrame:
    """Resolve a named range and parse it, tagging the frame with the label."""
    resolved = _coerce_label(label)
    date_range = resolve_range(
        resolved,
        tz,
        parser.time_port,
        first_event_at=first_event_at,
        config=parser.config,
    )
    return parser.parse(
        TimeFrameParams(
            from_date=date_range.from_date,
            to_date=date_range.to_date,
            tz=tz,
            first_event_at=first_event_at,
            label=resolved,
        )
    )
