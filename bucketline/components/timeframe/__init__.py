"""
Timeframe component - date-range parsing, bucketing and time-series reconciliation.
"""

from ._buckets import (
    BUCKET_FORMATS,
    DEFAULT_THRESHOLDS,
    BucketFormat,
    BucketLimitExceededError,
    BucketSize,
    BucketThresholds,
    InvalidDateFormatError,
    InvalidRangeError,
    InvalidTimezoneError,
    TimeFrameError,
    UnsupportedBucketSizeError,
    add_months,
    bucket_end_in_timezone,
    bucket_key_for,
    bucket_start_date,
    format_bucket_label,
    get_bucket_format,
    group_by_expression,
    next_bucket_date,
    normalize_bucket_key,
    select_bucket_size,
    truncate_to_bucket_in_timezone,
)
from ._impl import (
    MAX_REFERENCE_POINTS,
    BucketPoint,
    RangeLabel,
    RawRow,
    SeriesPoint,
    TimeFrame,
)
from ._parser import (
    DEFAULT_CONFIG,
    TIME_WINDOW_BUFFER,
    ParserConfig,
    TimeFrameParams,
    TimeFrameParser,
    load_timezone,
    parse_date,
    parse_time_frame,
)
from ._presets import DateRange, identify_range, parse_range, resolve_range
from .component import (
    run,
    run_parse,
    run_query_timeseries,
    run_reference_points,
)
from .models import (
    ParseTimeFrameInput,
    QueryReferencePointsInput,
    QueryTimeseriesInput,
    ReferencePointsOutput,
    TimeFrameOutput,
    TimeFrameValidationError,
    TimeseriesOutput,
)
from .ports import AggregateRepoPort, RulesPort, TimePort

__all__ = [
    # Entry points
    "run",
    "run_parse",
    "run_query_timeseries",
    "run_reference_points",
    # Input models
    "ParseTimeFrameInput",
    "QueryReferencePointsInput",
    "QueryTimeseriesInput",
    # Output models
    "ReferencePointsOutput",
    "TimeFrameOutput",
    "TimeFrameValidationError",
    "TimeseriesOutput",
    # Ports
    "AggregateRepoPort",
    "RulesPort",
    "TimePort",
    # Core types
    "BucketFormat",
    "BucketPoint",
    "BucketSize",
    "BucketThresholds",
    "DateRange",
    "ParserConfig",
    "RangeLabel",
    "RawRow",
    "SeriesPoint",
    "TimeFrame",
    "TimeFrameParams",
    "TimeFrameParser",
    # Errors
    "BucketLimitExceededError",
    "InvalidDateFormatError",
    "InvalidRangeError",
    "InvalidTimezoneError",
    "TimeFrameError",
    "UnsupportedBucketSizeError",
    # Constants
    "BUCKET_FORMATS",
    "DEFAULT_CONFIG",
    "DEFAULT_THRESHOLDS",
    "MAX_REFERENCE_POINTS",
    "TIME_WINDOW_BUFFER",
    # Functions
    "add_months",
    "bucket_end_in_timezone",
    "bucket_key_for",
    "bucket_start_date",
    "format_bucket_label",
    "get_bucket_format",
    "group_by_expression",
    "identify_range",
    "load_timezone",
    "next_bucket_date",
    "normalize_bucket_key",
    "parse_date",
    "parse_range",
    "parse_time_frame",
    "resolve_range",
    "select_bucket_size",
    "truncate_to_bucket_in_timezone",
]
