"""
Timeframe component - date-range parsing and time-series construction.

Turns a date-range request into a bucketed UTC window and merges grouped
aggregate counts onto its complete bucket axis.

Key behaviors:
- Every frame handed out has From <= To
- Series length always equals the reference point count
- Storage keys and reference keys share one normalization routine
"""

from __future__ import annotations

import logging

from ._buckets import TimeFrameError
from ._impl import TimeFrame
from ._parser import ParserConfig, TimeFrameParams, TimeFrameParser
from ._presets import parse_range
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

logger = logging.getLogger(__name__)

RequestInput = ParseTimeFrameInput | QueryReferencePointsInput | QueryTimeseriesInput


def _build_config(rules: RulesPort | None) -> ParserConfig:
    """Build parser config from rules port."""
    if rules is None:
        return ParserConfig()
    return ParserConfig.from_rules(rules)


def _convert_error(error: TimeFrameError) -> TimeFrameValidationError:
    """Convert an engine exception to a component error."""
    return TimeFrameValidationError(
        code=error.code,
        message=error.message,
        field_name=error.field_name,
    )


def _parse(inp: RequestInput, parser: TimeFrameParser) -> TimeFrame:
    if inp.range_label:
        return parse_range(
            inp.range_label,
            inp.tz,
            parser,
            first_event_at=inp.first_event_at,
        )
    return parser.parse(
        TimeFrameParams(
            from_date=inp.from_date,
            to_date=inp.to_date,
            tz=inp.tz,
            first_event_at=inp.first_event_at,
        )
    )


# --- Component Entry Points ---


def run_parse(
    inp: ParseTimeFrameInput,
    *,
    time_port: TimePort | None = None,
    rules: RulesPort | None = None,
) -> TimeFrameOutput:
    """
    Resolve a date-range request into a time frame.

    Args:
        inp: Input containing dates, timezone and optional range label.
        time_port: Optional time port (system clock when omitted).
        rules: Optional rules port for configuration.

    Returns:
        TimeFrameOutput with the frame or validation errors.
    """
    parser = TimeFrameParser(time_port=time_port, config=_build_config(rules))

    try:
        frame = _parse(inp, parser)
    except TimeFrameError as e:
        logger.warning("Time frame rejected: %s", e)
        return TimeFrameOutput(time_frame=None, errors=[_convert_error(e)], success=False)

    return TimeFrameOutput(time_frame=frame)


def run_reference_points(
    inp: QueryReferencePointsInput,
    *,
    time_port: TimePort | None = None,
    rules: RulesPort | None = None,
) -> ReferencePointsOutput:
    """
    List the bucket axis for a date-range request.

    Args:
        inp: Input containing dates, timezone and optional range label.
        time_port: Optional time port.
        rules: Optional rules port for configuration.

    Returns:
        ReferencePointsOutput with points, chart labels and the grouping
        expression the query layer should use.
    """
    config = _build_config(rules)
    parser = TimeFrameParser(time_port=time_port, config=config)

    try:
        frame = _parse(inp, parser)
        points = frame.generate_reference_points(config.max_reference_points)
    except TimeFrameError as e:
        logger.warning("Reference points rejected: %s", e)
        return ReferencePointsOutput(points=(), errors=[_convert_error(e)], success=False)

    return ReferencePointsOutput(
        points=tuple(points),
        labels=tuple(frame.label_points(points)),
        bucket_size=frame.bucket_size,
        group_by=frame.group_by_expression(),
    )


def run_query_timeseries(
    inp: QueryTimeseriesInput,
    *,
    repo: AggregateRepoPort,
    time_port: TimePort | None = None,
    rules: RulesPort | None = None,
) -> TimeseriesOutput:
    """
    Build the zero-filled time series for one website.

    Args:
        inp: Input containing website, dates, timezone and optional label.
        repo: Aggregate repository port.
        time_port: Optional time port.
        rules: Optional rules port for configuration.

    Returns:
        TimeseriesOutput with one point per bucket and the count trend.
    """
    config = _build_config(rules)
    parser = TimeFrameParser(time_port=time_port, config=config)

    try:
        frame = _parse(inp, parser)
        rows = repo.count_by_bucket(inp.website_id, frame, frame.group_by_expression())
        series = frame.build_time_series(rows, config.max_reference_points)
    except TimeFrameError as e:
        logger.warning("Time series rejected for website %s: %s", inp.website_id, e)
        return TimeseriesOutput(points=(), errors=[_convert_error(e)], success=False)

    return TimeseriesOutput(
        points=tuple(series),
        bucket_size=frame.bucket_size,
        trend=TimeFrame.trend(series),
        time_frame=frame,
    )


def run(
    inp: RequestInput,
    *,
    repo: AggregateRepoPort | None = None,
    time_port: TimePort | None = None,
    rules: RulesPort | None = None,
) -> TimeFrameOutput | ReferencePointsOutput | TimeseriesOutput:
    """
    Main entry point for the timeframe component.

    Dispatches to appropriate handler based on input type.

    Args:
        inp: Input object determining the operation.
        repo: Aggregate repository port (required for time series).
        time_port: Optional time port.
        rules: Optional rules port for configuration.

    Returns:
        Appropriate output object based on input type.
    """
    if isinstance(inp, ParseTimeFrameInput):
        return run_parse(inp, time_port=time_port, rules=rules)
    elif isinstance(inp, QueryReferencePointsInput):
        return run_reference_points(inp, time_port=time_port, rules=rules)
    elif isinstance(inp, QueryTimeseriesInput):
        if repo is None:
            raise ValueError("AggregateRepoPort is required for time series queries")
        return run_query_timeseries(inp, repo=repo, time_port=time_port, rules=rules)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
