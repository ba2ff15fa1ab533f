"""
Timeframe component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ._impl import RawRow, TimeFrame


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...


class AggregateRepoPort(Protocol):
    """Read side of the hourly aggregate tables."""

    def count_by_bucket(
        self,
        website_id: int,
        time_frame: TimeFrame,
        group_by: str,
    ) -> list[RawRow]:
        """
        Count rows per bucket for a website inside a time frame.

        `group_by` is the grouping expression for the frame's bucket size;
        the returned dates are whatever that expression emits.
        """
        ...


class RulesPort(Protocol):
    """Port for timeframe rules configuration."""

    def get_default_timezone(self) -> str:
        """Timezone used when the request names none."""
        ...

    def get_time_window_buffer_seconds(self) -> int:
        """Tolerance added to now for ongoing ranges."""
        ...

    def get_default_lookback_days(self) -> int:
        """Days covered when no from date is given."""
        ...

    def get_all_time_fallback_years(self) -> int:
        """Years covered by the all-time range when no first event is known."""
        ...

    def get_max_reference_points(self) -> int:
        """Upper bound on buckets per frame."""
        ...

    def get_bucket_thresholds(self) -> dict[str, float]:
        """Minimum span in days per bucket size (year/month/day)."""
        ...
