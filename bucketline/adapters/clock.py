"""
Clock adapters implementing TimePort.

Key behaviors:
- SystemClock: real UTC time
- FrozenClock: fixed UTC time for deterministic parsing and tests
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """
    Clock that returns a fixed time.

    Useful for deterministic testing.
    """

    def __init__(self, frozen_utc: datetime, tz_name: str = "UTC") -> None:
        """
        Initialize with frozen time.

        Args:
            frozen_utc: The time to return from now_utc(). Naive values are
                taken as UTC.
            tz_name: IANA timezone name for now_local()
        """
        self._frozen_utc = self._as_utc(frozen_utc)
        self._tz_name = tz_name
        self._tz = ZoneInfo(tz_name)

    @staticmethod
    def _as_utc(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def now_utc(self) -> datetime:
        """Get frozen UTC time."""
        return self._frozen_utc

    def now_local(self) -> datetime:
        """Get frozen time in the configured timezone."""
        return self._frozen_utc.astimezone(self._tz)

    def advance(self, delta: timedelta) -> None:
        """Advance frozen time by delta."""
        self._frozen_utc = self._frozen_utc + delta

    def set_now(self, value: datetime) -> None:
        """Move the clock to an absolute time."""
        self._frozen_utc = self._as_utc(value)

    @property
    def timezone_name(self) -> str:
        return self._tz_name
