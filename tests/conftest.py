from datetime import UTC, datetime
from pathlib import Path

import pytest

from bucketline.adapters.clock import FrozenClock
from bucketline.components.timeframe import TimeFrameParser


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen on Monday 2024-07-15 14:30 UTC."""
    return FrozenClock(datetime(2024, 7, 15, 14, 30, tzinfo=UTC))


@pytest.fixture
def parser(clock: FrozenClock) -> TimeFrameParser:
    """Parser reading the frozen clock with default config."""
    return TimeFrameParser(time_port=clock)
