import os

os.environ["TESTING"] = "1"

from datetime import datetime, timedelta, timezone

import pytest

from pulse.store import GaugeStore

# 14:00 UTC falls in the zero-offset temporal bucket.
FIXED_NOW = datetime(2024, 6, 3, 14, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock injected into stores and analyzers."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> GaugeStore:
    return GaugeStore(clock=clock)
