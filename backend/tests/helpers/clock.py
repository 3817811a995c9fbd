"""Deterministic clock for time-dependent tests."""

from __future__ import annotations

from datetime import datetime, timedelta


class FakeClock:
    """Callable clock returning a fixed instant until advanced.

    Parameters
    ----------
    start: datetime
        Timezone-aware instant returned initially.
    """

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        """Move the clock forward and return the new instant."""
        self.now = self.now + timedelta(seconds=seconds)
        return self.now
