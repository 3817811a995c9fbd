# secureauth/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current timezone-aware UTC time."""
    return datetime.now(UTC)


def to_epoch(dt: datetime) -> int:
    """
    Convert a datetime to integer Unix seconds.

    Naive values are labelled as UTC (no conversion), matching how the stores
    persist timestamps.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def from_epoch(ts: int) -> datetime:
    """Inverse of :func:`to_epoch`."""
    return datetime.fromtimestamp(int(ts), tz=UTC)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Own the clock so time-dependent rules are testable.
    * Keep services thin, orchestration-only, no web/ORM leakage.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param clock: Callable returning an aware UTC datetime.
        """
        self._clock = clock or utc_now

    def now_utc(self) -> datetime:
        """Return "now" according to the injected clock."""
        return self._clock()
