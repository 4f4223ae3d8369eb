"""Time providers used by the scheduling core."""

from datetime import UTC, date, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Return the current aware UTC datetime."""
        ...

    def today(self) -> date:
        """Return the current calendar date."""
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a given instant, for deterministic tests."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def today(self) -> date:
        return self.instant.date()

    def set(self, instant: datetime) -> None:
        """Move the clock to a new instant."""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self.instant = instant


system_clock = SystemClock()
