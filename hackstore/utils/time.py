"""
Clock abstractions for time-dependent decoding.

Some date fields fall back to "now" when the stored text cannot be parsed.
Rather than calling datetime.now() inside the codecs, they ask a clock object,
so tests can freeze time and assert on the exact fallback value.
"""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """
    Abstract time source protocol.

    **Conceptual**: A Clock is any object that can answer "what time is it
    right now?". Codecs with a "now" fallback accept one through their
    constructor instead of reading the system clock themselves.

    **Usage**: pass a RealClock in production and a FrozenClock in tests.

    **Example**:
        codec = DateTimeCodec(DateTimeFallback.NOW, clock=FrozenClock(fixed))
        codec.decode("garbage") == fixed  # True
    """

    def now(self) -> datetime:
        """
        Return the current time according to this clock.

        Returns:
            datetime object representing "now" (timezone-aware, UTC).
        """
        ...


class RealClock:
    """
    Clock that returns the actual current system time (UTC).
    """

    def now(self) -> datetime:
        # Use timezone.utc to ensure timezone-aware datetime
        return datetime.now(timezone.utc)


class FrozenClock:
    """
    Clock that always returns a fixed timestamp.

    **Conceptual**: Use this in tests to make "now" fallbacks deterministic.
    A record decoded twice with a FrozenClock yields identical values, which
    keeps equality assertions on decoded records stable.

    **Usage**:
        clock = FrozenClock(datetime(2025, 11, 16, tzinfo=timezone.utc))
        clock.now()  # Always 2025-11-16T00:00:00+00:00
    """

    def __init__(self, fixed_now: datetime):
        """
        Initialize a FrozenClock with a fixed timestamp.

        Args:
            fixed_now: The datetime to return on every call to now().
                       Should be timezone-aware (UTC recommended).
        """
        self._fixed_now = fixed_now

    def now(self) -> datetime:
        return self._fixed_now


def get_real_clock() -> Clock:
    """Factory function returning a RealClock instance."""
    return RealClock()
