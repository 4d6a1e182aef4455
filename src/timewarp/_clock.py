"""Real wall-clock port and system adapter.

Provides ClockPort (Protocol) and SystemClock, the source of *real*
time that a :class:`~timewarp.TimeTraveler` falls back to when no
override is installed, and offsets from when ``travel`` is called.

**Why aware UTC?** Every override anchor is stored as a timezone-aware
UTC instant.  Requiring the port to return aware datetimes keeps the
arithmetic unambiguous across DST transitions; views convert to the
requested zone only at read time.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class ClockPort(Protocol):
    """Source of the real current instant.

    The default implementation wraps ``datetime.now(UTC)``.  Tests
    inject a deterministic fake clock (see
    :class:`timewarp.testing.FakeClock`) so that "real now" is
    reproducible.
    """

    def now(self) -> datetime:
        """Return the current instant.

        Returns:
            A timezone-aware :class:`~datetime.datetime`.
        """
        ...


class SystemClock:
    """Production clock wrapping ``datetime.now(UTC)``.

    Satisfies :class:`ClockPort` via structural subtyping, with no
    base-class inheritance required (PEP 544).
    """

    def now(self) -> datetime:
        """Return the current UTC instant."""
        return datetime.now(UTC)
