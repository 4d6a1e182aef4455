"""Exception hierarchy for timewarp.

Error taxonomy is intentionally small:

- **Stack underflow** (``travel_back`` with nothing installed) is *not*
  an error.  It is a logged no-op so teardown code can call it
  unconditionally.
- **Body failures** raised inside a scoped ``travel`` / ``travel_to``
  propagate unchanged once the override has been popped.  timewarp
  never catches or wraps them.
- **Caller-contract violations** (a non-duration offset, a non-instant
  target, an unknown zone name) raise the classes below.  Each one
  also derives from the matching built-in exception, so callers that
  already handle ``TypeError`` / ``ValueError`` keep working.
"""

from __future__ import annotations


class TimeTravelError(Exception):
    """Base class for all timewarp errors."""


class InvalidTravelArgumentError(TimeTravelError, TypeError):
    """An argument to a travel operation has the wrong type.

    Raised for offsets that are not a :class:`~datetime.timedelta` or a
    number of seconds, targets that are not a ``date`` / ``datetime``,
    bodies that are not callable, and real clocks that return naive
    datetimes.
    """


class UnknownTimeZoneError(TimeTravelError, ValueError):
    """A time zone name could not be resolved by :mod:`zoneinfo`."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown time zone {name!r}")
        self.name = name
