"""Temporal view types whose constructors consult the time traveler.

Three shapes of "the current time" are provided:

- :class:`Timestamp`: an absolute, timezone-aware instant.
- :class:`CalendarDate`: a calendar date.
- :class:`DateTime`: a combined date and time carrying a *fixed* UTC
  offset rather than a named zone.

Each type implements the :class:`FromInstant` capability: a classmethod
that builds an instance of the *receiving* class from an aware instant.
The traveler depends only on that capability, so subclasses of any of
the three types get travelled readings of their own class without
being registered anywhere::

    class AuditStamp(Timestamp):
        pass

    AuditStamp.now()  # -> AuditStamp, honouring any active override

Views are computed on every call and never cached.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timezone, tzinfo
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timewarp._errors import InvalidTravelArgumentError, UnknownTimeZoneError

if TYPE_CHECKING:
    from timewarp._traveler import TimeTraveler

ZoneLike = tzinfo | str | None

_DB_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_zone(tz: ZoneLike) -> tzinfo | None:
    """Turn a zone argument into a :class:`~datetime.tzinfo`.

    ``None`` and ``tzinfo`` instances pass through; strings are looked
    up as IANA names via :mod:`zoneinfo`.

    Raises:
        UnknownTimeZoneError: *tz* is a name zoneinfo cannot resolve.
        InvalidTravelArgumentError: *tz* is neither of the above.
    """
    if tz is None or isinstance(tz, tzinfo):
        return tz
    if isinstance(tz, str):
        try:
            return ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise UnknownTimeZoneError(tz) from exc
    raise InvalidTravelArgumentError(
        f"Expected a tzinfo or zone name, got {type(tz).__name__}"
    )


def _active(traveler: TimeTraveler | None) -> TimeTraveler:
    if traveler is not None:
        return traveler
    # Deferred: _traveler imports this module.
    from timewarp._traveler import get_traveler

    return get_traveler()


@runtime_checkable
class FromInstant(Protocol):
    """Capability of building an instance from an aware instant."""

    @classmethod
    def from_instant(cls, instant: datetime, tz: tzinfo | None = None) -> Self:
        """Project *instant* into *tz* (local zone when ``None``)."""
        ...


class _Moment(datetime):
    """Shared behaviour of the two datetime-shaped views.

    Aware values compare and hash by the instant they denote.  Plain
    :class:`~datetime.datetime` treats any inter-zone comparison that
    touches a repeated (fold) hour as unequal, which would split a
    :class:`Timestamp` in a named zone from the fixed-offset
    :class:`DateTime` for the same instant.
    """

    def __eq__(self, other: object) -> bool:
        if isinstance(other, datetime) and _aware(self) and _aware(other):
            return datetime.__eq__(self.astimezone(UTC), other.astimezone(UTC))
        return super().__eq__(other)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        if _aware(self):
            return datetime.__hash__(self.astimezone(UTC))
        return super().__hash__()

    @classmethod
    def _rebuild(cls, value: datetime) -> Self:
        # datetime.replace/astimezone do not reliably keep the subclass.
        return cls(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond,
            tzinfo=value.tzinfo,
            fold=value.fold,
        )

    @classmethod
    def now(  # type: ignore[override]
        cls,
        tz: ZoneLike = None,
        *,
        traveler: TimeTraveler | None = None,
    ) -> Self:
        """Current reading as an instance of ``cls``.

        Args:
            tz: Zone to express the reading in.  Defaults to the
                traveler's zone, then the system local zone.
            traveler: Explicit traveler; defaults to the ambient one
                (see :func:`timewarp.get_traveler`).
        """
        return _active(traveler).current(cls, tz)

    @classmethod
    def today(  # type: ignore[override]
        cls,
        *,
        traveler: TimeTraveler | None = None,
    ) -> Self:
        return cls.now(traveler=traveler)

    @classmethod
    def utcnow(  # type: ignore[override]
        cls,
        *,
        traveler: TimeTraveler | None = None,
    ) -> Self:
        return cls.now(UTC, traveler=traveler)

    def to_date(self) -> CalendarDate:
        return CalendarDate(self.year, self.month, self.day)

    def to_db(self) -> str:
        """Format as ``YYYY-MM-DD HH:MM:SS`` in UTC."""
        return self.astimezone(UTC).strftime(_DB_FORMAT)


class Timestamp(_Moment):
    """Absolute point in time, always timezone-aware when read."""

    @classmethod
    def from_instant(cls, instant: datetime, tz: tzinfo | None = None) -> Self:
        return cls._rebuild(instant.astimezone(tz))

    def to_datetime(self) -> DateTime:
        """Same instant as a fixed-offset :class:`DateTime`."""
        aware = self if self.utcoffset() is not None else self.astimezone()
        return DateTime._rebuild(_with_fixed_offset(aware))


class DateTime(_Moment):
    """Combined date and time with a fixed UTC offset.

    Unlike :class:`Timestamp`, which keeps the named zone it was read
    in, a DateTime only remembers the offset in effect at that instant.
    """

    @classmethod
    def from_instant(cls, instant: datetime, tz: tzinfo | None = None) -> Self:
        return cls._rebuild(_with_fixed_offset(instant.astimezone(tz)))

    def to_timestamp(self, tz: ZoneLike = None) -> Timestamp:
        """Same instant as a :class:`Timestamp`.

        Args:
            tz: Zone for the result; keeps this value's offset when
                ``None``.
        """
        zone = resolve_zone(tz) or self.tzinfo
        return Timestamp.from_instant(self, zone)


class CalendarDate(date):
    """Calendar date whose ``today()`` honours time travel."""

    @classmethod
    def from_instant(cls, instant: datetime, tz: tzinfo | None = None) -> Self:
        local = instant.astimezone(tz)
        return cls(local.year, local.month, local.day)

    @classmethod
    def today(  # type: ignore[override]
        cls,
        tz: ZoneLike = None,
        *,
        traveler: TimeTraveler | None = None,
    ) -> Self:
        """Current date in *tz* as an instance of ``cls``."""
        return _active(traveler).current(cls, tz)

    def to_date(self) -> Self:
        return self


def _aware(value: datetime) -> bool:
    return value.utcoffset() is not None


def _with_fixed_offset(value: datetime) -> datetime:
    offset = value.utcoffset()
    if offset is None:
        return value
    return value.replace(tzinfo=timezone(offset))
