"""Time-travel service: scoped and explicit overrides of "now".

:class:`TimeTraveler` owns an :class:`~timewarp._stack.OverrideStack`
and a real :class:`~timewarp._clock.ClockPort`.  Every read of the
current time (``Timestamp.now()``, ``CalendarDate.today()``,
``DateTime.now()``) asks a traveler for the effective instant: the
anchor of the innermost override when one is installed, the real clock
otherwise.

Two installation forms exist for ``travel`` and ``travel_to``:

- **Scoped**: pass a zero-argument ``body``.  The override is pushed,
  ``body`` runs, and the override is popped on every exit path before
  its return value (or its exception) reaches the caller.
- **Explicit**: omit ``body``.  The override stays installed until
  ``travel_back()``.  The returned :class:`TravelScope` can also be
  used as a context manager to bound the override to a ``with`` block.

``travel_to`` zeroes the sub-second part of its anchor, so values read
while travelling survive storage in columns without microsecond
precision.  ``travel`` keeps the real clock's sub-second fidelity.

The traveler consulted by ambient reads is resolved per context:
:func:`use_traveler` binds one for the dynamic extent of a block, and
:func:`get_traveler` falls back to a process-wide default backed by
the system clock.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Iterator
from contextvars import ContextVar
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from types import TracebackType
from typing import TYPE_CHECKING, TypeVar, overload

from timewarp._clock import ClockPort, SystemClock
from timewarp._errors import InvalidTravelArgumentError
from timewarp._stack import ClockOverride, OverrideStack
from timewarp._temporal import (
    CalendarDate,
    FromInstant,
    Timestamp,
    ZoneLike,
    resolve_zone,
)

if TYPE_CHECKING:
    from timewarp._settings import Settings

logger = logging.getLogger(__name__)

R = TypeVar("R")
V = TypeVar("V", bound=FromInstant)

Offset = timedelta | int | float
Target = datetime | date


class TravelScope:
    """Handle for one installed override.

    Returned by explicit ``travel`` / ``travel_to`` calls.  Leaving the
    ``with`` block (or calling :meth:`close`) removes this override and
    anything installed above it; doing so after the override has
    already been reverted is a no-op.
    """

    def __init__(self, traveler: TimeTraveler, override: ClockOverride) -> None:
        self._traveler = traveler
        self._override = override

    def __repr__(self) -> str:
        return (
            f"TravelScope(anchor={self._override.anchor_instant.isoformat()}, "
            f"depth={self._override.installed_at_depth})"
        )

    @property
    def override(self) -> ClockOverride:
        return self._override

    @property
    def anchor(self) -> Timestamp:
        """The pinned instant, in the traveler's zone."""
        return Timestamp.from_instant(
            self._override.anchor_instant, self._traveler.zone
        )

    @property
    def active(self) -> bool:
        return self._traveler.stack.contains(self._override)

    def close(self) -> None:
        self._traveler._release(self._override)

    def __enter__(self) -> Timestamp:
        return self.anchor

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class TimeTraveler:
    """Overridable source of the current time.

    Args:
        clock: Real clock; defaults to :class:`SystemClock`.
        stack: Override stack; a fresh context-isolated stack when
            omitted.
        zone: Default zone for views and for interpreting naive
            ``travel_to`` targets.  ``None`` means the system local
            zone.

    Example::

        traveler = TimeTraveler(zone="UTC")
        with traveler.travel_to(datetime(2004, 11, 24, 1, 4, 44)):
            assert traveler.today() == date(2004, 11, 24)
    """

    def __init__(
        self,
        *,
        clock: ClockPort | None = None,
        stack: OverrideStack | None = None,
        zone: ZoneLike = None,
    ) -> None:
        self._clock = clock if clock is not None else SystemClock()
        self._stack = stack if stack is not None else OverrideStack()
        self._zone = resolve_zone(zone)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        clock: ClockPort | None = None,
    ) -> TimeTraveler:
        """Build a traveler honouring ``settings.time_zone``."""
        return cls(clock=clock, zone=settings.time_zone)

    def __repr__(self) -> str:
        return f"TimeTraveler(zone={self._zone!r}, depth={self.depth})"

    @property
    def clock(self) -> ClockPort:
        return self._clock

    @property
    def stack(self) -> OverrideStack:
        return self._stack

    @property
    def zone(self) -> tzinfo | None:
        return self._zone

    @property
    def depth(self) -> int:
        return self._stack.depth

    # -- stack interface ----------------------------------------------------

    def install(self, anchor: datetime) -> ClockOverride:
        """Push an override pinned at the aware instant *anchor*."""
        override = self._stack.push(anchor)
        logger.debug(
            "Time override installed at %s (depth=%d)",
            override.anchor_instant.isoformat(),
            override.installed_at_depth + 1,
        )
        return override

    def revert(self) -> ClockOverride | None:
        """Pop the innermost override; ``None`` when nothing is installed."""
        override = self._stack.pop()
        if override is None:
            logger.debug("No time override to revert")
            return None
        logger.debug(
            "Time override at %s reverted (depth=%d)",
            override.anchor_instant.isoformat(),
            self._stack.depth,
        )
        return override

    def current_override(self) -> ClockOverride | None:
        return self._stack.peek()

    # -- read path ------------------------------------------------------------

    def real_now(self) -> datetime:
        """Real clock reading as an aware UTC instant."""
        reading = self._clock.now()
        if reading.tzinfo is None or reading.utcoffset() is None:
            raise InvalidTravelArgumentError(
                f"{type(self._clock).__name__}.now() returned a naive datetime"
            )
        return reading.astimezone(UTC)

    def instant(self) -> datetime:
        """Effective instant: the override anchor, else real time."""
        override = self._stack.peek()
        if override is not None:
            return override.anchor_instant
        return self.real_now()

    def current(self, kind: type[V], tz: ZoneLike = None) -> V:
        """Build the current reading as an instance of *kind*.

        *kind* may be any class offering ``from_instant``: the three
        view types, or subclasses of them.
        """
        zone = resolve_zone(tz)
        return kind.from_instant(self.instant(), zone or self._zone)

    def now(self, tz: ZoneLike = None) -> Timestamp:
        return self.current(Timestamp, tz)

    def today(self, tz: ZoneLike = None) -> CalendarDate:
        return self.current(CalendarDate, tz)

    # -- travel -------------------------------------------------------------

    @overload
    def travel(self, offset: Offset) -> TravelScope: ...

    @overload
    def travel(self, offset: Offset, body: Callable[[], R]) -> R: ...

    def travel(
        self,
        offset: Offset,
        body: Callable[[], R] | None = None,
    ) -> TravelScope | R:
        """Pin time at real now plus *offset*.

        Args:
            offset: A :class:`~datetime.timedelta` or a number of
                seconds (negative values travel into the past).
            body: Optional zero-argument callable run while travelling.

        Returns:
            ``body()``'s result when *body* is given, otherwise a
            :class:`TravelScope` for the persistent override.
        """
        delta = _as_timedelta(offset)
        return self._enter(self.real_now() + delta, body)

    @overload
    def travel_to(self, target: Target) -> TravelScope: ...

    @overload
    def travel_to(self, target: Target, body: Callable[[], R]) -> R: ...

    def travel_to(
        self,
        target: Target,
        body: Callable[[], R] | None = None,
    ) -> TravelScope | R:
        """Pin time at *target*, truncated to whole seconds.

        Naive datetimes are read in the traveler's zone (system local
        when unset); a plain ``date`` means midnight of that day.
        """
        anchor = self._to_instant(target).replace(microsecond=0)
        return self._enter(anchor, body)

    @overload
    def freeze_time(self) -> TravelScope: ...

    @overload
    def freeze_time(self, body: Callable[[], R]) -> R: ...

    def freeze_time(
        self,
        body: Callable[[], R] | None = None,
    ) -> TravelScope | R:
        """Stop the clock at the current real second."""
        return self.travel_to(self.real_now(), body)  # type: ignore[arg-type]

    def travel_back(self) -> None:
        """Undo the innermost override.  Safe to call with none installed."""
        self.revert()

    def reset(self) -> int:
        """Remove every override in this context; returns how many."""
        removed = self._stack.truncate(0)
        if removed:
            logger.debug("Reset %d time override(s)", removed)
        return removed

    # -- internals ----------------------------------------------------------

    def _enter(
        self,
        anchor: datetime,
        body: Callable[[], R] | None,
    ) -> TravelScope | R:
        if body is not None and not callable(body):
            raise InvalidTravelArgumentError(
                f"Travel body must be callable, got {type(body).__name__}"
            )
        scope = TravelScope(self, self.install(anchor))
        if body is None:
            return scope
        with scope:
            return body()

    def _release(self, override: ClockOverride) -> None:
        if not self._stack.contains(override):
            return
        removed = self._stack.truncate(override.installed_at_depth)
        logger.debug(
            "Travel scope at %s closed (%d override(s) removed)",
            override.anchor_instant.isoformat(),
            removed,
        )

    def _to_instant(self, target: Target) -> datetime:
        if isinstance(target, datetime):
            moment = target
        elif isinstance(target, date):
            moment = datetime.combine(target, time())
        else:
            raise InvalidTravelArgumentError(
                f"Cannot travel to {type(target).__name__}; "
                "expected a date or datetime"
            )
        if moment.tzinfo is None or moment.utcoffset() is None:
            if self._zone is not None:
                moment = moment.replace(tzinfo=self._zone)
            else:
                moment = moment.astimezone()
        return moment.astimezone(UTC)


def _as_timedelta(offset: Offset) -> timedelta:
    if isinstance(offset, timedelta):
        return offset
    if isinstance(offset, int | float) and not isinstance(offset, bool):
        return timedelta(seconds=offset)
    raise InvalidTravelArgumentError(
        f"Travel offset must be a timedelta or seconds, got {type(offset).__name__}"
    )


# ---------------------------------------------------------------------------
# Ambient traveler
# ---------------------------------------------------------------------------

_DEFAULT_TRAVELER = TimeTraveler()

_active_traveler: ContextVar[TimeTraveler | None] = ContextVar(
    "timewarp.active_traveler", default=None
)


def get_traveler() -> TimeTraveler:
    """Traveler consulted by ambient reads in the current context."""
    traveler = _active_traveler.get()
    return traveler if traveler is not None else _DEFAULT_TRAVELER


@contextlib.contextmanager
def use_traveler(traveler: TimeTraveler) -> Iterator[TimeTraveler]:
    """Make *traveler* the ambient traveler for the enclosed block."""
    token = _active_traveler.set(traveler)
    try:
        yield traveler
    finally:
        _active_traveler.reset(token)


@overload
def travel(offset: Offset) -> TravelScope: ...


@overload
def travel(offset: Offset, body: Callable[[], R]) -> R: ...


def travel(offset: Offset, body: Callable[[], R] | None = None) -> TravelScope | R:
    """:meth:`TimeTraveler.travel` on the ambient traveler."""
    return get_traveler().travel(offset, body)  # type: ignore[arg-type]


@overload
def travel_to(target: Target) -> TravelScope: ...


@overload
def travel_to(target: Target, body: Callable[[], R]) -> R: ...


def travel_to(target: Target, body: Callable[[], R] | None = None) -> TravelScope | R:
    """:meth:`TimeTraveler.travel_to` on the ambient traveler."""
    return get_traveler().travel_to(target, body)  # type: ignore[arg-type]


@overload
def freeze_time() -> TravelScope: ...


@overload
def freeze_time(body: Callable[[], R]) -> R: ...


def freeze_time(body: Callable[[], R] | None = None) -> TravelScope | R:
    """:meth:`TimeTraveler.freeze_time` on the ambient traveler."""
    return get_traveler().freeze_time(body)  # type: ignore[arg-type]


def travel_back() -> None:
    """:meth:`TimeTraveler.travel_back` on the ambient traveler."""
    get_traveler().travel_back()
