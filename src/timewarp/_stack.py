"""Context-isolated override stack.

The stack is the only mutable state in timewarp.  All stacks share one
module-level :class:`contextvars.ContextVar` holding an immutable
mapping from a per-stack key to that stack's entry tuple.  That gives
each thread its own stacks and gives every asyncio task a snapshot of
its creator's stacks at creation time.  Mutations made in a task never
leak back into the parent.

A stack that empties drops its key from the mapping, so creating and
resetting many stacks leaves the context no larger than before.

Within one context the stack follows strict nesting: push on travel,
pop on revert.  Popping an empty stack returns ``None``.
"""

from __future__ import annotations

import itertools
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType

from timewarp._errors import InvalidTravelArgumentError

_EMPTY: Mapping[int, tuple[ClockOverride, ...]] = MappingProxyType({})

_overrides: ContextVar[Mapping[int, tuple[ClockOverride, ...]]] = ContextVar(
    "timewarp.overrides", default=_EMPTY
)

_stack_keys = itertools.count()


@dataclass(frozen=True, slots=True)
class ClockOverride:
    """One installed time override.

    Attributes:
        anchor_instant: Aware UTC instant every read is pinned to.
        installed_at_depth: Stack index this entry occupies (0 for
            the outermost override).
    """

    anchor_instant: datetime
    installed_at_depth: int


class OverrideStack:
    """Nested sequence of :class:`ClockOverride`; the top is effective."""

    def __init__(self) -> None:
        self._key = next(_stack_keys)

    def __len__(self) -> int:
        return len(self._get())

    def __repr__(self) -> str:
        return f"OverrideStack(depth={len(self)})"

    def _get(self) -> tuple[ClockOverride, ...]:
        return _overrides.get().get(self._key, ())

    def _set(self, entries: tuple[ClockOverride, ...]) -> None:
        current = _overrides.get()
        if not entries and self._key not in current:
            return
        updated = dict(current)
        if entries:
            updated[self._key] = entries
        else:
            del updated[self._key]
        _overrides.set(MappingProxyType(updated) if updated else _EMPTY)

    @property
    def depth(self) -> int:
        """Number of currently open overrides in this context."""
        return len(self)

    def snapshot(self) -> tuple[ClockOverride, ...]:
        """Return the entries from bottom (oldest) to top."""
        return self._get()

    def peek(self) -> ClockOverride | None:
        """Return the effective override, or ``None`` for real time."""
        entries = self._get()
        return entries[-1] if entries else None

    def push(self, anchor: datetime) -> ClockOverride:
        """Install *anchor* on top of the stack.

        Raises:
            InvalidTravelArgumentError: *anchor* is naive.
        """
        if anchor.tzinfo is None or anchor.utcoffset() is None:
            raise InvalidTravelArgumentError(
                f"Override anchor must be timezone-aware, got {anchor!r}"
            )
        entries = self._get()
        override = ClockOverride(
            anchor_instant=anchor.astimezone(UTC),
            installed_at_depth=len(entries),
        )
        self._set((*entries, override))
        return override

    def pop(self) -> ClockOverride | None:
        """Remove and return the top entry; ``None`` when empty."""
        entries = self._get()
        if not entries:
            return None
        self._set(entries[:-1])
        return entries[-1]

    def truncate(self, depth: int) -> int:
        """Drop every entry at index *depth* and above.

        Returns:
            The number of entries removed.
        """
        entries = self._get()
        depth = max(depth, 0)
        if depth >= len(entries):
            return 0
        self._set(entries[:depth])
        return len(entries) - depth

    def contains(self, override: ClockOverride) -> bool:
        """Whether *override* (by identity) is still installed."""
        entries = self._get()
        index = override.installed_at_depth
        return index < len(entries) and entries[index] is override
