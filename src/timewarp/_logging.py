"""Travel-aware log formatting and logging configuration.

Log records are always stamped with the *real* time they were emitted
(``record.created``).  When the emitting context is travelling, that
alone hides which "now" the application was seeing, so every handler
installed by :func:`configure_logging` carries a
:class:`TravelContextFilter`.  The filter stamps each record with the
ambient traveler's state at emit time:

- ``travel_depth``: number of open overrides (0 when on real time)
- ``virtual_time``: the effective anchor as ISO 8601 UTC, or ``None``

:class:`JsonFormatter` writes those fields into its NDJSON output when
an override is active; :class:`TextFormatter` appends them to the
classic one-line format.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from timewarp._settings import LoggingSettings
from timewarp._traveler import TimeTraveler, get_traveler

_MEGABYTE = 1024 * 1024

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _travel_context(record: logging.LogRecord) -> tuple[int, str | None]:
    depth = getattr(record, "travel_depth", None)
    if depth is not None:
        return depth, getattr(record, "virtual_time", None)
    return _read_traveler(get_traveler())


def _read_traveler(traveler: TimeTraveler) -> tuple[int, str | None]:
    override = traveler.current_override()
    if override is None:
        return 0, None
    return traveler.depth, override.anchor_instant.isoformat()


class TravelContextFilter(logging.Filter):
    """Stamp records with the travel state of the emitting context.

    Handlers run synchronously in the thread and task that logged, so
    the ambient traveler seen here is the caller's.

    Args:
        traveler: Traveler to report on; the ambient one
            (:func:`~timewarp.get_traveler`) when ``None``.
    """

    def __init__(self, traveler: TimeTraveler | None = None) -> None:
        super().__init__()
        self._traveler = traveler

    def filter(self, record: logging.LogRecord) -> bool:
        traveler = self._traveler if self._traveler is not None else get_traveler()
        record.travel_depth, record.virtual_time = _read_traveler(traveler)
        return True


class JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects (NDJSON).

    Fields: ``timestamp`` (real emit time, UTC), ``level``, ``logger``,
    ``message`` and ``service``; ``version`` when non-empty;
    ``virtual_time`` and ``travel_depth`` while an override is active;
    ``exception`` and ``stack_info`` when present.
    """

    def __init__(
        self,
        *,
        service: str = "",
        version: str = "",
    ) -> None:
        super().__init__()
        self._service = service
        self._version = version

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
        }
        if self._version:
            entry["version"] = self._version

        depth, virtual_time = _travel_context(record)
        if depth:
            entry["virtual_time"] = virtual_time
            entry["travel_depth"] = depth

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        # default=str: anything json cannot encode is logged, not dropped
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable one-line format with a travel suffix.

    ``... timewarp._traveler: message [virtual 2004-11-24T01:04:44+00:00, depth 1]``
    """

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        depth, virtual_time = _travel_context(record)
        if not depth:
            return line
        head, newline, rest = line.partition("\n")
        return f"{head} [virtual {virtual_time}, depth {depth}]{newline}{rest}"


def _build_handlers(settings: LoggingSettings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.file is not None:
        handlers.append(
            RotatingFileHandler(
                settings.file,
                maxBytes=settings.max_file_size_mb * _MEGABYTE,
                backupCount=settings.backup_count,
            )
        )
    return handlers


def configure_logging(
    settings: LoggingSettings,
    *,
    service: str,
    version: str = "",
) -> None:
    """Replace the root logger's handlers according to *settings*.

    Installs a ``stderr`` stream handler, plus a
    :class:`~logging.handlers.RotatingFileHandler` when ``settings.file``
    is set.  Every handler gets the formatter chosen by
    ``settings.format`` and a :class:`TravelContextFilter`.

    Args:
        settings: Logging configuration (level, format, file rotation).
        service: Application name for :class:`JsonFormatter`.
        version: Application version for :class:`JsonFormatter`.
    """
    formatter: logging.Formatter
    if settings.format == "json":
        formatter = JsonFormatter(service=service, version=version)
    else:
        formatter = TextFormatter()

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    for handler in _build_handlers(settings):
        handler.setFormatter(formatter)
        handler.addFilter(TravelContextFilter())
        root.addHandler(handler)

    root.setLevel(settings.level)
