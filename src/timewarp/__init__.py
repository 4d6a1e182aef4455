"""timewarp.

A deterministic, context-isolated virtual clock: pin or shift "now" for
timestamps, calendar dates and offset date-times, including subclasses
of each.
"""

from importlib.metadata import PackageNotFoundError, version

from timewarp._clock import ClockPort, SystemClock
from timewarp._errors import (
    InvalidTravelArgumentError,
    TimeTravelError,
    UnknownTimeZoneError,
)
from timewarp._logging import (
    JsonFormatter,
    TextFormatter,
    TravelContextFilter,
    configure_logging,
)
from timewarp._settings import LoggingSettings, Settings
from timewarp._stack import ClockOverride, OverrideStack
from timewarp._temporal import (
    CalendarDate,
    DateTime,
    FromInstant,
    Timestamp,
    resolve_zone,
)
from timewarp._traveler import (
    TimeTraveler,
    TravelScope,
    freeze_time,
    get_traveler,
    travel,
    travel_back,
    travel_to,
    use_traveler,
)

try:
    __version__ = version("timewarp")
except PackageNotFoundError:
    # Last resort fallback for source checkouts without metadata
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Clock
    "ClockPort",
    "SystemClock",
    # Overrides
    "ClockOverride",
    "OverrideStack",
    "TimeTraveler",
    "TravelScope",
    "freeze_time",
    "get_traveler",
    "travel",
    "travel_back",
    "travel_to",
    "use_traveler",
    # Views
    "CalendarDate",
    "DateTime",
    "FromInstant",
    "Timestamp",
    "resolve_zone",
    # Errors
    "InvalidTravelArgumentError",
    "TimeTravelError",
    "UnknownTimeZoneError",
    # Logging
    "JsonFormatter",
    "TextFormatter",
    "TravelContextFilter",
    "configure_logging",
    # Settings
    "LoggingSettings",
    "Settings",
]
