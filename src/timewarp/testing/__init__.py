"""Public test-support utilities for timewarp.

Re-exports test doubles and helpers so that consumer test suites can
import everything from a single ``timewarp.testing`` namespace instead
of reaching into private modules.

Provided symbols:

- :class:`FakeClock`: deterministic real clock for travel tests.
- :class:`TimeHelpers`: ``unittest.TestCase`` mixin with travel methods.
- :func:`make_settings`: factory for ``Settings`` without ``.env`` files.
"""

from timewarp.testing._clock import FakeClock
from timewarp.testing._helpers import TimeHelpers
from timewarp.testing._settings import make_settings

__all__ = [
    "FakeClock",
    "TimeHelpers",
    "make_settings",
]
