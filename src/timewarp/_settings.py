"""Configuration via pydantic-settings.

Configuration is loaded from environment variables and/or ``.env``
files.  All variables carry the ``TIMEWARP_`` prefix, and nested
models use ``__`` as the delimiter, e.g.
``TIMEWARP_LOGGING__LEVEL=DEBUG``.

The schema covers two concerns:

* **Time zone**: default zone for temporal views and for reading
  naive ``travel_to`` targets.
* **Logging**: level, format, optional file sink, rotation.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from timewarp._temporal import resolve_zone


class LoggingSettings(BaseModel):
    """Logging configuration.

    When ``file`` is set, logs are also written to a rotating file
    (size-based rotation, ``backup_count`` generations kept).  When
    ``None``, logs go to stderr only.

    The ``format`` field selects the output format:

    - ``"json"`` (default): structured JSON lines for log aggregators.
    - ``"text"``: human-readable timestamped lines for terminals.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level.",
    )
    format: Literal["json", "text"] = Field(
        default="json",
        description=(
            "Log output format. "
            "'json' emits structured JSON lines; "
            "'text' emits human-readable timestamped lines."
        ),
    )
    file: str | None = Field(
        default=None,
        description="Optional log file path. ``None`` means stderr only.",
    )
    max_file_size_mb: Annotated[int, Field(ge=1)] = Field(
        default=10,
        description=(
            "Maximum log file size in megabytes before rotation. "
            "Only applies when ``file`` is set."
        ),
    )
    backup_count: Annotated[int, Field(ge=0)] = Field(
        default=3,
        description="Number of rotated log files to keep.",
    )


class Settings(BaseSettings):
    """Root settings for timewarp.

    Example ``.env``::

        TIMEWARP_TIME_ZONE=Europe/Berlin
        TIMEWARP_LOGGING__LEVEL=DEBUG
        TIMEWARP_LOGGING__FORMAT=text
    """

    model_config = SettingsConfigDict(
        env_prefix="TIMEWARP_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    time_zone: str | None = Field(
        default=None,
        description=(
            "IANA zone name used by views when no zone is requested. "
            "``None`` means the system local zone."
        ),
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration.",
    )

    @field_validator("time_zone")
    @classmethod
    def _check_time_zone(cls, value: str | None) -> str | None:
        # UnknownTimeZoneError is a ValueError, so pydantic reports it.
        resolve_zone(value)
        return value
