"""Command-line entry point (Typer-based).

``timewarp`` prints the three temporal views of the current time,
optionally after travelling::

    $ timewarp --tz UTC --at 2004-11-24T01:04:44Z
    timestamp: 2004-11-24T01:04:44+00:00
    date:      2004-11-24
    datetime:  2004-11-24T01:04:44+00:00

Framework-level options (``--version``, ``--log-level``,
``--log-format``, ``--env-file``) mirror the settings schema.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, tzinfo
from typing import Annotated, get_args

import typer
from pydantic import ValidationError

from timewarp import __version__
from timewarp._clock import ClockPort
from timewarp._errors import UnknownTimeZoneError
from timewarp._logging import configure_logging
from timewarp._settings import LoggingSettings, Settings
from timewarp._temporal import CalendarDate, DateTime, Timestamp, resolve_zone
from timewarp._traveler import TimeTraveler

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1

# ---------------------------------------------------------------------------
# Allowed values (extracted from LoggingSettings Literal types)
# ---------------------------------------------------------------------------

_VALID_LOG_LEVELS: tuple[str, ...] = get_args(
    LoggingSettings.model_fields["level"].annotation,
)
_VALID_LOG_FORMATS: tuple[str, ...] = get_args(
    LoggingSettings.model_fields["format"].annotation,
)


def read_views(traveler: TimeTraveler, tz: tzinfo | None = None) -> dict[str, str]:
    """Current timestamp, date and date-time as ISO 8601 strings."""
    return {
        "timestamp": Timestamp.now(tz, traveler=traveler).isoformat(),
        "date": CalendarDate.today(tz, traveler=traveler).isoformat(),
        "datetime": DateTime.now(tz, traveler=traveler).isoformat(),
    }


def build_cli(
    *,
    settings_class: type[Settings] = Settings,
    clock: ClockPort | None = None,
) -> typer.Typer:
    """Construct the ``timewarp`` Typer app.

    Args:
        settings_class: Settings model to load (tests pass an isolated
            subclass).
        clock: Real clock for the traveler; the system clock when
            ``None``.

    Returns:
        A configured :class:`typer.Typer` ready to invoke.
    """
    cli = typer.Typer(
        help=f"timewarp v{__version__}: show the current time, optionally travelled.",
    )

    @cli.callback(invoke_without_command=True)
    def main(
        version_flag: Annotated[
            bool | None,
            typer.Option(
                "--version",
                is_eager=True,
                help="Show version and exit.",
            ),
        ] = None,
        at: Annotated[
            str | None,
            typer.Option("--at", help="Travel to this ISO 8601 instant."),
        ] = None,
        offset: Annotated[
            float | None,
            typer.Option("--offset", help="Travel by this many seconds."),
        ] = None,
        tz: Annotated[
            str | None,
            typer.Option("--tz", help="IANA zone for --at and the output."),
        ] = None,
        as_json: Annotated[
            bool,
            typer.Option("--json", help="Emit a JSON object."),
        ] = False,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", help="Override log level."),
        ] = None,
        log_format: Annotated[
            str | None,
            typer.Option("--log-format", help="Override log format."),
        ] = None,
        env_file: Annotated[
            str,
            typer.Option("--env-file", help="Path to .env file."),
        ] = ".env",
    ) -> None:
        if version_flag:
            typer.echo(f"timewarp v{__version__}")
            raise typer.Exit()

        # -- validate options ------------------------------------------------
        if log_level is not None and log_level.upper() not in _VALID_LOG_LEVELS:
            raise typer.BadParameter(
                f"Invalid log level '{log_level}'. "
                f"Choose from: {', '.join(_VALID_LOG_LEVELS)}",
                param_hint="'--log-level'",
            )

        if log_format is not None and log_format.lower() not in _VALID_LOG_FORMATS:
            raise typer.BadParameter(
                f"Invalid log format '{log_format}'. "
                f"Choose from: {', '.join(_VALID_LOG_FORMATS)}",
                param_hint="'--log-format'",
            )

        if at is not None and offset is not None:
            raise typer.BadParameter(
                "Use either --at or --offset, not both.",
                param_hint="'--at'",
            )

        target: datetime | None = None
        if at is not None:
            try:
                target = datetime.fromisoformat(at)
            except ValueError as exc:
                raise typer.BadParameter(
                    f"Invalid ISO 8601 instant '{at}'.",
                    param_hint="'--at'",
                ) from exc

        try:
            if tz is not None:
                resolve_zone(tz)
        except UnknownTimeZoneError as exc:
            raise typer.BadParameter(str(exc), param_hint="'--tz'") from exc

        # -- build settings -------------------------------------------------
        try:
            settings: Settings = settings_class(_env_file=env_file)  # type: ignore[call-arg]
        except ValidationError as exc:
            logger.error("Configuration error: %s", exc)
            raise SystemExit(EXIT_CONFIG_ERROR) from exc

        if log_level is not None:
            settings.logging = settings.logging.model_copy(
                update={"level": log_level.upper()},
            )

        if log_format is not None:
            settings.logging = settings.logging.model_copy(
                update={"format": log_format.lower()},
            )

        if tz is not None:
            settings.time_zone = tz

        configure_logging(settings.logging, service="timewarp", version=__version__)

        # -- read the views -------------------------------------------------
        traveler = TimeTraveler.from_settings(settings, clock=clock)
        if target is not None:
            try:
                views = traveler.travel_to(target, lambda: read_views(traveler))
            except OverflowError as exc:
                raise typer.BadParameter(
                    f"Instant '{at}' is out of the representable range.",
                    param_hint="'--at'",
                ) from exc
        elif offset is not None:
            try:
                views = traveler.travel(offset, lambda: read_views(traveler))
            except OverflowError as exc:
                raise typer.BadParameter(
                    f"Offset {offset:g}s is out of the representable range.",
                    param_hint="'--offset'",
                ) from exc
        else:
            views = read_views(traveler)

        if as_json:
            typer.echo(json.dumps(views))
        else:
            for key, value in views.items():
                typer.echo(f"{key + ':':<10} {value}")

    return cli


def main() -> None:
    """Console-script entry point."""
    build_cli()()
