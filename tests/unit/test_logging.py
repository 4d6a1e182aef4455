"""Unit tests for timewarp._logging: JSON formatter and config.

Test Techniques Used:
    - Contract-based Testing: JsonFormatter output schema
    - State Inspection: Root logger handler/level after configure
    - Fixture Isolation: Save/restore root logger state
    - Context Stamping: travel depth and virtual time on records
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from timewarp._logging import (
    JsonFormatter,
    TextFormatter,
    TravelContextFilter,
    configure_logging,
)
from timewarp._settings import LoggingSettings
from timewarp._traveler import TimeTraveler


def _make_record(message: str = "hello", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestJsonFormatter:
    """Tests for JsonFormatter output schema.

    Technique: Contract-based Testing.
    """

    def test_has_required_fields(self) -> None:
        result = json.loads(JsonFormatter(service="svc").format(_make_record()))
        assert {"timestamp", "level", "logger", "message", "service"} <= result.keys()
        assert result["message"] == "hello"
        assert result["logger"] == "test.logger"

    def test_timestamp_is_utc_iso8601(self) -> None:
        result = json.loads(JsonFormatter(service="svc").format(_make_record()))
        assert datetime.fromisoformat(result["timestamp"]).tzinfo == UTC

    def test_timestamp_uses_real_time_while_travelling(
        self, time_traveler: TimeTraveler
    ) -> None:
        """Log timestamps are not affected by time travel."""
        time_traveler.travel_to(datetime(2004, 11, 24, tzinfo=UTC))
        result = json.loads(JsonFormatter(service="svc").format(_make_record()))
        assert datetime.fromisoformat(result["timestamp"]).year != 2004

    def test_version_included_when_set(self) -> None:
        fmt = JsonFormatter(service="svc", version="1.2.3")
        assert json.loads(fmt.format(_make_record()))["version"] == "1.2.3"

    def test_version_omitted_when_empty(self) -> None:
        fmt = JsonFormatter(service="svc")
        assert "version" not in json.loads(fmt.format(_make_record()))

    def test_exception_included_when_present(self) -> None:
        record = _make_record()
        record.exc_info = (ValueError, ValueError("boom"), None)
        result = json.loads(JsonFormatter(service="svc").format(record))
        assert "ValueError" in result["exception"]

    def test_single_line(self) -> None:
        record = _make_record("line one\nline two")
        assert "\n" not in JsonFormatter(service="svc").format(record)


@pytest.mark.usefixtures("_restore_root_logger")
class TestConfigureLogging:
    """Tests for configure_logging() root logger setup.

    Technique: State Inspection.
    """

    def test_json_mode_sets_json_formatter(self) -> None:
        configure_logging(LoggingSettings(format="json"), service="test")
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    def test_text_mode_sets_text_formatter(self) -> None:
        configure_logging(LoggingSettings(format="text"), service="test")
        formatter = logging.getLogger().handlers[0].formatter
        assert isinstance(formatter, TextFormatter)
        assert not isinstance(formatter, JsonFormatter)

    def test_sets_root_logger_level(self) -> None:
        configure_logging(LoggingSettings(level="DEBUG"), service="test")
        assert logging.getLogger().level == logging.DEBUG

    def test_clears_existing_handlers(self) -> None:
        root = logging.getLogger()
        dummy = logging.StreamHandler()
        root.addHandler(dummy)
        configure_logging(LoggingSettings(), service="test")
        assert dummy not in root.handlers

    def test_file_handler_honours_size_and_backups(self, tmp_path: Path) -> None:
        settings = LoggingSettings(
            file=str(tmp_path / "timewarp.log"),
            max_file_size_mb=2,
            backup_count=5,
        )
        configure_logging(settings, service="test")

        rotating = [
            h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)
        ]
        assert len(rotating) == 1
        assert rotating[0].maxBytes == 2 * 1024 * 1024
        assert rotating[0].backupCount == 5

    def test_no_file_handler_by_default(self) -> None:
        configure_logging(LoggingSettings(), service="test")
        assert not any(
            isinstance(h, RotatingFileHandler) for h in logging.getLogger().handlers
        )

    def test_every_handler_stamps_travel_context(self, tmp_path: Path) -> None:
        settings = LoggingSettings(file=str(tmp_path / "timewarp.log"))
        configure_logging(settings, service="test")
        handlers = logging.getLogger().handlers
        assert len(handlers) == 2
        for handler in handlers:
            assert any(isinstance(f, TravelContextFilter) for f in handler.filters)


ANCHOR = datetime(2004, 11, 24, 1, 4, 44, tzinfo=UTC)


class TestTravelContext:
    """Records carry the travel state of the context that emitted them.

    Technique: Context Stamping.
    """

    def test_filter_stamps_real_time_as_depth_zero(
        self, time_traveler: TimeTraveler
    ) -> None:
        record = _make_record()
        assert TravelContextFilter().filter(record) is True
        assert record.travel_depth == 0  # type: ignore[attr-defined]
        assert record.virtual_time is None  # type: ignore[attr-defined]

    def test_filter_stamps_active_override(self, time_traveler: TimeTraveler) -> None:
        time_traveler.travel_to(ANCHOR)
        time_traveler.travel(60)
        time_traveler.travel_to(ANCHOR)
        record = _make_record()
        TravelContextFilter().filter(record)
        assert record.travel_depth == 3  # type: ignore[attr-defined]
        assert record.virtual_time == "2004-11-24T01:04:44+00:00"  # type: ignore[attr-defined]

    def test_filter_with_explicit_traveler(self, time_traveler: TimeTraveler) -> None:
        other = TimeTraveler(clock=time_traveler.clock)
        other.travel_to(ANCHOR)
        try:
            record = _make_record()
            TravelContextFilter(other).filter(record)
            assert record.travel_depth == 1  # type: ignore[attr-defined]
        finally:
            other.reset()

    def test_json_omits_travel_fields_on_real_time(
        self, time_traveler: TimeTraveler
    ) -> None:
        result = json.loads(JsonFormatter(service="svc").format(_make_record()))
        assert "virtual_time" not in result
        assert "travel_depth" not in result

    def test_json_includes_travel_fields_while_travelling(
        self, time_traveler: TimeTraveler
    ) -> None:
        with time_traveler.travel_to(ANCHOR):
            result = json.loads(JsonFormatter(service="svc").format(_make_record()))
        assert result["virtual_time"] == "2004-11-24T01:04:44+00:00"
        assert result["travel_depth"] == 1
        assert datetime.fromisoformat(result["timestamp"]).year != 2004

    def test_json_prefers_stamped_fields(self, time_traveler: TimeTraveler) -> None:
        """A record stamped at emit time keeps that state after travel_back."""
        record = _make_record()
        with time_traveler.travel_to(ANCHOR):
            TravelContextFilter().filter(record)
        result = json.loads(JsonFormatter(service="svc").format(record))
        assert result["travel_depth"] == 1

    def test_text_suffix_only_while_travelling(
        self, time_traveler: TimeTraveler
    ) -> None:
        formatter = TextFormatter()
        assert "[virtual" not in formatter.format(_make_record())
        with time_traveler.travel_to(ANCHOR):
            line = formatter.format(_make_record())
        assert line.endswith("hello [virtual 2004-11-24T01:04:44+00:00, depth 1]")

    def test_text_suffix_stays_on_first_line(
        self, time_traveler: TimeTraveler
    ) -> None:
        record = _make_record()
        record.exc_info = (ValueError, ValueError("boom"), None)
        with time_traveler.travel_to(ANCHOR):
            line = TextFormatter().format(record)
        first, _, rest = line.partition("\n")
        assert first.endswith("depth 1]")
        assert "ValueError" in rest
