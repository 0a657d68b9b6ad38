"""
Unit tests for settings validation and request tracing helpers.
"""

import json
import logging
import re

import pytest
from pydantic import ValidationError as PydanticValidationError

from webpdf_service.config import PdfServiceSettings
from webpdf_service.logger import (
    JsonFormatter,
    format_elapsed,
    generate_request_id,
    init_telemetry,
    track_trace,
)


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("PORT", "KEEP_ALIVE_TIMEOUT", "RENDER_TIMEOUT_MS", "MAX_BODY_MB"):
            monkeypatch.delenv(name, raising=False)

        settings = PdfServiceSettings()

        assert settings.port == 3000
        assert settings.keep_alive_timeout == 60
        assert settings.render_timeout_ms == 70000
        assert settings.max_concurrent_renders is None
        assert settings.compression_timeout_seconds is None
        assert settings.max_body_bytes == 50 * 1024 * 1024

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8000")
        monkeypatch.setenv("MAX_CONCURRENT_RENDERS", "4")

        settings = PdfServiceSettings()

        assert settings.port == 8000
        assert settings.max_concurrent_renders == 4

    def test_rejects_invalid_port(self, monkeypatch):
        monkeypatch.setenv("PORT", "70000")
        with pytest.raises(PydanticValidationError):
            PdfServiceSettings()

    def test_rejects_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(PydanticValidationError):
            PdfServiceSettings()

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert PdfServiceSettings().log_level == "DEBUG"

    def test_telemetry_toggle(self, monkeypatch):
        monkeypatch.setenv("APPLICATIONINSIGHTS_CONNECTION_STRING", "InstrumentationKey=abc")
        assert PdfServiceSettings().telemetry_enabled is True

        monkeypatch.setenv("APPLICATIONINSIGHTS_CONNECTION_STRING", "  ")
        assert PdfServiceSettings().telemetry_enabled is False


class TestRequestIds:

    def test_format(self):
        request_id = generate_request_id()
        assert re.fullmatch(r"\d{1,3}-[0-9a-z]{7}", request_id)

    def test_ids_vary(self):
        ids = {generate_request_id() for _ in range(50)}
        assert len(ids) > 1


class TestTracing:

    @pytest.mark.parametrize("ms,expected", [
        (0, "0ms"), (250, "250ms"), (1000, "1000ms"), (1001, "1.001s"), (12345, "12.345s"),
    ])
    def test_format_elapsed(self, ms, expected):
        assert format_elapsed(ms) == expected

    def test_track_trace_tags_request_id(self, caplog):
        from webpdf_service.logger import clock

        with caplog.at_level(logging.INFO, logger="webpdf_service.trace"):
            track_trace("generating pdf", clock(), "42-abcdefg")

        assert re.search(r"\[@42-abcdefg\] generating pdf \d+ms", caplog.text)

    def test_track_trace_without_request_id(self, caplog):
        from webpdf_service.logger import clock

        with caplog.at_level(logging.INFO, logger="webpdf_service.trace"):
            track_trace("startup", clock())

        assert "[@] startup" in caplog.text


class TestTelemetryLogging:

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_format_when_connection_string_set(self):
        assert init_telemetry("InstrumentationKey=abc") is True
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    def test_simple_format_without_connection_string(self):
        assert init_telemetry(None) is False
        assert not isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    def test_json_formatter_escapes_messages(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, 'body {"url": "a"}', None, None)

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == 'body {"url": "a"}'
        assert payload["level"] == "INFO"
