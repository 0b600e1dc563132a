"""Tests for logging and tracing setup."""

import structlog

from selstorage.core.config import StorageSettings
from selstorage.core.observability import build_processors, setup_tracing


class TestObservability:
    """Test settings driven observability setup."""

    def test_json_renderer_by_default(self):
        """Test events render as JSON unless disabled."""
        processors = build_processors(StorageSettings())
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer(self):
        """Test the console renderer is used when JSON logs are off."""
        processors = build_processors(StorageSettings(log_json=False))
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_tracing_disabled(self):
        """Test no tracer provider is installed when tracing is off."""
        assert setup_tracing(StorageSettings(otel_enabled=False)) is False
