"""Tests for structured logging configuration and request middleware."""

import json
import logging
import re
from collections.abc import Iterator
from io import StringIO
from unittest.mock import patch

import pytest
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from lesson_assistant.logging_config import (
    bind_log_context,
    clear_log_context,
    configure_logging,
)


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Reset structlog state after each test."""
    yield
    clear_log_context()
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


def _capture_log_output(
    environment: str, log_level: str = "DEBUG", **fields: object
) -> str:
    """Configure logging, emit a message, return captured output."""
    configure_logging(environment=environment, log_level=log_level)

    stream = StringIO()
    root = logging.getLogger()
    if not root.handlers or not isinstance(root.handlers[0], logging.StreamHandler):
        raise RuntimeError("Expected configure_logging to set up a StreamHandler")

    original_stream = root.handlers[0].stream
    root.handlers[0].stream = stream

    structlog.get_logger().info("test_event", key="value", **fields)

    root.handlers[0].stream = original_stream
    return stream.getvalue()


class TestConfigureLogging:
    def test_configure_production_json(self) -> None:
        parsed = json.loads(_capture_log_output("production"))
        assert parsed["event"] == "test_event"
        assert parsed["key"] == "value"
        assert parsed["level"] == "info"
        assert "T" in parsed["timestamp"]

    def test_configure_development_console(self) -> None:
        plain = re.sub(r"\x1b\[[0-9;]*m", "", _capture_log_output("development"))
        assert "test_event" in plain
        assert "key=value" in plain

    def test_configure_sets_log_level(self) -> None:
        configure_logging(log_level="WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_service_stamped(self) -> None:
        parsed = json.loads(_capture_log_output("production"))
        assert parsed["service"] == "lesson-assistant"

    def test_sensitive_keys_redacted(self) -> None:
        parsed = json.loads(
            _capture_log_output("production", api_key="la_live_abc", Token="t")
        )
        assert parsed["api_key"] == "***REDACTED***"
        assert parsed["Token"] == "***REDACTED***"


class TestLogContext:
    def test_bound_fields_on_every_event(self) -> None:
        bind_log_context(user_id="u-1", lesson_id="l-1")
        parsed = json.loads(_capture_log_output("production"))
        assert parsed["user_id"] == "u-1"
        assert parsed["lesson_id"] == "l-1"

    def test_clear_drops_fields(self) -> None:
        bind_log_context(user_id="u-1")
        clear_log_context()
        parsed = json.loads(_capture_log_output("production"))
        assert "user_id" not in parsed


class TestRequestLoggingMiddleware:
    @pytest.fixture()
    def test_app(self) -> FastAPI:
        """Minimal FastAPI app with the middleware, in isolation."""
        from lesson_assistant.api.middleware import RequestLoggingMiddleware

        app = FastAPI()
        app.add_middleware(RequestLoggingMiddleware)

        @app.get("/test-endpoint")
        async def _test_endpoint() -> dict[str, str]:
            return {"ok": "true"}

        @app.get("/health")
        async def _health() -> dict[str, str]:
            return {"status": "ok"}

        return app

    async def test_middleware_logs_request(self, test_app: FastAPI) -> None:
        with patch("lesson_assistant.api.middleware.logger") as mock_logger:
            async with AsyncClient(
                transport=ASGITransport(app=test_app),
                base_url="http://test",
            ) as client:
                await client.get("/test-endpoint")

            mock_logger.info.assert_called_once()
            call_args = mock_logger.info.call_args
            assert call_args[0][0] == "http_request"
            assert call_args[1]["method"] == "GET"
            assert call_args[1]["path"] == "/test-endpoint"
            assert call_args[1]["status_code"] == 200
            assert "latency_ms" in call_args[1]

    async def test_middleware_skips_health(self, test_app: FastAPI) -> None:
        with patch("lesson_assistant.api.middleware.logger") as mock_logger:
            async with AsyncClient(
                transport=ASGITransport(app=test_app),
                base_url="http://test",
            ) as client:
                await client.get("/health")

            mock_logger.info.assert_not_called()

    async def test_middleware_clears_stale_context(self, test_app: FastAPI) -> None:
        bind_log_context(user_id="stale")
        with patch("lesson_assistant.api.middleware.clear_log_context") as mock_clear:
            async with AsyncClient(
                transport=ASGITransport(app=test_app),
                base_url="http://test",
            ) as client:
                await client.get("/test-endpoint")
        mock_clear.assert_called_once()
