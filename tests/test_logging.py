from __future__ import annotations

import io
import json
import logging

from taskboard.core.config import Settings
from taskboard.core.context import bind_actor_id, bind_request_id, reset_actor_id, reset_request_id
from taskboard.core.logging import JsonLogFormatter, build_logging_config, configure_logging


def test_configure_logging_outputs_json_with_request_context() -> None:
    settings = Settings(_env_file=None, environment="test", log_level="INFO")
    configure_logging(settings)

    root_logger = logging.getLogger()
    handler = next(
        (h for h in root_logger.handlers if isinstance(h.formatter, JsonLogFormatter)),
        None,
    )
    assert isinstance(handler, logging.StreamHandler), "Expected JSON stream handler to be configured"

    buffer = io.StringIO()
    previous_stream = handler.setStream(buffer)

    request_token = bind_request_id("req-json-1")
    actor_token = bind_actor_id("user-42")
    try:
        logger = logging.getLogger("taskboard.tests.logging")
        logger.info("structured log event", extra={"component": "unit-test"})
    finally:
        handler.flush()
        reset_actor_id(actor_token)
        reset_request_id(request_token)
        handler.setStream(previous_stream)

    log_lines = buffer.getvalue().strip().splitlines()
    assert log_lines, "Expected structured log line to be captured"
    payload = json.loads(log_lines[-1])

    assert payload["message"] == "structured log event"
    assert payload["request_id"] == "req-json-1"
    assert payload["actor_id"] == "user-42"
    assert payload["environment"] == settings.environment
    assert payload["level"] == "INFO"
    assert payload["component"] == "unit-test"
    assert payload["service"] == settings.project_name


def test_formatter_stringifies_unserialisable_extras() -> None:
    formatter = JsonLogFormatter()
    record = logging.LogRecord("taskboard", logging.WARNING, __file__, 1, "hello %s", ("world",), None)
    record.marker = object()

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "hello world"
    assert payload["request_id"] == "-"
    assert isinstance(payload["marker"], str)


def test_noisy_driver_loggers_stay_at_warning_in_development() -> None:
    config = build_logging_config(Settings(_env_file=None, environment="development"))

    assert config["root"]["level"] == logging.DEBUG
    assert config["loggers"]["aiosqlite"]["level"] == logging.WARNING
    assert config["loggers"]["uvicorn.access"]["propagate"] is False


def test_unknown_log_level_falls_back_to_info() -> None:
    config = build_logging_config(Settings(_env_file=None, log_level="chatty"))
    assert config["root"]["level"] == logging.INFO
