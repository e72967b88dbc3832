from __future__ import annotations

import io
import json
import logging
from typing import Iterator

import pytest
import structlog

from kubedeploy.core import logging as app_logging
from kubedeploy.core.request_context import request_id_var
from tests.conftest import make_settings


@pytest.fixture
def json_output(monkeypatch: pytest.MonkeyPatch) -> Iterator[io.StringIO]:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    saved_config = structlog.get_config()
    monkeypatch.setattr(app_logging, "_CONFIGURED", False)

    app_logging.setup_logging(make_settings(log_json=True, log_level="INFO"))
    buffer = io.StringIO()
    root.handlers[0].setStream(buffer)
    yield buffer

    root.handlers = saved_handlers
    root.setLevel(saved_level)
    structlog.configure(**saved_config)


def _lines(buffer: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in buffer.getvalue().splitlines()]


def test_structlog_event_is_one_flat_json_object(json_output: io.StringIO) -> None:
    token = request_id_var.set("req-1")
    try:
        app_logging.get_logger("kubedeploy.tests").info("auth.login", user_id=7, password="hunter2")
    finally:
        request_id_var.reset(token)

    [line] = _lines(json_output)
    assert line["message"] == "auth.login"
    assert line["level"] == "INFO"
    assert line["name"] == "kubedeploy.tests"
    assert line["user_id"] == 7
    assert line["request_id"] == "req-1"
    assert line["password"] == "***REDACTED***"


def test_stdlib_records_share_the_json_shape(json_output: io.StringIO) -> None:
    logging.getLogger("uvicorn.error").warning("worker %s restarted", 3)

    [line] = _lines(json_output)
    assert line["message"] == "worker 3 restarted"
    assert line["level"] == "WARNING"
    assert line["request_id"] == "-"


def test_logged_exception_stays_on_one_line(json_output: io.StringIO) -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        app_logging.get_logger("kubedeploy.tests").exception("database.seed_failed")

    [line] = _lines(json_output)
    assert line["message"] == "database.seed_failed"
    assert "RuntimeError: boom" in json.dumps(line)
