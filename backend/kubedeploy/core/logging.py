"""
Logging configuration for KubeDeploy.

The root logger gets a single console handler (plain or JSON). structlog
loggers used by the services render through the same handler, so every line
carries the request id of the request that produced it.
"""
import json
import logging
import sys
from typing import Any, Dict, Optional

import structlog

from kubedeploy.config import Settings, get_settings
from kubedeploy.core.request_context import request_id_var

_CONFIGURED = False

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ContextFilter(logging.Filter):
    """Injects request_id into every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        rid = getattr(record, "request_id", None) or request_id_var.get()
        record.request_id = rid or "-"
        if not hasattr(record, "service"):
            record.service = "kube-deploy"
        return True


class JSONFormatter(logging.Formatter):
    """JSON structured log formatter.

    Emits time, level, name, message and request_id, merges extra record
    attributes and redacts credential-looking keys.
    """

    REDACT_KEYS = {"password", "secret", "token", "authorization", "jwt"}
    _RESERVED = {
        "args", "asctime", "created", "exc_info", "exc_text", "filename", "funcName", "levelname",
        "levelno", "lineno", "module", "msecs", "message", "msg", "name", "pathname", "process",
        "processName", "relativeCreated", "stack_info", "thread", "threadName", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in self._RESERVED or key.startswith("_"):
                continue
            payload[key] = "***REDACTED***" if key.lower() in self.REDACT_KEYS else value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _add_request_id(_logger: Any, _method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    rid = request_id_var.get()
    if rid and "request_id" not in event_dict:
        event_dict["request_id"] = rid
    return event_dict


def _configure_structlog(json_output: bool) -> None:
    # JSON mode passes the event dict on as record extras so JSONFormatter
    # writes one flat object; plain mode renders key=value into the message.
    last: Any = structlog.stdlib.render_to_log_kwargs if json_output else structlog.processors.KeyValueRenderer(
        key_order=["event"], drop_missing=True
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            _add_request_id,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.format_exc_info,
            last,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def setup_logging(settings: Optional[Settings] = None, level: Optional[str] = None) -> logging.Logger:
    """Configure the root logger once.

    Args:
        settings: application settings, defaults to the cached ones
        level: overrides settings.log_level

    Returns:
        logging.Logger: the application logger
    """
    global _CONFIGURED
    logger = logging.getLogger("kubedeploy")

    if _CONFIGURED:
        return logger

    settings = settings or get_settings()
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.addFilter(ContextFilter())
    if settings.log_json:
        console_handler.setFormatter(JSONFormatter(datefmt=LOG_DATE_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT + " [%(request_id)s]", datefmt=LOG_DATE_FORMAT))
    root.addHandler(console_handler)

    # route uvicorn through the root handler
    for log_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        named = logging.getLogger(log_name)
        named.handlers = []
        named.propagate = True

    _configure_structlog(settings.log_json)

    _CONFIGURED = True
    return logger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
