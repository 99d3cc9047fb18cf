"""JSON-line activity log shared by the HTTP layer and the services.

One line per event with ``timestamp``, ``level``, ``action``, ``order_id``,
``correlation_id`` and ``context``. Lines go to a daily-rotated file and to
stdout.
"""
import json
import logging
import logging.handlers
import os
import traceback
import uuid
from typing import Any, Dict, Optional

from fastapi import Request

from config import settings

LOGGER_NAME = "order_desk"


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps({
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "action": record.getMessage(),
            "order_id": getattr(record, "order_id", "-"),
            "correlation_id": getattr(record, "correlation_id", ""),
            "context": getattr(record, "context", {}),
        }, ensure_ascii=False, default=str)


def _build_logger() -> logging.Logger:
    log_dir = os.path.dirname(settings.LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    # Re-imports must not stack handlers
    logger.handlers.clear()

    formatter = JsonLineFormatter()
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=settings.LOG_FILE,
        when="midnight",
        backupCount=settings.LOG_RETENTION_DAYS,
        encoding="utf-8",
    )
    stream_handler = logging.StreamHandler()
    for handler in (file_handler, stream_handler):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


logger = _build_logger()


def _emit(level: int, action: str, order_id: Optional[str], correlation_id: str, context: Dict[str, Any]):
    logger.log(level, action, extra={
        "order_id": order_id or "-",
        "correlation_id": correlation_id,
        "context": context,
    })


def log_action(action: str, order_id: Optional[str] = None, correlation_id: str = "", context: Optional[Dict[str, Any]] = None):
    _emit(logging.INFO, action, order_id, correlation_id, dict(context or {}))


async def log_request(request: Request, action: str, order_id: Optional[str] = None, context: Optional[Dict[str, Any]] = None) -> str:
    """Log an incoming request and return the correlation id for its follow-up lines."""
    correlation_id = str(uuid.uuid4())
    context = dict(context or {})
    if request is not None:
        context.update({
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else "unknown",
        })
    _emit(logging.INFO, action, order_id, correlation_id, context)
    return correlation_id


def log_error(action: str, error: Exception, order_id: Optional[str] = None, correlation_id: str = "", context: Optional[Dict[str, Any]] = None):
    context = dict(context or {})
    context["error"] = str(error)
    context["stack_trace"] = "".join(traceback.format_tb(error.__traceback__)) if error.__traceback__ else "N/A"
    _emit(logging.ERROR, action, order_id, correlation_id, context)
