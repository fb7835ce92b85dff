"""
Structured logging for the statement pipeline.

Every record is rendered as one JSON object. Keyword arguments given to a
logger from get_logger() end up as top-level keys of that object, and the
processing session currently running on the thread is stamped on each line.
"""
import datetime
import json
import logging
import os
import traceback
from threading import local
from typing import Any, Dict, List, Optional

DEFAULT_SESSION = "GLOBAL"
DEFAULT_LOG_FILE = os.path.join("logs", "statement_intel.log")

# Logger.log keyword arguments; anything else becomes a structured field
_LOG_KWARGS = frozenset({'exc_info', 'stack_info', 'stacklevel', 'extra'})

_session = local()


def set_session_id(session_id: Optional[str]):
    """Bind a processing session to the current thread (None resets it)."""
    _session.id = DEFAULT_SESSION if session_id is None else session_id


def get_session_id() -> str:
    return getattr(_session, "id", DEFAULT_SESSION)


class JSONFormatter(logging.Formatter):
    """
    One JSON document per record: source location, session, structured
    fields and, when present, the formatted exception with its stack.
    """
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "session_id": get_session_id(),
        }

        fields = getattr(record, "extra_fields", None)
        if isinstance(fields, dict):
            payload.update(fields)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
            payload["stack_trace"] = "".join(traceback.format_exception(*record.exc_info))

        # Dates and Decimals in fields are written as strings
        return json.dumps(payload, ensure_ascii=False, default=str)


def _handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    return handlers


def setup_logging(log_level: int = logging.INFO, log_file: Optional[str] = DEFAULT_LOG_FILE):
    """
    Route the root logger to stderr and, optionally, a JSON lines file.
    Previously installed root handlers are dropped.
    """
    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    formatter = JSONFormatter()
    for handler in _handlers(log_file):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.info("Logging infrastructure initialized.", extra={"extra_fields": {
        "status": "ready",
        "log_level": logging.getLevelName(log_level),
        "log_file": log_file,
    }})


class PipelineLoggerAdapter(logging.LoggerAdapter):
    """
    Lets callers write logger.info("Statement parsed.", bank="HSBC", tx_count=3).
    """
    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        fields = dict(extra.get("extra_fields") or {})

        passthrough = {}
        for key, value in kwargs.items():
            if key in _LOG_KWARGS:
                passthrough[key] = value
            else:
                fields[key] = value

        extra["extra_fields"] = fields
        passthrough["extra"] = extra
        return msg, passthrough


def get_logger(name: str) -> PipelineLoggerAdapter:
    return PipelineLoggerAdapter(logging.getLogger(name), {})
