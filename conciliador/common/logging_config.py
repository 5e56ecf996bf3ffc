import logging
import json
import os
import uuid
import datetime
from decimal import Decimal
from typing import Any, Optional
from threading import local

# Thread-local storage for context (like request_id)
_context = local()


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return str(value)


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs JSON records.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "request_id": getattr(_context, "request_id", "GLOBAL"),
        }

        # Structured fields passed through StructuredLoggerAdapter
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=_json_default)


def setup_logging(log_level: Optional[int] = None, log_file: Optional[str] = None):
    """
    Configure global logging settings.

    Level and file default to CONCILIADOR_LOG_LEVEL / CONCILIADOR_LOG_FILE.
    An empty log file value disables the file handler.
    """
    if log_level is None:
        level_name = os.getenv("CONCILIADOR_LOG_LEVEL", "INFO").upper()
        log_level = getattr(logging, level_name, logging.INFO)
    if log_file is None:
        log_file = os.getenv("CONCILIADOR_LOG_FILE", "")

    if log_file and os.path.dirname(log_file):
        os.makedirs(os.path.dirname(log_file), exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if root_logger.handlers:
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    logging.info("Logging infrastructure initialized.", extra={"extra_fields": {"status": "ready"}})


def set_request_id(request_id: str):
    """Set the current request ID in context."""
    _context.request_id = request_id


def get_request_id() -> str:
    """Get the current request ID from context."""
    return getattr(_context, "request_id", str(uuid.uuid4()))


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that turns keyword arguments into structured JSON fields.

        logger.info("Statement parsed", tx_count=12, parser="CnabParser")
    """
    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = kwargs.get("extra", {})
        if "extra_fields" not in extra:
            extra["extra_fields"] = {}

        standard_args = {'exc_info', 'stack_info', 'stacklevel', 'extra'}
        new_kwargs = {}
        for key, value in kwargs.items():
            if key in standard_args:
                new_kwargs[key] = value
            elif key == "extra_fields" and isinstance(value, dict):
                extra["extra_fields"].update(value)
            else:
                extra["extra_fields"][key] = value

        new_kwargs["extra"] = extra
        return msg, new_kwargs


def get_logger(name: str) -> StructuredLoggerAdapter:
    """
    Return a structured logger for the given name.
    """
    return StructuredLoggerAdapter(logging.getLogger(name), {})
