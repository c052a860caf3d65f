import logging
import sys
import json
from datetime import datetime
from typing import Dict, Any, Optional
from pathlib import Path
import re

from app.core.config import settings


class JsonFormatter(logging.Formatter):
    """
    Formatter that writes each log record as a single JSON object.
    Credentials are redacted and long or base64-looking strings are trimmed
    so uploaded images and prompts do not flood the log files.
    """
    SENSITIVE_FIELDS = ['password', 'token', 'authorization', 'secret', 'api_key']
    BASE64_PATTERN = re.compile(r'[A-Za-z0-9+/]{80,}={0,2}')
    MAX_STRING_LENGTH = 1000
    RESERVED_ATTRS = {
        "args", "asctime", "created", "exc_info", "exc_text", "filename",
        "funcName", "id", "levelname", "levelno", "lineno", "module", "msecs",
        "message", "msg", "name", "pathname", "process", "processName",
        "relativeCreated", "stack_info", "thread", "threadName", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": self.sanitize_string(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }
        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]) if record.exc_info[1] else "",
                "traceback": self.formatException(record.exc_info)
            }

        for key, value in record.__dict__.items():
            if key in self.RESERVED_ATTRS:
                continue
            if self.is_sensitive(key):
                log_entry[key] = "[REDACTED]"
                continue
            try:
                if isinstance(value, dict):
                    value = self.sanitize_dict(value)
                elif isinstance(value, str):
                    value = self.sanitize_string(value)
                json.dumps({key: value})
                log_entry[key] = value
            except (TypeError, OverflowError):
                log_entry[key] = str(value)

        return json.dumps(log_entry)

    def is_sensitive(self, key: str) -> bool:
        lowered = key.lower()
        return any(field in lowered for field in self.SENSITIVE_FIELDS)

    def sanitize_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Redact credential-like keys and trim long strings, recursively.
        """
        result = {}
        for key, value in data.items():
            if self.is_sensitive(str(key)):
                result[key] = "[REDACTED]"
            elif isinstance(value, dict):
                result[key] = self.sanitize_dict(value)
            elif isinstance(value, str):
                result[key] = self.sanitize_string(value)
            else:
                result[key] = value
        return result

    def sanitize_string(self, value: str) -> str:
        if not isinstance(value, str):
            return value

        sanitized = self.BASE64_PATTERN.sub("[BASE64 DATA REMOVED]", value)

        if len(sanitized) > self.MAX_STRING_LENGTH:
            return sanitized[:self.MAX_STRING_LENGTH] + f"... [TRUNCATED, total length: {len(value)} chars]"

        return sanitized


def setup_logging() -> logging.Logger:
    """
    Configure the "app" logger: console output in LOG_FORMAT plus an optional
    daily JSON file under logs/.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    app_logger = logging.getLogger("app")
    app_logger.setLevel(level)
    app_logger.propagate = False
    app_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_FORMAT.lower() == "json":
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-8s [%(logger_name)s] %(message)s",
            defaults={"logger_name": "app"}
        ))
    app_logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)
        file_handler = logging.FileHandler(log_dir / f"quickgpt-{datetime.now():%Y-%m-%d}.log")
        file_handler.setFormatter(JsonFormatter())
        app_logger.addHandler(file_handler)

    setup_vendor_loggers()
    return app_logger


def setup_vendor_loggers() -> None:
    """
    Quiet the HTTP client libraries used by the vendor SDKs unless debugging.
    """
    vendor_level = logging.DEBUG if settings.DEBUG else logging.WARNING
    for name in ("httpx", "httpcore", "openai", "stripe"):
        logging.getLogger(name).setLevel(vendor_level)


class ContextLogger(logging.LoggerAdapter):
    """Adapter whose `extra` fields end up as keys of the JSON log line."""
    def __init__(self, logger, extra=None):
        super().__init__(logger, extra or {})

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **context) -> "ContextLogger":
        return ContextLogger(self.logger, {**self.extra, **context})


logger = ContextLogger(setup_logging())


def get_logger(name: Optional[str] = None, **context) -> ContextLogger:
    """`get_logger("payments", transaction_id=...)` tags every line with those fields."""
    if name:
        context["logger_name"] = name
    return logger.bind(**context)
