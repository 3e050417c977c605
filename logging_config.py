"""
Logging for the TaskHub service.

Every record carries the request, user and socket connection it was
emitted under, so one HTTP mutation can be followed through the store,
the notifier and the channel fan-out.
"""

import logging
import logging.handlers
import json
import os
from datetime import datetime, timezone
from contextvars import ContextVar

# Set by the request middleware (HTTP) and the socket endpoint (WebSocket)
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
user_id_var: ContextVar[str] = ContextVar("user_id", default="-")
connection_id_var: ContextVar[str] = ContextVar("connection_id", default="-")

# Driver and server chatter we only want at these levels
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "motor": logging.WARNING,
    "pymongo": logging.WARNING,
    "websockets": logging.WARNING,
}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _context() -> dict:
    return {
        "request_id": request_id_var.get(),
        "user_id": user_id_var.get(),
        "connection_id": connection_id_var.get(),
    }


def _extra(record: logging.LogRecord):
    return getattr(record, "data", None) or None


class JSONFormatter(logging.Formatter):
    """One JSON object per line; used for production console and the log file."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            **_context(),
            "message": record.getMessage(),
        }
        data = _extra(record)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        ctx = " ".join(
            f"{key.split('_')[0]}={value}" for key, value in _context().items() if value != "-"
        )
        line = f"{color}{record.levelname:<7}{self.RESET} {record.name} [{ctx or '-'}] {record.getMessage()}"
        data = _extra(record)
        if data:
            line += f"  | data={data}"
        if record.exc_info and record.exc_info[0] is not None:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def _file_handler() -> logging.Handler:
    log_dir = os.path.join(os.path.dirname(__file__), "logs")
    os.makedirs(log_dir, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, "taskhub.log"),
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging():
    """Configure the root logger from ENV / LOG_LEVEL. Safe to call more than once."""
    env = os.getenv("ENV", "development").lower()
    level = os.getenv("LOG_LEVEL", "DEBUG" if env == "development" else "INFO").upper()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(JSONFormatter() if env == "production" else DevFormatter())
    root.addHandler(console)

    # Tests write nothing to disk
    if env != "testing":
        root.addHandler(_file_handler())

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    logging.getLogger("taskhub").info(f"TaskHub logging ready (env={env}, level={level})")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"taskhub.{name}")
