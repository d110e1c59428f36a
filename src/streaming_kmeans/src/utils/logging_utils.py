from __future__ import annotations

import sys
from collections import deque
from threading import Lock

from loguru import logger

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
RECENT_LOGS_CAPACITY = 1000

_recent_logs: deque = deque(maxlen=RECENT_LOGS_CAPACITY)
_recent_lock = Lock()


def _remember(message) -> None:
    record = message.record
    entry = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "level_no": record["level"].no,
        "name": record["name"],
        "function": record["function"],
        "message": record["message"],
        "extra": {key: _jsonable(value) for key, value in record["extra"].items()},
    }
    with _recent_lock:
        _recent_logs.append(entry)


def _jsonable(value: object) -> object:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def configure_logger(level: str = "INFO") -> None:
    """Configure Loguru console logger with colored output and the recent-logs buffer."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        colorize=True,
        format=LOG_FORMAT,
        backtrace=True,
        diagnose=True,
    )
    logger.add(_remember, level=level.upper())


def get_recent_logs(limit: int = 200, min_level: str | None = None) -> list[dict[str, object]]:
    """Return up to `limit` most recent log entries, oldest first."""
    if limit <= 0:
        return []
    with _recent_lock:
        entries = list(_recent_logs)
    if min_level is not None:
        threshold = logger.level(min_level.upper()).no
        entries = [entry for entry in entries if entry["level_no"] >= threshold]
    return entries[-limit:]


def clear_recent_logs() -> None:
    with _recent_lock:
        _recent_logs.clear()


def log_info(message: str, **kwargs) -> None:
    logger.bind(**kwargs).info(message)


def log_warning(message: str, **kwargs) -> None:
    logger.bind(**kwargs).warning(message)


def log_error(message: str, **kwargs) -> None:
    logger.bind(**kwargs).error(message)
