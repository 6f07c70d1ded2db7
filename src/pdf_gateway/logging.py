from __future__ import annotations

import json
import logging
import sys
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "httpx", "httpcore")

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> | {message}"
)


class InterceptHandler(logging.Handler):
    """Forward standard-library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str = "INFO", *, json_logs: bool = False) -> int:
    """Install the stderr sink and route uvicorn/httpx logging through loguru."""

    logger.remove()
    if json_logs:
        handler_id = logger.add(sys.stderr, level=level, serialize=True)
    else:
        handler_id = logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)
    intercept = InterceptHandler()
    for name in INTERCEPTED_LOGGERS:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [intercept]
        stdlib_logger.propagate = False
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return handler_id


@dataclass(slots=True)
class RunLogEntry:
    request_id: str
    workflow: str
    conversion_type: str
    status: str
    item_count: int
    duration_ms: float
    output_bytes: int = 0
    session_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    endpoints: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RunLogger:
    """Append-only JSONL audit trail, one line per handled request."""

    def __init__(self, log_file: Path) -> None:
        self._log_file = log_file
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._log_file

    def append(self, entry: RunLogEntry) -> None:
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        try:
            with self._lock:
                self._log_file.parent.mkdir(parents=True, exist_ok=True)
                with self._log_file.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
        except OSError as exc:
            logger.warning(f"[Audit] Could not append to {self._log_file}: {exc}")


__all__ = ["InterceptHandler", "RunLogEntry", "RunLogger", "configure_logging"]
