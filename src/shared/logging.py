"""Structured logging setup for mcpeek.

Uses structlog for consistent, machine-parseable log output. Log output
goes to stderr so it never mixes with command output, and can also be
mirrored into an in-memory LogBuffer for a debug display.
"""

import logging
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import BaseModel
from structlog.types import EventDict, Processor

# Keep the newest entries; trim the oldest chunk once over the cap
MAX_BUFFERED_ENTRIES = 10000
TRIM_CHUNK = 1000


class LogEntry(BaseModel):
    """A single timestamped, leveled log record."""
    timestamp: str
    level: str
    target: str
    message: str

    @classmethod
    def create(cls, level: str, target: str, message: str) -> "LogEntry":
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        return cls(
            timestamp=timestamp.replace("+00:00", "Z"),
            level=level.upper(),
            target=target,
            message=message
        )


class LogBuffer:
    """Thread-safe bounded store of LogEntry records."""

    def __init__(self, max_entries: int = MAX_BUFFERED_ENTRIES) -> None:
        self.max_entries = max_entries
        self._entries: list[LogEntry] = []
        self._lock = threading.Lock()

    def push(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)
            if len(self._entries) > self.max_entries:
                del self._entries[:TRIM_CHUNK]

    def get_all(self) -> list[LogEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class LineBuffer:
    """
    Unbounded list of raw log lines that is drained by its reader.

    Appends may come from any task or thread; drain() hands back
    everything accumulated since the previous drain.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    def drain(self) -> list[str]:
        with self._lock:
            lines, self._lines = self._lines, []
        return lines


class BufferProcessor:
    """structlog processor that copies every event into a LogBuffer."""

    def __init__(self, buffer: LogBuffer) -> None:
        self.buffer = buffer

    def __call__(
        self, logger: Any, method_name: str, event_dict: EventDict
    ) -> EventDict:
        context = " ".join(
            f"{key}={value}"
            for key, value in event_dict.items()
            if key not in ("event", "level", "timestamp", "logger")
        )
        message = str(event_dict.get("event", ""))
        if context:
            message = f"{message} {context}"

        self.buffer.push(LogEntry.create(
            level=event_dict.get("level", method_name),
            target=str(event_dict.get("logger", "")),
            message=message
        ))
        return event_dict


def add_logger_name(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """Carry the name given to get_logger() into the event dict."""
    name = event_dict.pop("_logger_name", None)
    if name:
        event_dict["logger"] = name
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    buffer: Optional[LogBuffer] = None
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON; otherwise, use colored console output
        buffer: Optional LogBuffer that receives a copy of every event
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if buffer is not None:
        shared_processors.append(BufferProcessor(buffer))

    if json_output:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically module name)
        **initial_context: Initial context values to bind to logger

    Returns:
        A bound structlog logger instance
    """
    logger = structlog.get_logger(name)
    if name:
        initial_context.setdefault("_logger_name", name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


def bind_context(**context: Any) -> None:
    """Bind context values to all loggers in the current context."""
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Clear all bound context values."""
    structlog.contextvars.clear_contextvars()
